"""Loguru sinks for the plugin host."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional

from loguru import logger

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from .config import LoggingConfig

DEFAULT_COMPONENT = "host"

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> "
    "<level>{level: <7}</level> "
    "<cyan>[{extra[component]}]</cyan> "
    "<level>{message}</level>"
)
_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | "
    "{name}:{line} - {message}"
)


def configure_logging(config: "LoggingConfig", *, level: Optional[str] = None) -> None:
    """Send host logs to stderr, plus a rotating file when ``log_dir`` is set.

    ``level`` overrides ``config.level``, as the CLI's ``--log-level`` does.
    """

    level = (level or config.level).upper()
    logger.remove()
    logger.configure(extra={"component": DEFAULT_COMPONENT})
    logger.add(sys.stderr, format=_CONSOLE_FORMAT, colorize=True, level=level)
    if config.log_dir is None:
        return
    config.log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        config.log_dir / config.file_name,
        rotation=config.rotation,
        retention=config.retention,
        level=level,
        format=_FILE_FORMAT,
        backtrace=False,
        diagnose=False,
    )


def get_logger(component: str = DEFAULT_COMPONENT):
    """Return the shared logger tagged with ``component``."""

    return logger.bind(component=component)
