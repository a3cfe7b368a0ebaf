from __future__ import annotations

import sys
from pathlib import Path

import pytest
from loguru import logger

from pluginhost.config import LoggingConfig
from pluginhost.logging_utils import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_default_sink():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_sink_tags_component(tmp_path: Path) -> None:
    config = LoggingConfig(level="debug", log_dir=tmp_path / "logs", file_name="host.log")

    configure_logging(config)
    get_logger("plugins").debug("Indexed {}", "greeter")
    get_logger().info("started")
    logger.remove()

    lines = (tmp_path / "logs" / "host.log").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "| DEBUG    | plugins |" in lines[0]
    assert lines[0].endswith("Indexed greeter")
    assert "| host |" in lines[1]


def test_level_override_filters_file_sink(tmp_path: Path) -> None:
    config = LoggingConfig(level="DEBUG", log_dir=tmp_path)

    configure_logging(config, level="warning")
    get_logger("plugins").info("quiet")
    get_logger("plugins").warning("loud")
    logger.remove()

    content = (tmp_path / "pluginhost.log").read_text(encoding="utf-8")
    assert "quiet" not in content
    assert "loud" in content
