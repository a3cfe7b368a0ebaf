"""Host for archive-distributed, capability-typed plugins."""

from __future__ import annotations

from .config import HostConfig, load_config
from .logging_utils import configure_logging
from .plugins import PluginConfig, PluginHost

__all__ = ["HostConfig", "PluginConfig", "PluginHost", "configure_logging", "load_config"]

__version__ = "0.1.0"
