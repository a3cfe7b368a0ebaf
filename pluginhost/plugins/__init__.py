"""Archive-backed plugin cache, reconciliation and capability validation."""

from .contracts import CapabilityContract, validate_capability
from .errors import (
    CapabilityNotImplemented,
    ConfigDecodeError,
    ExtractionError,
    FormatError,
    MissingDirectoryConfig,
    NoSuchPlugin,
    PluginError,
    PluginLoadError,
    UnknownCapabilityType,
)
from .host import PluginHost, ReconciliationReport
from .manifest import PluginConfig, decode_config, encode_config
from .registry import PluginRecord, PluginRegistry

__all__ = [
    "CapabilityContract",
    "CapabilityNotImplemented",
    "ConfigDecodeError",
    "ExtractionError",
    "FormatError",
    "MissingDirectoryConfig",
    "NoSuchPlugin",
    "PluginConfig",
    "PluginError",
    "PluginHost",
    "PluginLoadError",
    "PluginRecord",
    "PluginRegistry",
    "ReconciliationReport",
    "UnknownCapabilityType",
    "decode_config",
    "encode_config",
    "validate_capability",
]
