"""Plugin error types."""

from __future__ import annotations


class PluginError(RuntimeError):
    """Base error for plugin system."""


class FormatError(PluginError):
    """Archive directory holds an entry that is not a recognized archive."""


class ConfigDecodeError(PluginError):
    """Plugin metadata could not be parsed."""


class ExtractionError(PluginError):
    """Archive could not be unpacked into the cache."""


class PluginLoadError(PluginError):
    """Loader failed to materialize a plugin instance."""


class UnknownCapabilityType(PluginError):
    """Plugin declares a capability type that was never registered."""

    def __init__(self, capability_type: str) -> None:
        self.capability_type = capability_type
        super().__init__(f"Plugin type '{capability_type}' is not a registered capability type")


class CapabilityNotImplemented(PluginError):
    """Plugin instance does not satisfy its capability contract."""

    def __init__(self, capability_type: str, missing: list[str], instance: object = None) -> None:
        self.capability_type = capability_type
        self.missing = missing
        subject = type(instance).__name__ if instance is not None else "plugin"
        super().__init__(
            f"{subject} does not implement the '{capability_type}' capability; "
            f"missing: {', '.join(missing)}"
        )


class NoSuchPlugin(PluginError, KeyError):
    """Query named a plugin that is not registered."""

    def __init__(self, name: str) -> None:
        self.plugin_name = name
        super().__init__(f"No such plugin '{name}'")

    def __str__(self) -> str:
        return str(self.args[0])


class MissingDirectoryConfig(PluginError):
    """Load attempted without both archive and cache directories configured."""
