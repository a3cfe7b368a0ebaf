"""Constants for plugin system."""

from __future__ import annotations

METADATA_FILENAME = "plugin.yml"

ARCHIVE_SUFFIXES = (".zip",)

PLUGIN_SYMBOL = "Plugin"

LOCAL_HASH_PREFIX = "local-"

INTERNAL_ROOT = "internal"
