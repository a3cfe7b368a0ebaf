"""Plugin metadata model and its YAML codec."""

from __future__ import annotations

from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigDecodeError


class PluginConfig(BaseModel):
    """Contents of the metadata file found at the root of every plugin.

    ``hash`` is filled in by the host the first time an archived plugin is
    reconciled and must not be edited by hand. ``internal`` only exists at
    runtime and is never written back to disk.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    import_path: str = Field(..., alias="import", description="Module to import, optionally 'module:Symbol'.")
    plugin_type: str = Field(..., alias="type", description="Capability type the plugin is checked against.")
    name: str = Field(..., description="Unique lookup key of the plugin.")
    local: bool = Field(False, description="Plugin has no backing archive and is never evicted.")
    internal: bool = Field(False, exclude=True)
    description: str = ""
    hash: str = ""

    @model_validator(mode="before")
    @classmethod
    def _drop_runtime_fields(cls, data: Any) -> Any:
        if isinstance(data, dict) and "internal" in data:
            data = {key: value for key, value in data.items() if key != "internal"}
        return data

    @field_validator("description", "hash", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("import_path", "plugin_type", "name")
    @classmethod
    def _require_value(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def stamped(self) -> bool:
        return bool(self.hash)


def parse_config(payload: dict[str, Any]) -> PluginConfig:
    if not isinstance(payload, dict):
        raise ConfigDecodeError("Plugin metadata must be a mapping")
    try:
        return PluginConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigDecodeError(str(exc)) from exc


def decode_config(data: bytes) -> PluginConfig:
    try:
        payload = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigDecodeError(f"Malformed plugin metadata: {exc}") from exc
    return parse_config(payload)


def encode_config(config: PluginConfig) -> bytes:
    payload = config.model_dump(by_alias=True)
    if not payload.get("local"):
        payload.pop("local", None)
    if not payload.get("hash"):
        payload.pop("hash", None)
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True).encode("utf-8")
