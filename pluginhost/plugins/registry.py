"""Validated plugin records and capability contracts."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .contracts import CapabilityContract, validate_capability
from .manifest import PluginConfig
from ..logging_utils import get_logger
from ..observability.metrics import plugins_registered


@dataclass(frozen=True)
class PluginRecord:
    config: PluginConfig
    root_path: Path
    instance: Any

    @property
    def name(self) -> str:
        return self.config.name


class PluginRegistry:
    """Name to record and type to contract maps.

    Records only enter through ``register``, which validates the instance
    against the contract of its declared type first. Not synchronized;
    callers serialize writers.
    """

    def __init__(self) -> None:
        self._records: dict[str, PluginRecord] = {}
        self._contracts: dict[str, CapabilityContract] = {}
        self._log = get_logger("plugins")

    def register_type(self, name: str, shape: Any) -> CapabilityContract:
        contract = CapabilityContract.from_shape(name, shape)
        self._contracts[name] = contract
        self._log.debug(
            "Registered capability type {} ({} operations, {} attributes)",
            name,
            len(contract.operations),
            len(contract.attributes),
        )
        return contract

    def register(self, record: PluginRecord) -> None:
        validate_capability(record.instance, record.config.plugin_type, self._contracts)
        previous = self._records.get(record.name)
        if previous is not None and previous.root_path != record.root_path:
            self._log.warning(
                "Plugin name {} from {} replaces the one from {}",
                record.name,
                record.root_path,
                previous.root_path,
            )
        self._records[record.name] = record
        plugins_registered.set(len(self._records))

    def discard(self, names: Iterable[str]) -> None:
        for name in names:
            self._records.pop(name, None)
        plugins_registered.set(len(self._records))

    def get(self, name: str) -> tuple[Any, bool]:
        record = self._records.get(name)
        if record is None:
            return None, False
        return record.instance, True

    def record(self, name: str) -> PluginRecord | None:
        return self._records.get(name)

    def records(self) -> list[PluginRecord]:
        return [self._records[name] for name in sorted(self._records)]

    def list_names(self) -> list[str]:
        return sorted(self._records)

    def list_names_for_type(self, capability_type: str) -> list[str]:
        return sorted(
            name
            for name, record in self._records.items()
            if record.config.plugin_type == capability_type
        )

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)
