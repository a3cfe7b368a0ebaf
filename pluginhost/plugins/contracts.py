"""Capability contracts and structural validation of plugin instances."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .errors import CapabilityNotImplemented, UnknownCapabilityType

_SKIPPED_MODULES = {"builtins", "abc", "typing", "typing_extensions"}
_MISSING = object()


@dataclass(frozen=True)
class CapabilityContract:
    """Members a plugin instance must expose to be accepted under ``name``.

    ``operations`` must be callable on the instance; ``attributes`` only have
    to exist.
    """

    name: str
    operations: frozenset[str]
    attributes: frozenset[str] = frozenset()

    @classmethod
    def from_shape(cls, name: str, shape: Any) -> "CapabilityContract":
        """Build a contract from a contract, a class or protocol, or operation names."""

        if isinstance(shape, CapabilityContract):
            return cls(name=name, operations=shape.operations, attributes=shape.attributes)
        if inspect.isclass(shape):
            return cls.from_class(name, shape)
        if isinstance(shape, (str, bytes)) or not isinstance(shape, Iterable):
            raise TypeError(f"Unsupported contract shape for '{name}': {shape!r}")
        return cls(name=name, operations=frozenset(str(item) for item in shape))

    @classmethod
    def from_class(cls, name: str, shape: type) -> "CapabilityContract":
        operations: set[str] = set()
        attributes: set[str] = set()
        for klass in shape.__mro__:
            if klass.__module__ in _SKIPPED_MODULES:
                continue
            for member, value in vars(klass).items():
                if member.startswith("_"):
                    continue
                if isinstance(value, property):
                    attributes.add(member)
                elif isinstance(value, (staticmethod, classmethod)) or inspect.isfunction(value):
                    operations.add(member)
            for member in inspect.get_annotations(klass):
                if not member.startswith("_"):
                    attributes.add(member)
        return cls(
            name=name,
            operations=frozenset(operations),
            attributes=frozenset(attributes - operations),
        )

    def missing_members(self, instance: Any) -> list[str]:
        missing = [op for op in sorted(self.operations) if not callable(getattr(instance, op, None))]
        missing.extend(
            attr
            for attr in sorted(self.attributes)
            if inspect.getattr_static(instance, attr, _MISSING) is _MISSING
        )
        return missing


def validate_capability(
    instance: Any,
    capability_type: str,
    contracts: Mapping[str, CapabilityContract],
) -> None:
    """Check ``instance`` against the contract registered for ``capability_type``."""

    contract = contracts.get(capability_type)
    if contract is None:
        raise UnknownCapabilityType(capability_type)
    missing = contract.missing_members(instance)
    if missing:
        raise CapabilityNotImplemented(capability_type, missing, instance)
