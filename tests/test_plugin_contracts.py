from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from pluginhost.plugins.contracts import CapabilityContract, validate_capability
from pluginhost.plugins.errors import CapabilityNotImplemented, UnknownCapabilityType


class Storage(Protocol):
    bucket: str

    @property
    def read_only(self) -> bool: ...

    def get(self, key: str) -> bytes: ...

    def put(self, key: str, value: bytes) -> None: ...


class Exporter(ABC):
    @abstractmethod
    def export(self, payload: dict) -> bytes: ...

    def _helper(self) -> None:
        pass


def test_contract_from_protocol() -> None:
    contract = CapabilityContract.from_shape("storage", Storage)

    assert contract.name == "storage"
    assert contract.operations == frozenset({"get", "put"})
    assert contract.attributes == frozenset({"bucket", "read_only"})


def test_contract_from_abc_skips_private_members() -> None:
    contract = CapabilityContract.from_shape("exporter", Exporter)

    assert contract.operations == frozenset({"export"})
    assert contract.attributes == frozenset()


def test_contract_from_operation_names() -> None:
    contract = CapabilityContract.from_shape("exporter", ("export", "close"))

    assert contract.operations == frozenset({"export", "close"})


def test_contract_is_renamed_when_reused() -> None:
    original = CapabilityContract("a", frozenset({"run"}), frozenset({"name"}))

    contract = CapabilityContract.from_shape("b", original)

    assert contract == CapabilityContract("b", frozenset({"run"}), frozenset({"name"}))


@pytest.mark.parametrize("shape", ["export", 42, None])
def test_unsupported_shapes_are_rejected(shape) -> None:
    with pytest.raises(TypeError):
        CapabilityContract.from_shape("bad", shape)


def test_validate_accepts_structural_match() -> None:
    class MemoryStorage:
        read_only = False

        def __init__(self) -> None:
            self.bucket = "mem"

        def get(self, key: str) -> bytes:
            return b""

        def put(self, key: str, value: bytes) -> None:
            return None

    contracts = {"storage": CapabilityContract.from_shape("storage", Storage)}

    assert validate_capability(MemoryStorage(), "storage", contracts) is None


def test_validate_reports_every_missing_member() -> None:
    class HalfStorage:
        def get(self, key: str) -> bytes:
            return b""

        put = "not callable"

    contracts = {"storage": CapabilityContract.from_shape("storage", Storage)}

    with pytest.raises(CapabilityNotImplemented) as excinfo:
        validate_capability(HalfStorage(), "storage", contracts)

    assert excinfo.value.missing == ["put", "bucket", "read_only"]
    assert "HalfStorage" in str(excinfo.value)


def test_validate_unknown_type() -> None:
    with pytest.raises(UnknownCapabilityType):
        validate_capability(object(), "storage", {})


def test_property_is_not_evaluated_during_validation() -> None:
    class Exploding:
        bucket = "b"

        @property
        def read_only(self) -> bool:
            raise RuntimeError("side effect")

        def get(self, key: str) -> bytes:
            return b""

        def put(self, key: str, value: bytes) -> None:
            return None

    contracts = {"storage": CapabilityContract.from_shape("storage", Storage)}

    validate_capability(Exploding(), "storage", contracts)
