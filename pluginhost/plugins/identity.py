"""Content identities for archives and cached plugin roots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .constants import LOCAL_HASH_PREFIX


@dataclass(frozen=True)
class ArchivedIdentity:
    """Cache entry extracted from the archive whose SHA-256 is ``digest``."""

    digest: str

    @property
    def key(self) -> str:
        return self.digest


@dataclass(frozen=True)
class LocalIdentity:
    """Cache entry with no backing archive, identified by its metadata digest."""

    digest: str

    @property
    def key(self) -> str:
        return f"{LOCAL_HASH_PREFIX}{self.digest}"


Identity = Union[ArchivedIdentity, LocalIdentity]

