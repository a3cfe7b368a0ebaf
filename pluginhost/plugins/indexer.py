"""Content-hash indexes of the archive and cache directories."""

from __future__ import annotations

import os
import zipfile
from pathlib import Path
from typing import Iterable

from .constants import ARCHIVE_SUFFIXES, METADATA_FILENAME
from .errors import FormatError
from .hash import sha256_bytes, sha256_file
from .identity import ArchivedIdentity, Identity, LocalIdentity
from .manifest import decode_config
from ..logging_utils import get_logger

_log = get_logger("plugins")


def index_archives(
    archive_dir: Path,
    *,
    suffixes: Iterable[str] = ARCHIVE_SUFFIXES,
) -> dict[str, Path]:
    """Map the SHA-256 of every archive under ``archive_dir`` to its path.

    Every file found must be a zip archive with one of ``suffixes``;
    anything else raises ``FormatError`` and no index is returned.
    """

    allowed = tuple(suffix.lower() for suffix in suffixes)
    index: dict[str, Path] = {}
    for path in _walk_files(archive_dir):
        if not path.name.lower().endswith(allowed):
            raise FormatError(f"File {path} is not a plugin archive")
        if not zipfile.is_zipfile(path):
            raise FormatError(f"File {path} is not a readable zip archive")
        digest = sha256_file(path)
        if digest in index:
            _log.warning("Archives {} and {} have identical content", index[digest], path)
        index[digest] = path
    return index


def index_cache(
    cache_dir: Path,
    *,
    metadata_filename: str = METADATA_FILENAME,
) -> dict[Path, Identity]:
    """Map every metadata file under ``cache_dir`` to the identity of its plugin.

    Local plugins are identified by a digest of their metadata bytes, all
    others by the archive hash stamped into their metadata. A directory that
    holds a metadata file is a plugin root and its subtree is not searched,
    except for the cache root itself.
    """

    top = Path(cache_dir)
    index: dict[Path, Identity] = {}
    for root, dirnames, filenames in os.walk(top, onerror=_raise):
        dirnames.sort()
        current = Path(root)
        if metadata_filename in filenames and current != top:
            dirnames[:] = []
        else:
            dirnames[:] = [name for name in dirnames if not name.startswith(".")]
        if metadata_filename not in filenames:
            continue
        metadata_path = current / metadata_filename
        raw = metadata_path.read_bytes()
        config = decode_config(raw)
        if config.local:
            identity: Identity = LocalIdentity(sha256_bytes(raw))
        else:
            identity = ArchivedIdentity(config.hash)
        index[metadata_path] = identity
        _log.debug("Indexed {} as {}", metadata_path, identity.key or "<unstamped>")
    return index


def _walk_files(root: Path) -> Iterable[Path]:
    for current, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames.sort()
        for filename in sorted(filenames):
            yield Path(current) / filename


def _raise(exc: OSError) -> None:
    raise exc
