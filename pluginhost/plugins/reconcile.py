"""Diff the archive set against the extracted cache and apply the result.

A pass has two phases. ``plan_reconciliation`` is pure: archive hashes that
no cached plugin was stamped with are scheduled for extraction, and cached
plugins stamped with a hash that no archive carries any more are scheduled
for eviction. Local plugins are never scheduled for eviction.

``apply_plan`` then mutates the cache, always extracting everything before
evicting anything. When an archive is updated in place its old hash
disappears in the same pass that the new one appears; extracting first means
the replacement is on disk before the old copy is deleted. Extracted roots
are named after the archive and a prefix of its hash so the replacement never
lands in the directory that is about to be evicted.

The pass is not transactional: a failure leaves whatever was extracted or
evicted before it on disk, and the next pass picks up from there.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .constants import METADATA_FILENAME
from .errors import ExtractionError
from .extractor import Extractor
from .hash import sha256_bytes
from .identity import ArchivedIdentity, Identity, LocalIdentity
from .manifest import PluginConfig, decode_config, encode_config
from ..fs_utils import atomic_write_bytes, remove_tree, safe_unlink
from ..logging_utils import get_logger
from ..observability.metrics import archives_extracted_total, cache_evictions_total

_log = get_logger("plugins")

_DIR_HASH_CHARS = 12


@dataclass(frozen=True)
class ReconciliationPlan:
    to_extract: dict[str, Path] = field(default_factory=dict)
    to_evict: tuple[Path, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.to_extract and not self.to_evict


def plan_reconciliation(
    archive_index: dict[str, Path],
    cache_index: dict[Path, Identity],
) -> ReconciliationPlan:
    cached_hashes = {
        identity.digest
        for identity in cache_index.values()
        if isinstance(identity, ArchivedIdentity)
    }
    to_extract = {
        digest: path for digest, path in archive_index.items() if digest not in cached_hashes
    }
    to_evict = tuple(
        sorted(
            path
            for path, identity in cache_index.items()
            if isinstance(identity, ArchivedIdentity) and identity.digest not in archive_index
        )
    )
    return ReconciliationPlan(to_extract=to_extract, to_evict=to_evict)


def apply_plan(
    plan: ReconciliationPlan,
    *,
    cache_dir: Path,
    cache_index: dict[Path, Identity],
    extractor: Extractor,
    metadata_filename: str = METADATA_FILENAME,
) -> dict[Path, Identity]:
    """Extract then evict, returning the cache index the pass leaves behind."""

    evicted = set(plan.to_evict)
    result = {path: identity for path, identity in cache_index.items() if path not in evicted}

    fresh_roots: list[Path] = []
    for digest, archive_path in sorted(plan.to_extract.items(), key=lambda item: str(item[1])):
        destination = cache_dir / extracted_dir_name(archive_path, digest)
        fresh_roots.append(destination)
        _log.info("Extracting {} into {}", archive_path, destination)
        extractor.extract(archive_path, destination)
        metadata_path = locate_metadata(destination, metadata_filename)
        config = stamp_hash(metadata_path, digest, fresh=True)
        archives_extracted_total.inc()
        if config.local:
            _log.warning(
                "Archive {} ships local metadata; it will be extracted again on every pass",
                archive_path,
            )
            result[metadata_path] = LocalIdentity(sha256_bytes(metadata_path.read_bytes()))
            continue
        result[metadata_path] = ArchivedIdentity(config.hash)

    for metadata_path in plan.to_evict:
        if any(root in metadata_path.parents for root in fresh_roots):
            # Re-extraction already replaced this root in place.
            continue
        _log.info("Evicting {} ({})", metadata_path, cache_index[metadata_path].key)
        evict_entry(metadata_path, cache_dir)
        cache_evictions_total.inc()

    return result


def extracted_dir_name(archive_path: Path, digest: str) -> str:
    return f"{archive_path.stem}-{digest[:_DIR_HASH_CHARS]}"


def locate_metadata(root: Path, metadata_filename: str = METADATA_FILENAME) -> Path:
    """Find the metadata file of a freshly extracted archive.

    Archives either carry the metadata at their top level or wrap the plugin
    in a single folder.
    """

    direct = root / metadata_filename
    if direct.is_file():
        return direct
    candidates = sorted(
        child / metadata_filename
        for child in root.iterdir()
        if child.is_dir() and (child / metadata_filename).is_file()
    )
    if len(candidates) != 1:
        raise ExtractionError(
            f"Extracted archive {root} must contain exactly one {metadata_filename}, "
            f"found {len(candidates)}"
        )
    return candidates[0]


def stamp_hash(metadata_path: Path, digest: str, *, fresh: bool = False) -> PluginConfig:
    """Record ``digest`` in the metadata unless it is local or already stamped.

    A ``fresh`` copy has just come out of its archive and has never been
    reconciled, so a hash shipped inside the archive is replaced.
    """

    config = decode_config(metadata_path.read_bytes())
    if config.local or config.hash == digest:
        return config
    if config.stamped:
        if not fresh:
            return config
        _log.warning(
            "Metadata {} shipped with hash {}; restamping with {}",
            metadata_path,
            config.hash,
            digest,
        )
    stamped = config.model_copy(update={"hash": digest})
    atomic_write_bytes(metadata_path, encode_config(stamped))
    _log.debug("Stamped {} with {}", metadata_path, digest)
    return stamped


def evict_entry(metadata_path: Path, cache_dir: Path) -> None:
    """Delete the cache directory that extraction created for ``metadata_path``.

    That is the child of ``cache_dir`` holding the metadata, wrapper folder
    and any files shipped next to it included. When that child also holds
    other plugins only the metadata's own directory goes, along with any
    parents it leaves empty.
    """

    if metadata_path.parent == cache_dir:
        safe_unlink(metadata_path)
        _log.info("Evicted stale metadata {}", metadata_path)
        return
    root = cache_dir / metadata_path.relative_to(cache_dir).parts[0]
    if any(path != metadata_path for path in root.rglob(metadata_path.name)):
        root = metadata_path.parent
    remove_tree(root)
    _log.debug("Removed {}", root)
    parent = root.parent
    while parent != cache_dir and cache_dir in parent.parents and not any(parent.iterdir()):
        parent.rmdir()
        parent = parent.parent
