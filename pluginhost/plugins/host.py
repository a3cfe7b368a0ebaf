"""Plugin host orchestration."""

from __future__ import annotations

import errno
from dataclasses import dataclass
from pathlib import Path
from time import monotonic
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from .constants import ARCHIVE_SUFFIXES, INTERNAL_ROOT, METADATA_FILENAME, PLUGIN_SYMBOL
from .contracts import CapabilityContract
from .errors import MissingDirectoryConfig, NoSuchPlugin
from .extractor import Extractor, ZipExtractor
from .identity import Identity
from .indexer import index_archives, index_cache
from .loader import ImportLoader, Loader, split_import_path
from .manifest import PluginConfig, decode_config, parse_config
from .reconcile import ReconciliationPlan, apply_plan, plan_reconciliation
from .registry import PluginRecord, PluginRegistry
from ..logging_utils import get_logger
from ..observability.metrics import plugin_load_failures_total, reconcile_duration_ms

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from ..config import HostConfig


@dataclass(frozen=True)
class ReconciliationReport:
    extracted: tuple[str, ...]
    evicted: tuple[Path, ...]
    loaded: tuple[str, ...]
    removed: tuple[str, ...]


class PluginHost:
    """Keeps the plugin cache in step with the archive directory.

    ``load_plugins`` runs one reconciliation pass: index both directories,
    extract new archives, evict stale cache entries, then load and validate
    every cached plugin before it becomes visible through ``get``. A failure
    aborts the pass; plugins registered before the failure stay registered
    and filesystem changes already made are not undone.
    """

    def __init__(
        self,
        archive_dir: Path | str | None = None,
        cache_dir: Path | str | None = None,
        *,
        capability_types: Mapping[str, Any] | None = None,
        extractor: Extractor | None = None,
        loader: Loader | None = None,
        metadata_filename: str = METADATA_FILENAME,
        archive_suffixes: Iterable[str] = ARCHIVE_SUFFIXES,
        plugin_symbol: str = PLUGIN_SYMBOL,
    ) -> None:
        self._archive_dir = _existing_dir(archive_dir)
        self._cache_dir = _existing_dir(cache_dir)
        self._extractor = extractor or ZipExtractor()
        self._loader = loader or ImportLoader()
        self._metadata_filename = metadata_filename
        self._archive_suffixes = tuple(archive_suffixes)
        self._plugin_symbol = plugin_symbol
        self._registry = PluginRegistry()
        self._log = get_logger("plugins")
        for name, shape in (capability_types or {}).items():
            self.register_type(name, shape)

    @classmethod
    def from_config(cls, config: "HostConfig", **kwargs: Any) -> "PluginHost":
        return cls(
            config.archive_dir,
            config.cache_dir,
            metadata_filename=config.metadata_filename,
            archive_suffixes=config.archive_suffixes,
            plugin_symbol=config.plugin_symbol,
            **kwargs,
        )

    @property
    def archive_dir(self) -> Path | None:
        return self._archive_dir

    @property
    def cache_dir(self) -> Path | None:
        return self._cache_dir

    @property
    def registry(self) -> PluginRegistry:
        return self._registry

    def register_type(self, name: str, shape: Any) -> CapabilityContract:
        return self._registry.register_type(name, shape)

    def register_internal(
        self, instance: Any, config: PluginConfig | Mapping[str, Any]
    ) -> PluginRecord:
        """Register an instance supplied by the host process itself.

        No archive or cache directory is touched, but the instance is still
        validated against the contract of ``config.plugin_type``.
        """

        if not isinstance(config, PluginConfig):
            config = parse_config(dict(config))
        config = config.model_copy(update={"internal": True})
        record = PluginRecord(
            config=config,
            root_path=Path(INTERNAL_ROOT) / config.name,
            instance=instance,
        )
        self._register(record)
        self._log.info("Registered internal plugin {}", config.name)
        return record

    def plan(self) -> ReconciliationPlan:
        """Compute what a pass would extract and evict without touching disk."""

        archive_dir, cache_dir = self._require_dirs()
        return plan_reconciliation(
            index_archives(archive_dir, suffixes=self._archive_suffixes),
            index_cache(cache_dir, metadata_filename=self._metadata_filename),
        )

    def sync(self) -> ReconciliationPlan:
        """Bring the cache in step with the archives without loading any code."""

        plan, _ = self._reconcile_cache()
        return plan

    def load_plugins(self) -> ReconciliationReport:
        start = monotonic()
        plan, cache_index = self._reconcile_cache()
        loaded: list[str] = []
        for metadata_path in sorted(cache_index):
            record = self._load_record(metadata_path)
            self._register(record)
            loaded.append(record.name)
        seen = set(loaded)
        removed = [
            record.name
            for record in self._registry.records()
            if not record.config.internal and record.name not in seen
        ]
        self._registry.discard(removed)
        elapsed_ms = (monotonic() - start) * 1000
        reconcile_duration_ms.observe(elapsed_ms)
        self._log.info(
            "Reconciled plugins in {:.1f} ms: {} extracted, {} evicted, {} loaded, "
            "{} removed, {} registered",
            elapsed_ms,
            len(plan.to_extract),
            len(plan.to_evict),
            len(loaded),
            len(removed),
            len(self._registry),
        )
        return ReconciliationReport(
            extracted=tuple(sorted(plan.to_extract)),
            evicted=plan.to_evict,
            loaded=tuple(loaded),
            removed=tuple(removed),
        )

    def list_plugins(self) -> list[str]:
        return self._registry.list_names()

    def list_plugins_for_type(self, plugin_type: str) -> list[str]:
        return self._registry.list_names_for_type(plugin_type)

    def get(self, name: str) -> tuple[Any, bool]:
        return self._registry.get(name)

    def get_plugin(self, name: str) -> Any:
        if name not in self._registry:
            raise NoSuchPlugin(name)
        instance, _ = self._registry.get(name)
        return instance

    def _require_dirs(self) -> tuple[Path, Path]:
        if self._archive_dir is None or self._cache_dir is None:
            raise MissingDirectoryConfig(
                "Both an archive directory and a cache directory are required to load plugins"
            )
        return self._archive_dir, self._cache_dir

    def _reconcile_cache(self) -> tuple[ReconciliationPlan, dict[Path, Identity]]:
        archive_dir, cache_dir = self._require_dirs()
        archive_index = index_archives(archive_dir, suffixes=self._archive_suffixes)
        cache_index = index_cache(cache_dir, metadata_filename=self._metadata_filename)
        plan = plan_reconciliation(archive_index, cache_index)
        if plan.empty:
            return plan, cache_index
        result = apply_plan(
            plan,
            cache_dir=cache_dir,
            cache_index=cache_index,
            extractor=self._extractor,
            metadata_filename=self._metadata_filename,
        )
        return plan, result

    def _load_record(self, metadata_path: Path) -> PluginRecord:
        root = metadata_path.parent
        try:
            config = decode_config(metadata_path.read_bytes())
            module_name, symbol = split_import_path(config.import_path, self._plugin_symbol)
            instance = self._loader.load(root, module_name, symbol)
        except Exception:
            plugin_load_failures_total.labels("load").inc()
            self._log.error("Failed to load plugin at {}", root)
            raise
        return PluginRecord(config=config, root_path=root, instance=instance)

    def _register(self, record: PluginRecord) -> None:
        try:
            self._registry.register(record)
        except Exception:
            plugin_load_failures_total.labels("validate").inc()
            self._log.error(
                "Plugin {} failed validation as {}", record.name, record.config.plugin_type
            )
            raise
        self._log.debug("Registered plugin {} from {}", record.name, record.root_path)


def _existing_dir(path: Path | str | None) -> Path | None:
    if path is None or str(path) == "":
        return None
    directory = Path(path)
    if not directory.is_dir():
        raise FileNotFoundError(errno.ENOENT, "Plugin directory does not exist", str(directory))
    return directory
