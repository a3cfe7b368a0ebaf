"""Materialize plugin instances from extracted plugin roots."""

from __future__ import annotations

import importlib
import inspect
import sys
from pathlib import Path
from typing import Any, Protocol

from .constants import PLUGIN_SYMBOL
from .errors import PluginLoadError
from ..logging_utils import get_logger


class Loader(Protocol):
    def load(self, root_path: Path, import_path: str, symbol: str) -> Any: ...


def split_import_path(import_path: str, default_symbol: str = PLUGIN_SYMBOL) -> tuple[str, str]:
    """Split ``module:Symbol`` into its parts, defaulting the symbol."""

    module_name, _, attr = import_path.partition(":")
    module_name = module_name.strip()
    attr = attr.strip() or default_symbol
    if not module_name:
        raise PluginLoadError(f"Invalid import path '{import_path}'")
    return module_name, attr


class ImportLoader:
    """Import plugin modules with their extracted root on ``sys.path``.

    A root stays on ``sys.path`` for as long as its plugin is the one loaded
    under that top-level module name, so imports the plugin performs lazily
    keep resolving against its own files. Loading another root under the
    same top-level name drops the earlier modules from ``sys.modules`` and
    the earlier root from ``sys.path`` first.

    Module names already imported by the host process are never replaced;
    a plugin reusing one fails to load.
    """

    def __init__(self) -> None:
        self._roots: dict[str, str] = {}
        self._log = get_logger("plugins")

    def load(self, root_path: Path, import_path: str, symbol: str) -> Any:
        module_name = import_path.strip()
        if not module_name:
            raise PluginLoadError("Empty import path")
        root = Path(root_path).resolve()
        top = module_name.split(".", 1)[0]
        previous = self._roots.pop(top, None)
        if previous is not None:
            self._log.debug("Unloading {} imported from {}", top, previous)
            _purge_modules(top, previous)
            _remove_path(previous)
        entry = str(root)
        sys.path.insert(0, entry)
        importlib.invalidate_caches()
        try:
            module = importlib.import_module(module_name)
        except Exception as exc:
            _remove_path(entry)
            raise PluginLoadError(f"Cannot import '{module_name}' from {root}: {exc}") from exc
        origin = getattr(module, "__file__", None)
        if origin is None or root not in Path(origin).resolve().parents:
            _remove_path(entry)
            raise PluginLoadError(
                f"Module '{module_name}' resolved outside of plugin root {root}: {origin}"
            )
        self._roots[top] = entry
        try:
            value = getattr(module, symbol)
        except AttributeError:
            raise PluginLoadError(f"Module '{module_name}' has no symbol '{symbol}'") from None
        return _materialize(value, f"{module_name}.{symbol}")


def _materialize(value: Any, qualname: str) -> Any:
    if inspect.isclass(value) or inspect.isfunction(value):
        try:
            result = value()
        except Exception as exc:
            raise PluginLoadError(f"Calling {qualname} failed: {exc}") from exc
        if isinstance(result, tuple):
            raise PluginLoadError(
                f"{qualname} returned {len(result)} values; a plugin factory must return one"
            )
        return result
    return value


def _purge_modules(top: str, root: str) -> None:
    prefix = f"{top}."
    base = Path(root)
    for name, module in list(sys.modules.items()):
        origin = getattr(module, "__file__", None)
        if name == top or name.startswith(prefix) or (origin and base in Path(origin).parents):
            del sys.modules[name]


def _remove_path(entry: str) -> None:
    try:
        sys.path.remove(entry)
    except ValueError:
        pass
