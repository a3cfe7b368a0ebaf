from __future__ import annotations

import hashlib
import sys
import zipfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

FIXTURES = ROOT / "tests" / "fixtures" / "plugins"


def _fixture_files(name: str) -> dict[str, bytes]:
    src = FIXTURES / name
    files: dict[str, bytes] = {}
    for path in sorted(src.rglob("*")):
        if path.is_dir() or "__pycache__" in path.parts:
            continue
        files[path.relative_to(src).as_posix()] = path.read_bytes()
    return files


@pytest.fixture(autouse=True)
def _forget_plugin_modules(tmp_path_factory):
    """Drop plugin modules and roots a test imported from temporary dirs."""

    base = tmp_path_factory.getbasetemp().resolve()
    path = list(sys.path)
    yield
    sys.path[:] = path
    for name, module in list(sys.modules.items()):
        origin = getattr(module, "__file__", None)
        if origin and base in Path(origin).parents:
            del sys.modules[name]


@pytest.fixture
def plugin_dirs(tmp_path: Path) -> tuple[Path, Path]:
    archives = tmp_path / "archives"
    cache = tmp_path / "cache"
    archives.mkdir()
    cache.mkdir()
    return archives, cache


@pytest.fixture
def make_archive():
    """Zip a fixture plugin; returns the archive path and its SHA-256."""

    def _factory(
        dest: Path,
        fixture: str,
        *,
        wrap: str | None = None,
        extra: dict[str, str | bytes] | None = None,
    ) -> tuple[Path, str]:
        files: dict[str, str | bytes] = dict(_fixture_files(fixture))
        files.update(extra or {})
        dest.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(dest, "w") as archive:
            for name, content in files.items():
                archive.writestr(f"{wrap}/{name}" if wrap else name, content)
        return dest, hashlib.sha256(dest.read_bytes()).hexdigest()

    return _factory


@pytest.fixture
def make_local_plugin():
    """Copy a fixture plugin straight into the cache, flagged as local."""

    def _factory(cache_dir: Path, fixture: str, dirname: str | None = None) -> Path:
        root = cache_dir / (dirname or fixture)
        root.mkdir(parents=True)
        for name, content in _fixture_files(fixture).items():
            target = root / name
            target.parent.mkdir(parents=True, exist_ok=True)
            if name == "plugin.yml":
                content = content + b"local: true\n"
            target.write_bytes(content)
        return root / "plugin.yml"

    return _factory
