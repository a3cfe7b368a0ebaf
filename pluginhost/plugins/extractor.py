"""Archive extraction into the plugin cache."""

from __future__ import annotations

import os
import uuid
import zipfile
from pathlib import Path
from typing import Protocol

from .errors import ExtractionError
from ..fs_utils import remove_tree


class Extractor(Protocol):
    def extract(self, archive_path: Path, destination: Path) -> None: ...


class ZipExtractor:
    """Unpack zip archives, refusing members that escape the destination."""

    def extract(self, archive_path: Path, destination: Path) -> None:
        staging = destination.with_name(f".extract-{destination.name}-{uuid.uuid4().hex}")
        staging.mkdir(parents=True)
        try:
            try:
                with zipfile.ZipFile(archive_path) as archive:
                    root = staging.resolve()
                    for member in archive.infolist():
                        target = (staging / member.filename).resolve()
                        if target != root and root not in target.parents:
                            raise ExtractionError(
                                f"Archive {archive_path} member '{member.filename}' escapes the cache"
                            )
                    archive.extractall(staging)
            except zipfile.BadZipFile as exc:
                raise ExtractionError(f"Cannot extract {archive_path}: {exc}") from exc
            if destination.exists():
                remove_tree(destination)
            os.replace(staging, destination)
        finally:
            if staging.exists():
                remove_tree(staging)
