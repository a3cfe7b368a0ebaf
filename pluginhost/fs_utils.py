"""Filesystem helpers for atomic metadata writes and cache eviction."""

from __future__ import annotations

import errno
import os
import shutil
import time
import uuid
from pathlib import Path


def fsync_file(path: Path) -> None:
    try:
        with path.open("rb") as handle:
            os.fsync(handle.fileno())
    except FileNotFoundError:
        return


def fsync_dir(path: Path) -> None:
    if os.name == "nt":
        return
    fd = os.open(str(path), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def safe_unlink(path: Path, retries: int = 5, backoff_s: float = 0.05) -> None:
    for attempt in range(retries):
        try:
            path.unlink(missing_ok=True)
            return
        except PermissionError:
            if attempt == retries - 1:
                raise
            time.sleep(backoff_s * (2**attempt))


def safe_replace(source: Path, destination: Path) -> None:
    try:
        os.replace(source, destination)
        return
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
    shutil.copyfile(source, destination)
    safe_unlink(source)


def atomic_write_bytes(path: Path, payload: bytes) -> None:
    """Replace ``path`` with ``payload`` without exposing a partial file."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".tmp-{path.name}-{uuid.uuid4().hex}")
    try:
        tmp_path.write_bytes(payload)
        fsync_file(tmp_path)
        safe_replace(tmp_path, path)
        fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            safe_unlink(tmp_path)


def remove_tree(path: Path, retries: int = 5, backoff_s: float = 0.05) -> None:
    """Recursively delete ``path``; a missing path is not an error."""

    for attempt in range(retries):
        try:
            shutil.rmtree(path)
            return
        except FileNotFoundError:
            return
        except PermissionError:
            # Windows keeps handles open briefly after imports.
            if attempt == retries - 1:
                raise
            time.sleep(backoff_s * (2**attempt))
