"""Whole-file replacement for the files entry rewrites.

Three kinds of file are ever rewritten: the user config (``config set`` and
``setup``), schema files (``schema new``) and ``cached.json`` (``for``). Each
write replaces the file completely, so two concurrent invocations can only
ever leave one complete version behind.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, IO

import portalocker

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".lock"
TMP_SUFFIX = ".tmp"
LOCK_TIMEOUT = 10.0


def lock_path_for(path: Path) -> Path:
    """``workout.json`` is guarded by ``workout.json.lock``."""
    return path.with_suffix(path.suffix + LOCK_SUFFIX)


@contextmanager
def file_lock(path: Path, timeout: float = LOCK_TIMEOUT) -> Generator[None, None, None]:
    """Serialize writers of ``path`` across entry processes.

    Raises:
        portalocker.LockException: If another process holds the lock past ``timeout``
    """
    lock_path = lock_path_for(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)

    with portalocker.Lock(lock_path, timeout=timeout):
        yield


@contextmanager
def atomic_write(path: Path, encoding: str = "utf-8") -> Generator[IO[str], None, None]:
    """Stage text in ``<path>.tmp`` and move it over ``path`` on success.

    A schema, config or cached entry is therefore either the old version or
    the new one. If the block raises, the staging file is deleted.
    """
    staging = path.with_suffix(path.suffix + TMP_SUFFIX)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(staging, "w", encoding=encoding) as f:
            yield f
        os.replace(staging, path)
    except Exception:
        if staging.exists():
            staging.unlink()
        raise

    logger.debug("Replaced %s", path)


def write_text(path: Path, data: str, encoding: str = "utf-8", timeout: float = LOCK_TIMEOUT) -> None:
    """Replace ``path`` with ``data`` while holding its lock.

    Used by ``store_config``, ``SchemaStore.save`` and ``SchemaStore.save_cached``.
    """
    with file_lock(path, timeout=timeout):
        with atomic_write(path, encoding=encoding) as f:
            f.write(data)


def remove_lock_file(path: Path) -> None:
    """Drop the lock beside a schema that ``schema remove`` just deleted."""
    lock_path = lock_path_for(path)
    if lock_path.exists():
        lock_path.unlink()
