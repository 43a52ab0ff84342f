"""
File helpers shared by the key manager and the license store.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from desklic.common.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def _sibling(path: Path, suffix: str) -> Path:
    return path.with_name(path.name + suffix)


def _stage(path: Path, data: bytes, mode: int | None) -> Path:
    temp_path = _sibling(path, ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)
    with temp_path.open("wb") as f:
        f.write(data)
    if mode is not None:
        os.chmod(temp_path, mode)
    return temp_path


def _roll_back(committed: list[tuple[Path, Path | None]]) -> None:
    for path, backup in reversed(committed):
        try:
            if backup is not None:
                os.replace(backup, path)
            else:
                path.unlink(missing_ok=True)
        except OSError:
            logger.error("Could not restore %s", path, exc_info=True)


def atomic_write_files(files: list[tuple[Path, bytes, int | None]]) -> None:
    """Replace several files as one unit.

    Every file is first written to a temp file beside its target. The targets
    are then swapped in one by one, keeping the previous contents aside; if any
    swap fails the earlier ones are undone, so either all files carry the new
    data or all keep what they had.

    Raises:
        PersistenceError: if any of the files cannot be written.
    """
    staged: list[tuple[Path, Path]] = []
    committed: list[tuple[Path, Path | None]] = []
    current = files[0][0] if files else None
    try:
        for path, data, mode in files:
            current = path
            staged.append((path, _sibling(path, ".tmp")))
            _stage(path, data, mode)

        for path, temp_path in staged:
            current = path
            backup = None
            if path.exists():
                backup = _sibling(path, ".bak")
                os.replace(path, backup)
            committed.append((path, backup))
            os.replace(temp_path, path)
    except OSError as err:
        _roll_back(committed)
        for _, temp_path in staged:
            temp_path.unlink(missing_ok=True)
        msg = f"Cannot write {current}: {err}"
        raise PersistenceError(msg, current) from err

    for _, backup in committed:
        if backup is not None:
            try:
                backup.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove %s", backup, exc_info=True)


def atomic_write_bytes(path: Path, data: bytes, mode: int | None = None) -> None:
    """Write ``data`` to a temp file beside ``path`` and move it into place.

    A failed write leaves any previous file untouched.

    Raises:
        PersistenceError: if the file cannot be written.
    """
    atomic_write_files([(path, data, mode)])


def read_bytes(path: Path) -> bytes:
    """Read a whole file, mapping I/O failures to PersistenceError."""
    try:
        with path.open("rb") as f:
            return f.read()
    except OSError as err:
        msg = f"Cannot read {path}: {err}"
        raise PersistenceError(msg, path) from err
