"""
Storage location for key material and the license store.
"""

from __future__ import annotations

from pathlib import Path

from desklic.common.config import Config
from desklic.common.exceptions import PersistenceError


class StorageLocation:
    """Resolves where the engine keeps its files.

    All components receive one of these instead of reading paths from the
    environment, so tests can point the engine at an isolated directory.
    """

    def __init__(self, data_dir: Path | str | None = None, config: Config | None = None):
        self.config = config or Config()
        self.data_dir = Path(data_dir) if data_dir is not None else self.config.DATA_DIR

    @property
    def private_key_path(self) -> Path:
        return self.data_dir / self.config.PRIVATE_KEY_FILENAME

    @property
    def public_key_path(self) -> Path:
        return self.data_dir / self.config.PUBLIC_KEY_FILENAME

    @property
    def license_store_path(self) -> Path:
        return self.data_dir / self.config.LICENSE_STORE_FILENAME

    def ensure_dir(self) -> Path:
        """Create the data directory if needed and return it."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            msg = f"Cannot create data directory {self.data_dir}: {err}"
            raise PersistenceError(msg, self.data_dir) from err
        return self.data_dir

    def __repr__(self) -> str:
        return f"StorageLocation({str(self.data_dir)!r})"
