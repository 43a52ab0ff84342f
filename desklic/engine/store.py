"""
Whole-document JSON persistence of issued license records.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from desklic.common.exceptions import PersistenceError
from desklic.common.fileio import atomic_write_bytes, read_bytes
from desklic.common.models import LicenseRecord
from desklic.common.storage import StorageLocation

logger = logging.getLogger(__name__)


class LicenseStore:
    """Ordered collection of license records kept in a single JSON document.

    Every mutation reads the whole document, changes it in memory and
    rewrites it. Concurrent writers must be serialized by the caller.
    """

    def __init__(self, storage: StorageLocation | None = None):
        self.storage = storage or StorageLocation()

    @property
    def path(self):
        return self.storage.license_store_path

    def load(self) -> list[LicenseRecord]:
        """Load all records; a missing document is an empty store."""
        if not self.path.exists():
            return []

        raw = read_bytes(self.path)
        try:
            document = json.loads(raw)
            entries = document["licenses"]
            records = [LicenseRecord.model_validate(entry) for entry in entries]
        except (ValueError, TypeError, KeyError, ValidationError) as err:
            msg = f"License store {self.path} is corrupt: {err}"
            raise PersistenceError(msg, self.path) from err

        logger.debug("Loaded %d license(s) from %s", len(records), self.path)
        return records

    def save(self, records: list[LicenseRecord]) -> None:
        """Replace the stored document with ``records``."""
        document = {"licenses": [record.model_dump(mode="json") for record in records]}
        data = json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")
        atomic_write_bytes(self.path, data)
        logger.debug("Saved %d license(s) to %s", len(records), self.path)

    def append(self, record: LicenseRecord) -> None:
        records = self.load()
        if any(existing.license_id == record.license_id for existing in records):
            msg = f"License {record.license_id} is already stored"
            raise PersistenceError(msg, self.path)
        records.append(record)
        self.save(records)

    def delete(self, license_id: str) -> bool:
        """Remove the record with ``license_id``; False (and no write) if absent."""
        records = self.load()
        remaining = [record for record in records if record.license_id != license_id]
        if len(remaining) == len(records):
            return False
        self.save(remaining)
        logger.info("Deleted license %s", license_id)
        return True

    def get(self, license_id: str) -> LicenseRecord | None:
        for record in self.load():
            if record.license_id == license_id:
                return record
        return None
