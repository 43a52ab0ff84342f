"""Entry point exposing the license engine operations to the application.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from desklic.common.config import Config
from desklic.common.storage import StorageLocation
from desklic.engine.fingerprint import FingerprintGenerator
from desklic.engine.issuer import LicenseIssuer
from desklic.engine.keys import KeyManager
from desklic.engine.signature import SignatureEngine
from desklic.engine.store import LicenseStore
from desklic.engine.validator import LicenseValidator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from desklic.common.models import LicenseRecord, ValidationResult


class LicenseService:
    """Wires the engine components around one storage location.

    A single lock serializes store mutations and the key load/generate
    path, so concurrently dispatched calls cannot lose updates or race to
    create divergent keypairs.
    """

    def __init__(
        self,
        config: Config | None = None,
        storage: StorageLocation | None = None,
        data_dir: Path | str | None = None,
        key_bits: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config or (storage.config if storage else Config())
        self.storage = storage or StorageLocation(data_dir, config=self.config)
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()

        self.key_manager = KeyManager(self.storage, key_bits=key_bits)
        self.signature_engine = SignatureEngine(self.key_manager)
        self.store = LicenseStore(self.storage)
        self.issuer = LicenseIssuer(self.signature_engine, self.store, clock=clock)
        self.validator = LicenseValidator(self.signature_engine, clock=clock)
        self.fingerprints = FingerprintGenerator(self.config)

        self.logger.debug("License engine using %s", self.storage.data_dir)

    def issue(
        self,
        customer_name: str,
        customer_email: str,
        expiry_days: int,
        features: Iterable[str],
        machine_binding: str | None = None,
    ) -> str:
        """Issue, store and return a new license key."""
        with self._lock:
            return self.issuer.issue(
                customer_name, customer_email, expiry_days, features, machine_binding
            )

    def validate(self, license_key: str, machine_code: str | None = None) -> ValidationResult:
        with self._lock:
            self.key_manager.load_or_create_keys()
        return self.validator.validate(license_key, machine_code)

    def list_licenses(self) -> list[LicenseRecord]:
        return self.store.load()

    def get_license(self, license_id: str) -> LicenseRecord | None:
        return self.store.get(license_id)

    def delete_license(self, license_id: str) -> bool:
        with self._lock:
            return self.store.delete(license_id)

    def export_public_key(self) -> str:
        with self._lock:
            return self.key_manager.export_public_key()

    def generate_new_key_pair(self, bits: int | None = None) -> tuple[str, str]:
        """Re-key the installation; previously issued licenses stop verifying."""
        with self._lock:
            return self.key_manager.generate_new_key_pair(bits)

    def current_fingerprint(self) -> str:
        return self.fingerprints.current_fingerprint()
