"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from desklic.common.models import LicenseRecord

if TYPE_CHECKING:
    from desklic.engine.keys import KeyPair


class IKeyManager(Protocol):
    """Protocol for key material management."""

    def load_or_create_keys(self) -> KeyPair: ...

    def generate_new_key_pair(self, bits: int | None = None) -> tuple[str, str]: ...

    def export_public_key(self) -> str: ...


class ILicenseStore(Protocol):
    """Protocol for license record persistence."""

    def load(self) -> list[LicenseRecord]: ...

    def save(self, records: list[LicenseRecord]) -> None: ...

    def append(self, record: LicenseRecord) -> None: ...

    def delete(self, license_id: str) -> bool: ...

    def get(self, license_id: str) -> LicenseRecord | None: ...


class ISignatureEngine(Protocol):
    """Protocol for signing and verifying canonical payloads."""

    def sign(self, payload: bytes) -> str: ...

    def verify(self, payload: bytes, signature: str) -> bool: ...

    def sign_record(self, record: LicenseRecord) -> LicenseRecord: ...

    def verify_record(self, record: LicenseRecord) -> bool: ...
