"""
RSA signature engine over canonical license payloads.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from desklic.common.canonical import canonical_bytes
from desklic.common.exceptions import PersistenceError, SigningError

if TYPE_CHECKING:
    from desklic.common.interfaces import IKeyManager
    from desklic.common.models import LicenseRecord
    from desklic.engine.keys import KeyPair

logger = logging.getLogger(__name__)


class SignatureEngine:
    """Signs with the private key and verifies with the public key.

    SHA-256 digest, PKCS#1 v1.5 padding, base64 signature text.
    """

    def __init__(self, key_manager: IKeyManager):
        self.key_manager = key_manager

    def _keys(self) -> KeyPair:
        try:
            return self.key_manager.load_or_create_keys()
        except PersistenceError as err:
            msg = f"Key material unavailable: {err}"
            raise SigningError(msg) from err

    def sign(self, payload: bytes) -> str:
        """Sign ``payload`` and return the base64 signature."""
        private_key = self._keys().private_key
        try:
            signature = private_key.sign(payload, padding.PKCS1v15(), hashes.SHA256())
        except (ValueError, TypeError) as err:
            msg = f"Signing failed: {err}"
            raise SigningError(msg) from err
        return base64.b64encode(signature).decode("ascii")

    def verify(self, payload: bytes, signature: str) -> bool:
        """True iff ``signature`` is a valid signature of ``payload``."""
        public_key = self._keys().public_key
        try:
            raw = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            logger.debug("Signature is not valid base64")
            return False
        # Reject alternate encodings that differ only in the unused padding bits.
        if base64.b64encode(raw).decode("ascii") != signature:
            logger.debug("Signature is not canonical base64")
            return False
        try:
            public_key.verify(raw, payload, padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True

    def sign_record(self, record: LicenseRecord) -> LicenseRecord:
        """Copy of ``record`` carrying a signature over its canonical form."""
        return record.model_copy(update={"signature": self.sign(canonical_bytes(record))})

    def verify_record(self, record: LicenseRecord) -> bool:
        return self.verify(canonical_bytes(record), record.signature)
