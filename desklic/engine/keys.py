"""
Key material manager for the RSA signing keypair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from desklic.common.exceptions import KeyParseError
from desklic.common.fileio import atomic_write_files, read_bytes
from desklic.common.mixins import Configurable
from desklic.common.storage import StorageLocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPair:
    """The active signing pair together with its PEM text."""

    private_key: rsa.RSAPrivateKey
    public_key: rsa.RSAPublicKey
    private_pem: str
    public_pem: str


class KeyManager(Configurable):
    """Loads the installation keypair from disk, creating it on first use."""

    def __init__(self, storage: StorageLocation | None = None, key_bits: int | None = None):
        self.storage = storage or StorageLocation()
        self.config = self.storage.config
        self.key_bits: int
        self.apply_overrides({"key_bits": key_bits}, self.config, ["key_bits"])
        self._key_pair: KeyPair | None = None

    def load_or_create_keys(self) -> KeyPair:
        """Return the active keypair, generating and persisting one if none exists."""
        if self._key_pair is not None:
            return self._key_pair

        private_path = self.storage.private_key_path
        public_path = self.storage.public_key_path
        private_exists = private_path.exists()
        public_exists = public_path.exists()

        if private_exists and public_exists:
            self._key_pair = self._load_keys()
        elif not private_exists and not public_exists:
            logger.info("No key material in %s, generating a new pair", self.storage.data_dir)
            self._key_pair = self._create_keys(self.key_bits)
        else:
            missing = public_path if private_exists else private_path
            msg = f"Key pair is incomplete: {missing} is missing"
            raise KeyParseError(msg, missing)
        return self._key_pair

    def generate_new_key_pair(self, bits: int | None = None) -> tuple[str, str]:
        """Replace the persisted keypair with a brand-new one.

        Licenses signed with the previous key stop verifying.

        Returns:
            (private_pem, public_pem)
        """
        logger.warning(
            "Re-keying %s: licenses signed with the previous key will no longer verify",
            self.storage.data_dir,
        )
        self._key_pair = self._create_keys(bits or self.key_bits)
        return self._key_pair.private_pem, self._key_pair.public_pem

    def export_public_key(self) -> str:
        """Public key PEM of the active pair."""
        return self.load_or_create_keys().public_pem

    def _create_keys(self, bits: int) -> KeyPair:
        if bits < self.config.MIN_KEY_BITS:
            msg = f"Key size must be at least {self.config.MIN_KEY_BITS} bits, got {bits}"
            raise ValueError(msg)

        logger.info("Generating %d-bit RSA key pair...", bits)
        private_key = rsa.generate_private_key(
            public_exponent=self.config.PUBLIC_EXPONENT,
            key_size=bits,
        )
        public_key = private_key.public_key()

        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        public_pem = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

        self.storage.ensure_dir()
        # Both files are swapped in together so a failure cannot split the pair.
        atomic_write_files(
            [
                (self.storage.private_key_path, private_pem, 0o600),
                (self.storage.public_key_path, public_pem, None),
            ]
        )

        logger.info("Keys generated and saved:")
        logger.info("  Private: %s", self.storage.private_key_path)
        logger.info("  Public: %s", self.storage.public_key_path)

        return KeyPair(
            private_key=private_key,
            public_key=public_key,
            private_pem=private_pem.decode("ascii"),
            public_pem=public_pem.decode("ascii"),
        )

    def _load_keys(self) -> KeyPair:
        private_path = self.storage.private_key_path
        public_path = self.storage.public_key_path
        private_pem = read_bytes(private_path)
        public_pem = read_bytes(public_path)

        try:
            private_key = serialization.load_pem_private_key(private_pem, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as err:
            msg = f"Cannot parse private key {private_path}: {err}"
            raise KeyParseError(msg, private_path) from err
        try:
            public_key = serialization.load_pem_public_key(public_pem)
        except (ValueError, UnsupportedAlgorithm) as err:
            msg = f"Cannot parse public key {public_path}: {err}"
            raise KeyParseError(msg, public_path) from err

        if not isinstance(private_key, rsa.RSAPrivateKey):
            msg = f"{private_path} does not hold an RSA private key"
            raise KeyParseError(msg, private_path)
        if not isinstance(public_key, rsa.RSAPublicKey):
            msg = f"{public_path} does not hold an RSA public key"
            raise KeyParseError(msg, public_path)
        if private_key.public_key().public_numbers() != public_key.public_numbers():
            msg = f"{private_path} and {public_path} are not the same key pair"
            raise KeyParseError(msg, public_path)

        logger.debug("Loaded %d-bit key pair from %s", private_key.key_size, self.storage.data_dir)
        return KeyPair(
            private_key=private_key,
            public_key=public_key,
            private_pem=private_pem.decode("ascii"),
            public_pem=public_pem.decode("ascii"),
        )
