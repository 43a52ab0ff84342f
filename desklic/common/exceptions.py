"""
Custom exceptions for the license engine.
"""

from __future__ import annotations


class LicenseError(Exception):
    """Base class for every error raised by the license engine."""


class DecodeError(LicenseError):
    """Malformed base64 or structured payload in a license key."""


class SignatureError(LicenseError):
    """Key material unreadable or a cryptographic operation failed."""


class SigningError(SignatureError):
    """Signing could not be performed."""


class KeyParseError(SigningError):
    """A persisted key file is malformed or holds the wrong kind of key."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message)
        self.path = path


class PersistenceError(LicenseError):
    """The license store or key files could not be read or written."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message)
        self.path = path
