"""
License engine components: keys, signatures, store, issuance and validation.
"""

from .service import LicenseService

__all__ = ["LicenseService"]
