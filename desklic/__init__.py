# Desktop license issuance and validation engine

from desklic.common.models import LicenseRecord, ValidationResult, ValidationStatus
from desklic.engine.service import LicenseService

__all__ = [
    "LicenseRecord",
    "LicenseService",
    "ValidationResult",
    "ValidationStatus",
]
