"""
License validation: decode, verify, then check expiry and machine binding.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from desklic.common.codec import decode_license_key
from desklic.common.exceptions import DecodeError
from desklic.common.models import ValidationResult, ValidationStatus, utc_now

if TYPE_CHECKING:
    from desklic.common.interfaces import ISignatureEngine
    from desklic.common.models import LicenseRecord


class LicenseValidator:
    """Classifies a license key into exactly one terminal outcome.

    Malformed or tampered keys are reported in the result rather than
    raised; only key-material failures propagate.
    """

    def __init__(
        self,
        signature_engine: ISignatureEngine,
        clock: Callable[[], datetime] | None = None,
    ):
        self.signature_engine = signature_engine
        self.clock = clock or utc_now
        self.logger = logging.getLogger(__name__)

    def validate(self, license_key: str, machine_code: str | None = None) -> ValidationResult:
        try:
            record = decode_license_key(license_key)
        except DecodeError as err:
            self.logger.info("License key rejected: %s", err)
            return ValidationResult.from_status(ValidationStatus.MALFORMED)

        return self.check_record(record, machine_code)

    def check_record(
        self, record: LicenseRecord, machine_code: str | None = None
    ) -> ValidationResult:
        """Run the signature, expiry and binding checks on a parsed record."""
        license_id = record.license_id
        self.logger.debug("Verifying license %s", license_id)

        if not self.signature_engine.verify_record(record):
            self.logger.info("License %s signature invalid", license_id)
            return ValidationResult.from_status(ValidationStatus.INVALID_SIGNATURE)

        now = self.clock()
        self.logger.debug(
            "License %s times: issue_date=%s, expiry_date=%s, now=%s",
            license_id,
            record.issue_date.isoformat(),
            record.expiry_date.isoformat(),
            now.isoformat(),
        )
        if record.is_expired(now):
            self.logger.info("License %s expired", license_id)
            return ValidationResult.from_status(ValidationStatus.EXPIRED, record)

        if record.is_bound and machine_code is not None and machine_code != record.machine_binding:
            self.logger.info("License %s bound to another machine", license_id)
            return ValidationResult.from_status(ValidationStatus.MACHINE_MISMATCH, record)

        self.logger.debug("License %s valid", license_id)
        return ValidationResult.from_status(ValidationStatus.VALID, record)
