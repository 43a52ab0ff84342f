"""
Pydantic models for license records and validation results.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as ISO-8601 UTC with microseconds and a Z suffix."""
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class LicenseRecord(BaseModel):
    """A signed grant: customer, features, validity window and optional machine lock."""

    # Unknown fields are rejected so a renamed key cannot slip past the signature.
    model_config = ConfigDict(extra="forbid")

    license_id: str
    customer_name: str
    customer_email: str
    issue_date: datetime
    expiry_date: datetime
    features: list[str]
    machine_binding: str | None
    signature: str = ""

    @field_validator("issue_date", "expiry_date", mode="before")
    @classmethod
    def parse_timestamp(cls, value: object) -> object:
        # Only the exact rendered form is accepted, so a parsed record re-renders
        # to the same text it was read from.
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str):
            msg = "timestamps must be strings"
            raise ValueError(msg)
        try:
            parsed = datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            parsed = None
        if parsed is None or format_timestamp(parsed) != value:
            msg = f"timestamps must match {TIMESTAMP_FORMAT}"
            raise ValueError(msg)
        return parsed

    @field_validator("issue_date", "expiry_date")
    @classmethod
    def require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            msg = "timestamps must be timezone-aware"
            raise ValueError(msg)
        return value.astimezone(timezone.utc)

    @field_serializer("issue_date", "expiry_date")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)

    @property
    def is_bound(self) -> bool:
        return self.machine_binding is not None

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once the expiry instant has been reached."""
        now = now or utc_now()
        return self.expiry_date <= now

    def days_remaining(self, now: datetime | None = None) -> int:
        """Whole days left before expiry, zero once expired."""
        now = now or utc_now()
        if self.is_expired(now):
            return 0
        return (self.expiry_date - now).days

    def unsigned(self) -> LicenseRecord:
        """Copy of this record with the signature cleared."""
        return self.model_copy(update={"signature": ""})


class ValidationStatus(str, Enum):
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    MACHINE_MISMATCH = "machine_mismatch"
    VALID = "valid"


STATUS_MESSAGES: dict[ValidationStatus, str] = {
    ValidationStatus.MALFORMED: "decode failure",
    ValidationStatus.INVALID_SIGNATURE: "invalid signature",
    ValidationStatus.EXPIRED: "expired",
    ValidationStatus.MACHINE_MISMATCH: "machine mismatch",
    ValidationStatus.VALID: "valid",
}


class ValidationResult(BaseModel):
    is_valid: bool
    info: LicenseRecord | None = None
    message: str
    status: ValidationStatus

    @classmethod
    def from_status(
        cls, status: ValidationStatus, info: LicenseRecord | None = None
    ) -> ValidationResult:
        """Build the result for one of the terminal validation outcomes."""
        # Records that failed signature checks are never handed back.
        if status in (ValidationStatus.MALFORMED, ValidationStatus.INVALID_SIGNATURE):
            info = None
        return cls(
            is_valid=status is ValidationStatus.VALID,
            info=info,
            message=STATUS_MESSAGES[status],
            status=status,
        )
