import base64
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from desklic.common.codec import decode_license_key, encode_license_key
from desklic.common.models import ValidationStatus
from desklic.common.storage import StorageLocation
from desklic.engine.issuer import LicenseIssuer
from desklic.engine.keys import KeyManager
from desklic.engine.signature import SignatureEngine
from desklic.engine.store import LicenseStore
from desklic.engine.validator import LicenseValidator

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
MACHINE = "0123456789abcdef0123456789abcdef"
OTHER_MACHINE = "fedcba9876543210fedcba9876543210"


class Clock:
    """Settable clock shared by issuer and validator."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> Clock:
    return Clock(NOW)


@pytest.fixture
def engine(tmp_path: Path) -> SignatureEngine:
    return SignatureEngine(KeyManager(StorageLocation(tmp_path / "data"), key_bits=1024))


@pytest.fixture
def issuer(tmp_path: Path, engine: SignatureEngine, clock: Clock) -> LicenseIssuer:
    return LicenseIssuer(engine, LicenseStore(StorageLocation(tmp_path / "data")), clock=clock)


@pytest.fixture
def validator(engine: SignatureEngine, clock: Clock) -> LicenseValidator:
    return LicenseValidator(engine, clock=clock)


def test_issued_license_validates(issuer: LicenseIssuer, validator: LicenseValidator) -> None:
    """Test a freshly issued license is valid."""
    key = issuer.issue("Alice", "a@x.com", 30, ["pro"])
    result = validator.validate(key)

    assert result.is_valid
    assert result.status is ValidationStatus.VALID
    assert result.message == "valid"
    assert result.info == issuer.store.load()[0]
    assert result.info.expiry_date == NOW + timedelta(days=30)


@pytest.mark.parametrize("key", ["", "   ", "%%%%", "bm90IGpzb24=", base64.b64encode(b"{}").decode()])
def test_malformed_keys(validator: LicenseValidator, key: str) -> None:
    """Test undecodable keys report a decode failure."""
    result = validator.validate(key)
    assert not result.is_valid
    assert result.status is ValidationStatus.MALFORMED
    assert result.message == "decode failure"
    assert result.info is None


@pytest.mark.parametrize("mask", [0x01, 0x20, 0x74, 0x80])
def test_flipping_any_record_byte_invalidates(
    issuer: LicenseIssuer, validator: LicenseValidator, mask: int
) -> None:
    """Test no single-byte change to a key's JSON yields a usable license."""
    decoded = base64.b64decode(issuer.issue("Alice", "a@x.com", 30, ["pro"]))

    for index in range(len(decoded)):
        tampered = bytearray(decoded)
        tampered[index] ^= mask
        result = validator.validate(base64.b64encode(bytes(tampered)).decode())
        assert not result.is_valid, (index, chr(decoded[index]))
        assert result.info is None, (index, chr(decoded[index]))
        assert result.status in (ValidationStatus.MALFORMED, ValidationStatus.INVALID_SIGNATURE)


def test_flipping_any_signature_byte_invalidates(issuer: LicenseIssuer, validator: LicenseValidator) -> None:
    """Test any change to the signature bytes is rejected."""
    record = decode_license_key(issuer.issue("Alice", "a@x.com", 30, ["pro"]))
    raw = base64.b64decode(record.signature)

    for index in range(len(raw)):
        tampered = bytearray(raw)
        tampered[index] ^= 0x80
        forged = record.model_copy(update={"signature": base64.b64encode(bytes(tampered)).decode()})
        result = validator.validate(encode_license_key(forged))
        assert result.status is ValidationStatus.INVALID_SIGNATURE, index
        assert result.info is None


def test_edited_field_is_rejected(issuer: LicenseIssuer, validator: LicenseValidator) -> None:
    """Test an edited field without re-signing is rejected."""
    data = json.loads(base64.b64decode(issuer.issue("Alice", "a@x.com", 30, ["pro"])))
    data["features"].append("enterprise")
    result = validator.validate(base64.b64encode(json.dumps(data).encode()).decode())

    assert result.status is ValidationStatus.INVALID_SIGNATURE
    assert result.message == "invalid signature"
    assert result.info is None


def test_key_from_other_installation_is_rejected(
    tmp_path: Path, issuer: LicenseIssuer, clock: Clock
) -> None:
    """Test keys signed by another installation are rejected."""
    other = SignatureEngine(KeyManager(StorageLocation(tmp_path / "other"), key_bits=1024))
    result = LicenseValidator(other, clock=clock).validate(issuer.issue("Alice", "a@x.com", 30, []))
    assert result.status is ValidationStatus.INVALID_SIGNATURE


def test_zero_day_license_is_expired(issuer: LicenseIssuer, validator: LicenseValidator, clock: Clock) -> None:
    """Test a zero-day license is expired from the start."""
    key = issuer.issue("Carol", "c@x.com", 0, ["trial"])

    for offset in (timedelta(0), timedelta(seconds=1), timedelta(days=365)):
        clock.now = NOW + offset
        result = validator.validate(key)
        assert not result.is_valid
        assert result.status is ValidationStatus.EXPIRED
        assert result.message == "expired"
        assert result.info is not None


def test_license_expires_after_window(issuer: LicenseIssuer, validator: LicenseValidator, clock: Clock) -> None:
    """Test a license expires exactly at its expiry instant."""
    key = issuer.issue("Alice", "a@x.com", 30, ["pro"])

    clock.now = NOW + timedelta(days=30) - timedelta(microseconds=1)
    assert validator.validate(key).is_valid

    clock.now = NOW + timedelta(days=30)
    result = validator.validate(key)
    assert result.status is ValidationStatus.EXPIRED
    assert result.info.license_id == decode_license_key(key).license_id


def test_resigned_record_expired_yesterday(
    issuer: LicenseIssuer, validator: LicenseValidator, engine: SignatureEngine
) -> None:
    """Test a re-signed record whose expiry alone moved to yesterday is expired."""
    record = decode_license_key(issuer.issue("Alice", "a@x.com", 30, ["pro"]))
    edited = record.model_copy(update={"expiry_date": NOW - timedelta(days=1)})
    result = validator.validate(encode_license_key(engine.sign_record(edited)))

    assert not result.is_valid
    assert result.status is ValidationStatus.EXPIRED
    assert result.message == "expired"
    assert result.info is not None
    assert result.info.customer_name == "Alice"
    assert result.info.issue_date == NOW
    assert result.info.expiry_date == NOW - timedelta(days=1)


def test_resigned_backdated_window_is_expired(
    issuer: LicenseIssuer, validator: LicenseValidator, engine: SignatureEngine
) -> None:
    """Test a re-signed record with both dates moved back is expired."""
    record = decode_license_key(issuer.issue("Alice", "a@x.com", 30, ["pro"]))
    backdated = record.model_copy(
        update={"issue_date": NOW - timedelta(days=31), "expiry_date": NOW - timedelta(days=1)}
    )
    result = validator.validate(encode_license_key(engine.sign_record(backdated)))

    assert result.status is ValidationStatus.EXPIRED
    assert result.info is not None


def test_backdated_record_without_resigning_is_rejected(
    issuer: LicenseIssuer, validator: LicenseValidator
) -> None:
    """Test backdated dates without re-signing are rejected."""
    record = decode_license_key(issuer.issue("Alice", "a@x.com", 30, ["pro"]))
    backdated = record.model_copy(
        update={"issue_date": NOW - timedelta(days=31), "expiry_date": NOW - timedelta(days=1)}
    )
    result = validator.validate(encode_license_key(backdated))
    assert result.status is ValidationStatus.INVALID_SIGNATURE


def test_bound_license_on_matching_machine(issuer: LicenseIssuer, validator: LicenseValidator) -> None:
    """Test a bound license on its own machine."""
    key = issuer.issue("Alice", "a@x.com", 30, ["pro"], machine_binding=MACHINE)
    assert validator.validate(key, machine_code=MACHINE).is_valid


def test_bound_license_on_other_machine(issuer: LicenseIssuer, validator: LicenseValidator) -> None:
    """Test a bound license on another machine."""
    key = issuer.issue("Alice", "a@x.com", 30, ["pro"], machine_binding=MACHINE)
    result = validator.validate(key, machine_code=OTHER_MACHINE)

    assert not result.is_valid
    assert result.status is ValidationStatus.MACHINE_MISMATCH
    assert result.message == "machine mismatch"
    assert result.info.machine_binding == MACHINE


def test_bound_license_without_machine_code(issuer: LicenseIssuer, validator: LicenseValidator) -> None:
    """Test a bound license validated without a machine code."""
    key = issuer.issue("Alice", "a@x.com", 30, ["pro"], machine_binding=MACHINE)
    assert validator.validate(key).is_valid


@pytest.mark.parametrize("machine_code", [None, MACHINE, OTHER_MACHINE, ""])
def test_unbound_license_on_any_machine(
    issuer: LicenseIssuer, validator: LicenseValidator, machine_code: str | None
) -> None:
    """Test an unbound license validates anywhere."""
    key = issuer.issue("Alice", "a@x.com", 30, ["pro"])
    assert validator.validate(key, machine_code=machine_code).is_valid


def test_expiry_is_checked_before_binding(
    issuer: LicenseIssuer, validator: LicenseValidator, clock: Clock
) -> None:
    """Test expiry is reported before a machine mismatch."""
    key = issuer.issue("Alice", "a@x.com", 1, ["pro"], machine_binding=MACHINE)
    clock.now = NOW + timedelta(days=2)
    assert validator.validate(key, machine_code=OTHER_MACHINE).status is ValidationStatus.EXPIRED
