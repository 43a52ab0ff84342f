"""
License issuance: build, sign, persist and encode new licenses.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable

from desklic.common.codec import encode_license_key
from desklic.common.models import LicenseRecord, utc_now

if TYPE_CHECKING:
    from collections.abc import Iterable

    from desklic.common.interfaces import ILicenseStore, ISignatureEngine

logger = logging.getLogger(__name__)


def normalize_features(features: Iterable[str]) -> list[str]:
    """Strip blanks and duplicates, keeping first-seen order for display."""
    seen: list[str] = []
    for feature in features:
        tag = feature.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class LicenseIssuer:
    """License generator for creating signed, stored licenses."""

    def __init__(
        self,
        signature_engine: ISignatureEngine,
        store: ILicenseStore,
        clock: Callable[[], datetime] | None = None,
    ):
        self.signature_engine = signature_engine
        self.store = store
        self.clock = clock or utc_now

    def build_record(
        self,
        customer_name: str,
        customer_email: str,
        expiry_days: int,
        features: Iterable[str],
        machine_binding: str | None = None,
    ) -> LicenseRecord:
        """Unsigned record for a new grant starting now."""
        if isinstance(expiry_days, bool) or not isinstance(expiry_days, int):
            msg = f"expiry_days must be an integer, got {expiry_days!r}"
            raise ValueError(msg)
        # Records are parsed without a window check, so issuance is what keeps
        # expiry_date from preceding issue_date.
        if expiry_days < 0:
            msg = f"expiry_days must not be negative, got {expiry_days}"
            raise ValueError(msg)

        now = self.clock()
        expiry_date = now + timedelta(days=expiry_days)
        return LicenseRecord(
            license_id=str(uuid.uuid4()),
            customer_name=customer_name,
            customer_email=customer_email,
            issue_date=now,
            expiry_date=expiry_date,
            features=normalize_features(features),
            machine_binding=machine_binding or None,
            signature="",
        )

    def issue(
        self,
        customer_name: str,
        customer_email: str,
        expiry_days: int,
        features: Iterable[str],
        machine_binding: str | None = None,
    ) -> str:
        """Issue a license and return its distributable key.

        Raises:
            ValueError: if expiry_days is not a non-negative integer.
            SigningError: if key material cannot be loaded or signing fails.
            PersistenceError: if the license store cannot be read or written.
        """
        record = self.build_record(
            customer_name, customer_email, expiry_days, features, machine_binding
        )
        signed = self.signature_engine.sign_record(record)
        self.store.append(signed)

        logger.info(
            "Issued license %s for %s, expires %s%s",
            signed.license_id,
            signed.customer_email,
            signed.expiry_date.isoformat(),
            f", bound to {signed.machine_binding}" if signed.is_bound else "",
        )
        return encode_license_key(signed)
