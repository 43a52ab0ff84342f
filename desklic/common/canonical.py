"""
Canonical signing form of a license record.

The signature covers the bytes produced here, so the encoding must never
change for existing records: sorted keys, compact separators, UTF-8, and
timestamps rendered with ``format_timestamp``.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from desklic.common.models import format_timestamp

if TYPE_CHECKING:
    from desklic.common.models import LicenseRecord


def canonical_dict(record: LicenseRecord) -> dict[str, Any]:
    """Plain mapping of every record field with the signature cleared."""
    return {
        "license_id": record.license_id,
        "customer_name": record.customer_name,
        "customer_email": record.customer_email,
        "issue_date": format_timestamp(record.issue_date),
        "expiry_date": format_timestamp(record.expiry_date),
        "features": list(record.features),
        "machine_binding": record.machine_binding,
        "signature": "",
    }


def canonical_bytes(record: LicenseRecord) -> bytes:
    """Exact byte sequence signed and verified for ``record``."""
    return json.dumps(
        canonical_dict(record),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
