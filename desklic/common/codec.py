"""
Encoding of license records into distributable license keys.
"""

from __future__ import annotations

import base64
import binascii

from pydantic import ValidationError

from desklic.common.exceptions import DecodeError
from desklic.common.models import LicenseRecord


def encode_license_key(record: LicenseRecord) -> str:
    """Base64 text wrapping the compact JSON form of ``record``."""
    return base64.b64encode(record.model_dump_json().encode("utf-8")).decode("ascii")


def decode_license_key(license_key: str) -> LicenseRecord:
    """Parse a license key back into a record.

    Raises:
        DecodeError: if the key is not valid base64 or does not hold a record.
    """
    try:
        raw = base64.b64decode(license_key.strip(), validate=True)
    except (binascii.Error, ValueError) as err:
        msg = f"License key is not valid base64: {err}"
        raise DecodeError(msg) from err

    try:
        return LicenseRecord.model_validate_json(raw)
    except ValidationError as err:
        msg = f"License key does not contain a license record: {err.error_count()} error(s)"
        raise DecodeError(msg) from err
