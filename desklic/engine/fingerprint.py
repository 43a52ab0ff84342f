"""
Machine fingerprint derived from host attributes.
"""

from __future__ import annotations

import hashlib
import logging
import platform
import socket
from dataclasses import astuple, dataclass
from pathlib import Path
from typing import Callable

import psutil

from desklic.common.config import Config
from desklic.common.mixins import Configurable

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
CPUINFO_PATH = Path("/proc/cpuinfo")


@dataclass(frozen=True)
class HostSnapshot:
    """Host attributes that feed the fingerprint, in hashing order."""

    hostname: str = UNKNOWN
    os_name: str = UNKNOWN
    os_version: str = UNKNOWN
    kernel_version: str = UNKNOWN
    cpu_brand: str = UNKNOWN
    physical_cores: str = UNKNOWN


def _clean(value: object) -> str:
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


def _cpu_brand() -> str | None:
    try:
        for line in CPUINFO_PATH.read_text(encoding="utf-8", errors="ignore").splitlines():
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == "model name" and value.strip():
                return value.strip()
    except OSError:
        pass
    return platform.processor()


def _probe(name: str, func: Callable[[], object]) -> str:
    try:
        return _clean(func())
    except Exception:  # noqa: BLE001
        logger.debug("Could not read %s, using placeholder", name, exc_info=True)
        return UNKNOWN


def collect_host_snapshot() -> HostSnapshot:
    """Read the live host attributes; unreadable ones become ``"unknown"``."""
    return HostSnapshot(
        hostname=_probe("hostname", socket.gethostname),
        os_name=_probe("os name", platform.system),
        os_version=_probe("os version", platform.version),
        kernel_version=_probe("kernel version", platform.release),
        cpu_brand=_probe("cpu brand", _cpu_brand),
        physical_cores=_probe("physical cores", lambda: psutil.cpu_count(logical=False)),
    )


class FingerprintGenerator(Configurable):
    """Derives a stable machine identifier; the result is never persisted."""

    def __init__(self, config: Config | None = None, **overrides):
        self.config = config or Config()
        self.fingerprint_length: int
        self.fingerprint_delimiter: str
        self.apply_overrides(
            overrides, self.config, ["fingerprint_length", "fingerprint_delimiter"]
        )

    def fingerprint_from_snapshot(self, snapshot: HostSnapshot) -> str:
        joined = self.fingerprint_delimiter.join(astuple(snapshot))
        digest = hashlib.sha256(joined.encode("utf-8")).hexdigest()
        return digest[: self.fingerprint_length]

    def current_fingerprint(self) -> str:
        """Fingerprint of the machine this process runs on."""
        return self.fingerprint_from_snapshot(collect_host_snapshot())


def current_fingerprint() -> str:
    return FingerprintGenerator().current_fingerprint()
