"""
Configuration settings for the license engine.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

APP_NAME = "desklic"


def default_data_dir() -> Path:
    """Per-user application data directory for the current platform."""
    if sys.platform.startswith("win"):
        app_data = os.getenv("APPDATA")
        base = Path(app_data) if app_data else Path.home() / "AppData" / "Roaming"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        xdg = os.getenv("XDG_CONFIG_HOME")
        base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_NAME


class Config:
    """Central configuration class for all engine settings."""

    def __init__(self) -> None:
        # Key material
        self.KEY_BITS: int = int(os.getenv("DESKLIC_KEY_BITS", "2048"))
        self.MIN_KEY_BITS: int = 1024
        self.PUBLIC_EXPONENT: int = 65537

        # File paths
        data_dir = os.getenv("DESKLIC_DATA_DIR")
        self.DATA_DIR: Path = Path(data_dir) if data_dir else default_data_dir()
        self.PRIVATE_KEY_FILENAME: str = "private_key.pem"
        self.PUBLIC_KEY_FILENAME: str = "public_key.pem"
        self.LICENSE_STORE_FILENAME: str = "licenses.json"

        # Machine fingerprint
        self.FINGERPRINT_LENGTH: int = 32
        self.FINGERPRINT_DELIMITER: str = ":"

        # Logging
        level_name = os.getenv("DESKLIC_LOG_LEVEL", "WARNING").upper()
        self.LOG_LEVEL: int = getattr(logging, level_name, logging.WARNING)
