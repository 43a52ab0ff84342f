# Common utilities
from desklic.common.config import Config as Config
from desklic.common.logging_utils import setup_logger as setup_logger
from desklic.common.mixins import Configurable as Configurable
from desklic.common.storage import StorageLocation as StorageLocation

__all__ = ["Config", "Configurable", "StorageLocation", "setup_logger"]
