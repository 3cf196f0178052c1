"""
crxsetup downloads Chrome Web Store extensions and unpacks them into plain
directories that a test browser can load.
"""

from crxsetup.container_format import locate_payload
from crxsetup.crxsetup_config import CrxSetupConfig
from crxsetup.crxsetup_exceptions import (
    CrxSetupException,
    FilesystemError,
    MalformedContainer,
    NetworkError,
)
from crxsetup.crxsetup_logger import CrxSetupLogger
from crxsetup.extension_downloader import ExtensionDownloader
from crxsetup.extension_models import ExtensionDescriptor, ExtensionRegistry

__all__ = [
    "CrxSetupConfig",
    "CrxSetupException",
    "CrxSetupLogger",
    "ExtensionDescriptor",
    "ExtensionDownloader",
    "ExtensionRegistry",
    "FilesystemError",
    "MalformedContainer",
    "NetworkError",
    "locate_payload",
]
