"""
Browser extension downloader.

This package handles:
1. Requesting CRX files from the update service
2. Locating the ZIP payload inside the container
3. Unpacking it next to the other extensions
4. Reporting a per-extension outcome
"""

from .downloader import (
    DownloadResult,
    DownloadStatus,
    DownloadSummary,
    ExtensionDownloader,
    FileUtils,
)

__all__ = [
    "DownloadResult",
    "DownloadStatus",
    "DownloadSummary",
    "ExtensionDownloader",
    "FileUtils",
]
