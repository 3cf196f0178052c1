"""
CRX container format.

This package locates the ZIP archive embedded in a CRX file by reading the
container header. The public key and signature are skipped, never verified.
"""

from .header import (
    CRX_MAGIC,
    LEGACY_HEADER_SIZE,
    MIN_HEADER_SIZE,
    V2_HEADER_SIZE,
    ZIP_LOCAL_FILE_MAGIC,
    ContainerHeader,
    LegacyHeader,
    V2Header,
    has_crx_magic,
    locate_payload,
    parse_header,
)

__all__ = [
    "CRX_MAGIC",
    "LEGACY_HEADER_SIZE",
    "MIN_HEADER_SIZE",
    "V2_HEADER_SIZE",
    "ZIP_LOCAL_FILE_MAGIC",
    "ContainerHeader",
    "LegacyHeader",
    "V2Header",
    "has_crx_magic",
    "locate_payload",
    "parse_header",
]
