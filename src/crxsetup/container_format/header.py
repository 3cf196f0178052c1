"""
CRX header interpretation.

A CRX file starts with a small header followed directly by a ZIP stream:

    offset 0   magic "Cr24"
    offset 4   format version (only the low byte is inspected)
    offset 8   uint32 LE  public key length  (CRX3: protobuf header length)
    offset 12  uint32 LE  signature length   (CRX2 only)

Version 2 files carry the public key and signature after a 16 byte header.
Every other version is read with the 12 byte layout, which is also how CRX3
lays out its single length field.
"""

import struct
from dataclasses import dataclass
from typing import Union

from crxsetup.crxsetup_exceptions import MalformedContainer


CRX_MAGIC = b"Cr24"
ZIP_LOCAL_FILE_MAGIC = b"PK\x03\x04"

MIN_HEADER_SIZE = 16
V2_HEADER_SIZE = 16
LEGACY_HEADER_SIZE = 12

_VERSION_OFFSET = 4
_PUBLIC_KEY_LENGTH_OFFSET = 8
_SIGNATURE_LENGTH_OFFSET = 12

_UINT32_LE = struct.Struct("<I")


@dataclass(frozen=True)
class V2Header:
    """Header of a version 2 container: key and signature follow 16 bytes in."""

    public_key_length: int
    signature_length: int
    header_size: int = V2_HEADER_SIZE

    @property
    def payload_offset(self) -> int:
        return self.header_size + self.public_key_length + self.signature_length


@dataclass(frozen=True)
class LegacyHeader:
    """Header without a signature length field."""

    public_key_length: int
    header_size: int = LEGACY_HEADER_SIZE

    @property
    def payload_offset(self) -> int:
        return self.header_size + self.public_key_length


ContainerHeader = Union[V2Header, LegacyHeader]


def _read_uint32(buffer: memoryview, offset: int) -> int:
    return _UINT32_LE.unpack_from(buffer, offset)[0]


def has_crx_magic(buffer: bytes) -> bool:
    """Check whether the buffer starts with the ``Cr24`` magic number."""
    return bytes(buffer[: len(CRX_MAGIC)]) == CRX_MAGIC


def parse_header(buffer: bytes) -> ContainerHeader:
    """
    Decode the container header from the start of ``buffer``.

    Raises:
        MalformedContainer: If the buffer is shorter than the minimum header
    """
    view = memoryview(buffer).cast("B")
    if view.nbytes < MIN_HEADER_SIZE:
        raise MalformedContainer(
            f"Container is {view.nbytes} bytes, shorter than the "
            f"{MIN_HEADER_SIZE} byte minimum header"
        )

    public_key_length = _read_uint32(view, _PUBLIC_KEY_LENGTH_OFFSET)
    if view[_VERSION_OFFSET] == 2:
        return V2Header(
            public_key_length=public_key_length,
            signature_length=_read_uint32(view, _SIGNATURE_LENGTH_OFFSET),
        )
    return LegacyHeader(public_key_length=public_key_length)


def locate_payload(buffer: bytes) -> memoryview:
    """
    Return a read-only view of the ZIP archive embedded in a CRX container.

    The view shares memory with ``buffer``; nothing is copied and the buffer
    is never modified.

    Raises:
        MalformedContainer: If the buffer is too short or the header points
            past its end
    """
    header = parse_header(buffer)
    view = memoryview(buffer).cast("B").toreadonly()

    offset = header.payload_offset
    if offset > view.nbytes:
        raise MalformedContainer(
            f"Payload offset {offset} is past the end of the "
            f"{view.nbytes} byte container"
        )
    return view[offset:]
