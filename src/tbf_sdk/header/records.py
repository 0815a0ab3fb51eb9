"""
TBF Header Section Definitions
==============================

This module defines the data structures for the sections of a Tock Binary
Format (TBF) header. Each section knows how to serialize itself to its
exact little-endian wire form.

Header Structure Overview
-------------------------
A TBF header contains:
1. Base Header (16 bytes): version, header size, total size, flags, checksum
2. Main TLV (20 bytes): entry point, protected size, minimum RAM, app id
3. Package Name TLV (optional): name bytes + padding to a 4-byte boundary
4. Writeable Flash Region TLVs (zero or more)
5. Fixed Addresses TLV (optional)

TLV Format
----------
Every section after the base header starts with a 4-byte prefix:

    Offset  Size    Description
    ------  ----    -----------
    0       2       Type (see TlvType)
    2       2       Length of the payload that follows (excludes the prefix)

All integers are little-endian. Sections are serialized field by field
with struct format strings, so the byte layout never depends on how
Python (or anything else) lays objects out in memory.

Reference
---------
- Tock TBF documentation: https://github.com/tock/tock/blob/master/doc/TockBinaryFormat.md
"""

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import ClassVar
import struct


# =============================================================================
# Constants
# =============================================================================

# Current header version written into the base header
TBF_VERSION = 2

# Headers (and every section boundary inside them) are word aligned
TBF_ALIGNMENT = 4

# Value written for a fixed address that was not requested
FIXED_ADDRESS_UNSET = 0xFFFFFFFF

# Byte offset of the checksum word inside the base header
CHECKSUM_OFFSET = 12

TLV_PREFIX_SIZE = 4
TLV_PREFIX_FORMAT = "<HH"


# =============================================================================
# Enumeration Types
# =============================================================================

class TlvType(IntEnum):
    """
    TLV type tags understood by the loader.

    PIC_OPTION_1 is reserved in the registry but never emitted by this SDK.
    """
    MAIN = 1
    WRITEABLE_FLASH_REGIONS = 2
    PACKAGE_NAME = 3
    PIC_OPTION_1 = 4
    FIXED_ADDRESSES = 5


class HeaderFlags(IntFlag):
    """Bits of the base header `flags` word."""
    NONE = 0
    ENABLED = 0x00000001  # Bit 0: kernel should start the application


def pack_tlv_prefix(tlv_type: TlvType, length: int) -> bytes:
    """
    Serialize the 4-byte prefix that starts every TLV.

    Args:
        tlv_type: The TLV type tag
        length: Payload length in bytes, excluding this prefix

    Returns:
        4 bytes: type (u16 LE) followed by length (u16 LE)
    """
    return struct.pack(TLV_PREFIX_FORMAT, tlv_type, length)


# =============================================================================
# Base Header
# =============================================================================

@dataclass
class BaseHeader:
    """
    Fixed 16-byte header at the start of every TBF binary.

    Structure:
        Offset  Size    Description
        ------  ----    -----------
        0       2       Version (always 2)
        2       2       Header size (whole header, multiple of 4)
        4       4       Total size (header + protected region + binary)
        8       4       Flags (bit 0 = enabled)
        12      4       Checksum (XOR of all header words)
    """
    version: int = TBF_VERSION
    header_size: int = 0
    total_size: int = 0
    flags: int = HeaderFlags.NONE
    checksum: int = 0

    SIZE: ClassVar[int] = 16
    FORMAT: ClassVar[str] = "<HHIII"

    def to_bytes(self) -> bytes:
        """Serialize the base header to 16 bytes."""
        return struct.pack(
            self.FORMAT,
            self.version,
            self.header_size,
            self.total_size,
            self.flags,
            self.checksum,
        )


# =============================================================================
# TLV Sections
# =============================================================================

@dataclass
class MainTlv:
    """
    Main TLV: the loader's core process parameters.

    Attributes:
        init_fn_offset: Offset of the entry point from the start of the binary
        protected_size: Bytes reserved after the header and before the
            loadable section (the header itself is not counted)
        minimum_ram_size: RAM the process needs, in bytes
        app_id: Application identifier (explicit or hash-derived)
    """
    init_fn_offset: int = 0
    protected_size: int = 0
    minimum_ram_size: int = 0
    app_id: int = 0

    TYPE: ClassVar[TlvType] = TlvType.MAIN
    LENGTH: ClassVar[int] = 16
    SIZE: ClassVar[int] = TLV_PREFIX_SIZE + 16

    def to_bytes(self) -> bytes:
        """Serialize the TLV prefix and payload (20 bytes)."""
        return pack_tlv_prefix(self.TYPE, self.LENGTH) + struct.pack(
            "<IIII",
            self.init_fn_offset,
            self.protected_size,
            self.minimum_ram_size,
            self.app_id,
        )


@dataclass
class PackageNameTlv:
    """
    Package name TLV.

    The TLV length covers only the name bytes. The zero padding that
    follows, which brings the running header length back to a 4-byte
    boundary, is part of the header but not of the TLV.
    """
    name: bytes = b""
    padding: int = 0

    TYPE: ClassVar[TlvType] = TlvType.PACKAGE_NAME

    @property
    def length(self) -> int:
        return len(self.name)

    def get_size(self) -> int:
        """Bytes this section occupies in the header, padding included."""
        return TLV_PREFIX_SIZE + len(self.name) + self.padding

    def to_bytes(self) -> bytes:
        return pack_tlv_prefix(self.TYPE, self.length) + self.name + bytes(self.padding)


@dataclass
class WriteableFlashRegionTlv:
    """
    One writeable flash region the application may persist data into.

    A slot whose size is zero is considered unused and encodes as an
    all-zero payload.
    """
    offset: int = 0
    size: int = 0

    TYPE: ClassVar[TlvType] = TlvType.WRITEABLE_FLASH_REGIONS
    LENGTH: ClassVar[int] = 8
    SIZE: ClassVar[int] = TLV_PREFIX_SIZE + 8

    def is_free(self) -> bool:
        return self.size == 0

    def to_bytes(self) -> bytes:
        return pack_tlv_prefix(self.TYPE, self.LENGTH) + struct.pack(
            "<II", self.offset, self.size
        )


@dataclass
class FixedAddressesTlv:
    """
    Fixed load addresses for processes that are not position independent.

    An address that was not requested is stored as FIXED_ADDRESS_UNSET.
    """
    start_process_ram: int = FIXED_ADDRESS_UNSET
    start_process_flash: int = FIXED_ADDRESS_UNSET

    TYPE: ClassVar[TlvType] = TlvType.FIXED_ADDRESSES
    LENGTH: ClassVar[int] = 8
    SIZE: ClassVar[int] = TLV_PREFIX_SIZE + 8

    def to_bytes(self) -> bytes:
        return pack_tlv_prefix(self.TYPE, self.LENGTH) + struct.pack(
            "<II", self.start_process_ram, self.start_process_flash
        )
