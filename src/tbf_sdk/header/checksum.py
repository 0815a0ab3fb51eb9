"""
TBF Header Checksum and Alignment
=================================

This module provides the checksum and alignment helpers used when encoding
a TBF header.

Header Checksum
---------------
The checksum stored at bytes 12-15 of the base header is calculated as:
- Algorithm: XOR of every 32-bit little-endian word in the header
- The checksum field itself is treated as zero while folding
- A trailing partial word is zero-extended (never happens for a padded
  header, but tolerated)

Because the stored value is exactly the fold of everything else, folding
the finished header, checksum included, always yields zero. That is what
`verify_checksum()` checks.

Alignment
---------
The header length must be a multiple of 4. `amount_alignment_needed()`
gives the number of zero bytes to append to reach the next boundary.
"""

from typing import Union
import struct

from tbf_sdk.header.records import CHECKSUM_OFFSET, TBF_ALIGNMENT


def amount_alignment_needed(value: int, alignment: int = TBF_ALIGNMENT) -> int:
    """
    Number of bytes needed to round `value` up to a multiple of `alignment`.

    Example:
        >>> amount_alignment_needed(45, 4)
        3
        >>> amount_alignment_needed(48, 4)
        0
    """
    remainder = value % alignment
    if remainder == 0:
        return 0
    return alignment - remainder


def pad_to_alignment(buffer: bytearray, alignment: int = TBF_ALIGNMENT) -> bytearray:
    """
    Append zero bytes to `buffer` in place until its length is aligned.

    Returns:
        The same buffer, for chaining
    """
    buffer.extend(bytes(amount_alignment_needed(len(buffer), alignment)))
    return buffer


def xor_fold(data: Union[bytes, bytearray]) -> int:
    """
    XOR together all 32-bit little-endian words of `data`.

    A final partial word is zero-extended before folding.

    Args:
        data: The bytes to fold

    Returns:
        32-bit fold value (0x00000000 - 0xFFFFFFFF)
    """
    checksum = 0
    full = len(data) - len(data) % 4
    for (word,) in struct.iter_unpack("<I", data[:full]):
        checksum ^= word

    tail = data[full:]
    if tail:
        checksum ^= int.from_bytes(tail, "little")

    return checksum


def inject_checksum(header: Union[bytes, bytearray]) -> bytes:
    """
    Calculate the header checksum and write it into bytes 12-15.

    The checksum field is zeroed before folding, so any stale value in
    the input is ignored.

    Args:
        header: A fully encoded header (at least 16 bytes)

    Returns:
        A copy of the header with the checksum field filled in

    Raises:
        ValueError: If the buffer is too short to hold a base header
    """
    if len(header) < CHECKSUM_OFFSET + 4:
        raise ValueError(
            f"Header too short: need at least {CHECKSUM_OFFSET + 4} bytes, "
            f"got {len(header)}"
        )

    buffer = bytearray(header)
    struct.pack_into("<I", buffer, CHECKSUM_OFFSET, 0)
    checksum = xor_fold(buffer)
    struct.pack_into("<I", buffer, CHECKSUM_OFFSET, checksum)
    return bytes(buffer)


def verify_checksum(header: Union[bytes, bytearray]) -> bool:
    """
    Check that a complete header folds to zero.

    Only the raw words are inspected; no header fields are decoded.
    """
    if len(header) < CHECKSUM_OFFSET + 4:
        return False
    return xor_fold(header) == 0
