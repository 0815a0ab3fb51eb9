"""
TBF SDK Error Hierarchy
=======================

This module defines the exception hierarchy for the TBF SDK.
All exceptions inherit from TBFError, allowing callers to catch all
SDK-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
TBFError (base)
└── HeaderError (header construction)
    ├── HeaderStateError - operation called in the wrong lifecycle phase
    ├── HeaderEncodeError - a field value does not fit its wire format
    └── RegionCapacityError - more flash region values than reserved slots

Design Philosophy
-----------------
Most irregular inputs are not errors at all: an empty package name, zero
flash regions or no fixed addresses simply leave the matching TLV out of
the header. Exceptions are reserved for misuse of the builder and for
values that cannot be represented on the wire.
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class TBFError(Exception):
    """
    Base exception for all TBF SDK errors.

    All exceptions in the SDK inherit from this class, allowing callers
    to catch all SDK-related errors with a single except clause:

        try:
            image = build_tbf(binary, package_name="blink")
        except TBFError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Header Exceptions
# =============================================================================

class HeaderError(TBFError):
    """Base exception for TBF header construction errors."""
    pass


class HeaderStateError(HeaderError):
    """
    Header operation called in the wrong phase.

    A header is planned exactly once with create() and may only be
    encoded after that. Raised when:
    - create() is called a second time
    - generate() is called before create()
    """
    pass


class HeaderEncodeError(HeaderError):
    """
    A header field cannot be serialized.

    Raised when a value does not fit the width of its field, for example
    a u32 field set above 0xFFFFFFFF or a package name longer than the
    16-bit TLV length allows.

    Attributes:
        section: Name of the section being encoded when the error occurred
    """

    def __init__(self, message: str, section: Optional[str] = None):
        self.section = section
        if section:
            message = f"{section}: {message}"
        super().__init__(message)


class RegionCapacityError(HeaderError):
    """
    More writeable flash region values than reserved slots.

    Only raised in strict mode. By default the extra value is dropped
    and a warning is logged.

    Attributes:
        capacity: Number of region slots reserved at creation
        offset: Offset of the rejected region
        size: Size of the rejected region
    """

    def __init__(self, capacity: int, offset: int, size: int):
        self.capacity = capacity
        self.offset = offset
        self.size = size
        super().__init__(
            f"no free writeable flash region slot for "
            f"offset=0x{offset:X} size=0x{size:X} "
            f"({capacity} slot(s) reserved)"
        )
