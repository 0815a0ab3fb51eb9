"""
TBF SDK - Tock Binary Format Header Toolkit
===========================================

This package builds the Tock Binary Format (TBF) header that the Tock
kernel's loader expects in front of every application binary. The header
tells the loader how big the application is, how much RAM it needs, where
its entry point is, which flash regions it may write to, whether it must
be loaded at fixed addresses, and which application id it carries.

Main Components
---------------
- **header**: Header planning, field store, encoder and checksum
    Creates byte-exact TBF headers

- **config**: Builder configuration from defaults and environment

- **cli**: Command-line tool (tbfhdr)
    Wraps a raw application binary in a TBF header

Quick Start
-----------
Build a header step by step:
    >>> from tbf_sdk import TbfHeader
    >>> header = TbfHeader()
    >>> length = header.create(2048, 1, "blink", None, None, None)
    >>> header.set_total_size(length + len(binary))
    >>> header.set_writeable_flash_region_values(0x800, 0x200)
    >>> image = header.generate() + binary

Or wrap a binary in one call:
    >>> from tbf_sdk import build_tbf
    >>> image = build_tbf(binary, minimum_ram_size=2048, package_name="blink")

Or use the command-line tool:
    $ tbfhdr create blink.bin -o blink.tbf --package-name blink --minimum-ram-size 2048

Reference Documentation
-----------------------
- Tock Binary Format: https://github.com/tock/tock/blob/master/doc/TockBinaryFormat.md
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from tbf_sdk.errors import (
    TBFError,
    HeaderError,
    HeaderStateError,
    HeaderEncodeError,
    RegionCapacityError,
)
from tbf_sdk.config import HeaderConfig
from tbf_sdk.header import (
    TbfHeader,
    build_tbf,
    create_header,
    derive_app_id,
    xor_fold,
    verify_checksum,
)

__all__ = [
    "__version__",
    # Errors
    "TBFError",
    "HeaderError",
    "HeaderStateError",
    "HeaderEncodeError",
    "RegionCapacityError",
    # Configuration
    "HeaderConfig",
    # Header
    "TbfHeader",
    "build_tbf",
    "create_header",
    "derive_app_id",
    "xor_fold",
    "verify_checksum",
]
