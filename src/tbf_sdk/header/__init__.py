"""
TBF Header Construction
=======================

This module builds Tock Binary Format (TBF) headers: the metadata block the
Tock kernel's loader reads in front of every application binary.

This module provides:
- **TbfHeader**: Plan, fill in and encode a header
- **build_tbf**: Wrap an application binary in a header in one call
- **Section types**: Byte-exact serializers for each header section
- **Checksum utilities**: XOR fold, checksum injection, alignment

Quick Start
-----------
    >>> from tbf_sdk.header import TbfHeader
    >>> header = TbfHeader()
    >>> length = header.create(2048, 0, "blink", None, None, None)
    >>> header.set_total_size(length + len(binary))
    >>> data = header.generate()

Header Layout
-------------
All integers are little-endian:

    Base header         version, header_size, total_size, flags, checksum
    Main TLV            init_fn_offset, protected_size, minimum_ram_size, app_id
    Package name TLV    name bytes + padding (optional)
    Flash region TLV    offset, size (repeated, optional)
    Fixed addresses     start_process_ram, start_process_flash (optional)
"""

# =============================================================================
# Public API Exports
# =============================================================================

from tbf_sdk.header.records import (
    TlvType,
    HeaderFlags,
    BaseHeader,
    MainTlv,
    PackageNameTlv,
    WriteableFlashRegionTlv,
    FixedAddressesTlv,
    pack_tlv_prefix,
    TBF_VERSION,
    TBF_ALIGNMENT,
    FIXED_ADDRESS_UNSET,
    CHECKSUM_OFFSET,
)

from tbf_sdk.header.checksum import (
    amount_alignment_needed,
    pad_to_alignment,
    xor_fold,
    inject_checksum,
    verify_checksum,
)

from tbf_sdk.header.builder import (
    TbfHeader,
    build_tbf,
    create_header,
    derive_app_id,
    sha3_256_digest,
)

__all__ = [
    # Section types
    "TlvType",
    "HeaderFlags",
    "BaseHeader",
    "MainTlv",
    "PackageNameTlv",
    "WriteableFlashRegionTlv",
    "FixedAddressesTlv",
    "pack_tlv_prefix",
    # Constants
    "TBF_VERSION",
    "TBF_ALIGNMENT",
    "FIXED_ADDRESS_UNSET",
    "CHECKSUM_OFFSET",
    # Checksum utilities
    "amount_alignment_needed",
    "pad_to_alignment",
    "xor_fold",
    "inject_checksum",
    "verify_checksum",
    # Builder
    "TbfHeader",
    "build_tbf",
    "create_header",
    "derive_app_id",
    "sha3_256_digest",
]
