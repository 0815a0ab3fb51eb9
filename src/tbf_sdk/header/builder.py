"""
TBF Header Builder
==================

This module provides the TbfHeader class for creating Tock Binary Format
headers.

A header is built in two phases:

1. **Planning**: `create()` is called exactly once with the values that are
   known up front (minimum RAM, package name, how many writeable flash
   regions to reserve, fixed addresses, app id). It decides which optional
   sections exist and returns the header length, so the caller can lay out
   the rest of the image.

2. **Refining**: once the real layout is known, the setters fill in the
   protected size, total size, entry point offset and flash region values.
   `generate()` may be called any number of times and always reflects the
   current values with a freshly calculated checksum.

Usage
-----
    >>> from tbf_sdk.header import TbfHeader
    >>> header = TbfHeader()
    >>> length = header.create(2048, 1, "blink", None, None, None)
    >>> header.set_total_size(length + len(binary))
    >>> header.set_init_fn_offset(0x41)
    >>> header.set_writeable_flash_region_values(0x800, 0x200)
    >>> data = header.generate() + binary

Or in one call:

    >>> from tbf_sdk.header import build_tbf
    >>> image = build_tbf(binary, minimum_ram_size=2048, package_name="blink")
"""

from dataclasses import replace
from typing import Callable, Iterator, Optional, Sequence, Union
import hashlib
import logging
import struct

from tbf_sdk.config import HeaderConfig
from tbf_sdk.errors import HeaderEncodeError, HeaderStateError, RegionCapacityError
from tbf_sdk.header.checksum import (
    amount_alignment_needed,
    inject_checksum,
    pad_to_alignment,
)
from tbf_sdk.header.records import (
    FIXED_ADDRESS_UNSET,
    TLV_PREFIX_SIZE,
    BaseHeader,
    FixedAddressesTlv,
    HeaderFlags,
    MainTlv,
    PackageNameTlv,
    WriteableFlashRegionTlv,
)

# Logger for this module
logger = logging.getLogger(__name__)

Digest = Callable[[bytes], bytes]


def sha3_256_digest(data: bytes) -> bytes:
    return hashlib.sha3_256(data).digest()


def derive_app_id(package_name: Union[str, bytes], digest: Digest = sha3_256_digest) -> int:
    """
    Derive a default application id from a package name.

    The id is the first 4 bytes of the digest of the name, read as a
    little-endian u32. An empty name hashes the empty byte string.

    Args:
        package_name: Package name (str is UTF-8 encoded)
        digest: Any callable returning at least 4 bytes of digest

    Returns:
        32-bit application id

    Example:
        >>> derive_app_id("blink") == derive_app_id(b"blink")
        True
    """
    if isinstance(package_name, str):
        package_name = package_name.encode("utf-8")

    hashed = digest(package_name)
    if len(hashed) < 4:
        raise ValueError(f"Digest too short: need 4 bytes, got {len(hashed)}")
    return int.from_bytes(hashed[:4], "little")


# =============================================================================
# Header Builder
# =============================================================================

class TbfHeader:
    """
    Builds a TBF header.

    Holds every header field, plans the header layout once and encodes the
    header on demand.

    Args:
        config: Builder configuration (defaults to HeaderConfig())
        digest: Digest used for default app ids. Overrides the algorithm
            named in the config.

    Example:
        >>> header = TbfHeader()
        >>> header.create(2048, 0, "", None, None, 0x1234)
        36
    """

    def __init__(
        self,
        config: Optional[HeaderConfig] = None,
        digest: Optional[Digest] = None,
    ) -> None:
        self._config = config or HeaderConfig()
        self._digest = digest

        self._base = BaseHeader()
        self._main = MainTlv()
        self._package_name: Optional[PackageNameTlv] = None
        self._regions: list[WriteableFlashRegionTlv] = []
        self._fixed_addresses: Optional[FixedAddressesTlv] = None

        self._created = False

    # =========================================================================
    # Planning
    # =========================================================================

    def create(
        self,
        minimum_ram_size: int,
        writeable_flash_regions: int,
        package_name: str,
        fixed_address_ram: Optional[int],
        fixed_address_flash: Optional[int],
        app_id: Optional[int],
    ) -> int:
        """
        Start creating the header.

        Takes the values that are known before the image is laid out. The
        remaining values (where things end up in flash) are set later with
        the setters, once the header length returned here is known.

        Args:
            minimum_ram_size: RAM the process needs
            writeable_flash_regions: Number of flash region slots to reserve
            package_name: Package name; empty omits the package name TLV
            fixed_address_ram: Fixed RAM start address, or None
            fixed_address_flash: Fixed flash start address, or None
            app_id: Explicit application id, or None to derive it from the
                package name

        Returns:
            The length of the header in bytes, always a multiple of 4

        Raises:
            HeaderStateError: If the header was already created
            HeaderEncodeError: If a value does not fit its field
            ValueError: If writeable_flash_regions is negative, or the
                configured digest algorithm is unusable
        """
        if self._created:
            raise HeaderStateError("create() may only be called once per header")
        if writeable_flash_regions < 0:
            raise ValueError(
                f"Writeable flash region count cannot be negative: {writeable_flash_regions}"
            )

        name = package_name.encode("utf-8")
        has_fixed_addresses = fixed_address_ram is not None or fixed_address_flash is not None

        # Base header and main TLV are always present
        header_length = BaseHeader.SIZE + MainTlv.SIZE

        package_name_tlv = None
        if name:
            header_length += TLV_PREFIX_SIZE + len(name)
            padding = amount_alignment_needed(header_length)
            header_length += padding
            package_name_tlv = PackageNameTlv(name=name, padding=padding)

        header_length += WriteableFlashRegionTlv.SIZE * writeable_flash_regions

        fixed_addresses = None
        if has_fixed_addresses:
            header_length += FixedAddressesTlv.SIZE
            fixed_addresses = FixedAddressesTlv(
                start_process_ram=FIXED_ADDRESS_UNSET
                if fixed_address_ram is None else fixed_address_ram,
                start_process_flash=FIXED_ADDRESS_UNSET
                if fixed_address_flash is None else fixed_address_flash,
            )

        if app_id is None:
            app_id = derive_app_id(name, self._app_id_digest())
            logger.debug(f"Derived app id 0x{app_id:08X} from '{package_name}'")

        previous = (self._base, self._main, self._package_name,
                    self._regions, self._fixed_addresses)

        self._base = replace(self._base, header_size=header_length, flags=HeaderFlags.ENABLED)
        self._main = replace(self._main, minimum_ram_size=minimum_ram_size, app_id=app_id)
        self._package_name = package_name_tlv
        self._regions = [WriteableFlashRegionTlv() for _ in range(writeable_flash_regions)]
        self._fixed_addresses = fixed_addresses

        # Measure the real encoding so the length always matches generate()
        try:
            length = len(self._encode())
        except HeaderEncodeError:
            (self._base, self._main, self._package_name,
             self._regions, self._fixed_addresses) = previous
            raise

        self._created = True
        logger.debug(
            f"Planned header: {length} bytes, "
            f"{writeable_flash_regions} flash region(s), "
            f"package name {'present' if name else 'absent'}, "
            f"fixed addresses {'present' if has_fixed_addresses else 'absent'}"
        )
        return length

    def _app_id_digest(self) -> Digest:
        if self._digest is not None:
            return self._digest
        return self._config.digest()

    # =========================================================================
    # Field Setters
    # =========================================================================

    def set_protected_size(self, protected_size: int) -> None:
        """
        Update the protected size. It does not include the size of the
        header itself.
        """
        self._main.protected_size = protected_size

    def set_total_size(self, total_size: int) -> None:
        """Update the size of the entire app binary, header included."""
        self._base.total_size = total_size

    def set_init_fn_offset(self, init_fn_offset: int) -> None:
        """Update the offset of the _start function."""
        self._main.init_fn_offset = init_fn_offset

    def set_writeable_flash_region_values(self, offset: int, size: int) -> bool:
        """
        Fill the first unused writeable flash region slot.

        A slot is unused while its size is zero. When every slot is in use
        the value is dropped with a warning, or RegionCapacityError is
        raised if the config asks for strict regions.

        Returns:
            True if a slot was filled, False if the value was dropped
        """
        for region in self._regions:
            if region.is_free():
                region.offset = offset
                region.size = size
                return True

        if self._config.strict_regions:
            raise RegionCapacityError(len(self._regions), offset, size)

        logger.warning(
            f"Dropping writeable flash region offset=0x{offset:X} size=0x{size:X}: "
            f"all {len(self._regions)} slot(s) in use"
        )
        return False

    # =========================================================================
    # Query Methods
    # =========================================================================

    @property
    def header_size(self) -> int:
        return self._base.header_size

    @property
    def total_size(self) -> int:
        return self._base.total_size

    @property
    def flags(self) -> int:
        return self._base.flags

    @property
    def init_fn_offset(self) -> int:
        return self._main.init_fn_offset

    @property
    def protected_size(self) -> int:
        return self._main.protected_size

    @property
    def minimum_ram_size(self) -> int:
        return self._main.minimum_ram_size

    @property
    def app_id(self) -> int:
        return self._main.app_id

    @property
    def package_name(self) -> str:
        if self._package_name is None:
            return ""
        return self._package_name.name.decode("utf-8")

    @property
    def writeable_flash_regions(self) -> tuple[tuple[int, int], ...]:
        """(offset, size) of every reserved slot, in creation order."""
        return tuple((region.offset, region.size) for region in self._regions)

    @property
    def fixed_addresses(self) -> Optional[tuple[int, int]]:
        """(start_process_ram, start_process_flash), or None if absent."""
        if self._fixed_addresses is None:
            return None
        return (
            self._fixed_addresses.start_process_ram,
            self._fixed_addresses.start_process_flash,
        )

    # =========================================================================
    # Encoding
    # =========================================================================

    def _sections(self) -> Iterator[tuple[str, object]]:
        """Yield (name, section) pairs in wire order."""
        yield "base header", self._base
        yield "main TLV", self._main
        if self._package_name is not None:
            yield "package name TLV", self._package_name
        for index, region in enumerate(self._regions):
            yield f"writeable flash region TLV {index}", region
        if self._fixed_addresses is not None:
            yield "fixed addresses TLV", self._fixed_addresses

    def generate(self) -> bytes:
        """
        Create the header in binary form.

        Returns:
            The encoded header, padded to a multiple of 4 bytes, with the
            checksum filled in

        Raises:
            HeaderStateError: If create() has not been called
            HeaderEncodeError: If a field value does not fit its wire format
        """
        if not self._created:
            raise HeaderStateError("create() must be called before generate()")
        return self._encode()

    def _encode(self) -> bytes:
        buffer = bytearray()
        for name, section in self._sections():
            try:
                buffer.extend(section.to_bytes())
            except struct.error as e:
                raise HeaderEncodeError(str(e), section=name) from e

        pad_to_alignment(buffer)
        header = inject_checksum(buffer)

        logger.debug(f"Generated {len(header)} byte header, checksum 0x{header[12:16].hex()}")
        return header

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def format(self) -> str:
        """
        Render the header fields as a human-readable listing.

        Each value is shown in decimal and hexadecimal.
        """
        def row(label: str, value: int) -> str:
            return f"{label:>22}: {value:>10} {f'0x{value:X}':>10}"

        lines = [
            "TBF Header:",
            row("version", self._base.version),
            row("header_size", self._base.header_size),
            row("total_size", self._base.total_size),
            row("flags", self._base.flags),
            "",
            row("init_fn_offset", self._main.init_fn_offset),
            row("protected_size", self._main.protected_size),
            row("minimum_ram_size", self._main.minimum_ram_size),
            row("app_id", self._main.app_id),
        ]
        if self._package_name is not None:
            lines.append(f"{'package_name':>22}: {self.package_name}")

        for region in self._regions:
            lines += [
                "",
                "    flash region:",
                row("offset", region.offset),
                row("size", region.size),
            ]

        if self._fixed_addresses is not None:
            lines += [
                "",
                row("start_process_ram", self._fixed_addresses.start_process_ram),
                row("start_process_flash", self._fixed_addresses.start_process_flash),
            ]

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


# =============================================================================
# Convenience Functions
# =============================================================================

def create_header(
    binary_size: int,
    *,
    minimum_ram_size: int = 0,
    package_name: str = "",
    app_id: Optional[int] = None,
    fixed_address_ram: Optional[int] = None,
    fixed_address_flash: Optional[int] = None,
    init_fn_offset: int = 0,
    protected_size: int = 0,
    writeable_flash_regions: Sequence[tuple[int, int]] = (),
    config: Optional[HeaderConfig] = None,
) -> TbfHeader:
    """
    Create and fill in a header for a binary of `binary_size` bytes.

    One flash region slot is reserved per (offset, size) pair and filled
    in order. The total size covers the header, the protected region and
    the binary.

    Returns:
        A TbfHeader ready for generate()
    """
    header = TbfHeader(config=config)
    header_length = header.create(
        minimum_ram_size,
        len(writeable_flash_regions),
        package_name,
        fixed_address_ram,
        fixed_address_flash,
        app_id,
    )

    header.set_protected_size(protected_size)
    header.set_total_size(header_length + protected_size + binary_size)
    header.set_init_fn_offset(init_fn_offset)
    for offset, size in writeable_flash_regions:
        header.set_writeable_flash_region_values(offset, size)

    return header


def build_tbf(
    binary: bytes,
    *,
    protected_size: int = 0,
    **kwargs,
) -> bytes:
    """
    Create a complete TBF image: header, protected region, then binary.

    The protected region is filled with zero bytes. Keyword arguments are
    passed on to create_header().

    Args:
        binary: The application binary to wrap
        protected_size: Bytes reserved between the header and the binary

    Returns:
        The complete image as bytes

    Example:
        >>> image = build_tbf(b"\\x00" * 64, minimum_ram_size=2048, package_name="blink")
        >>> len(image)
        112
    """
    header = create_header(len(binary), protected_size=protected_size, **kwargs)
    image = header.generate() + bytes(protected_size) + bytes(binary)

    logger.info(
        f"Built TBF image: {header.header_size} byte header, "
        f"{protected_size} protected, {len(binary)} byte binary"
    )
    return image
