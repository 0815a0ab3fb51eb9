"""
tbfhdr - TBF Header Command-Line Interface
==========================================

This module implements the command-line interface for the TBF header
builder. It wraps raw application binaries in a Tock Binary Format header
and checks the checksum of existing headers.

Commands
--------
- **create**: Wrap a binary in a TBF header (or write only the header)
- **checksum**: Check that a header's words XOR-fold to zero

Usage Examples
--------------
Wrap a binary:
    $ tbfhdr create blink.bin -o blink.tbf --package-name blink --minimum-ram-size 2048

Reserve a writeable flash region and a fixed RAM address:
    $ tbfhdr create app.bin -o app.tbf -r 0x1000:0x200 --fixed-address-ram 0x20000000

Write only the header:
    $ tbfhdr create app.bin -o app.hdr --header-only

Check a header checksum:
    $ tbfhdr checksum app.hdr
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from tbf_sdk import __version__
from tbf_sdk.cli.errors import ExitCode, handle_cli_exception
from tbf_sdk.config import HeaderConfig
from tbf_sdk.header import create_header, xor_fold


# =============================================================================
# Parameter Types
# =============================================================================

class IntegerLiteral(click.ParamType):
    """
    Click parameter type for integers written in any Python base.

    Accepts: 2048, 0x800, 0o4000, 0b100000000000
    """
    name = "integer"

    def convert(self, value, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        """Convert string to int."""
        if isinstance(value, int):
            return value
        try:
            result = int(value, 0)
        except ValueError:
            self.fail(f"'{value}' is not a valid integer", param, ctx)
        if result < 0:
            self.fail(f"'{value}' must not be negative", param, ctx)
        return result


class FlashRegion(click.ParamType):
    """
    Click parameter type for a writeable flash region.

    Accepts: OFFSET:SIZE, e.g. 0x1000:0x200
    """
    name = "offset:size"

    def convert(self, value, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> tuple[int, int]:
        """Convert 'OFFSET:SIZE' to an (offset, size) tuple."""
        if isinstance(value, tuple):
            return value

        offset, sep, size = value.partition(":")
        if not sep:
            self.fail(f"'{value}' is not in OFFSET:SIZE form", param, ctx)
        return (INTEGER.convert(offset, param, ctx), INTEGER.convert(size, param, ctx))


INTEGER = IntegerLiteral()
REGION = FlashRegion()


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="tbfhdr")
def main() -> None:
    """
    TBF header builder for Tock applications.

    Wrap application binaries in a Tock Binary Format header.

    \b
    Commands:
      create    Wrap a binary in a TBF header
      checksum  Check a header checksum

    \b
    Examples:
      tbfhdr create blink.bin -o blink.tbf --package-name blink
      tbfhdr checksum blink.tbf --length 48
    """
    pass


# =============================================================================
# Create Command
# =============================================================================

@main.command("create")
@click.argument(
    "binary",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Output file path (required)",
)
@click.option(
    "-m", "--minimum-ram-size",
    type=INTEGER,
    default=None,
    help="Minimum RAM size in bytes (default: TBF_MINIMUM_RAM_SIZE or 0)",
)
@click.option(
    "-n", "--package-name",
    default="",
    help="Package name (omitted from the header when empty)",
)
@click.option(
    "--app-id",
    type=INTEGER,
    default=None,
    help="Application id (default: derived from the package name)",
)
@click.option(
    "--fixed-address-ram",
    type=INTEGER,
    default=None,
    help="Fixed RAM start address",
)
@click.option(
    "--fixed-address-flash",
    type=INTEGER,
    default=None,
    help="Fixed flash start address",
)
@click.option(
    "--init-fn-offset",
    type=INTEGER,
    default=0,
    help="Entry point offset from the start of the binary (default: 0)",
)
@click.option(
    "--protected-size",
    type=INTEGER,
    default=0,
    help="Zero bytes to reserve between header and binary (default: 0)",
)
@click.option(
    "-r", "--region",
    "regions",
    type=REGION,
    multiple=True,
    help="Writeable flash region as OFFSET:SIZE (repeatable)",
)
@click.option(
    "--header-only",
    is_flag=True,
    help="Write only the header, not the protected region or binary",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
def cmd_create(
    binary: Path,
    output: Path,
    minimum_ram_size: Optional[int],
    package_name: str,
    app_id: Optional[int],
    fixed_address_ram: Optional[int],
    fixed_address_flash: Optional[int],
    init_fn_offset: int,
    protected_size: int,
    regions: tuple[tuple[int, int], ...],
    header_only: bool,
    verbose: bool,
) -> None:
    """
    Wrap BINARY in a TBF header and write it to OUTPUT.

    \b
    Examples:
      tbfhdr create blink.bin -o blink.tbf -n blink -m 2048
      tbfhdr create app.bin -o app.tbf -r 0x1000:0x200 -r 0x1200:0x200
      tbfhdr create app.bin -o app.hdr --header-only
    """
    setup_logging(verbose)

    try:
        config = HeaderConfig.from_env()
        if minimum_ram_size is None:
            minimum_ram_size = config.minimum_ram_size

        data = binary.read_bytes()

        header = create_header(
            len(data),
            minimum_ram_size=minimum_ram_size,
            package_name=package_name,
            app_id=app_id,
            fixed_address_ram=fixed_address_ram,
            fixed_address_flash=fixed_address_flash,
            init_fn_offset=init_fn_offset,
            protected_size=protected_size,
            writeable_flash_regions=regions,
            config=config,
        )
        header_bytes = header.generate()

        if header_only:
            output.write_bytes(header_bytes)
        else:
            output.write_bytes(header_bytes + bytes(protected_size) + data)

        if verbose:
            click.echo(header.format())
            click.echo()
        click.echo(
            f"Created {output} ({len(header_bytes)} byte header, "
            f"total size {header.total_size} bytes, app id 0x{header.app_id:08X})"
        )

    except Exception as e:
        handle_cli_exception(e, verbose, "Header")


# =============================================================================
# Checksum Command
# =============================================================================

@main.command("checksum")
@click.argument(
    "header_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-l", "--length",
    type=INTEGER,
    default=None,
    help="Header length in bytes (default: whole file, which only suits --header-only output)",
)
def cmd_checksum(header_file: Path, length: Optional[int]) -> None:
    """
    Check that the first LENGTH bytes of HEADER_FILE XOR-fold to zero.

    A correctly built header always folds to zero because its checksum
    field holds the fold of every other word. Without --length the whole
    file is folded, so pass the header size when checking a full image.

    \b
    Example:
      tbfhdr checksum blink.tbf --length 48
    """
    try:
        data = header_file.read_bytes()
        if length is not None:
            if length > len(data):
                raise click.BadParameter(
                    f"length {length} exceeds file size {len(data)}",
                    param_hint="'--length'",
                )
            data = data[:length]

        fold = xor_fold(data)
        if fold == 0:
            click.echo(f"Checksum: OK ({len(data)} bytes)")
        else:
            click.echo(f"Checksum: MISMATCH (fold 0x{fold:08X} over {len(data)} bytes)")
            if length is None:
                click.echo(
                    "Hint: pass --length with the header size if the file also "
                    "contains the protected region and binary",
                    err=True,
                )
            sys.exit(ExitCode.BUILD_ERROR)

    except Exception as e:
        handle_cli_exception(e)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
