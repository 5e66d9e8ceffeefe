"""
mobimeta - MOBI Metadata Command-Line Interface
===============================================

This module implements the command-line interface for inspecting MOBI
ebook containers.

Commands
--------
- **info**: Show headers and well-known metadata fields
- **title**: Print the book title
- **exth**: List EXTH records, or print one of them
- **cover**: Save the cover (or thumbnail) image
- **validate**: Check that a file is a readable MOBI container

Usage Examples
--------------
Show a summary:
    $ mobimeta info sherlock.mobi

Print the author record:
    $ mobimeta exth -t author sherlock.mobi

Dump the raw ASIN payload:
    $ mobimeta exth -t 113 --raw sherlock.mobi > asin.bin

Save the cover:
    $ mobimeta cover -o sherlock.jpg sherlock.mobi

Environment
-----------
MOBIMETA_CHECKED_RECORD_INDEX and MOBIMETA_FALLBACK_ENCODING set the
defaults for --checked and --encoding (see mobimeta.config).
"""

import codecs
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from mobimeta import __version__
from mobimeta.cli.errors import ExitCode, handle_cli_exception
from mobimeta.config import ReaderConfig
from mobimeta.errors import MobiError
from mobimeta.mobi import (
    ExthType,
    Metadata,
    ensure_magic,
    extract_cover,
    extract_thumbnail,
)
from mobimeta.mobi.reader import MOBI_MAGIC, record_offset

logger = logging.getLogger(__name__)


# =============================================================================
# EXTH Type Parameter Type
# =============================================================================

class ExthTypeChoice(click.ParamType):
    """
    Click parameter type for EXTH record types.

    Accepts a well-known field name (author, isbn, coveroffset, ...,
    case-insensitive) or any numeric type code.
    """
    name = "exth_type"

    TYPE_MAP = {exth_type.field_name: exth_type for exth_type in ExthType}

    def convert(self, value, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        """Convert a field name or number to an EXTH type code."""
        if isinstance(value, int):
            return value

        key = value.strip().lower()
        if key in self.TYPE_MAP:
            return self.TYPE_MAP[key]
        try:
            code = int(key, 0)
        except ValueError:
            self.fail(
                f"Invalid EXTH type '{value}'. Use a number or one of: "
                f"{', '.join(self.TYPE_MAP.keys())}",
                param, ctx
            )
        if not 0 <= code <= 0xFFFFFFFF:
            self.fail(f"EXTH type {code} does not fit in 32 bits", param, ctx)
        return code


EXTH_TYPE = ExthTypeChoice()


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the reader configuration and verbosity.
    """

    def __init__(self) -> None:
        self.config: ReaderConfig = ReaderConfig.from_env()
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )

    def load(self, mobi_file: Path) -> Metadata:
        logger.debug(f"Loading {mobi_file} with {self.config}")
        return Metadata.from_file(mobi_file, self.config)


pass_context = click.make_pass_decorator(Context, ensure=True)


def format_value(meta: Metadata, record_type: int, value: bytes) -> str:
    """Render an EXTH payload for display."""
    if ExthType.is_numeric(record_type):
        return str(int.from_bytes(value[:4], "big"))
    return meta.decode_text(value)


MOBI_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def validate_encoding(ctx, param, value: Optional[str]) -> Optional[str]:
    """Normalize a codec name, rejecting ones Python does not know."""
    if value is None:
        return None
    try:
        return codecs.lookup(value).name
    except LookupError:
        raise click.BadParameter(f"Unknown encoding '{value}'")


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="mobimeta")
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging)",
)
@click.option(
    "--checked/--unchecked",
    default=None,
    help="Validate PDB record indices against the record count",
)
@click.option(
    "-e", "--encoding",
    callback=validate_encoding,
    help="Fallback text encoding when the header declares an unknown one",
)
@pass_context
def main(
    ctx: Context,
    verbose: bool,
    checked: Optional[bool],
    encoding: Optional[str],
) -> None:
    """
    Read metadata from MOBI ebook files.

    \b
    Commands:
      info      Show headers and metadata fields
      title     Print the book title
      exth      List or print EXTH records
      cover     Save the cover image
      validate  Validate MOBI file format

    \b
    Examples:
      mobimeta info book.mobi
      mobimeta exth -t isbn book.mobi
      mobimeta cover -o cover.jpg book.mobi
    """
    ctx.verbose = verbose
    if checked is not None:
        ctx.config.checked_record_index = checked
    if encoding:
        ctx.config.fallback_encoding = encoding
    ctx.setup_logging()


# =============================================================================
# Info Command
# =============================================================================

@main.command("info")
@click.argument("mobi_file", type=MOBI_FILE)
@pass_context
def cmd_info(ctx: Context, mobi_file: Path) -> None:
    """
    Show detailed information about a MOBI file.

    \b
    Example:
      mobimeta info book.mobi
    """
    try:
        meta = ctx.load(mobi_file)
        pdb = meta.pdb_header
        palm = meta.palm_doc_header
        mobi = meta.mobi_header

        click.echo(f"MOBI Information: {mobi_file}")
        click.echo("=" * 40)
        click.echo(f"Title:       {meta.title_text}")
        click.echo(f"Database:    {meta.decode_text(pdb.name)}")
        click.echo(f"Records:     {pdb.record_count}")
        click.echo(f"Type:        {mobi.get_type_name()}")
        click.echo(f"Version:     {mobi.file_version}")
        click.echo(f"Encoding:    {meta.encoding}")
        click.echo(f"Compression: {palm.compression_name}")
        click.echo(f"Encryption:  {palm.encryption_name}")
        click.echo(f"Text:        {palm.text_length} bytes in {palm.record_count} records")

        fields = meta.exth_fields()
        if fields:
            click.echo()
            click.echo("Metadata:")
            for exth_type in ExthType:
                if exth_type.field_name in fields:
                    value = format_value(meta, exth_type, fields[exth_type.field_name])
                    click.echo(f"  {exth_type.field_name + ':':<14}{value}")

        click.echo()
        images = (("Cover:", meta.extract_cover), ("Thumbnail:", meta.extract_thumbnail))
        for label, extract in images:
            try:
                image = extract()
            except MobiError as e:
                summary = f"invalid ({e})"
            else:
                summary = f"{len(image)} bytes" if image is not None else "none"
            click.echo(f"{label:<13}{summary}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Title Command
# =============================================================================

@main.command("title")
@click.argument("mobi_file", type=MOBI_FILE)
@pass_context
def cmd_title(ctx: Context, mobi_file: Path) -> None:
    """Print the full title of a MOBI file."""
    try:
        meta = ctx.load(mobi_file)
        click.echo(meta.title_text)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# EXTH Command
# =============================================================================

@main.command("exth")
@click.argument("mobi_file", type=MOBI_FILE)
@click.option(
    "-t", "--type",
    "record_type",
    type=EXTH_TYPE,
    help="Print only the first record of this type (name or number)",
)
@click.option(
    "--raw",
    is_flag=True,
    help="Write the raw payload bytes to stdout (requires --type)",
)
@pass_context
def cmd_exth(
    ctx: Context,
    mobi_file: Path,
    record_type: Optional[int],
    raw: bool,
) -> None:
    """
    List the EXTH records of a MOBI file.

    \b
    Examples:
      mobimeta exth book.mobi
      mobimeta exth -t author book.mobi
      mobimeta exth -t 113 --raw book.mobi > asin.bin

    \b
    Output format:
      Type  Name          Size  Value
      100   author          18  Arthur Conan Doyle
    """
    if raw and record_type is None:
        handle_cli_exception(click.BadParameter("--raw requires --type"))

    try:
        meta = ctx.load(mobi_file)

        if record_type is not None:
            value = meta.exth_lookup(record_type)
            if value is None:
                click.echo(
                    f"No EXTH record of type {ExthType.get_name(record_type)}",
                    err=True,
                )
                sys.exit(ExitCode.NOT_FOUND)
            if raw:
                click.get_binary_stream("stdout").write(value)
            else:
                click.echo(format_value(meta, record_type, value))
            return

        click.echo(f"{'Type':<6}{'Name':<14}{'Size':>6}  Value")
        click.echo("-" * 50)
        for record in meta.exth_header:
            value = format_value(meta, record.type, record.payload)
            click.echo(
                f"{record.type:<6}{record.get_type_name():<14}"
                f"{len(record.payload):>6}  {value}"
            )

        if ctx.verbose:
            click.echo("-" * 50)
            click.echo(
                f"Total: {len(meta.exth_header)} records "
                f"(declared {meta.exth_header.record_count})"
            )

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Cover Command
# =============================================================================

@main.command("cover")
@click.argument("mobi_file", type=MOBI_FILE)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Output image path (required)",
)
@click.option(
    "--thumbnail",
    is_flag=True,
    help="Save the thumbnail instead of the cover",
)
@pass_context
def cmd_cover(ctx: Context, mobi_file: Path, output: Path, thumbnail: bool) -> None:
    """
    Save the cover image of a MOBI file.

    \b
    Examples:
      mobimeta cover -o cover.jpg book.mobi
      mobimeta cover --thumbnail -o thumb.jpg book.mobi
    """
    try:
        meta = ctx.load(mobi_file)
        kind = "thumbnail" if thumbnail else "cover"
        written = meta.save_thumbnail(output) if thumbnail else meta.save_cover(output)

        if not written:
            click.echo(f"No {kind} image in {mobi_file}", err=True)
            sys.exit(ExitCode.NOT_FOUND)

        click.echo(f"Saved {kind} to {output} ({output.stat().st_size} bytes)")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Validate Command
# =============================================================================

@main.command("validate")
@click.argument("mobi_file", type=MOBI_FILE)
@pass_context
def cmd_validate(ctx: Context, mobi_file: Path) -> None:
    """
    Validate the structure of a MOBI file.

    Checks the BOOKMOBI signature, the MOBI header magic, the EXTH table
    and that the cover and thumbnail records resolve.

    \b
    Example:
      mobimeta validate book.mobi
    """
    errors = []
    warnings = []

    try:
        meta = ctx.load(mobi_file)
    except MobiError as e:
        click.echo(f"INVALID: {e}", err=True)
        sys.exit(ExitCode.DECODE_ERROR)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)

    try:
        ensure_magic(meta.data, MOBI_MAGIC, record_offset(meta.data, 0) + 16)
    except MobiError as e:
        errors.append(str(e))

    if meta.mobi_header.has_exth and not meta.exth_header.identifier:
        errors.append("EXTH flag set but EXTH table missing")
    elif not meta.mobi_header.has_exth:
        warnings.append("No EXTH table")

    checked = ctx.config.checked_record_index
    for name, extract in (("cover", extract_cover), ("thumbnail", extract_thumbnail)):
        if errors:
            break
        try:
            if extract(meta.data, checked=checked) is None:
                warnings.append(f"No {name} image")
        except MobiError as e:
            errors.append(f"{name}: {e}")

    for warning in warnings:
        click.echo(f"Warning: {warning}")

    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        click.echo(f"INVALID: {mobi_file}", err=True)
        sys.exit(ExitCode.DECODE_ERROR)

    click.echo(f"VALID: {mobi_file}")


if __name__ == "__main__":
    main()
