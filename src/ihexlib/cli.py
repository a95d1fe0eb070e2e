# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m ihexlib` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``ihexlib.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``ihexlib.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import contextlib
import os
from typing import Iterator
from typing import Optional
from typing import Sequence

import click

from . import __version__
from .base import MAX_DATA_LENGTH
from .errors import IntelHexError
from .intelhex import IntelHex
from .loader import FileKind
from .loader import detect_file_kind
from .loader import load
from .records import colorize_tokens
from .search import parse_hex_pattern
from .utils import hexlify
from .utils import parse_int

BIN_FILE_EXT: Sequence[str] = ['.bin', '.dat', '.raw', '.img']
r"""File extensions written as raw binary by default."""


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class ByteIntParamType(click.ParamType):
    name = 'byte'

    def convert(self, value, param, ctx):
        try:
            b = parse_int(value)
            if not 0 <= b <= 255:
                raise ValueError()
            return b
        except ValueError:
            self.fail(f'invalid byte: {value!r}', param, ctx)


class DataLengthParamType(click.ParamType):
    name = 'length'

    def convert(self, value, param, ctx):
        try:
            n = parse_int(value)
            if not 0 < n <= MAX_DATA_LENGTH:
                raise ValueError()
            return n
        except ValueError:
            self.fail(f'invalid data length: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()
BYTE_INT = ByteIntParamType()
DATA_LENGTH = DataLengthParamType()

FILE_PATH_IN = click.Path(dir_okay=False, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, writable=True)

FORMAT_CHOICE = click.Choice(['hex', 'bin'])


# ----------------------------------------------------------------------------

def guess_output_format(
    output_path: str,
    output_format: Optional[str] = None,
) -> str:

    if output_format:
        return output_format

    file_ext = os.path.splitext(output_path)[1].lower()
    return 'bin' if file_ext in BIN_FILE_EXT else 'hex'


@contextlib.contextmanager
def reporting_errors() -> Iterator[None]:

    try:
        yield
    except IntelHexError as exc:
        raise click.ClickException(str(exc)) from exc


def save_image(
    image: IntelHex,
    output_path: str,
    output_format: Optional[str] = None,
    fill: int = 0xFF,
) -> None:

    if guess_output_format(output_path, output_format) == 'bin':
        image.write_bin(output_path, fill=fill)
    else:
        image.write_hex(output_path)


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ============================================================================

@click.group()
@click.option('--version', is_flag=True, is_eager=True, expose_value=False,
              callback=print_version, help="""
    Prints the package version number.
""")
def main() -> None:
    """
    A set of command line utilities for Intel HEX files.

    Input files are detected by content: Intel HEX records start with ``:``,
    anything else is loaded as raw binary data from address zero.
    """


# ----------------------------------------------------------------------------

@main.command()
@click.option('-o', '--output-format', type=FORMAT_CHOICE, help="""
    Forces the output file format.
    By default it is guessed from the output file extension.
""")
@click.option('-w', '--width', type=DATA_LENGTH, help="""
    Sets the length of the record data field, in bytes.
""")
@click.option('-f', '--fill', type=BYTE_INT, default=0xFF, show_default=True, help="""
    Byte value for memory holes within binary output.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
def convert(
    output_format: Optional[str],
    width: Optional[int],
    fill: int,
    infile: str,
    outfile: str,
) -> None:
    r"""Converts a file.

    ``INFILE`` is the path of the input file.

    ``OUTFILE`` is the path of the output file.
    """

    with reporting_errors():
        image = load(infile)
        if width is not None:
            image.maxdatalen = width
        save_image(image, outfile, output_format, fill)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-n', '--count', type=BASED_INT, default=1, show_default=True, help="""
    Number of bytes to read.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('address', type=BASED_INT)
def get(
    count: int,
    infile: str,
    address: int,
) -> None:
    r"""Prints bytes from a file.

    ``INFILE`` is the path of the input file.

    ``ADDRESS`` is the address of the first byte to read.
    All the requested addresses must hold data.
    """

    with reporting_errors():
        image = load(infile)

    data = image.get_range(range(address, address + count))
    if data is None:
        raise click.ClickException(f'no data within 0x{address:X}+{count}')

    click.echo(hexlify(data, sep=' '))


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
def info(
    infile: str,
) -> None:
    r"""Prints information about a file.

    ``INFILE`` is the path of the input file.
    """

    with reporting_errors():
        image = load(infile)

    start = image.start_address
    min_address = image.min_address()
    max_address = image.max_address()

    click.echo(f'path: {image.filepath}')
    click.echo(f'size: {image.size}')
    click.echo(f'bytes: {len(image)}')
    if min_address is None:
        click.echo('span: -')
    else:
        click.echo(f'span: 0x{min_address:08X}-0x{max_address:08X}')
    if start is None:
        click.echo('start: -')
    else:
        click.echo(f'start: 0x{start.to_int():08X} ({start.rtype.name})')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-o', '--output-format', type=FORMAT_CHOICE, help="""
    Forces the output file format.
    By default it is guessed from the output file extension.
""")
@click.option('-a', '--address', type=BASED_INT, required=True, help="""
    New lowest address of the data.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
def relocate(
    output_format: Optional[str],
    address: int,
    infile: str,
    outfile: str,
) -> None:
    r"""Moves data to a new address.

    ``INFILE`` is the path of the input file.

    ``OUTFILE`` is the path of the output file.
    """

    with reporting_errors():
        image = load(infile)
        relocated = image.relocate(address)
        save_image(relocated, outfile, output_format)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-c', '--contiguous', is_flag=True, help="""
    Matches only within contiguous data, not across memory holes.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('pattern')
def search(
    contiguous: bool,
    infile: str,
    pattern: str,
) -> None:
    r"""Searches a byte pattern.

    ``INFILE`` is the path of the input file.

    ``PATTERN`` is the hexadecimal byte string to search, like ``DEADBEEF``.

    Prints the address of each match, one per line.
    """

    data = parse_hex_pattern(pattern)
    if data is None:
        raise click.BadParameter(f'invalid hexadecimal pattern: {pattern!r}')

    with reporting_errors():
        image = load(infile)

    for address in image.search(data, contiguous=contiguous):
        click.echo(f'0x{address:08X}')


# ----------------------------------------------------------------------------

@main.command(name='set')
@click.option('-o', '--outfile', type=FILE_PATH_OUT, help="""
    Path of the output file.
    Leave empty to overwrite ``INFILE``, keeping its format.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('address', type=BASED_INT)
@click.argument('values', type=BYTE_INT, nargs=-1, required=True)
def set_(
    outfile: Optional[str],
    infile: str,
    address: int,
    values: Sequence[int],
) -> None:
    r"""Edits bytes of a file.

    ``INFILE`` is the path of the input file.

    ``ADDRESS`` is the address of the first byte to edit.

    ``VALUES`` are the new byte values, written at consecutive addresses.
    All the edited addresses must already hold data.
    """

    with reporting_errors():
        image = load(infile)
        image.update_range((address + offset, value) for offset, value in enumerate(values))
        if outfile:
            save_image(image, outfile)
        else:
            kind = detect_file_kind(infile)
            save_image(image, infile, 'bin' if kind == FileKind.BIN else 'hex')


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
def validate(
    infile: str,
) -> None:
    r"""Validates a file.

    ``INFILE`` is the path of the input file.
    """

    with reporting_errors():
        load(infile)


# ----------------------------------------------------------------------------

@main.command()
@click.option('--color', is_flag=True, help="""
    Colorizes record fields.
""")
@click.option('-w', '--width', type=DATA_LENGTH, help="""
    Sets the length of the record data field, in bytes.
""")
@click.argument('infile', type=FILE_PATH_IN)
def view(
    color: bool,
    width: Optional[int],
    infile: str,
) -> None:
    r"""Prints the canonical records of a file.

    ``INFILE`` is the path of the input file.
    """

    with reporting_errors():
        image = load(infile)
        if width is not None:
            image.maxdatalen = width
        records = image.to_records()

    for record in records:
        tokens = record.to_tokens()
        if color:
            tokens = colorize_tokens(tokens)
        click.echo(''.join(tokens.values()), color=color)
