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

r"""File loading.

The kind of a file is guessed by sniffing its first bytes, then the file is
loaded accordingly:

* Intel HEX files start with ``:``;
* ELF files start with ``\x7FELF``, and are not supported;
* empty files cannot be loaded;
* anything else is loaded as raw binary data, from address zero.
"""

import enum
import logging
import os

from .base import AnyPath
from .errors import UnsupportedFileError
from .intelhex import IntelHex

_logger = logging.getLogger(__name__)

SNIFF_SIZE: int = 32
r"""Number of leading bytes read to guess the file kind."""

ELF_MAGIC: bytes = b'\x7FELF'
r"""ELF file signature."""


class FileKind(enum.Enum):
    r"""Kind of an input file."""

    HEX = 'hex'
    r"""Intel HEX."""

    BIN = 'bin'
    r"""Raw binary."""

    ELF = 'elf'
    r"""Executable and Linkable Format."""

    UNKNOWN = 'unknown'
    r"""Unknown, e.g. empty file."""


def detect_file_kind(path: AnyPath) -> FileKind:
    r"""Guesses the kind of a file.

    Args:
        path (str):
            Path of the file.

    Returns:
        :class:`FileKind`: Guessed file kind.
    """

    with open(path, 'rb') as stream:
        head = stream.read(SNIFF_SIZE)

    if not head:
        return FileKind.UNKNOWN

    if head.startswith(ELF_MAGIC):
        return FileKind.ELF

    if head.startswith(b':'):
        return FileKind.HEX

    return FileKind.BIN


def load(path: AnyPath, **kwargs) -> IntelHex:
    r"""Loads a file as an image.

    Args:
        path (str):
            Path of the file.

        kwargs:
            Forwarded to the :class:`IntelHex` constructor.

    Returns:
        :class:`IntelHex`: Loaded image.

    Raises:
        :class:`UnsupportedFileError`: ELF or unknown file kind.

        :class:`ParseRecordError`: Invalid Intel HEX file.

    Examples:
        >>> from ihexlib import load
        >>> ih = load('firmware.hex')  # doctest: +SKIP
    """

    path = os.fspath(path)
    kind = detect_file_kind(path)
    _logger.debug('file %r detected as %s', path, kind.name)

    if kind == FileKind.HEX:
        return IntelHex.from_hex(path, **kwargs)

    elif kind == FileKind.BIN:
        return IntelHex.from_bin(path, 0, **kwargs)

    elif kind == FileKind.ELF:
        raise UnsupportedFileError(path, 'ELF files are not yet supported')

    else:
        raise UnsupportedFileError(path, 'could not determine the file type')
