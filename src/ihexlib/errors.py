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

r"""Error types.

Every error raised by the library derives from :class:`IntelHexError`,
itself a :class:`ValueError`.
Each error tells *when* it happened (its class), *what* happened
(its :class:`ErrorKind`), and the *context* of the failure, such as the line
number of the offending record.
"""

import enum
from typing import Any
from typing import Mapping
from typing import Optional


class ErrorKind(enum.Enum):
    r"""Detailed error kind.

    The value of each member is the message template, formatted with the
    *context* of the error.
    """

    MISSING_START_CODE = "Missing start code ':'"
    r"""Record does not begin with ``:``."""

    CONTAINS_INVALID_CHARACTERS = 'Record contains invalid character(s)'
    r"""Record contains non-hexadecimal characters."""

    RECORD_TOO_SHORT = 'Record too short'
    r"""Record is shorter than the smallest valid one."""

    RECORD_TOO_LONG = 'Record too long'
    r"""Record is longer than the largest valid one."""

    RECORD_NOT_EVEN_LENGTH = 'Record with uneven length'
    r"""Record hexadecimal digit count is odd."""

    RECORD_INVALID_CHECKSUM_LENGTH = (
        'Record checksum length is invalid: data ends past the record end'
    )
    r"""Record ends before its checksum field."""

    RECORD_INVALID_PAYLOAD_LENGTH = (
        "Payload (data bytes) size differs from record's length"
    )
    r"""Record holds extra digits after its checksum field."""

    INVALID_RECORD_TYPE = 'Invalid record type'
    r"""Record type code does not exist."""

    RECORD_LENGTH_INVALID_FOR_TYPE = (
        'For record type {rtype.name} expected data length is '
        '{expected} bytes, found {actual}'
    )
    r"""Record payload length does not match the record type."""

    RECORD_ADDRESS_INVALID_FOR_TYPE = (
        'For record type {rtype.name} expected address is '
        '{expected}, found {actual}'
    )
    r"""Record address does not match the record type."""

    RECORD_NOT_SUPPORTED = 'Record type {rtype.name} not supported'
    r"""Record type cannot be created."""

    RECORD_CHECKSUM_MISMATCH = (
        'Invalid record checksum - expected: 0x{expected:02X}, '
        'found: 0x{actual:02X}'
    )
    r"""Record checksum mismatch."""

    RECORD_ADDRESS_OVERLAP = 'Encountered duplicate address 0x{address:X}'
    r"""Encountered address that already contains data."""

    DUPLICATE_START_ADDRESS = 'Encountered second start address record'
    r"""Encountered second start address record."""

    INVALID_ADDRESS = 'No data found at address 0x{address:X}'
    r"""Address does not hold any data."""

    INTELHEX_INSTANCE_EMPTY = 'IntelHex instance has no data'
    r"""Image has no data."""

    ADDRESS_OVERFLOW = 'Address 0x{address:X} exceeds the 32-bit address space'
    r"""Address cannot be written within Intel HEX records."""

    UNSUPPORTED_FILE = 'File {path!r} not supported: {reason}'
    r"""File kind cannot be loaded."""


class IntelHexError(ValueError):
    r"""Base library error.

    Args:
        kind (:class:`ErrorKind`):
            Detailed error kind.

        context:
            Keyword values used to format the message of `kind`.

    Examples:
        >>> from ihexlib.errors import ErrorKind, UpdateError
        >>> error = UpdateError(ErrorKind.INVALID_ADDRESS, address=0x1234)
        >>> error.message
        'No data found at address 0x1234'
    """

    PREAMBLE: str = 'Error encountered'

    def __eq__(self, other: Any) -> bool:

        if type(self) is not type(other):
            return NotImplemented

        return ((self.kind == other.kind) and
                (self.line == other.line) and
                (self.context == other.context))

    def __hash__(self) -> int:

        return hash((type(self), self.kind, self.line))

    def __init__(
        self,
        kind: ErrorKind,
        **context: Any,
    ):

        super().__init__(kind, context)
        self.kind: ErrorKind = kind
        self.context: Mapping[str, Any] = context

    def __str__(self) -> str:

        return f'{self.PREAMBLE}:\n{self.message}'

    @property
    def line(self) -> Optional[int]:

        return None

    @property
    def message(self) -> str:
        r"""str: Formatted message of :attr:`kind`."""

        return self.kind.value.format(**self.context)


class ParseRecordError(IntelHexError):
    r"""Error while parsing records.

    The 1-based `line` number of the offending record is attached by the file
    parser; errors raised while parsing a standalone line carry ``None``.

    Examples:
        >>> from ihexlib.errors import ErrorKind, ParseRecordError
        >>> error = ParseRecordError(ErrorKind.RECORD_CHECKSUM_MISMATCH,
        ...                          line=1, expected=0x55, actual=0xFF)
        >>> print(error)
        Error encountered during record parsing at line #1 of the hex file:
        Invalid record checksum - expected: 0x55, found: 0xFF
    """

    PREAMBLE = 'Error encountered during record parsing'

    def __init__(
        self,
        kind: ErrorKind,
        line: Optional[int] = None,
        **context: Any,
    ):

        super().__init__(kind, **context)
        self._line: Optional[int] = line

    def __str__(self) -> str:

        line = self._line
        if line is None:
            return super().__str__()
        return f'{self.PREAMBLE} at line #{line} of the hex file:\n{self.message}'

    @property
    def line(self) -> Optional[int]:
        r"""int: 1-based line number of the offending record, if known."""

        return self._line

    @line.setter
    def line(self, line: Optional[int]) -> None:

        self._line = line


class CreateRecordError(IntelHexError):
    r"""Error while creating a record to be written."""

    PREAMBLE = 'Error encountered during creation of hex record'


class UpdateError(IntelHexError):
    r"""Error while updating an image."""

    PREAMBLE = 'Error encountered during update of IntelHex instance'


class UnsupportedFileError(IntelHexError):
    r"""Input file kind cannot be loaded."""

    PREAMBLE = 'Error encountered while loading file'

    def __init__(self, path: str, reason: str):

        super().__init__(ErrorKind.UNSUPPORTED_FILE, path=path, reason=reason)
