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

r"""Intel HEX records.

A *record* is a single line of an Intel HEX file::

    :LLAAAATT[DD...]CC

where ``LL`` is the payload length, ``AAAA`` the 16-bit record address,
``TT`` the record type, ``DD...`` the payload, and ``CC`` the checksum, all
of them as uppercase hexadecimal digits.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
import re
from typing import Any
from typing import Iterable
from typing import Mapping
from typing import Optional

import colorama

from .base import BYTE_CHAR_LEN
from .base import MAX_DATA_LENGTH
from .base import AnyBytes
from .errors import CreateRecordError
from .errors import ErrorKind
from .errors import ParseRecordError
from .utils import hexlify

START_CODE: str = ':'
r"""Record start code."""

LENGTH_SLICE = slice(1, 3)
ADDRESS_SLICE = slice(3, 7)
TYPE_SLICE = slice(7, 9)

MIN_RECORD_DIGITS: int = (1 + 2 + 1 + 1) * BYTE_CHAR_LEN
r"""Hexadecimal digits of the shortest record: length, address, type, checksum."""

MAX_RECORD_DIGITS: int = MIN_RECORD_DIGITS + MAX_DATA_LENGTH * BYTE_CHAR_LEN
r"""Hexadecimal digits of the longest record."""

HEX_DIGITS_REGEX = re.compile(r'[0-9A-Fa-f]*')

TOKEN_COLOR_CODES: Mapping[str, str] = {
    '':         colorama.Style.RESET_ALL,
    '<':        colorama.Style.RESET_ALL,
    '>':        colorama.Style.RESET_ALL,
    'address':  colorama.Fore.RED,
    'begin':    colorama.Fore.YELLOW,
    'checksum': colorama.Fore.MAGENTA,
    'data':     colorama.Fore.CYAN,
    'dataalt':  colorama.Fore.LIGHTCYAN_EX,
    'length':   colorama.Fore.BLUE,
    'type':     colorama.Fore.GREEN,
}
r"""ANSI color codes for each possible token type."""


class RecordType(enum.IntEnum):
    r"""Intel HEX record type."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 3
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 5
    r"""Start Linear Address."""

    @property
    def code(self) -> str:
        r"""str: Two-digit code, as found within a record."""

        return f'{int(self):02X}'

    def is_data(self) -> bool:

        return self == self.DATA

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record type.

        Returns:
            bool: This is an End Of File record type.

        Examples:
            >>> from ihexlib.records import RecordType
            >>> RecordType.END_OF_FILE.is_eof()
            True
            >>> RecordType.DATA.is_eof()
            False
        """

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record type.

        Returns:
            bool: This is an Extended Address record type.

        Examples:
            >>> from ihexlib.records import RecordType
            >>> RecordType.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> RecordType.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> RecordType.DATA.is_extension()
            False
        """

        return ((self == self.EXTENDED_SEGMENT_ADDRESS) or
                (self == self.EXTENDED_LINEAR_ADDRESS))

    def is_start(self) -> bool:
        r"""Tells whether this is a Start Address record type.

        Returns:
            bool: This is a Start Address record type.

        Examples:
            >>> from ihexlib.records import RecordType
            >>> RecordType.START_LINEAR_ADDRESS.is_start()
            True
            >>> RecordType.START_SEGMENT_ADDRESS.is_start()
            True
            >>> RecordType.DATA.is_start()
            False
        """

        return ((self == self.START_SEGMENT_ADDRESS) or
                (self == self.START_LINEAR_ADDRESS))

    @classmethod
    def parse(cls, code: str) -> 'RecordType':
        r"""Parses a two-digit record type code.

        Only the exact codes ``00`` to ``05`` are accepted.

        Args:
            code (str):
                Record type code.

        Returns:
            :class:`RecordType`: Parsed record type.

        Raises:
            :class:`ParseRecordError`: Unknown record type code.

        Examples:
            >>> from ihexlib.records import RecordType
            >>> RecordType.parse('04')
            <RecordType.EXTENDED_LINEAR_ADDRESS: 4>
        """

        try:
            return _RECORD_TYPE_CODES[code]
        except KeyError:
            raise ParseRecordError(ErrorKind.INVALID_RECORD_TYPE) from None

    def payload_length(self) -> Optional[int]:
        r"""Mandatory payload length, ``None`` if free."""

        if self.is_data():
            return None
        elif self.is_eof():
            return 0
        elif self.is_extension():
            return 2
        else:
            return 4


_RECORD_TYPE_CODES: Mapping[str, RecordType] = {rtype.code: rtype for rtype in RecordType}


def compute_checksum(values: Iterable[int]) -> int:
    r"""Computes the two's complement checksum of some byte values.

    Args:
        values (ints):
            Byte values to sum up.

    Returns:
        int: Two's complement of the byte sum, truncated to 8 bits.

    Examples:
        >>> from ihexlib.records import compute_checksum
        >>> hex(compute_checksum([0x03, 0x00, 0x30, 0x00, 0x02, 0x33, 0x7A]))
        '0x1e'
        >>> compute_checksum([0x00, 0x00, 0x00, 0x01])
        255
    """

    checksum = sum(values) & 0xFF
    return (0x100 - checksum) & 0xFF


def colorize_tokens(
    tokens: Mapping[str, str],
    altdata: bool = True,
) -> Mapping[str, str]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.

    Args:
        tokens (dict):
            A mapping of each token key name to token string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).

    Returns:
        dict: `tokens` with prepended ANSI color codes.
    """

    codes = TOKEN_COLOR_CODES
    colorized = {'<': codes['<']}

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if not value:
            continue

        if key == 'data' and altdata:
            parts = []
            for index in range(0, len(value), BYTE_CHAR_LEN):
                code = codes['dataalt'] if (index // BYTE_CHAR_LEN) & 1 else codes['data']
                parts.append(code + value[index:(index + BYTE_CHAR_LEN)])
            colorized[key] = ''.join(parts)
        else:
            colorized[key] = codes[key] + value

    colorized['>'] = codes['>']
    return colorized


class Record:
    r"""Intel HEX record object.

    Records are ephemeral: they only exist while parsing or serializing an
    image.

    Attributes:
        rtype (:class:`RecordType`):
            Record type.

        address (int):
            16-bit record-local address.

        data (bytes):
            Payload bytes.

        length (int):
            Payload length, as stated by the record.

        checksum (int):
            Checksum, as stated by the record.

        coords (int):
            1-based line number of a parsed record, if any.

    Args:
        rtype (:class:`RecordType`):
            See :attr:`rtype` attribute.

        address (int):
            See :attr:`address` attribute.

        data (bytes):
            See :attr:`data` attribute.

        length (int):
            See :attr:`length` attribute.
            ``None`` initializes it via :meth:`compute_length`.

        checksum (int):
            See :attr:`checksum` attribute.
            ``None`` initializes it via :meth:`compute_checksum`.
    """

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, Record):
            return NotImplemented

        return ((self.rtype == other.rtype) and
                (self.address == other.address) and
                (self.data == other.data) and
                (self.length == other.length) and
                (self.checksum == other.checksum))

    def __init__(
        self,
        rtype: RecordType,
        address: int = 0,
        data: AnyBytes = b'',
        length: Optional[int] = None,
        checksum: Optional[int] = None,
    ):

        self.rtype: RecordType = RecordType(rtype)
        self.address: int = address
        self.data: bytes = bytes(data)
        self.length: int = self.compute_length() if length is None else length
        self.checksum: int = self.compute_checksum() if checksum is None else checksum
        self.coords: Optional[int] = None

    def __repr__(self) -> str:

        return (f'<{type(self).__name__} rtype={self.rtype.name} '
                f'address=0x{self.address:04X} data={self.data!r} '
                f'length={self.length} checksum=0x{self.checksum:02X}>')

    def __str__(self) -> str:

        return self.to_str()

    def compute_checksum(self) -> int:
        r"""Computes the checksum of the record fields.

        The sum covers the length, both address bytes, the type, and the data.

        Returns:
            int: Computed checksum.

        Examples:
            >>> from ihexlib.records import Record
            >>> record = Record.parse(':0300300002337A1E')
            >>> hex(record.compute_checksum())
            '0x1e'
        """

        address = self.address & 0xFFFF
        values = [
            self.length & 0xFF,
            address >> 8,
            address & 0xFF,
            int(self.rtype),
        ]
        values.extend(self.data)
        return compute_checksum(values)

    def compute_length(self) -> int:

        return len(self.data)

    @classmethod
    def create(
        cls,
        address: int,
        rtype: RecordType,
        data: AnyBytes = b'',
    ) -> 'Record':
        r"""Creates a record to be written.

        *End Of File* records ignore `address` and `data`.
        *Extended Segment Address* records cannot be created.

        Args:
            address (int):
                16-bit record address.

            rtype (:class:`RecordType`):
                Record type.

            data (bytes):
                Payload.

        Returns:
            :class:`Record`: Created record.

        Raises:
            :class:`CreateRecordError`: Invalid fields for `rtype`.

        Examples:
            >>> from ihexlib.records import Record, RecordType
            >>> str(Record.create(0x0010, RecordType.DATA, b'abc'))
            ':03001000616263C7'
            >>> str(Record.create(0, RecordType.EXTENDED_LINEAR_ADDRESS, b'\x00\x01'))
            ':020000040001F9'
        """

        rtype = RecordType(rtype)
        data = bytes(data)
        length = len(data)

        if rtype.is_eof():
            return cls(rtype)

        if rtype == rtype.EXTENDED_SEGMENT_ADDRESS:
            raise CreateRecordError(ErrorKind.RECORD_NOT_SUPPORTED, rtype=rtype)

        if not 0 <= address <= 0xFFFF:
            raise ValueError('address overflow')

        if rtype.is_data():
            if length > MAX_DATA_LENGTH:
                raise CreateRecordError(ErrorKind.RECORD_TOO_LONG)
        else:
            expected = rtype.payload_length()
            if length != expected:
                raise CreateRecordError(ErrorKind.RECORD_LENGTH_INVALID_FOR_TYPE,
                                        rtype=rtype, expected=expected, actual=length)
            if address != 0:
                raise CreateRecordError(ErrorKind.RECORD_ADDRESS_INVALID_FOR_TYPE,
                                        rtype=rtype, expected=0, actual=address)

        return cls(rtype, address=address, data=data)

    @classmethod
    def create_data(cls, address: int, data: AnyBytes) -> 'Record':

        return cls.create(address, RecordType.DATA, data)

    @classmethod
    def create_end_of_file(cls) -> 'Record':
        r"""Creates an End Of File record.

        Returns:
            :class:`Record`: End Of File record object.

        Examples:
            >>> from ihexlib.records import Record
            >>> str(Record.create_end_of_file())
            ':00000001FF'
        """

        return cls.create(0, RecordType.END_OF_FILE)

    @classmethod
    def create_extended_linear_address(cls, extension: int) -> 'Record':
        r"""Creates an Extended Linear Address record.

        Args:
            extension (int):
                Upper 16 bits of the following data record addresses.

        Returns:
            :class:`Record`: Extended Linear Address record object.

        Examples:
            >>> from ihexlib.records import Record
            >>> str(Record.create_extended_linear_address(0x1234))
            ':020000041234B4'
        """

        if not 0 <= extension <= 0xFFFF:
            raise ValueError('extension overflow')

        data = extension.to_bytes(2, byteorder='big')
        return cls.create(0, RecordType.EXTENDED_LINEAR_ADDRESS, data)

    def data_to_int(self) -> int:
        r"""Converts the payload into a big-endian integer."""

        return int.from_bytes(self.data, byteorder='big')

    @classmethod
    def parse(cls, line: str) -> 'Record':
        r"""Parses a record from a line of text.

        Any line terminator must be stripped beforehand.
        The line must end right after the checksum field: any further digits
        are rejected, rather than ignored.
        The checksum is decoded, but not validated against the record fields;
        see :meth:`compute_checksum`.

        Args:
            line (str):
                Line to parse.

        Returns:
            :class:`Record`: Parsed record.

        Raises:
            :class:`ParseRecordError`: Syntax error, including digits past the
            checksum (``RECORD_INVALID_PAYLOAD_LENGTH``).

        Examples:
            >>> from ihexlib.records import Record
            >>> record = Record.parse(':0B0010006164647265737320676170A7')
            >>> record.rtype
            <RecordType.DATA: 0>
            >>> hex(record.address)
            '0x10'
            >>> record.data
            b'address gap'
        """

        if not line.startswith(START_CODE):
            raise ParseRecordError(ErrorKind.MISSING_START_CODE)

        digits = line[len(START_CODE):]
        if not HEX_DIGITS_REGEX.fullmatch(digits):
            raise ParseRecordError(ErrorKind.CONTAINS_INVALID_CHARACTERS)

        size = len(digits)
        if size < MIN_RECORD_DIGITS:
            raise ParseRecordError(ErrorKind.RECORD_TOO_SHORT)
        elif size > MAX_RECORD_DIGITS:
            raise ParseRecordError(ErrorKind.RECORD_TOO_LONG)
        elif size % BYTE_CHAR_LEN:
            raise ParseRecordError(ErrorKind.RECORD_NOT_EVEN_LENGTH)

        length = int(line[LENGTH_SLICE], 16)
        data_end = TYPE_SLICE.stop + BYTE_CHAR_LEN * length
        record_end = data_end + BYTE_CHAR_LEN
        if record_end > len(line):
            raise ParseRecordError(ErrorKind.RECORD_INVALID_CHECKSUM_LENGTH)
        elif record_end < len(line):
            raise ParseRecordError(ErrorKind.RECORD_INVALID_PAYLOAD_LENGTH)

        rtype = RecordType.parse(line[TYPE_SLICE])
        address = int(line[ADDRESS_SLICE], 16)

        expected = rtype.payload_length()
        if expected is not None and length != expected:
            raise ParseRecordError(ErrorKind.RECORD_LENGTH_INVALID_FOR_TYPE,
                                   rtype=rtype, expected=expected, actual=length)

        if not rtype.is_data() and not rtype.is_eof() and address != 0:
            raise ParseRecordError(ErrorKind.RECORD_ADDRESS_INVALID_FOR_TYPE,
                                   rtype=rtype, expected=0, actual=address)

        data = bytes.fromhex(line[TYPE_SLICE.stop:data_end])
        checksum = int(line[data_end:record_end], 16)

        return cls(rtype, address=address, data=data, length=length, checksum=checksum)

    def to_str(self) -> str:
        r"""Serializes the record into a line of text.

        No line terminator is appended.

        Returns:
            str: Serialized record.
        """

        return ''.join(self.to_tokens().values())

    def to_tokens(self) -> Mapping[str, str]:
        r"""Splits the serialized record into named fields.

        Returns:
            dict: Serialized fields, in record order.

        Examples:
            >>> from ihexlib.records import Record
            >>> from pprint import pprint
            >>> pprint(Record.create_end_of_file().to_tokens(), sort_dicts=False)
            {'begin': ':',
             'length': '00',
             'address': '0000',
             'type': '01',
             'data': '',
             'checksum': 'FF'}
        """

        return {
            'begin': START_CODE,
            'length': f'{self.length & 0xFF:02X}',
            'address': f'{self.address & 0xFFFF:04X}',
            'type': self.rtype.code,
            'data': hexlify(self.data),
            'checksum': f'{self.checksum & 0xFF:02X}',
        }


def build_record(
    address: int,
    rtype: RecordType,
    data: AnyBytes = b'',
) -> str:
    r"""Builds the text of a record.

    See Also:
        :meth:`Record.create`

    Examples:
        >>> from ihexlib.records import build_record, RecordType
        >>> build_record(0, RecordType.START_LINEAR_ADDRESS, b'\x00\x00\x01\x00')
        ':0400000500000100F6'
    """

    return Record.create(address, rtype, data).to_str()


def parse_record(line: str) -> Record:
    r"""Parses the text of a record.

    See Also:
        :meth:`Record.parse`
    """

    return Record.parse(line)
