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

r"""Intel HEX image.

An :class:`IntelHex` object holds the sparse byte image described by an
Intel HEX file, together with its optional *start address*.

Parsing folds the sequence of records into the image, tracking the address
offset set by *Extended Address* records.
Writing goes the other way round, splitting the image into canonical records.
"""

import logging
import os
from typing import IO
from typing import Any
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple

from deprecated import deprecated

from .base import DEFAULT_DATA_LENGTH
from .base import MAX_ADDRESS
from .base import MAX_DATA_LENGTH
from .base import AnyBytes
from .base import AnyPath
from .errors import CreateRecordError
from .errors import ErrorKind
from .errors import ParseRecordError
from .errors import UpdateError
from .records import Record
from .records import RecordType
from .search import search_bmh
from .store import SparseStore

_logger = logging.getLogger(__name__)

LINE_SEPARATOR: str = '\n'
r"""Line separator used by the writer."""


class StartAddress:
    r"""Start address, as stated by a *Start Address* record.

    Args:
        rtype (:class:`RecordType`):
            Either *Start Segment Address* or *Start Linear Address*.

        data (bytes):
            The 4 raw bytes of the record payload.

    Examples:
        >>> from ihexlib.intelhex import StartAddress
        >>> from ihexlib.records import RecordType
        >>> start = StartAddress(RecordType.START_LINEAR_ADDRESS, b'\x00\x00\xCA\xFE')
        >>> hex(start.to_int())
        '0xcafe'
    """

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, StartAddress):
            return NotImplemented

        return (self.rtype == other.rtype) and (self.data == other.data)

    def __init__(self, rtype: RecordType, data: AnyBytes):

        rtype = RecordType(rtype)
        if not rtype.is_start():
            raise ValueError('not a start address record type')

        data = bytes(data)
        if len(data) != 4:
            raise ValueError('start address data size overflow')

        self.rtype: RecordType = rtype
        self.data: bytes = data

    def __repr__(self) -> str:

        return f'<{type(self).__name__} rtype={self.rtype.name} data={self.data!r}>'

    def to_int(self) -> int:
        r"""int: Raw start address bytes as a big-endian integer."""

        return int.from_bytes(self.data, byteorder='big')

    def to_record(self) -> Record:

        return Record.create(0, self.rtype, self.data)


def next_offset(offset: int, record: Record) -> int:
    r"""Computes the address offset after a record.

    *Extended Segment Address* records set the offset to their payload times
    16; *Extended Linear Address* records set it to their payload times
    65536.
    Any other record keeps the current offset.

    Args:
        offset (int):
            Current address offset.

        record (:class:`Record`):
            Record being applied.

    Returns:
        int: Address offset for the following records.

    Examples:
        >>> from ihexlib.intelhex import next_offset
        >>> from ihexlib.records import Record
        >>> hex(next_offset(0, Record.parse(':020000040001F9')))
        '0x10000'
        >>> hex(next_offset(0, Record.parse(':020000021200EA')))
        '0x12000'
        >>> next_offset(123, Record.parse(':00000001FF'))
        123
    """

    rtype = record.rtype

    if rtype == RecordType.EXTENDED_SEGMENT_ADDRESS:
        return record.data_to_int() * 16

    elif rtype == RecordType.EXTENDED_LINEAR_ADDRESS:
        return record.data_to_int() * 65536

    else:
        return offset


def iter_records(text: str) -> Iterator[Record]:
    r"""Parses records from text, lazily.

    Empty lines are skipped.
    Each record gets its 1-based line number assigned to
    :attr:`Record.coords`, which is also attached to any
    :class:`ParseRecordError` being raised.

    Args:
        text (str):
            Text of an Intel HEX file.

    Yields:
        :class:`Record`: Parsed records, in file order.

    Raises:
        :class:`ParseRecordError`: Syntax error.
    """

    for row, line in enumerate(text.split('\n'), start=1):
        line = line.rstrip('\r')
        if not line or line.isspace():
            continue

        try:
            record = Record.parse(line)
        except ParseRecordError as exc:
            exc.line = row
            raise

        record.coords = row
        yield record


def apply_records(
    records: Iterable[Record],
) -> Tuple[SparseStore, Optional[StartAddress]]:
    r"""Folds records into a new image store.

    Records are processed in order: the checksum of each record is checked,
    then *data* records are allocated at their address plus the current
    offset (see :func:`next_offset`), while *start address* records are
    captured.
    Processing stops at the *End Of File* record.

    Args:
        records (:class:`Record` iterable):
            Records in file order.

    Returns:
        (store, start): New store and captured start address, if any.

    Raises:
        :class:`ParseRecordError`: Checksum mismatch, overlapping data, or
        duplicate start address. The line number is taken from
        :attr:`Record.coords`.

    Examples:
        >>> from ihexlib.intelhex import apply_records
        >>> from ihexlib.records import Record
        >>> records = [Record.parse(':020000040001F9'),
        ...            Record.parse(':01001000559A')]
        >>> store, start = apply_records(records)
        >>> hex(store.min_address())
        '0x10010'
    """

    store = SparseStore()
    start = None
    offset = 0

    for record in records:
        try:
            expected = record.compute_checksum()
            if record.checksum != expected:
                raise ParseRecordError(ErrorKind.RECORD_CHECKSUM_MISMATCH,
                                       expected=expected, actual=record.checksum)
            rtype = record.rtype

            if rtype.is_data():
                store.insert(offset + record.address, record.data)

            elif rtype.is_eof():
                break

            elif rtype.is_extension():
                offset = next_offset(offset, record)

            else:  # elif rtype.is_start():
                if start is not None:
                    raise ParseRecordError(ErrorKind.DUPLICATE_START_ADDRESS)
                start = StartAddress(rtype, record.data[:4])

        except ParseRecordError as exc:
            exc.line = record.coords
            raise

    return store, start


def generate_records(
    store: SparseStore,
    start: Optional[StartAddress] = None,
    maxdatalen: int = DEFAULT_DATA_LENGTH,
) -> List[Record]:
    r"""Splits an image store into canonical records.

    The *start address* record comes first, if any.
    Data are then walked by ascending address, accumulating runs of
    consecutive bytes.
    A run is written as a *data* record when the next address is not
    consecutive, when it holds `maxdatalen` bytes, or when the upper 16 bits
    of the address change; the latter case also emits an
    *Extended Linear Address* record.
    The *End Of File* record comes last.

    Args:
        store (:class:`SparseStore`):
            Image data.

        start (:class:`StartAddress`):
            Optional start address.

        maxdatalen (int):
            Maximum payload size of *data* records.

    Returns:
        list of :class:`Record`: Records in file order.

    Raises:
        :class:`CreateRecordError`: Empty store, address beyond
        :data:`~ihexlib.base.MAX_ADDRESS`, or invalid record.

    Examples:
        >>> from ihexlib.intelhex import generate_records
        >>> from ihexlib.store import SparseStore
        >>> store = SparseStore()
        >>> store.insert(0xFFFF, b'\x01\x02')
        >>> for record in generate_records(store):
        ...     print(record)
        :01FFFF000100
        :020000040001F9
        :0100000002FD
        :00000001FF
    """

    if not 0 < maxdatalen <= MAX_DATA_LENGTH:
        raise ValueError('invalid maximum data length')

    endin = store.max_address()
    if endin is not None and endin > MAX_ADDRESS:
        raise CreateRecordError(ErrorKind.ADDRESS_OVERFLOW, address=endin)

    records = []
    if start is not None:
        records.append(start.to_record())

    current_high = 0
    run_start = None
    run = bytearray()
    last_address = None

    for address, value in store.items():
        high = address >> 16
        low = address & 0xFFFF

        if high != current_high:
            if run:
                records.append(Record.create_data(run_start, run))
            records.append(Record.create_extended_linear_address(high))
            current_high = high
            run = bytearray()
            run_start = None
            last_address = None

        if last_address is not None:
            if address != last_address + 1 or len(run) >= maxdatalen:
                records.append(Record.create_data(run_start, run))
                run = bytearray()
                run_start = None

        if run_start is None:
            run_start = low
        run.append(value)
        last_address = address

    if not run:
        raise CreateRecordError(ErrorKind.INTELHEX_INSTANCE_EMPTY)

    records.append(Record.create_data(run_start, run))
    records.append(Record.create_end_of_file())
    return records


class IntelHex:
    r"""Intel HEX image object.

    Attributes:
        filepath (str):
            Path of the source file, if loaded from the filesystem.

        size (int):
            Size of the source file, in bytes.

        start_address (:class:`StartAddress`):
            Start address, if any.

        maxdatalen (int):
            Maximum payload size of the *data* records being written.

    Args:
        maxdatalen (int):
            See :attr:`maxdatalen` attribute.

    Examples:
        >>> from ihexlib import IntelHex
        >>> ih = IntelHex.parse(':03001000616263C7\n:00000001FF')
        >>> ih.get_byte(0x11)
        98
    """

    def __contains__(self, address: int) -> bool:

        return address in self._store

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, IntelHex):
            return NotImplemented

        return ((self.start_address == other.start_address) and
                (self._store == other._store))

    def __init__(self, maxdatalen: int = DEFAULT_DATA_LENGTH):

        if not 0 < maxdatalen <= MAX_DATA_LENGTH:
            raise ValueError('invalid maximum data length')

        self.filepath: Optional[str] = None
        self.size: int = 0
        self.start_address: Optional[StartAddress] = None
        self.maxdatalen: int = maxdatalen
        self._store: SparseStore = SparseStore()

    def __len__(self) -> int:

        return len(self._store)

    def __repr__(self) -> str:

        return (f'<{type(self).__name__} filepath={self.filepath!r} '
                f'size={self.size} bytes={len(self)}>')

    @classmethod
    def from_bin(cls, path: AnyPath, address: int = 0, **kwargs: Any) -> 'IntelHex':
        r"""Creates an image from a raw binary file.

        See Also:
            :meth:`load_bin`
        """

        image = cls(**kwargs)
        image.load_bin(path, address)
        return image

    @classmethod
    def from_hex(cls, path: AnyPath, **kwargs: Any) -> 'IntelHex':
        r"""Creates an image from an Intel HEX file.

        See Also:
            :meth:`load_hex`
        """

        image = cls(**kwargs)
        image.load_hex(path)
        return image

    def get_byte(self, address: int) -> Optional[int]:
        r"""Gets the byte at some address.

        Returns:
            int: Byte value, ``None`` if `address` holds no data.
        """

        return self._store.get(address)

    @deprecated(reason='use get_range()')
    def get_buffer_slice(self, addresses: Iterable[int]) -> Optional[bytes]:

        return self.get_range(addresses)

    def get_range(self, addresses: Iterable[int]) -> Optional[bytes]:
        r"""Gets the bytes at some addresses.

        Returns:
            bytes: Byte values, ``None`` if any address holds no data.
        """

        return self._store.get_range(addresses)

    def items(self) -> Iterator[Tuple[int, int]]:
        r"""Iterates over ``(address, value)`` couples by ascending address."""

        return self._store.items()

    def load_bin(self, path: AnyPath, address: int = 0) -> 'IntelHex':
        r"""Loads a raw binary file.

        The whole file content is allocated from `address` onwards, replacing
        any previous data.
        The start address is cleared.

        Args:
            path (str):
                Path of the binary file.

            address (int):
                Address of the first byte of the file.

        Returns:
            :class:`IntelHex`: *self*.
        """

        path = os.fspath(path)
        with open(path, 'rb') as stream:
            data = stream.read()

        store = SparseStore()
        store.insert(address, data)
        _logger.debug('loaded %d bytes of binary data from %r', len(data), path)

        self._store = store
        self.start_address = None
        self.filepath = path
        self.size = len(data)
        return self

    def load_hex(self, path: AnyPath) -> 'IntelHex':
        r"""Loads an Intel HEX file.

        The file is parsed into a new image, which replaces the current one
        only upon success; on failure, this object is left untouched.

        Args:
            path (str):
                Path of the Intel HEX file.

        Returns:
            :class:`IntelHex`: *self*.

        Raises:
            :class:`ParseRecordError`: Invalid file content.
        """

        path = os.fspath(path)
        with open(path, 'rb') as stream:
            raw = stream.read()

        store, start = apply_records(iter_records(raw.decode('latin-1')))
        _logger.debug('loaded %d bytes of data from %r', len(store), path)

        self._store = store
        self.start_address = start
        self.filepath = path
        self.size = len(raw)
        return self

    def max_address(self) -> Optional[int]:
        r"""int: Highest address holding data, ``None`` if empty."""

        return self._store.max_address()

    def min_address(self) -> Optional[int]:
        r"""int: Lowest address holding data, ``None`` if empty."""

        return self._store.min_address()

    @classmethod
    def parse(cls, text: str, **kwargs: Any) -> 'IntelHex':
        r"""Creates an image from the text of an Intel HEX file.

        Args:
            text (str):
                Intel HEX records, one per line.

            kwargs:
                Forwarded to the constructor.

        Returns:
            :class:`IntelHex`: Parsed image.

        Raises:
            :class:`ParseRecordError`: Invalid text.
        """

        image = cls(**kwargs)
        image._store, image.start_address = apply_records(iter_records(text))
        image.size = len(text)
        return image

    def relocate(self, address: int) -> 'IntelHex':
        r"""Creates a copy with data moved to a new lowest address.

        Every address is shifted by the same amount, so that the lowest one
        becomes `address`.
        Byte values, start address, and source file information are kept.

        Args:
            address (int):
                New lowest address.

        Returns:
            :class:`IntelHex`: Relocated image; this object is not modified.

        Raises:
            :class:`UpdateError`: Empty image, or data moved outside the
            32-bit address space.

        Examples:
            >>> from ihexlib import IntelHex
            >>> ih = IntelHex.parse(':03001000616263C7\n:00000001FF')
            >>> moved = ih.relocate(0x110)
            >>> hex(moved.min_address()), hex(moved.max_address())
            ('0x110', '0x112')
        """

        start = self.min_address()
        if start is None:
            raise UpdateError(ErrorKind.INTELHEX_INSTANCE_EMPTY)

        if address < 0:
            raise UpdateError(ErrorKind.INVALID_ADDRESS, address=address)

        endin = address + (self.max_address() - start)
        if endin > MAX_ADDRESS:
            raise UpdateError(ErrorKind.ADDRESS_OVERFLOW, address=endin)

        image = type(self)(maxdatalen=self.maxdatalen)
        image._store = self._store.shifted(address - start)
        image.start_address = self.start_address
        image.filepath = self.filepath
        image.size = self.size
        return image

    def search(self, pattern: AnyBytes, contiguous: bool = False) -> List[int]:
        r"""Searches a byte pattern.

        See Also:
            :func:`ihexlib.search.search_bmh`

        Examples:
            >>> from ihexlib import IntelHex
            >>> ih = IntelHex.parse(':05000000DEADBEDEAD27\n:00000001FF')
            >>> ih.search(b'\xDE\xAD')
            [0, 3]
        """

        return search_bmh(self._store.items(), pattern, contiguous=contiguous)

    def serialize(self, stream: IO[str]) -> 'IntelHex':
        r"""Writes the records to a text stream.

        Records are separated by :data:`LINE_SEPARATOR`; the final
        *End Of File* record is not terminated.

        Args:
            stream (text IO):
                Output stream.

        Returns:
            :class:`IntelHex`: *self*.

        Raises:
            :class:`CreateRecordError`: Empty image, or invalid record.
        """

        stream.write(self.to_str())
        return self

    @property
    def store(self) -> SparseStore:
        r""":class:`SparseStore`: Image data."""

        return self._store

    @deprecated(reason='use to_dict()')
    def to_btree_map(self) -> Dict[int, int]:

        return self.to_dict()

    def to_dict(self) -> Dict[int, int]:
        r"""dict: Copy of the image data, by ascending address."""

        return dict(self._store.items())

    def to_records(self) -> List[Record]:
        r"""Splits the image into canonical records.

        See Also:
            :func:`generate_records`
        """

        return generate_records(self._store, self.start_address, self.maxdatalen)

    def to_str(self) -> str:
        r"""str: Serialized Intel HEX text."""

        return LINE_SEPARATOR.join(record.to_str() for record in self.to_records())

    @deprecated(reason='use update_range()')
    def update_buffer_slice(self, updates: Iterable[Tuple[int, int]]) -> None:

        self.update_range(updates)

    def update_byte(self, address: int, value: int) -> None:
        r"""Edits the byte at some address.

        Raises:
            :class:`UpdateError`: `address` holds no data.
        """

        self._store.set(address, value)

    def update_range(self, updates: Iterable[Tuple[int, int]]) -> None:
        r"""Edits bytes at some addresses, in order.

        Updates preceding a failing one stay applied.

        Raises:
            :class:`UpdateError`: Some address holds no data.
        """

        self._store.set_range(updates)

    def write_bin(self, path: AnyPath, fill: int = 0xFF) -> 'IntelHex':
        r"""Writes the image as a raw binary file.

        The file covers the whole address span, from :meth:`min_address` to
        :meth:`max_address`.

        Args:
            path (str):
                Path of the binary file.

            fill (int):
                Byte value written where the image holds no data.

        Returns:
            :class:`IntelHex`: *self*.
        """

        path = os.fspath(path)
        data = self._store.to_bytes(fill=fill)
        _make_parent_dirs(path)

        with open(path, 'wb') as stream:
            stream.write(data)

        _logger.debug('written %d bytes of binary data to %r', len(data), path)
        return self

    def write_hex(self, path: AnyPath) -> 'IntelHex':
        r"""Writes the image as an Intel HEX file.

        Missing parent folders are created.

        Args:
            path (str):
                Path of the Intel HEX file.

        Returns:
            :class:`IntelHex`: *self*.

        Raises:
            :class:`CreateRecordError`: Empty image, or invalid record.
        """

        path = os.fspath(path)
        text = self.to_str()
        _make_parent_dirs(path)

        with open(path, 'wt', encoding='ascii', newline='') as stream:
            stream.write(text)

        _logger.debug('written %d bytes of records to %r', len(text), path)
        return self


def _make_parent_dirs(path: str) -> None:

    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def get_byte(image: IntelHex, address: int) -> Optional[int]:

    return image.get_byte(address)


def relocate(image: IntelHex, address: int) -> IntelHex:

    return image.relocate(address)


def search(
    image: IntelHex,
    pattern: AnyBytes,
    contiguous: bool = False,
) -> List[int]:

    return image.search(pattern, contiguous=contiguous)


def set_byte(image: IntelHex, address: int, value: int) -> None:

    image.update_byte(address, value)


def set_bytes(image: IntelHex, updates: Iterable[Tuple[int, int]]) -> None:

    image.update_range(updates)


def write_bin(image: IntelHex, path: AnyPath, fill: int = 0xFF) -> None:

    image.write_bin(path, fill=fill)


def write_hex(image: IntelHex, path: AnyPath) -> None:

    image.write_hex(path)
