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

r"""Sparse byte store.

The store maps absolute addresses to byte values, always exposing them in
ascending address order.
It is backed by a :class:`bytesparse.Memory` object, which keeps contiguous
data as blocks.
"""

from typing import Any
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple

from bytesparse import Memory

from .base import AnyBytes
from .errors import ErrorKind
from .errors import ParseRecordError
from .errors import UpdateError


class SparseStore:
    r"""Ordered mapping from absolute address to byte.

    Data are allocated only via :meth:`insert`, which refuses to overwrite
    existing data.
    Afterwards, :meth:`set` and :meth:`set_range` can only edit bytes at
    addresses which already hold data.

    Args:
        memory (:class:`bytesparse.Memory`):
            Backing memory object, taken as is.
            If ``None``, an empty one is created.

    Examples:
        >>> from ihexlib.store import SparseStore
        >>> store = SparseStore()
        >>> store.insert(0x10, b'abc')
        >>> store.insert(0x20, b'xyz')
        >>> store.get(0x11)
        98
        >>> store.min_address(), store.max_address()
        (16, 34)
        >>> list(store.items())[:2]
        [(16, 97), (17, 98)]
    """

    def __contains__(self, address: int) -> bool:

        return self._memory.peek(address) is not None

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, SparseStore):
            return NotImplemented

        return self.to_blocks() == other.to_blocks()

    def __init__(self, memory: Optional[Memory] = None):

        if memory is None:
            memory = Memory()
        self._memory: Memory = memory

    def __iter__(self) -> Iterator[int]:

        for address, _ in self.items():
            yield address

    def __len__(self) -> int:

        return self._memory.content_size

    def __repr__(self) -> str:

        return f'<{type(self).__name__} blocks={len(self.to_blocks())} size={len(self)}>'

    def copy(self) -> 'SparseStore':

        return type(self)(self._memory.copy())

    def get(self, address: int) -> Optional[int]:
        r"""Gets the byte at some address.

        Args:
            address (int):
                Absolute address.

        Returns:
            int: Byte value, ``None`` if `address` holds no data.
        """

        return self._memory.peek(address)

    def get_range(self, addresses: Iterable[int]) -> Optional[bytes]:
        r"""Gets the bytes at some addresses.

        Args:
            addresses (ints):
                Absolute addresses, in the wanted order.

        Returns:
            bytes: Byte values, ``None`` if any address holds no data.

        Examples:
            >>> from ihexlib.store import SparseStore
            >>> store = SparseStore()
            >>> store.insert(0, b'abc')
            >>> store.get_range([2, 0])
            b'ca'
            >>> store.get_range([2, 3]) is None
            True
        """

        peek = self._memory.peek
        buffer = bytearray()

        for address in addresses:
            value = peek(address)
            if value is None:
                return None
            buffer.append(value)

        return bytes(buffer)

    def insert(self, address: int, data: AnyBytes) -> None:
        r"""Allocates new data.

        Args:
            address (int):
                Absolute address of the first byte of `data`.

            data (bytes):
                Bytes to allocate at consecutive addresses.

        Raises:
            :class:`ParseRecordError`: Some address already holds data.

        Examples:
            >>> from ihexlib.store import SparseStore
            >>> store = SparseStore()
            >>> store.insert(0x10, b'abc')
            >>> store.insert(0x12, b'xyz')
            Traceback (most recent call last):
                ...
            ihexlib.errors.ParseRecordError: Error encountered during record parsing:
            Encountered duplicate address 0x12
        """

        if address < 0:
            raise ValueError('negative address')

        peek = self._memory.peek
        for offset in range(len(data)):
            if peek(address + offset) is not None:
                raise ParseRecordError(ErrorKind.RECORD_ADDRESS_OVERLAP,
                                       address=(address + offset))

        self._memory.write(address, data)

    def items(self) -> Iterator[Tuple[int, int]]:
        r"""Iterates over stored bytes.

        Yields:
            (int, int): Couples of ``(address, value)``, by ascending address.
        """

        for block_start, block_data in self._memory.to_blocks():
            for offset, value in enumerate(block_data):
                yield block_start + offset, value

    def max_address(self) -> Optional[int]:
        r"""int: Highest address holding data, ``None`` if empty."""

        if not len(self):
            return None
        return self._memory.endin

    @property
    def memory(self) -> Memory:
        r""":class:`bytesparse.Memory`: Backing memory object."""

        return self._memory

    def min_address(self) -> Optional[int]:
        r"""int: Lowest address holding data, ``None`` if empty."""

        if not len(self):
            return None
        return self._memory.start

    def set(self, address: int, value: int) -> None:
        r"""Edits the byte at some address.

        Args:
            address (int):
                Absolute address; it must already hold data.

            value (int):
                New byte value.

        Raises:
            :class:`UpdateError`: `address` holds no data.
        """

        if not 0 <= value <= 0xFF:
            raise ValueError('byte value overflow')

        if self._memory.peek(address) is None:
            raise UpdateError(ErrorKind.INVALID_ADDRESS, address=address)

        self._memory.poke(address, value)

    def set_range(self, updates: Iterable[Tuple[int, int]]) -> None:
        r"""Edits bytes at some addresses.

        Updates are applied in order, one by one.
        Upon failure, the updates preceding the offending one stay applied.

        Args:
            updates (couples):
                Sequence of ``(address, value)`` couples.

        Raises:
            :class:`UpdateError`: Some address holds no data.
        """

        for address, value in updates:
            self.set(address, value)

    def shifted(self, delta: int) -> 'SparseStore':
        r"""Creates a copy with all the addresses shifted.

        Args:
            delta (int):
                Amount to add to each address.

        Returns:
            :class:`SparseStore`: Shifted copy; byte values are unchanged.

        Raises:
            :class:`UpdateError`: Some address would become negative.
        """

        start = self.min_address()
        if start is not None and start + delta < 0:
            raise UpdateError(ErrorKind.INVALID_ADDRESS, address=(start + delta))

        memory = self._memory.copy()
        memory.shift(delta)
        return type(self)(memory)

    def to_blocks(self) -> List[List[Any]]:
        r"""list: Contiguous data blocks, as ``[start, bytes]`` couples."""

        return [[start, bytes(data)] for start, data in self._memory.to_blocks()]

    def to_bytes(self, fill: int = 0xFF) -> bytes:
        r"""Dumps the whole address span into bytes.

        Args:
            fill (int):
                Byte value for addresses within the span holding no data.

        Returns:
            bytes: Data from :meth:`min_address` to :meth:`max_address`.

        Examples:
            >>> from ihexlib.store import SparseStore
            >>> store = SparseStore()
            >>> store.insert(0x10, b'abc')
            >>> store.insert(0x15, b'xyz')
            >>> store.to_bytes(fill=0x2E)
            b'abc..xyz'
        """

        if not len(self):
            return b''

        memory = self._memory
        span = memory.extract(start=memory.start, endex=memory.endex, pattern=fill)
        return span.to_bytes()
