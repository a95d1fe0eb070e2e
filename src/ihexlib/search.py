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

r"""Byte pattern search.

Search runs the Boyer-Moore-Horspool algorithm over the ascending sequence of
stored ``(address, value)`` couples.
The scan works on the *position* within that sequence, so by default a match
may span an address gap, as if the missing addresses were not there.
Matching within contiguous blocks only is available via `contiguous`.
"""

from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from .base import MAX_DATA_LENGTH
from .base import AnyBytes
from .utils import unhexlify

MAX_PATTERN_LENGTH: int = MAX_DATA_LENGTH
r"""Longest searchable pattern; longer ones never match."""


def build_shift_table(pattern: AnyBytes) -> List[int]:
    r"""Builds the bad-character shift table of a pattern.

    Each byte value maps to the distance from its last occurrence within
    `pattern` (excluding the last byte) to the end of `pattern`.
    Byte values not found map to the length of `pattern`.

    Args:
        pattern (bytes):
            Non-empty search pattern.

    Returns:
        list of int: 256 shift amounts, indexed by byte value.

    Examples:
        >>> from ihexlib.search import build_shift_table
        >>> table = build_shift_table(b'\xDE\xAD')
        >>> table[0xDE], table[0xAD], table[0x00]
        (1, 2, 2)
    """

    size = len(pattern)
    table = [size] * 256
    for index in range(size - 1):
        table[pattern[index]] = size - 1 - index
    return table


def _search_values(
    addresses: Sequence[int],
    values: Sequence[int],
    pattern: AnyBytes,
    table: Sequence[int],
) -> List[int]:

    size = len(pattern)
    count = len(values)
    last = size - 1
    matches = []
    index = 0

    while index <= count - size:
        cursor = last
        while cursor >= 0 and values[index + cursor] == pattern[cursor]:
            cursor -= 1

        if cursor < 0:
            matches.append(addresses[index])
            index += 1
        else:
            index += table[values[index + last]]

    return matches


def search_bmh(
    items: Iterable[Tuple[int, int]],
    pattern: AnyBytes,
    contiguous: bool = False,
) -> List[int]:
    r"""Searches a byte pattern.

    Matches may overlap: after a match, the scan advances by one position.

    Args:
        items (couples):
            Ascending sequence of ``(address, value)`` couples.

        pattern (bytes):
            Byte pattern to search; up to :data:`MAX_PATTERN_LENGTH` bytes.

        contiguous (bool):
            If true, a match must lie within a single run of consecutive
            addresses.
            If false, address gaps are ignored.

    Returns:
        list of int: Ascending addresses where `pattern` starts.
        Empty if `pattern` is empty or too long.

    Examples:
        >>> from ihexlib.search import search_bmh
        >>> items = list(enumerate(b'\xDE\xAD\xBE\xDE\xAD'))
        >>> search_bmh(items, b'\xDE\xAD')
        [0, 3]
        >>> items = [(0, 0xAA), (1, 0xAA), (5, 0xAA)]
        >>> search_bmh(items, b'\xAA\xAA')
        [0, 1]
        >>> search_bmh(items, b'\xAA\xAA', contiguous=True)
        [0]
    """

    pattern = bytes(pattern)
    if not 0 < len(pattern) <= MAX_PATTERN_LENGTH:
        return []

    table = build_shift_table(pattern)
    matches = []
    addresses = []
    values = []
    last_address = None

    for address, value in items:
        if contiguous and last_address is not None and address != last_address + 1:
            matches.extend(_search_values(addresses, values, pattern, table))
            addresses = []
            values = []
        addresses.append(address)
        values.append(value)
        last_address = address

    matches.extend(_search_values(addresses, values, pattern, table))
    return matches


def parse_hex_pattern(text: str) -> Optional[bytes]:
    r"""Converts a hexadecimal string into a search pattern.

    Whitespace and common separators are ignored.

    Args:
        text (str):
            Hexadecimal string, two digits per byte.

    Returns:
        bytes: Search pattern, ``None`` if `text` is not valid.

    Examples:
        >>> from ihexlib.search import parse_hex_pattern
        >>> parse_hex_pattern('DEAD')
        b'\xde\xad'
        >>> parse_hex_pattern('DE AD BE EF')
        b'\xde\xad\xbe\xef'
        >>> parse_hex_pattern('DEA') is None
        True
    """

    try:
        return unhexlify(text, delete=...)
    except ValueError:
        return None
