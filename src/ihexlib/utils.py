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

r"""Generic utility functions."""

import re
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Union

from .base import AnyBytes

SUFFIX_SCALE: Mapping[str, int] = {
    'k': 2**10,
    'm': 2**20,
    'g': 2**30,

    'kib': 2**10,
    'mib': 2**20,
    'gib': 2**30,

    'kb': 10**3,
    'mb': 10**6,
    'gb': 10**9,
}
r"""Integer suffix to scale factor."""

INT_REGEX = re.compile(r'^\s*(?P<sign>[+-]?)\s*'
                       r'(?P<prefix>(0x|0b|0o|0)?)'
                       r'(?P<value>[a-f0-9]+)'
                       r'(?P<suffix>h?)'
                       r'\s*(?P<scale>(kib|mib|gib|kb|mb|gb|k|m|g)?)\s*$')
r"""Regular expression to match integers."""

DEFAULT_DELETE: str = ' \t\r\n.-:_'
r"""Separators removed by :func:`unhexlify` when asked to."""


def hexlify(
    data: AnyBytes,
    sep: str = '',
    upper: bool = True,
) -> str:
    r"""Converts raw bytes into a hexadecimal string.

    Args:
        data (bytes):
            Source byte string.

        sep (str):
            Optional byte separator.

        upper (bool):
            Uppercase hexadecimal string.

    Returns:
        str: Hexadecimal string.

    Examples:
        >>> from ihexlib.utils import hexlify
        >>> hexlify(b'\xAA\xBB\xCC')
        'AABBCC'
        >>> hexlify(b'\xAA\xBB\xCC', sep=' ')
        'AA BB CC'
        >>> hexlify(b'\xAA\xBB\xCC', upper=False)
        'aabbcc'
    """

    if sep:
        hexstr = bytes(data).hex(sep)
    else:
        hexstr = bytes(data).hex()

    if upper:
        hexstr = hexstr.upper()

    return hexstr


def parse_int(
    value: Union[str, Any],
) -> Optional[int]:
    r"""Parses an integer.

    Args:
        value:
            A generic object to convert to integer.
            In case `value` is a :obj:`str` (case-insensitive), it can be
            either prefixed with ``0x`` or postfixed with ``h`` to convert
            from a hexadecimal representation, or prefixed with ``0b`` from
            binary; a prefix of only ``0`` converts from octal.
            A further suffix applies a scale factor as per
            :data:`SUFFIX_SCALE`.
            A ``None`` value evaluates as ``None``.
            Any other object class will call the standard :func:`int`.

    Returns:
        int: None if `value` is ``None``, its integer conversion otherwise.

    Examples:
        >>> parse_int('0x10010')
        65552

        >>> parse_int('-1k')
        -1024

        >>> parse_int('FFh')
        255

        >>> parse_int(None) is None
        True
    """

    if value is None:
        return None

    if not isinstance(value, str):
        return int(value)

    match = INT_REGEX.match(value.lower())
    if not match:
        raise ValueError(f'invalid syntax: {value!r}')

    groups = match.groupdict()
    prefix = groups['prefix']
    digits = groups['value']
    suffix = groups['suffix']

    if prefix in ('0b', '0o') and suffix == 'h':
        raise ValueError(f'invalid syntax: {value!r}')

    if prefix == '0x' or suffix == 'h':
        integer = int(digits, 16)
    elif prefix == '0b':
        integer = int(digits, 2)
    elif prefix in ('0', '0o'):
        integer = int(digits, 8)
    else:
        integer = int(digits, 10)

    integer *= SUFFIX_SCALE.get(groups['scale'], 1)

    if groups['sign'] == '-':
        integer = -integer

    return integer


def unhexlify(
    hexstr: str,
    delete: Optional[str] = None,
) -> bytes:
    r"""Converts a hexadecimal string into raw bytes.

    If `delete`, its characters are deleted from `hexstr` before evaluation.
    Useful to remove whitespace and separators.

    Args:
        hexstr (str):
            Source hexadecimal string.

        delete (str):
            If empty or ``None``, no deletion occurs.
            If ``Ellipsis``, :data:`DEFAULT_DELETE` is used.

    Returns:
        bytes: Raw byte string.

    Raises:
        ValueError: Odd digit count, or non-hexadecimal characters.

    Examples:
        >>> from ihexlib.utils import unhexlify
        >>> unhexlify('AABBCC')
        b'\xaa\xbb\xcc'
        >>> unhexlify('AA BB CC', delete=...)
        b'\xaa\xbb\xcc'
        >>> unhexlify('AA/BB/CC', delete='/')
        b'\xaa\xbb\xcc'
    """

    if delete:
        if delete is Ellipsis:
            delete = DEFAULT_DELETE
        hexstr = hexstr.translate(str.maketrans('', '', delete))

    return bytes.fromhex(hexstr)
