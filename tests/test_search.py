from ihexlib.search import MAX_PATTERN_LENGTH
from ihexlib.search import build_shift_table
from ihexlib.search import parse_hex_pattern
from ihexlib.search import search_bmh


def test_build_shift_table():
    table = build_shift_table(b'\xDE\xAD')
    assert len(table) == 256
    assert table[0xDE] == 1
    assert table[0xAD] == 2
    assert table[0x00] == 2


def test_build_shift_table_repeated():
    table = build_shift_table(b'abcab')
    assert table[ord('a')] == 1
    assert table[ord('b')] == 3
    assert table[ord('c')] == 2
    assert table[ord('z')] == 5


def test_build_shift_table_single():
    assert build_shift_table(b'\x00') == [1] * 256


def test_search_bmh_doctest():
    items = list(enumerate(b'\xDE\xAD\xBE\xDE\xAD'))
    assert search_bmh(items, b'\xDE\xAD') == [0, 3]


def test_search_bmh_overlapping():
    items = list(enumerate(b'\xAA\xAA\xAA'))
    assert search_bmh(items, b'\xAA\xAA') == [0, 1]
    assert search_bmh(items, b'\xAA') == [0, 1, 2]


def test_search_bmh_offset():
    items = [(0x10000 + index, value) for index, value in enumerate(b'hello world')]
    assert search_bmh(items, b'o') == [0x10004, 0x10007]
    assert search_bmh(items, b'world') == [0x10006]
    assert search_bmh(items, b'hello world') == [0x10000]
    assert search_bmh(items, b'worlds') == []


def test_search_bmh_gap():
    items = [(0x00, 0xDE), (0x10, 0xAD), (0x11, 0xDE), (0x12, 0xAD)]
    assert search_bmh(items, b'\xDE\xAD') == [0x00, 0x11]
    assert search_bmh(items, b'\xDE\xAD', contiguous=True) == [0x11]


def test_search_bmh_contiguous():
    items = [(0, 0xAA), (1, 0xAA), (5, 0xAA)]
    assert search_bmh(items, b'\xAA\xAA') == [0, 1]
    assert search_bmh(items, b'\xAA\xAA', contiguous=True) == [0]
    assert search_bmh(items, b'\xAA', contiguous=True) == [0, 1, 5]


def test_search_bmh_empty():
    assert search_bmh([], b'\x00') == []
    assert search_bmh([], b'\x00', contiguous=True) == []
    assert search_bmh(list(enumerate(b'abc')), b'') == []


def test_search_bmh_too_long():
    items = list(enumerate(bytes(300)))
    assert len(search_bmh(items, bytes(MAX_PATTERN_LENGTH))) == 300 - 255 + 1
    assert search_bmh(items, bytes(MAX_PATTERN_LENGTH + 1)) == []


def test_search_bmh_pattern_longer_than_data():
    assert search_bmh(list(enumerate(b'ab')), b'abc') == []


def test_search_bmh_iterator():
    items = iter(enumerate(b'abcabc'))
    assert search_bmh(items, b'bc') == [1, 4]


def test_search_bmh_brute_force():
    data = b'abracadabra abracadabra cadabra'
    items = list(enumerate(data))
    for pattern in (b'a', b'abra', b'cad', b'ra a', b'dabra', b'x', b'abracadabra'):
        expected = [index for index in range(len(data) - len(pattern) + 1)
                    if data[index:(index + len(pattern))] == pattern]
        assert search_bmh(items, pattern) == expected, pattern


def test_parse_hex_pattern():
    assert parse_hex_pattern('DEAD') == b'\xDE\xAD'
    assert parse_hex_pattern('de ad') == b'\xDE\xAD'
    assert parse_hex_pattern('DE-AD-BE-EF') == b'\xDE\xAD\xBE\xEF'
    assert parse_hex_pattern('') == b''


def test_parse_hex_pattern_invalid():
    assert parse_hex_pattern('DEA') is None
    assert parse_hex_pattern('XY') is None
    assert parse_hex_pattern('0xDEAD') is None
