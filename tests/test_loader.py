import os
from pathlib import Path

import pytest

from ihexlib.errors import ErrorKind
from ihexlib.errors import ParseRecordError
from ihexlib.errors import UnsupportedFileError
from ihexlib.intelhex import IntelHex
from ihexlib.loader import FileKind
from ihexlib.loader import detect_file_kind
from ihexlib.loader import load


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


@pytest.fixture(scope='module')
def datadir(request):
    dir_path, _ = os.path.splitext(request.module.__file__)
    assert os.path.isdir(str(dir_path))
    return dir_path


@pytest.fixture
def datapath(datadir):
    return Path(str(datadir))


def write_bytes(path, data):
    with open(str(path), 'wb') as stream:
        stream.write(data)
    return str(path)


def test_detect_file_kind(datapath, tmppath):
    assert detect_file_kind(datapath / 'canonical.hex') is FileKind.HEX
    assert detect_file_kind(write_bytes(tmppath / 'a.elf', b'\x7FELF\x02\x01\x01')) is FileKind.ELF
    assert detect_file_kind(write_bytes(tmppath / 'a.bin', b'\x00\x01\x02')) is FileKind.BIN
    assert detect_file_kind(write_bytes(tmppath / 'empty', b'')) is FileKind.UNKNOWN


def test_detect_file_kind_by_content(tmppath):
    assert detect_file_kind(write_bytes(tmppath / 'a.bin', b':00000001FF')) is FileKind.HEX
    assert detect_file_kind(write_bytes(tmppath / 'a.hex', b'\x7FEL')) is FileKind.BIN
    assert detect_file_kind(write_bytes(tmppath / 'b.hex', b' :00000001FF')) is FileKind.BIN


def test_load_hex(datapath):
    ih = load(datapath / 'canonical.hex')
    assert isinstance(ih, IntelHex)
    assert ih == IntelHex.from_hex(datapath / 'canonical.hex')
    assert ih.filepath == str(datapath / 'canonical.hex')


def test_load_hex_kwargs(datapath):
    ih = load(datapath / 'canonical.hex', maxdatalen=32)
    assert ih.maxdatalen == 32


def test_load_hex_invalid(tmppath):
    path = write_bytes(tmppath / 'bad.hex', b':01000000AAFF\n:00000001FF')
    with pytest.raises(ParseRecordError) as info:
        load(path)
    assert info.value == ParseRecordError(ErrorKind.RECORD_CHECKSUM_MISMATCH,
                                          line=1, expected=0x55, actual=0xFF)


def test_load_bin(tmppath):
    path = write_bytes(tmppath / 'data.dat', b'\x00\x01\x02\x03')
    ih = load(path)
    assert ih.store.to_blocks() == [[0, b'\x00\x01\x02\x03']]
    assert ih.start_address is None
    assert ih.size == 4


def test_load_elf(tmppath):
    path = write_bytes(tmppath / 'a.elf', b'\x7FELF' + bytes(60))
    with pytest.raises(UnsupportedFileError) as info:
        load(path)
    assert info.value == UnsupportedFileError(path, 'ELF files are not yet supported')


def test_load_empty(tmppath):
    path = write_bytes(tmppath / 'empty.hex', b'')
    with pytest.raises(UnsupportedFileError) as info:
        load(path)
    assert info.value.kind is ErrorKind.UNSUPPORTED_FILE
    assert info.value.context['reason'] == 'could not determine the file type'


def test_load_missing(tmppath):
    with pytest.raises(FileNotFoundError):
        load(tmppath / 'missing.hex')
