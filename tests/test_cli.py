import os
import shutil
from pathlib import Path
from typing import cast as _cast

import pytest
from click.core import Command
from click.testing import CliRunner

from ihexlib import __version__ as _version
from ihexlib.__main__ import main as _main
from ihexlib.cli import BIN_FILE_EXT
from ihexlib.cli import guess_output_format
from ihexlib.cli import main
from ihexlib.intelhex import IntelHex

main = _cast(Command, main)  # suppress warnings

COMMANDS = ('convert', 'get', 'info', 'relocate', 'search', 'set', 'validate', 'view')


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


def read_text(path):
    with open(str(path), 'rt', newline='') as file:
        return file.read()


def read_bytes(path):
    with open(str(path), 'rb') as file:
        return file.read()


def write_bytes(path, data):
    with open(str(path), 'wb') as file:
        file.write(data)
    return str(path)


def invoke(*args):
    runner = CliRunner()
    return runner.invoke(main, [str(arg) for arg in args])


def test_guess_output_format():
    assert guess_output_format('x.hex') == 'hex'
    assert guess_output_format('x.ihex') == 'hex'
    assert guess_output_format('x.BIN') == 'bin'
    assert guess_output_format('x.bin', 'hex') == 'hex'
    assert guess_output_format('x.hex', 'bin') == 'bin'
    for file_ext in BIN_FILE_EXT:
        assert guess_output_format('x' + file_ext) == 'bin'


def test_help():
    runner = CliRunner()

    result = runner.invoke(main, ['--help'])
    assert result.exit_code == 0
    for command in COMMANDS:
        assert command in result.output

    for command in COMMANDS:
        result = runner.invoke(main, [command, '--help'])
        assert result.exit_code == 0
        assert result.output.strip().startswith('Usage:')


def test_version():
    result = invoke('--version')
    assert result.exit_code == 0
    assert result.output.strip() == str(_version)


def test_main_module():
    _main('ihexlib.__main__')


def test_missing_input():
    for command in ('info', 'validate', 'view'):
        result = invoke(command, 'missing.hex')
        assert result.exit_code == 2


class TestConvert:

    def test_hex_to_bin(self, datapath, tmppath):
        path_out = tmppath / 'out.bin'
        result = invoke('convert', datapath / 'canonical.hex', path_out)
        assert result.exit_code == 0, result.output
        data = read_bytes(path_out)
        assert len(data) == 0x10003
        assert data[:0x14] == bytes(range(0x14))
        assert data[0x14:0x100] == b'\xFF' * (0x100 - 0x14)
        assert data[0x100:0x102] == b'\xDE\xAD'
        assert data[-3:] == b'\xBE\xEF\x42'

    def test_hex_to_bin_fill(self, datapath, tmppath):
        path_out = tmppath / 'out.raw'
        result = invoke('convert', '-f', '0', datapath / 'canonical.hex', path_out)
        assert result.exit_code == 0, result.output
        assert read_bytes(path_out)[0x14:0x100] == bytes(0x100 - 0x14)

    def test_hex_to_hex(self, datapath, tmppath):
        path_out = tmppath / 'out.hex'
        result = invoke('convert', datapath / 'canonical.hex', path_out)
        assert result.exit_code == 0, result.output
        assert read_bytes(path_out) == read_bytes(datapath / 'canonical.hex')

    def test_bin_to_hex(self, tmppath):
        path_in = write_bytes(tmppath / 'in.bin', b'abc')
        path_out = tmppath / 'out.txt'
        result = invoke('convert', '-o', 'hex', path_in, path_out)
        assert result.exit_code == 0, result.output
        assert read_text(path_out) == ':03000000616263D7\n:00000001FF'

    def test_width(self, datapath, tmppath):
        path_out = tmppath / 'out.hex'
        result = invoke('convert', '-w', '32', datapath / 'canonical.hex', path_out)
        assert result.exit_code == 0, result.output
        lines = read_text(path_out).split('\n')
        assert lines[1] == ':14000000' + bytes(range(0x14)).hex().upper() + '2E'
        assert IntelHex.from_hex(path_out) == IntelHex.from_hex(datapath / 'canonical.hex')

    def test_width_invalid(self, datapath, tmppath):
        for width in ('0', '256', 'x'):
            result = invoke('convert', '-w', width, datapath / 'canonical.hex', tmppath / 'out.hex')
            assert result.exit_code == 2

    def test_invalid_input(self, tmppath):
        path_in = write_bytes(tmppath / 'bad.hex', b':01000000AAFF\n:00000001FF')
        path_out = tmppath / 'out.bin'
        result = invoke('convert', path_in, path_out)
        assert result.exit_code == 1
        assert 'line #1' in result.output
        assert 'expected: 0x55, found: 0xFF' in result.output
        assert not path_out.exists()


class TestGet:

    def test_single(self, datapath):
        result = invoke('get', datapath / 'canonical.hex', '0x10000')
        assert result.exit_code == 0, result.output
        assert result.output == 'BE\n'

    def test_count(self, datapath):
        result = invoke('get', '-n', '3', datapath / 'canonical.hex', '0x10000')
        assert result.exit_code == 0, result.output
        assert result.output == 'BE EF 42\n'

    def test_missing(self, datapath):
        result = invoke('get', '-n', '3', datapath / 'canonical.hex', '0x100')
        assert result.exit_code == 1
        assert 'no data within 0x100+3' in result.output


class TestInfo:

    def test_canonical(self, datapath):
        path = datapath / 'canonical.hex'
        result = invoke('info', path)
        assert result.exit_code == 0, result.output
        assert result.output.split('\n') == [
            f'path: {path}',
            f'size: {os.path.getsize(str(path))}',
            'bytes: 25',
            'span: 0x00000000-0x00010002',
            'start: 0x00000100 (START_LINEAR_ADDRESS)',
            '',
        ]

    def test_no_start(self, tmppath):
        path = write_bytes(tmppath / 'small.hex', b':03001000616263C7\n:00000001FF\n')
        result = invoke('info', path)
        assert result.exit_code == 0, result.output
        assert 'span: 0x00000010-0x00000012' in result.output
        assert 'start: -' in result.output

    def test_empty_records(self, tmppath):
        path = write_bytes(tmppath / 'eof.hex', b':00000001FF\n')
        result = invoke('info', path)
        assert result.exit_code == 0, result.output
        assert 'bytes: 0' in result.output
        assert 'span: -' in result.output


class TestRelocate:

    def test_relocate(self, datapath, tmppath):
        path_out = tmppath / 'moved.hex'
        result = invoke('relocate', '-a', '0x100', datapath / 'canonical.hex', path_out)
        assert result.exit_code == 0, result.output
        ih = IntelHex.from_hex(path_out)
        assert ih.min_address() == 0x100
        assert ih.get_range(range(0x200, 0x202)) == b'\xDE\xAD'
        assert ih.get_range(range(0x10100, 0x10103)) == b'\xBE\xEF\x42'

    def test_relocate_bin(self, datapath, tmppath):
        path_out = tmppath / 'moved.hex'
        result = invoke('relocate', '-a', '0x100', '-o', 'bin', datapath / 'canonical.hex', path_out)
        assert result.exit_code == 0, result.output
        assert len(read_bytes(path_out)) == 0x10003

    def test_relocate_empty(self, tmppath):
        path_in = write_bytes(tmppath / 'eof.hex', b':00000001FF')
        result = invoke('relocate', '-a', '0', path_in, tmppath / 'out.hex')
        assert result.exit_code == 1
        assert 'IntelHex instance has no data' in result.output

    def test_relocate_overflow(self, datapath, tmppath):
        path_out = tmppath / 'out.hex'
        result = invoke('relocate', '-a', '0x100000000', datapath / 'canonical.hex', path_out)
        assert result.exit_code == 1
        assert 'exceeds the 32-bit address space' in result.output
        assert not isinstance(result.exception, ValueError)
        assert not path_out.exists()

    def test_relocate_missing_address(self, datapath, tmppath):
        result = invoke('relocate', datapath / 'canonical.hex', tmppath / 'out.hex')
        assert result.exit_code == 2


class TestSearch:

    def test_search(self, datapath):
        result = invoke('search', datapath / 'canonical.hex', 'DEAD')
        assert result.exit_code == 0, result.output
        assert result.output == '0x00000100\n'

    def test_search_gap(self, datapath):
        result = invoke('search', datapath / 'canonical.hex', '13 DE')
        assert result.exit_code == 0, result.output
        assert result.output == '0x00000013\n'

        result = invoke('search', '-c', datapath / 'canonical.hex', '13DE')
        assert result.exit_code == 0, result.output
        assert result.output == ''

    def test_search_many(self, tmppath):
        path = write_bytes(tmppath / 'data.bin', b'\xDE\xAD\xBE\xDE\xAD')
        result = invoke('search', path, 'dead')
        assert result.exit_code == 0, result.output
        assert result.output == '0x00000000\n0x00000003\n'

    def test_search_invalid(self, datapath):
        result = invoke('search', datapath / 'canonical.hex', 'DEA')
        assert result.exit_code == 2
        assert 'invalid hexadecimal pattern' in result.output


class TestSet:

    def test_set(self, datapath, tmppath):
        path = tmppath / 'canonical.hex'
        shutil.copyfile(str(datapath / 'canonical.hex'), str(path))
        result = invoke('set', path, '0x100', '0xBE', '0xEF')
        assert result.exit_code == 0, result.output
        ih = IntelHex.from_hex(path)
        assert ih.get_range([0x100, 0x101]) == b'\xBE\xEF'
        assert ih.get_byte(0x102) is None

    def test_set_outfile(self, datapath, tmppath):
        path_out = tmppath / 'out.hex'
        result = invoke('set', '-o', path_out, datapath / 'canonical.hex', '0x10002', '0')
        assert result.exit_code == 0, result.output
        assert IntelHex.from_hex(path_out).get_byte(0x10002) == 0
        assert IntelHex.from_hex(datapath / 'canonical.hex').get_byte(0x10002) == 0x42

    def test_set_missing(self, datapath, tmppath):
        path = tmppath / 'canonical.hex'
        shutil.copyfile(str(datapath / 'canonical.hex'), str(path))
        result = invoke('set', path, '0x101', '0x00', '0x00')
        assert result.exit_code == 1
        assert 'No data found at address 0x102' in result.output
        assert read_bytes(path) == read_bytes(datapath / 'canonical.hex')

    def test_set_binary_without_extension(self, tmppath):
        path = write_bytes(tmppath / 'firmware', b'\x01\x02\x03')
        result = invoke('set', path, '1', '0xAA')
        assert result.exit_code == 0, result.output
        assert read_bytes(path) == b'\x01\xAA\x03'

    def test_set_hex_with_binary_extension(self, datapath, tmppath):
        path = tmppath / 'image.bin'
        shutil.copyfile(str(datapath / 'canonical.hex'), str(path))
        result = invoke('set', path, '0x100', '0x00')
        assert result.exit_code == 0, result.output
        assert read_bytes(path).startswith(b':')
        assert IntelHex.from_hex(path).get_byte(0x100) == 0x00

    def test_set_invalid_value(self, datapath, tmppath):
        result = invoke('set', '-o', tmppath / 'out.hex', datapath / 'canonical.hex', '0', '256')
        assert result.exit_code == 2


class TestValidate:

    def test_valid(self, datapath):
        result = invoke('validate', datapath / 'canonical.hex')
        assert result.exit_code == 0, result.output
        assert result.output == ''

    def test_invalid(self, tmppath):
        path = write_bytes(tmppath / 'bad.hex', b':0100000055AA\n:010000006699\n:00000001FF')
        result = invoke('validate', path)
        assert result.exit_code == 1
        assert 'line #2' in result.output
        assert 'Encountered duplicate address 0x0' in result.output

    def test_elf(self, tmppath):
        path = write_bytes(tmppath / 'a.elf', b'\x7FELF' + bytes(12))
        result = invoke('validate', path)
        assert result.exit_code == 1
        assert 'ELF files are not yet supported' in result.output


class TestView:

    def test_view(self, datapath):
        result = invoke('view', datapath / 'canonical.hex')
        assert result.exit_code == 0, result.output
        assert result.output == read_text(datapath / 'canonical.hex') + '\n'

    def test_view_width(self, datapath):
        result = invoke('view', '-w', '8', datapath / 'canonical.hex')
        assert result.exit_code == 0, result.output
        lines = result.output.split('\n')
        assert lines[1] == ':080000000001020304050607DC'
        assert lines[2] == ':0800080008090A0B0C0D0E0F94'

    def test_view_color(self, datapath):
        result = invoke('view', '--color', datapath / 'canonical.hex')
        assert result.exit_code == 0, result.output
        assert '\x1b[' in result.output
