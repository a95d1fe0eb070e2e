import pytest

from ihexlib.errors import CreateRecordError
from ihexlib.errors import ErrorKind
from ihexlib.errors import IntelHexError
from ihexlib.errors import ParseRecordError
from ihexlib.errors import UnsupportedFileError
from ihexlib.errors import UpdateError
from ihexlib.records import RecordType


class TestErrorKind:

    def test_templates(self):
        for kind in ErrorKind:
            assert isinstance(kind.value, str)
            assert kind.value

    def test_unique(self):
        values = [kind.value for kind in ErrorKind]
        assert len(values) == len(set(values))


class TestIntelHexError:

    def test___eq__(self):
        error1 = UpdateError(ErrorKind.INVALID_ADDRESS, address=0x10)
        error2 = UpdateError(ErrorKind.INVALID_ADDRESS, address=0x10)
        error3 = UpdateError(ErrorKind.INVALID_ADDRESS, address=0x11)
        assert error1 == error2
        assert error1 != error3
        assert hash(error1) == hash(error2)

    def test___eq___type(self):
        error1 = UpdateError(ErrorKind.INTELHEX_INSTANCE_EMPTY)
        error2 = CreateRecordError(ErrorKind.INTELHEX_INSTANCE_EMPTY)
        assert error1 != error2
        assert error1 != 'error'

    def test_hierarchy(self):
        for cls in (ParseRecordError, CreateRecordError, UpdateError, UnsupportedFileError):
            assert issubclass(cls, IntelHexError)
            assert issubclass(cls, ValueError)

    def test_message(self):
        error = CreateRecordError(ErrorKind.RECORD_LENGTH_INVALID_FOR_TYPE,
                                  rtype=RecordType.EXTENDED_LINEAR_ADDRESS,
                                  expected=2, actual=3)
        assert error.message == ('For record type EXTENDED_LINEAR_ADDRESS expected data length '
                                 'is 2 bytes, found 3')
        assert error.line is None

    def test___str__(self):
        error = UpdateError(ErrorKind.INVALID_ADDRESS, address=0xABCD)
        assert str(error) == ('Error encountered during update of IntelHex instance:\n'
                              'No data found at address 0xABCD')

        error = CreateRecordError(ErrorKind.INTELHEX_INSTANCE_EMPTY)
        assert str(error) == ('Error encountered during creation of hex record:\n'
                              'IntelHex instance has no data')

    def test_raise(self):
        with pytest.raises(ValueError, match='No data found at address 0x10'):
            raise UpdateError(ErrorKind.INVALID_ADDRESS, address=0x10)


class TestParseRecordError:

    def test___init__(self):
        error = ParseRecordError(ErrorKind.MISSING_START_CODE)
        assert error.kind is ErrorKind.MISSING_START_CODE
        assert error.line is None
        assert error.context == {}

    def test___eq__(self):
        error1 = ParseRecordError(ErrorKind.MISSING_START_CODE, line=1)
        error2 = ParseRecordError(ErrorKind.MISSING_START_CODE, line=2)
        assert error1 != error2
        error2.line = 1
        assert error1 == error2

    def test___str__(self):
        error = ParseRecordError(ErrorKind.RECORD_CHECKSUM_MISMATCH,
                                 line=1, expected=0x55, actual=0xFF)
        assert str(error) == ('Error encountered during record parsing at line #1 '
                              'of the hex file:\n'
                              'Invalid record checksum - expected: 0x55, found: 0xFF')

    def test___str___no_line(self):
        error = ParseRecordError(ErrorKind.RECORD_ADDRESS_OVERLAP, address=0x10010)
        assert str(error) == ('Error encountered during record parsing:\n'
                              'Encountered duplicate address 0x10010')


class TestUnsupportedFileError:

    def test___init__(self):
        error = UnsupportedFileError('a.elf', 'ELF files are not yet supported')
        assert error.kind is ErrorKind.UNSUPPORTED_FILE
        assert error.context == {'path': 'a.elf', 'reason': 'ELF files are not yet supported'}
        assert error.message == "File 'a.elf' not supported: ELF files are not yet supported"
