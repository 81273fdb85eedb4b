import io

import pytest

from pymdat.errors import TruncatedError
from pymdat.words import WordReader


def test_read_word_swaps_bytes():
    reader = WordReader(io.BytesIO(b'\x12\x34'))
    assert reader.read_word() == 0x1234
    assert reader.offset == 2


def test_read_byte_is_not_swapped():
    reader = WordReader(io.BytesIO(b'\x01\x02'))
    assert reader.read_byte() == 0x01
    assert reader.read_byte() == 0x02


def test_read_entry_is_low_word_first():
    # low=0x0001, mid=0x0002, high=0x0003, each stored swapped
    reader = WordReader(io.BytesIO(b'\x00\x01\x00\x02\x00\x03'))
    assert reader.read_entry() == 0x000300020001
    assert reader.offset == 6


def test_read_entry_full_width():
    reader = WordReader(io.BytesIO(b'\xff\xff' * 3))
    assert reader.read_entry() == 0xFFFFFFFFFFFF


def test_read_word_truncated():
    reader = WordReader(io.BytesIO(b'\x01'), offset=100)
    with pytest.raises(TruncatedError) as excinfo:
        reader.read_word()
    assert excinfo.value.offset == 100
    assert excinfo.value.needed == 2
    assert excinfo.value.available == 1


def test_read_entry_truncated_reports_entry_start():
    reader = WordReader(io.BytesIO(b'\x00\x01\x00\x02\x00'), offset=10)
    with pytest.raises(TruncatedError) as excinfo:
        reader.read_entry()
    assert excinfo.value.offset == 10
    assert excinfo.value.needed == 6
    assert excinfo.value.available == 5


def test_skip_advances_offset():
    reader = WordReader(io.BytesIO(bytes(10)))
    reader.skip(8)
    assert reader.offset == 8
    with pytest.raises(TruncatedError):
        reader.skip(4)
