"""Tests for header parsing and the IFD chain walk."""

import struct

import pytest

from tiffdecode.errors import (
    DirectoryCycle,
    InvalidDirectory,
    InvalidHeader,
    OffsetOutOfRange,
)
from tiffdecode.tiff.cursor import ByteCursor, ByteOrder, BytesSource
from tiffdecode.tiff.parser import parse_directories, read_directory, read_header
from tests.conftest import (
    ASCII,
    DOUBLE,
    LONG,
    SHORT,
    build_tiff,
    build_tiff_multi_ifd,
)


def _parse(data, **kwargs):
    source = BytesSource(data)
    header = read_header(source)
    return parse_directories(ByteCursor(source, header.byte_order), header, **kwargs)


def _make_ifd_entries(index):
    """Create minimal IFD entries for chain tests."""
    return [
        (256, SHORT, 1, 64 * (index + 1)),  # ImageWidth -- unique per IFD
        (257, SHORT, 1, 64),                 # ImageLength
    ]


class TestReadHeader:
    def test_little_endian(self):
        header = read_header(BytesSource(build_tiff([], endian='<')))
        assert header.byte_order is ByteOrder.LITTLE_ENDIAN
        assert header.first_ifd_offset == 8

    def test_big_endian(self):
        header = read_header(BytesSource(build_tiff([], endian='>')))
        assert header.byte_order is ByteOrder.BIG_ENDIAN
        assert header.first_ifd_offset == 8

    def test_accepts_cursor(self):
        cursor = ByteCursor(BytesSource(build_tiff([], endian='>')))
        assert read_header(cursor).byte_order is ByteOrder.BIG_ENDIAN

    def test_not_a_tiff(self):
        with pytest.raises(InvalidHeader):
            read_header(BytesSource(b'NOT A TIFF FILE'))

    def test_wrong_magic(self):
        data = b'II' + struct.pack('<H', 99) + b'\x00' * 4
        with pytest.raises(InvalidHeader):
            read_header(BytesSource(data))

    def test_magic_in_wrong_byte_order(self):
        """42 written big-endian in a little-endian file reads as 10752."""
        data = b'II' + struct.pack('>H', 42) + struct.pack('<I', 8)
        with pytest.raises(InvalidHeader):
            read_header(BytesSource(data))

    def test_truncated(self):
        with pytest.raises(InvalidHeader):
            read_header(BytesSource(b'II*\x00'))

    def test_empty(self):
        with pytest.raises(InvalidHeader):
            read_header(BytesSource(b''))


class TestReadDirectory:
    def test_entries_and_next_offset(self):
        data = build_tiff(_make_ifd_entries(0))
        cursor = ByteCursor(BytesSource(data), ByteOrder.LITTLE_ENDIAN)
        table, next_offset = read_directory(cursor, 8)
        assert next_offset == 0
        assert table.first('ImageWidth') == 64
        assert table.first('ImageLength') == 64
        assert table.offset == 8

    def test_big_endian_values(self):
        data = build_tiff([
            (256, SHORT, 1, 300),
            (273, LONG, 1, 70000),
            (258, SHORT, 3, struct.pack('>HHH', 8, 8, 8)),
        ], endian='>')
        tables = _parse(data)
        assert tables[0].first('ImageWidth') == 300
        assert tables[0].first('StripOffsets') == 70000
        assert tables[0].get_values('BitsPerSample') == (8, 8, 8)

    def test_unknown_tag_kept(self):
        data = build_tiff([(256, SHORT, 1, 5), (0xC000, SHORT, 1, 7)])
        table = _parse(data)[0]
        assert table['Tag0xC000'].values == (7,)
        assert table['Tag0xC000'].tag_id == 0xC000

    def test_unknown_field_type_skipped(self):
        data = build_tiff([(256, SHORT, 1, 5), (300, 99, 1, 0)])
        table = _parse(data)[0]
        assert list(table) == ['ImageWidth']
        assert table.skipped == {}

    def test_double_recorded_as_skipped(self):
        data = build_tiff([
            (256, SHORT, 1, 5),
            (0xC001, DOUBLE, 1, struct.pack('<d', 1.0)),
        ])
        table = _parse(data)[0]
        assert 'Tag0xC001' not in table
        assert 'Tag0xC001' in table.skipped

    def test_value_offset_out_of_range_skipped(self):
        data = build_tiff([(256, SHORT, 1, 5), (273, LONG, 10, 50000)])
        table = _parse(data)[0]
        assert table.first('ImageWidth') == 5
        assert 'StripOffsets' in table.skipped

    def test_ascii_field(self):
        data = build_tiff([(270, ASCII, 12, b'Test slide\x00\x00')])
        table = _parse(data)[0]
        assert table['ImageDescription'].as_text() == 'Test slide'

    def test_absurd_entry_count(self):
        data = b'II*\x00' + struct.pack('<I', 8) + struct.pack('<H', 5000) + b'\x00' * 64
        with pytest.raises(InvalidDirectory):
            _parse(data)


class TestDirectoryChain:
    def test_single_directory(self):
        assert len(_parse(build_tiff(_make_ifd_entries(0)))) == 1

    def test_empty_directory(self):
        tables = _parse(build_tiff([]))
        assert len(tables) == 1
        assert len(tables[0]) == 0

    def test_15_ifd_chain(self):
        """15-IFD chain traverses fully, in order."""
        ifd_list = [_make_ifd_entries(i) for i in range(15)]
        tables = _parse(build_tiff_multi_ifd(ifd_list))
        assert len(tables) == 15
        for i, table in enumerate(tables):
            assert table.index == i
            assert table.first('ImageWidth') == 64 * (i + 1)

    def test_big_endian_chain(self):
        ifd_list = [_make_ifd_entries(i) for i in range(3)]
        tables = _parse(build_tiff_multi_ifd(ifd_list, endian='>'))
        assert [t.first('ImageWidth') for t in tables] == [64, 128, 192]

    def test_max_directories(self):
        ifd_list = [_make_ifd_entries(i) for i in range(5)]
        tables = _parse(build_tiff_multi_ifd(ifd_list), max_directories=3)
        assert len(tables) == 3


class TestCircularChains:
    def test_self_reference(self):
        """An IFD whose next pointer is its own offset."""
        data = (b'II*\x00' + struct.pack('<I', 8)
                + struct.pack('<H', 1) + struct.pack('<HHI', 256, SHORT, 1)
                + struct.pack('<HH', 5, 0) + struct.pack('<I', 8))
        with pytest.raises(DirectoryCycle) as exc_info:
            _parse(data)
        assert exc_info.value.offset == 8

    def test_two_ifd_cycle(self):
        data = bytearray(build_tiff_multi_ifd([_make_ifd_entries(0), _make_ifd_entries(1)]))
        # IFD 0 at 8 (2 entries, 30 bytes); IFD 1 at 38, next pointer at 64
        data[64:68] = struct.pack('<I', 8)
        with pytest.raises(DirectoryCycle):
            _parse(bytes(data))

    def test_cycle_raises_even_when_not_strict(self):
        data = bytearray(build_tiff_multi_ifd([_make_ifd_entries(i) for i in range(3)]))
        # IFD 2 at 68, next pointer at 94 -> back to IFD 1
        data[94:98] = struct.pack('<I', 38)
        with pytest.raises(DirectoryCycle) as exc_info:
            _parse(bytes(data), strict=False)
        assert exc_info.value.offset == 38


class TestBrokenChains:
    def _broken(self):
        data = bytearray(build_tiff(_make_ifd_entries(0)))
        data[34:38] = struct.pack('<I', 10000)
        return bytes(data)

    def test_broken_next_pointer_keeps_first(self):
        tables = _parse(self._broken())
        assert len(tables) == 1
        assert tables[0].first('ImageWidth') == 64

    def test_broken_next_pointer_strict(self):
        with pytest.raises(OffsetOutOfRange):
            _parse(self._broken(), strict=True)

    def test_first_ifd_out_of_range(self):
        data = b'II*\x00' + struct.pack('<I', 10000)
        with pytest.raises(OffsetOutOfRange):
            _parse(data)

    def test_truncated_directory(self):
        data = build_tiff(_make_ifd_entries(0))[:20]
        with pytest.raises(OffsetOutOfRange):
            _parse(data)
