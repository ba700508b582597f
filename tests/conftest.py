"""Shared test fixtures — synthetic TIFF file generators."""

import logging
import struct

import pytest

from tiffdecode.errors import DataUnavailable
from tiffdecode.tiff.cursor import ByteSource

# struct format per TIFF field type (inline packing)
_TYPE_FORMATS = {1: 'B', 2: 'B', 3: 'H', 4: 'I', 6: 'b', 7: 'B', 8: 'h', 9: 'i', 11: 'f'}

BYTE, ASCII, SHORT, LONG, RATIONAL = 1, 2, 3, 4, 5
SRATIONAL, DOUBLE = 10, 12


def _inline_slot(endian, type_id, value):
    """Pack an inline value into the 4-byte slot, left-justified as TIFF requires."""
    values = value if isinstance(value, (tuple, list)) else (value,)
    fmt = _TYPE_FORMATS.get(type_id, 'I')
    packed = struct.pack(endian + fmt * len(values), *values)
    return packed.ljust(4, b'\x00')


def build_tiff(entries, endian='<', extra_data=None):
    """Build a minimal TIFF file in memory with given IFD entries.

    Args:
        entries: List of (tag_id, type_id, count, value_or_bytes) tuples.
            For inline values (<=4 bytes), pass an int or a tuple of ints.
            For out-of-line values, pass bytes.
        endian: '<' for little-endian, '>' for big-endian.
        extra_data: Optional bytes appended after the out-of-line data.

    Returns:
        bytes: Complete TIFF file content.
    """
    return build_tiff_multi_ifd([entries], endian=endian, extra_data=extra_data)


def build_tiff_multi_ifd(ifd_entries_list, endian='<', extra_data=None):
    """Build a TIFF with multiple linked IFDs.

    Each IFD is followed by its own out-of-line data. ``extra_data`` goes
    after the last IFD's data.
    """
    bo = b'II' if endian == '<' else b'MM'

    ifd_starts = []
    offset = 8  # After header
    for entries in ifd_entries_list:
        ifd_starts.append(offset)
        ool = sum(len(v) for _, _, _, v in entries if isinstance(v, bytes))
        offset += 2 + 12 * len(entries) + 4 + ool

    result = bo + struct.pack(endian + 'H', 42)
    result += struct.pack(endian + 'I', ifd_starts[0])

    for i, entries in enumerate(ifd_entries_list):
        n = len(entries)
        data_start = ifd_starts[i] + 2 + 12 * n + 4

        ifd_bytes = struct.pack(endian + 'H', n)
        data_bytes = b''
        for tag_id, type_id, count, value in entries:
            ifd_bytes += struct.pack(endian + 'HHI', tag_id, type_id, count)
            if isinstance(value, bytes):
                ifd_bytes += struct.pack(endian + 'I', data_start + len(data_bytes))
                data_bytes += value
            else:
                ifd_bytes += _inline_slot(endian, type_id, value)

        next_ifd = ifd_starts[i + 1] if i + 1 < len(ifd_entries_list) else 0
        ifd_bytes += struct.pack(endian + 'I', next_ifd)
        result += ifd_bytes + data_bytes

    if extra_data:
        result += extra_data
    return result


def build_tiff_with_strips(tag_entries, strip_data, endian='<', byte_counts=True):
    """Build a TIFF with tag entries and image strip data.

    Automatically adds StripOffsets (273) and, unless ``byte_counts`` is
    False, StripByteCounts (279).

    Args:
        tag_entries: List of (tag_id, type_id, count, value_or_bytes) tuples.
        strip_data: bytes for a single strip, or a list of bytes per strip.
        endian: '<' or '>'.
    """
    if isinstance(strip_data, bytes):
        strip_data = [strip_data]
    n = len(strip_data)

    num_entries = len(tag_entries) + (2 if byte_counts else 1)
    ool_size = sum(len(v) for _, _, _, v in tag_entries if isinstance(v, bytes))
    arrays_size = (4 * n if n > 1 else 0) * (2 if byte_counts else 1)
    strips_start = 8 + 2 + 12 * num_entries + 4 + ool_size + arrays_size

    offsets = []
    pos = strips_start
    for strip in strip_data:
        offsets.append(pos)
        pos += len(strip)
    counts = [len(s) for s in strip_data]

    def _long_field(values):
        if n == 1:
            return values[0]
        return struct.pack(endian + 'I' * n, *values)

    entries = list(tag_entries)
    entries.append((273, LONG, n, _long_field(offsets)))
    if byte_counts:
        entries.append((279, LONG, n, _long_field(counts)))

    return build_tiff(entries, endian=endian, extra_data=b''.join(strip_data))


def image_entries(width, height, bits=8, photometric=1, samples_per_pixel=1,
                  compression=1, rows_per_strip=None, endian='<'):
    """Baseline tag entries for a simple stripped image."""
    entries = [
        (256, SHORT, 1, width),
        (257, SHORT, 1, height),
    ]
    if isinstance(bits, (tuple, list)):
        if len(bits) * 2 <= 4:
            entries.append((258, SHORT, len(bits), tuple(bits)))
        else:
            entries.append((258, SHORT, len(bits), struct.pack(endian + 'H' * len(bits), *bits)))
    else:
        entries.append((258, SHORT, 1, bits))
    entries += [
        (259, SHORT, 1, compression),
        (262, SHORT, 1, photometric),
        (277, SHORT, 1, samples_per_pixel),
    ]
    if rows_per_strip is not None:
        entries.append((278, SHORT, 1, rows_per_strip))
    return entries


def packbits(runs):
    """Encode a list of ('lit', bytes) / ('rep', byte, count) runs as PackBits."""
    out = b''
    for run in runs:
        if run[0] == 'lit':
            data = run[1]
            out += struct.pack('b', len(data) - 1) + data
        else:
            _, byte, count = run
            out += struct.pack('b', 1 - count) + bytes([byte])
    return out


class PartialSource(ByteSource):
    """A source that only has the first ``available`` bytes fetched."""

    def __init__(self, data, available):
        self._data = bytes(data)
        self.length = len(self._data)
        self.available = available

    def get_range(self, start, end):
        if end > self.available:
            raise DataUnavailable(start, end)
        return self._data[start:end]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _drop_cli_log_handlers():
    """The CLI installs a handler on the runner's stderr; remove it afterwards."""
    yield
    logger = logging.getLogger('tiffdecode')
    for handler in list(logger.handlers):
        if getattr(handler, '_tiffdecode_cli', False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def gray_2x2_bytes():
    """2x2, 8-bit BlackIsZero, uncompressed, single strip."""
    return build_tiff_with_strips(image_entries(2, 2), bytes([0, 128, 255, 64]))


@pytest.fixture
def tmp_gray_tiff(tmp_path, gray_2x2_bytes):
    filepath = tmp_path / 'gray.tif'
    filepath.write_bytes(gray_2x2_bytes)
    return filepath


@pytest.fixture
def tmp_lzw_tiff(tmp_path):
    """1x1 LZW image; LZW compression is not implemented."""
    data = build_tiff_with_strips(image_entries(1, 1, compression=5), b'\x00')
    filepath = tmp_path / 'lzw.tif'
    filepath.write_bytes(data)
    return filepath
