"""Byte-order-aware random access reads over a byte source.

A ``ByteSource`` only knows how to hand out ``[start, end)`` ranges.
``ByteCursor`` pairs a source with the document's ``ByteOrder`` and
turns ranges into unsigned integers or bit windows.
"""

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import BinaryIO, NamedTuple

from tiffdecode.errors import InvalidRequest, OffsetOutOfRange


class ByteOrder(Enum):
    """Byte order declared by the two-byte marker at the start of a TIFF."""
    BIG_ENDIAN = 'MM'
    LITTLE_ENDIAN = 'II'

    @property
    def struct_prefix(self) -> str:
        return '>' if self is ByteOrder.BIG_ENDIAN else '<'

    @classmethod
    def from_marker(cls, marker: int) -> 'ByteOrder':
        """Map the raw marker value (0x4949 / 0x4D4D) to a ByteOrder.

        Raises ValueError for anything else; the header reader turns that
        into InvalidHeader.
        """
        if marker == 0x4949:
            return cls.LITTLE_ENDIAN
        if marker == 0x4D4D:
            return cls.BIG_ENDIAN
        raise ValueError(f'Invalid byte order marker 0x{marker:04X}')


class BitRead(NamedTuple):
    """Result of ``ByteCursor.read_bits``: the value and the advanced cursor."""
    value: int
    byte_offset: int
    bit_offset: int


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class ByteSource(ABC):
    """Interface for anything that can serve byte ranges.

    ``length`` is the total size of the underlying file. Sources that
    fetch lazily (e.g. over a network) raise ``DataUnavailable`` from
    ``get_range`` for ranges they have not loaded yet.
    """

    length: int = 0

    @abstractmethod
    def get_range(self, start: int, end: int) -> bytes:
        ...


class BytesSource(ByteSource):
    """A fully loaded, in-memory source."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.length = len(self._data)

    def get_range(self, start: int, end: int) -> bytes:
        return self._data[start:end]


class FileSource(ByteSource):
    """A source backed by an open binary file handle.

    The seek/read pair is serialized so one handle can back several
    concurrent decodes.
    """

    def __init__(self, f: BinaryIO):
        self._f = f
        self._lock = threading.Lock()
        with self._lock:
            f.seek(0, 2)
            self.length = f.tell()

    def get_range(self, start: int, end: int) -> bytes:
        with self._lock:
            self._f.seek(start)
            return self._f.read(end - start)


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------

MAX_READ_BYTES = 4
MAX_READ_BITS = 32


class ByteCursor:
    """Reads integers and bit windows from a source in a fixed byte order."""

    __slots__ = ('source', 'byte_order')

    def __init__(self, source: ByteSource, byte_order: ByteOrder = ByteOrder.BIG_ENDIAN):
        self.source = source
        self.byte_order = byte_order

    @property
    def little_endian(self) -> bool:
        return self.byte_order is ByteOrder.LITTLE_ENDIAN

    def with_order(self, byte_order: ByteOrder) -> 'ByteCursor':
        return ByteCursor(self.source, byte_order)

    def fetch(self, start: int, count: int) -> bytes:
        """Return exactly ``count`` bytes starting at ``start`` in file order."""
        end = start + count
        if start < 0 or end > self.source.length:
            raise OffsetOutOfRange(start if start < 0 else end, self.source.length)
        data = self.source.get_range(start, end)
        if len(data) < count:
            raise OffsetOutOfRange(start + len(data), self.source.length)
        return data

    def read_bytes(self, count: int, offset: int) -> int:
        """Read a 1-4 byte unsigned integer at ``offset``."""
        if count <= 0:
            raise InvalidRequest(f'No bytes requested ({count})')
        if count > MAX_READ_BYTES:
            raise InvalidRequest(f'Too many bytes requested ({count})')
        data = self.fetch(offset, count)
        return int.from_bytes(data, 'little' if self.little_endian else 'big')

    def read_bits(self, num_bits: int, byte_offset: int, bit_offset: int = 0) -> BitRead:
        """Read ``num_bits`` (1-32) starting ``bit_offset`` bits into ``byte_offset``.

        Bits are taken most-significant first in file order. The returned
        offsets point just past the consumed bits.
        """
        if num_bits <= 0:
            raise InvalidRequest(f'No bits requested ({num_bits})')
        if num_bits > MAX_READ_BITS:
            raise InvalidRequest(f'Too many bits requested ({num_bits})')
        if bit_offset < 0:
            raise InvalidRequest(f'Negative bit offset ({bit_offset})')

        # Only a fraction of one byte is tracked in bit_offset.
        byte_offset += bit_offset // 8
        bit_offset %= 8

        total_bits = bit_offset + num_bits
        num_bytes = (total_bits + 7) // 8
        raw = int.from_bytes(self.fetch(byte_offset, num_bytes), 'big')

        value = (raw >> (num_bytes * 8 - total_bits)) & ((1 << num_bits) - 1)
        return BitRead(value, byte_offset + total_bits // 8, total_bits % 8)

    def slice(self, offset: int, count: int) -> 'ByteCursor':
        """Fetch ``count`` bytes once and return a cursor over just those bytes."""
        return ByteCursor(BytesSource(self.fetch(offset, count)), self.byte_order)
