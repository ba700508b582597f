"""Strip decompression -- compressed strip bytes to per-pixel sample tuples.

Each compression scheme is a ``StripDecompressor``. The registry maps
TIFF compression ids to instances; schemes TIFF defines but this package
does not implement (CCITT, LZW, JPEG) are reported as unsupported.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from tiffdecode.errors import UnsupportedCompression, UnsupportedSampleLayout
from tiffdecode.tiff.catalog import COMPRESSION_NAMES
from tiffdecode.tiff.cursor import ByteCursor

Pixel = Tuple[int, ...]


@dataclass(frozen=True)
class SampleProperty:
    """Size of one sample component."""
    bits_per_sample: int

    @property
    def is_byte_aligned(self) -> bool:
        return self.bits_per_sample % 8 == 0

    @property
    def bytes_per_sample(self) -> Optional[int]:
        return self.bits_per_sample // 8 if self.is_byte_aligned else None


def sample_properties(bits_per_sample: Sequence[int]) -> Tuple[SampleProperty, ...]:
    """Build SampleProperty objects, rejecting sizes the readers cannot handle."""
    props = []
    for bits in bits_per_sample:
        if bits <= 0 or bits > 32:
            raise UnsupportedSampleLayout(f'{bits} bits per sample')
        props.append(SampleProperty(bits))
    return tuple(props)


@dataclass(frozen=True)
class StripLayout:
    """What a decompressor needs to know about the pixels in a strip."""
    width: int
    samples: Tuple[SampleProperty, ...]
    pixel_limit: Optional[int] = None

    @property
    def samples_per_pixel(self) -> int:
        return len(self.samples)

    @property
    def bits_per_pixel(self) -> int:
        return sum(s.bits_per_sample for s in self.samples)

    @property
    def is_byte_aligned(self) -> bool:
        return all(s.is_byte_aligned for s in self.samples)

    def is_full(self, pixels: List[Pixel]) -> bool:
        return self.pixel_limit is not None and len(pixels) >= self.pixel_limit


class StripDecompressor(ABC):
    """Base class for strip decompressors.

    ``decompress`` receives a cursor over exactly one strip's bytes (in
    the document's byte order) and returns the strip's pixels in order.
    """

    compression_id: int = 0
    name: str = ''
    # Most decoded bytes one stored byte can produce; None if unbounded
    max_expansion: Optional[int] = None

    @abstractmethod
    def decompress(self, cursor: ByteCursor, layout: StripLayout) -> List[Pixel]:
        ...


class UncompressedDecompressor(StripDecompressor):
    """Compression 1: samples stored as-is, rows padded to a byte boundary."""

    compression_id = 1
    name = 'Uncompressed'
    max_expansion = 1

    def decompress(self, cursor: ByteCursor, layout: StripLayout) -> List[Pixel]:
        pixels: List[Pixel] = []
        end = cursor.source.length
        bits_per_pixel = layout.bits_per_pixel
        byte_offset = 0
        bit_offset = 0
        pixels_in_row = 0

        while not layout.is_full(pixels):
            if (end - byte_offset) * 8 - bit_offset < bits_per_pixel:
                break  # trailing partial pixel or padding

            pixel = []
            for prop in layout.samples:
                if prop.is_byte_aligned and bit_offset == 0:
                    pixel.append(cursor.read_bytes(prop.bytes_per_sample, byte_offset))
                    byte_offset += prop.bytes_per_sample
                else:
                    bits = cursor.read_bits(prop.bits_per_sample, byte_offset, bit_offset)
                    pixel.append(bits.value)
                    byte_offset, bit_offset = bits.byte_offset, bits.bit_offset
            pixels.append(tuple(pixel))

            pixels_in_row += 1
            if pixels_in_row == layout.width:
                pixels_in_row = 0
                # Each new row starts on a byte boundary.
                if bit_offset != 0:
                    byte_offset += 1
                    bit_offset = 0

        return pixels


def unpack_bits(data: bytes) -> bytes:
    """Expand a PackBits run-length stream.

    A truncated final run yields whatever bytes it still holds.
    """
    out = bytearray()
    pos = 0
    end = len(data)
    while pos < end:
        header = data[pos]
        pos += 1
        if header > 127:
            header -= 256  # the header byte is signed

        if header >= 0:
            # Literal run
            out += data[pos:pos + header + 1]
            pos += header + 1
        elif header != -128:
            # Repeat run
            if pos >= end:
                break
            out += bytes([data[pos]]) * (1 - header)
            pos += 1
        # -128 is a no-op

    return bytes(out)


class SampleAssembler:
    """Groups a byte stream into multi-byte samples and samples into pixels."""

    def __init__(self, samples: Tuple[SampleProperty, ...], little_endian: bool):
        for prop in samples:
            if not prop.is_byte_aligned:
                raise UnsupportedSampleLayout(
                    f'Cannot assemble {prop.bits_per_sample}-bit samples from a byte stream')
        self.samples = samples
        self.little_endian = little_endian
        self.pixels: List[Pixel] = []
        self._pixel: List[int] = []
        self._sample = 0
        self._num_bytes = 0

    def feed(self, byte: int):
        prop = self.samples[len(self._pixel)]
        if self.little_endian:
            self._sample |= byte << (8 * self._num_bytes)
        else:
            self._sample = (self._sample << 8) | byte
        self._num_bytes += 1

        if self._num_bytes == prop.bytes_per_sample:
            self._pixel.append(self._sample)
            self._sample = 0
            self._num_bytes = 0
            if len(self._pixel) == len(self.samples):
                self.pixels.append(tuple(self._pixel))
                self._pixel = []


class PackBitsDecompressor(StripDecompressor):
    """Compression 32773: byte-oriented run-length encoding."""

    compression_id = 32773
    name = 'PackBits'
    # a two-byte repeat run expands to 128 bytes
    max_expansion = 64

    def decompress(self, cursor: ByteCursor, layout: StripLayout) -> List[Pixel]:
        assembler = SampleAssembler(layout.samples, cursor.little_endian)
        raw = unpack_bits(cursor.fetch(0, cursor.source.length))
        for byte in raw:
            assembler.feed(byte)
            if layout.is_full(assembler.pixels):
                break
        return assembler.pixels


# Registered decompressors by compression id
_DECOMPRESSORS: Dict[int, StripDecompressor] = {
    d.compression_id: d for d in (UncompressedDecompressor(), PackBitsDecompressor())
}


def register_decompressor(decompressor: StripDecompressor) -> StripDecompressor:
    """Add (or replace) the decompressor for ``decompressor.compression_id``."""
    _DECOMPRESSORS[decompressor.compression_id] = decompressor
    return decompressor


def get_decompressor(compression_id: int) -> StripDecompressor:
    """Look up the decompressor for a compression id.

    Raises UnsupportedCompression for recognized-but-unimplemented schemes
    (CCITT, LZW, JPEG) and for unknown ids alike.
    """
    try:
        return _DECOMPRESSORS[compression_id]
    except KeyError:
        raise UnsupportedCompression(
            compression_id, COMPRESSION_NAMES.get(compression_id, '')) from None


def supported_compressions() -> List[int]:
    return sorted(_DECOMPRESSORS)
