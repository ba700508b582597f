"""Pixel assembly and photometric resolution -- sample tuples to RGBA."""

from typing import List, Optional, Sequence, Tuple

from tiffdecode.errors import (
    InvalidFieldValue,
    InvalidRequest,
    MissingRequiredTag,
    RowCountMismatch,
    UnsupportedPhotometricInterpretation,
    UnsupportedSampleLayout,
)
from tiffdecode.tiff.catalog import COLOR_MAP, PHOTOMETRIC_NAMES
from tiffdecode.tiff.strips import Pixel, SampleProperty

WHITE_IS_ZERO = 0
BLACK_IS_ZERO = 1
RGB = 2
PALETTE = 3

# ExtraSamples values that mark a sample as alpha
ASSOCIATED_ALPHA = 1
UNASSOCIATED_ALPHA = 2

COLOR_MAP_BITS = 16

RGBA = Tuple[int, int, int, int]


def scale_to_byte(sample: int, bits: int) -> int:
    """Scale a ``bits``-deep sample to 0-255, rounding halves up."""
    if bits <= 0:
        raise InvalidRequest(f'Cannot scale a {bits}-bit sample')
    max_value = (1 << bits) - 1
    return (sample * 255 * 2 + max_value) // (2 * max_value)


class PhotometricResolver:
    """Maps one pixel's samples to (R, G, B, A) for a photometric interpretation.

    Built once per directory so unsupported modes and a bad ColorMap are
    reported before any strip is decoded.
    """

    def __init__(self, mode: int, samples: Sequence[SampleProperty],
                 extra_samples: Sequence[int] = (),
                 color_map: Optional[Sequence[int]] = None):
        self.mode = mode
        self.samples = tuple(samples)

        if mode in (WHITE_IS_ZERO, BLACK_IS_ZERO, PALETTE):
            primary = 1
        elif mode == RGB:
            primary = 3
        else:
            raise UnsupportedPhotometricInterpretation(mode, PHOTOMETRIC_NAMES.get(mode, ''))

        if len(self.samples) < primary:
            raise UnsupportedSampleLayout(
                f'{PHOTOMETRIC_NAMES[mode]} needs {primary} samples per pixel, '
                f'got {len(self.samples)}')

        self.alpha_index = None
        for k, kind in enumerate(extra_samples):
            if kind in (ASSOCIATED_ALPHA, UNASSOCIATED_ALPHA):
                if primary + k < len(self.samples):
                    self.alpha_index = primary + k
                break

        self.palette_size = 0
        self.color_map: Tuple[int, ...] = ()
        if mode == PALETTE:
            if not color_map:
                raise MissingRequiredTag(COLOR_MAP, 'palette image')
            self.palette_size = 1 << self.samples[0].bits_per_sample
            if len(color_map) != 3 * self.palette_size:
                raise InvalidFieldValue(
                    f'ColorMap has {len(color_map)} values, '
                    f'expected {3 * self.palette_size}')
            self.color_map = tuple(color_map)

    def resolve(self, pixel: Pixel) -> RGBA:
        alpha = 255
        if self.alpha_index is not None:
            alpha = scale_to_byte(pixel[self.alpha_index],
                                  self.samples[self.alpha_index].bits_per_sample)

        if self.mode == RGB:
            return (scale_to_byte(pixel[0], self.samples[0].bits_per_sample),
                    scale_to_byte(pixel[1], self.samples[1].bits_per_sample),
                    scale_to_byte(pixel[2], self.samples[2].bits_per_sample),
                    alpha)

        if self.mode == PALETTE:
            n = self.palette_size
            index = pixel[0]
            return (scale_to_byte(self.color_map[index], COLOR_MAP_BITS),
                    scale_to_byte(self.color_map[n + index], COLOR_MAP_BITS),
                    scale_to_byte(self.color_map[2 * n + index], COLOR_MAP_BITS),
                    alpha)

        bits = self.samples[0].bits_per_sample
        sample = pixel[0]
        if self.mode == WHITE_IS_ZERO:
            sample = ((1 << bits) - 1) - sample
        grey = scale_to_byte(sample, bits)
        return grey, grey, grey, alpha


def rows_in_strip(strip_index: int, num_strips: int, height: int,
                  rows_per_strip: int) -> int:
    """Rows held by a strip; only the last strip may be short."""
    if strip_index + 1 == num_strips:
        remainder = height % rows_per_strip
        return remainder if remainder else rows_per_strip
    return rows_per_strip


class PixelAssembler:
    """Lays decoded strips into an RGBA raster, top to bottom."""

    def __init__(self, width: int, height: int, rows_per_strip: int,
                 num_strips: int, resolver: PhotometricResolver):
        self.width = width
        self.height = height
        self.rows_per_strip = rows_per_strip
        self.num_strips = num_strips
        self.resolver = resolver
        self.data = bytearray(width * height * 4)
        self._next_row = 0

    def rows_for(self, strip_index: int) -> int:
        return rows_in_strip(strip_index, self.num_strips, self.height, self.rows_per_strip)

    def add_strip(self, strip_index: int, pixels: List[Pixel]):
        rows = min(self.rows_for(strip_index), self.height - self._next_row)
        if rows <= 0:
            return
        expected = rows * self.width
        if len(pixels) < expected:
            raise RowCountMismatch(strip_index, expected, len(pixels))

        pos = self._next_row * self.width * 4
        resolve = self.resolver.resolve
        for pixel in pixels[:expected]:
            self.data[pos:pos + 4] = bytes(resolve(pixel))
            pos += 4
        self._next_row += rows

    def to_bytes(self) -> bytes:
        return bytes(self.data)
