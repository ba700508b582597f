"""Document-level decoding -- header, directory chain and per-directory rasters.

A ``TiffDocument`` reads the header and the IFD chain once. Every decode
runs in its own ``DecodeContext`` so directories can be decoded from
several threads at the same time.
"""

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from tiffdecode.errors import (
    DataUnavailable,
    ImageTooLarge,
    InvalidFieldValue,
    MissingRequiredTag,
    RowCountMismatch,
    TiffError,
    UnsupportedImageLayout,
)
from tiffdecode.models import DecodeBatchResult, DirectoryResult, TiffImage
from tiffdecode.tiff.catalog import (
    BITS_PER_SAMPLE,
    COLOR_MAP,
    COMPRESSION,
    EXTRA_SAMPLES,
    IMAGE_LENGTH,
    IMAGE_WIDTH,
    PHOTOMETRIC_INTERPRETATION,
    PLANAR_CONFIGURATION,
    ROWS_PER_STRIP,
    SAMPLES_PER_PIXEL,
    STRIP_BYTE_COUNTS,
    STRIP_OFFSETS,
    TILE_OFFSETS,
)
from tiffdecode.tiff.cursor import ByteCursor, ByteOrder, ByteSource, BytesSource, FileSource
from tiffdecode.tiff.fields import FieldTable
from tiffdecode.tiff.parser import DEFAULT_MAX_DIRECTORIES, parse_directories, read_header
from tiffdecode.tiff.raster import PhotometricResolver, PixelAssembler, rows_in_strip
from tiffdecode.tiff.strips import (
    StripDecompressor,
    StripLayout,
    get_decompressor,
    sample_properties,
)

logger = logging.getLogger(__name__)

IMAGE_OBJECT_TYPE = 'Image'

# 2**28 pixels is a 1 GiB RGBA raster
DEFAULT_MAX_PIXELS = 1 << 28

# emit(obj_id, directory_index, object_type, image)
EmitObject = Callable[[str, int, str, TiffImage], None]

SourceLike = Union[ByteSource, bytes, bytearray]


@dataclass(frozen=True)
class DecodeContext:
    """Everything one directory decode needs; never shared between decodes."""
    cursor: ByteCursor
    fields: FieldTable
    index: int
    max_pixels: int = DEFAULT_MAX_PIXELS


def _require(fields: FieldTable, name: str) -> Tuple:
    values = fields.get_values(name)
    if not values:
        raise MissingRequiredTag(name)
    return values


def _strip_byte_counts(fields: FieldTable, num_strips: int, width: int,
                       height: int, bits_per_pixel: int) -> Tuple[int, ...]:
    counts = fields.get_values(STRIP_BYTE_COUNTS)
    if counts:
        if len(counts) < num_strips:
            raise InvalidFieldValue(
                f'{len(counts)} StripByteCounts for {num_strips} StripOffsets')
        return counts

    # StripByteCounts is required, but a single strip can be recovered.
    if num_strips == 1:
        row_bytes = (width * bits_per_pixel + 7) // 8
        logger.warning('Missing StripByteCounts; inferring %d bytes', row_bytes * height)
        return (row_bytes * height,)
    raise MissingRequiredTag(STRIP_BYTE_COUNTS, f'cannot infer sizes of {num_strips} strips')


def _check_strip_capacity(decompressor: StripDecompressor, byte_counts: Tuple[int, ...],
                          num_strips: int, width: int, height: int, rows_per_strip: int,
                          bits_per_pixel: int):
    """Reject strips whose stored size cannot possibly hold their rows.

    Runs before the raster is allocated, so a tiny file claiming huge
    dimensions fails without asking for the memory.
    """
    if decompressor.max_expansion is None:
        return
    row_bytes = (width * bits_per_pixel + 7) // 8
    for i in range(num_strips):
        rows = rows_in_strip(i, num_strips, height, rows_per_strip)
        capacity = byte_counts[i] * decompressor.max_expansion
        if capacity < rows * row_bytes:
            expected = rows * width
            raise RowCountMismatch(i, expected, min(expected, capacity * 8 // bits_per_pixel))


def decode_directory(context: DecodeContext) -> TiffImage:
    """Decode one directory into an RGBA TiffImage."""
    fields = context.fields
    width = _require(fields, IMAGE_WIDTH)[0]
    height = _require(fields, IMAGE_LENGTH)[0]
    if width * height > context.max_pixels:
        raise ImageTooLarge(width, height, context.max_pixels)

    if STRIP_OFFSETS not in fields:
        if TILE_OFFSETS in fields:
            raise UnsupportedImageLayout('Tiled images are not supported')
        raise MissingRequiredTag(STRIP_OFFSETS)
    strip_offsets = fields.get_values(STRIP_OFFSETS)
    photometric = _require(fields, PHOTOMETRIC_INTERPRETATION)[0]

    samples_per_pixel = fields.first(SAMPLES_PER_PIXEL, 1)
    if samples_per_pixel < 1:
        raise InvalidFieldValue(f'SamplesPerPixel is {samples_per_pixel}')
    if samples_per_pixel > 1 and fields.first(PLANAR_CONFIGURATION, 1) == 2:
        raise UnsupportedImageLayout('Separate sample planes are not supported')

    bits = fields.get_values(BITS_PER_SAMPLE) or (1,)
    if len(bits) == 1:
        bits = bits * samples_per_pixel
    elif len(bits) != samples_per_pixel:
        raise InvalidFieldValue(
            f'{len(bits)} BitsPerSample values for {samples_per_pixel} samples')
    samples = sample_properties(bits)

    decompressor = get_decompressor(fields.first(COMPRESSION, 1))
    resolver = PhotometricResolver(
        photometric, samples,
        extra_samples=fields.get_values(EXTRA_SAMPLES),
        color_map=fields.get_values(COLOR_MAP) or None,
    )

    rows_per_strip = fields.first(ROWS_PER_STRIP, height)
    if rows_per_strip <= 0:
        raise InvalidFieldValue(f'RowsPerStrip is {rows_per_strip}')

    num_strips = -(-height // rows_per_strip)
    if len(strip_offsets) < num_strips:
        raise InvalidFieldValue(
            f'{len(strip_offsets)} StripOffsets cover {len(strip_offsets) * rows_per_strip} '
            f'rows, image has {height}')

    byte_counts = _strip_byte_counts(fields, len(strip_offsets), width, height,
                                     sum(bits))
    _check_strip_capacity(decompressor, byte_counts, num_strips, width, height,
                          rows_per_strip, sum(bits))

    # Strips past the image height are ignored
    assembler = PixelAssembler(width, height, rows_per_strip, num_strips, resolver)
    for i, (offset, count) in enumerate(zip(strip_offsets[:num_strips], byte_counts)):
        layout = StripLayout(width, samples, pixel_limit=assembler.rows_for(i) * width)
        pixels = decompressor.decompress(context.cursor.slice(offset, count), layout)
        assembler.add_strip(i, pixels)

    logger.debug('Decoded directory %d: %dx%d, %s, %d strip(s)',
                 context.index, width, height, decompressor.name, num_strips)
    return TiffImage(context.index, width, height, assembler.to_bytes(), fields)


class TiffDocument:
    """A parsed TIFF: byte order plus one FieldTable per directory.

    The document is read-only once constructed.
    """

    def __init__(self, source: SourceLike,
                 max_directories: int = DEFAULT_MAX_DIRECTORIES,
                 max_pixels: int = DEFAULT_MAX_PIXELS):
        if isinstance(source, (bytes, bytearray)):
            source = BytesSource(source)
        self.source = source
        self.max_pixels = max_pixels
        self.header = read_header(source)
        self.cursor = ByteCursor(source, self.header.byte_order)
        self.directories = parse_directories(self.cursor, self.header, max_directories)

    @property
    def byte_order(self) -> ByteOrder:
        return self.header.byte_order

    @property
    def num_pages(self) -> int:
        return len(self.directories)

    @property
    def document_info(self) -> Dict:
        return {
            'Format': 'TIFF',
            'TIFFFormatVersion': '6.0',
            'ByteOrder': self.byte_order.value,
            'Directories': [table.as_dict() for table in self.directories],
        }

    def page_size(self, index: int) -> Tuple[int, int]:
        """(width, height) of a directory, from its ImageWidth/ImageLength."""
        fields = self.directories[index]
        return _require(fields, IMAGE_WIDTH)[0], _require(fields, IMAGE_LENGTH)[0]

    def context(self, index: int) -> DecodeContext:
        return DecodeContext(self.cursor, self.directories[index], index, self.max_pixels)

    def decode(self, index: int) -> TiffImage:
        """Decode one directory. Errors propagate to the caller."""
        return decode_directory(self.context(index))

    def decode_all(self, emit: Optional[EmitObject] = None,
                   indices: Optional[Iterable[int]] = None) -> DecodeBatchResult:
        """Decode every directory (or ``indices``), collecting per-directory errors.

        A failing directory is recorded and the rest keep decoding.
        DataUnavailable is not caught: the caller fetches and retries.
        """
        batch_start = time.monotonic()
        batch = DecodeBatchResult()
        if indices is None:
            indices = range(self.num_pages)

        for index in indices:
            start = time.monotonic()
            result = DirectoryResult(index=index)
            try:
                result.image = self.decode(index)
            except DataUnavailable:
                raise
            except TiffError as e:
                logger.warning('Directory %d failed: %s', index, e)
                result.error = str(e)
                result.error_kind = type(e).__name__
            result.decode_time_ms = (time.monotonic() - start) * 1000

            batch.results.append(result)
            batch.total_directories += 1
            if result.ok:
                batch.directories_decoded += 1
                if emit is not None:
                    emit(f'tiff_fd{index}', index, IMAGE_OBJECT_TYPE, result.image)
            else:
                batch.directories_failed += 1

        batch.total_time_seconds = time.monotonic() - batch_start
        return batch


def open_document(filepath: Union[str, Path]) -> TiffDocument:
    """Load a TIFF file into memory and parse its directories."""
    return TiffDocument(BytesSource(Path(filepath).read_bytes()))


def decode_file(filepath: Union[str, Path],
                emit: Optional[EmitObject] = None) -> DecodeBatchResult:
    """Decode every directory of a TIFF file, reading strips on demand."""
    with open(filepath, 'rb') as f:
        return TiffDocument(FileSource(f)).decode_all(emit)


TIFF_EXTENSIONS = {'.tif', '.tiff'}


def collect_tiff_files(path: Path) -> List[Path]:
    """Collect TIFF files from a path (file or directory, searched recursively)."""
    if path.is_file():
        return [path]

    files = []
    for root, _, filenames in os.walk(path):
        for fname in sorted(filenames):
            if Path(fname).suffix.lower() in TIFF_EXTENSIONS:
                files.append(Path(root) / fname)
    files.sort()
    return files
