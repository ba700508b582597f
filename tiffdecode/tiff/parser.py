"""TIFF header and IFD chain parsing.

Reads the 8-byte header, then walks the linked list of image file
directories iteratively, producing one ``FieldTable`` per directory.
"""

import logging
from typing import List, Tuple, Union

from tiffdecode.errors import (
    DirectoryCycle,
    InvalidDirectory,
    InvalidHeader,
    TiffFormatError,
    UnsupportedFieldType,
)
from tiffdecode.tiff.catalog import field_type_name, tag_name
from tiffdecode.tiff.cursor import ByteCursor, ByteOrder, ByteSource
from tiffdecode.tiff.fields import FieldEntry, FieldTable, decode_field_values

logger = logging.getLogger(__name__)

TIFF_MAGIC = 42
HEADER_SIZE = 8
ENTRY_SIZE = 12

# Maximum plausible tag count per IFD.  Anything vastly beyond this means
# the IFD pointer landed in image data and the count is garbage.
MAX_IFD_ENTRIES = 1000

DEFAULT_MAX_DIRECTORIES = 500


class TIFFHeader:
    """Parsed TIFF file header."""
    __slots__ = ('byte_order', 'first_ifd_offset')

    def __init__(self, byte_order: ByteOrder, first_ifd_offset: int):
        self.byte_order = byte_order
        self.first_ifd_offset = first_ifd_offset

    def __repr__(self):
        return f'TIFFHeader({self.byte_order.name}, first_ifd_offset={self.first_ifd_offset})'


def read_header(source: Union[ByteSource, ByteCursor]) -> TIFFHeader:
    """Read and validate the byte-order marker, magic number and first IFD offset."""
    cursor = source if isinstance(source, ByteCursor) else ByteCursor(source)
    if cursor.source.length < HEADER_SIZE:
        raise InvalidHeader(f'File too short for a TIFF header ({cursor.source.length} bytes)')

    # The marker reads the same in either byte order.
    marker = cursor.with_order(ByteOrder.BIG_ENDIAN).read_bytes(2, 0)
    try:
        byte_order = ByteOrder.from_marker(marker)
    except ValueError as e:
        raise InvalidHeader(str(e)) from None

    cursor = cursor.with_order(byte_order)
    magic = cursor.read_bytes(2, 2)
    if magic != TIFF_MAGIC:
        raise InvalidHeader(f'Bad magic number {magic} (expected {TIFF_MAGIC})')

    return TIFFHeader(byte_order, cursor.read_bytes(4, 4))


def read_directory(cursor: ByteCursor, offset: int,
                   index: int = 0) -> Tuple[FieldTable, int]:
    """Read one IFD at ``offset``. Returns (field_table, next_ifd_offset)."""
    num_entries = cursor.read_bytes(2, offset)
    if num_entries > MAX_IFD_ENTRIES:
        raise InvalidDirectory(
            f'IFD {index} at offset {offset} claims {num_entries} entries')

    entries: List[FieldEntry] = []
    skipped = {}
    pos = offset + 2
    for _ in range(num_entries):
        tag_id = cursor.read_bytes(2, pos)
        type_id = cursor.read_bytes(2, pos + 2)
        count = cursor.read_bytes(4, pos + 4)
        slot_value = cursor.read_bytes(4, pos + 8)
        pos += ENTRY_SIZE

        name = tag_name(tag_id)
        type_name = field_type_name(type_id)
        if type_name is None:
            logger.debug('IFD %d: skipping %s with unknown field type %d',
                         index, name, type_id)
            continue

        try:
            values = decode_field_values(cursor, type_name, count, slot_value)
        except (TiffFormatError, UnsupportedFieldType) as e:
            logger.warning('IFD %d: cannot decode %s (%s): %s', index, name, type_name, e)
            skipped[name] = str(e)
            continue

        entries.append(FieldEntry(tag_id, name, type_name, values))

    next_offset = cursor.read_bytes(4, pos)
    return FieldTable(entries, index=index, offset=offset, skipped=skipped), next_offset


def parse_directories(cursor: ByteCursor, header: TIFFHeader,
                      max_directories: int = DEFAULT_MAX_DIRECTORIES,
                      strict: bool = False) -> List[FieldTable]:
    """Walk the IFD chain from the header. Returns one FieldTable per IFD.

    Raises DirectoryCycle if a next-IFD pointer revisits a directory.
    A malformed directory after the first one ends the walk with a
    warning and keeps the directories already read, unless ``strict``.
    """
    cursor = cursor.with_order(header.byte_order)
    tables: List[FieldTable] = []
    offset = header.first_ifd_offset
    seen = set()

    while offset != 0:
        if offset in seen:
            raise DirectoryCycle(offset)
        if len(tables) >= max_directories:
            logger.warning('Stopping IFD walk after %d directories', max_directories)
            break
        seen.add(offset)
        try:
            table, offset = read_directory(cursor, offset, index=len(tables))
        except TiffFormatError as e:
            if strict or not tables:
                raise
            logger.warning('IFD chain broken after %d directories: %s', len(tables), e)
            break
        tables.append(table)

    return tables
