"""Typed field values and the per-directory field table."""

import struct
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from tiffdecode.errors import UnsupportedFieldType
from tiffdecode.tiff.catalog import RATIONAL_TYPES, SIGNED_TYPES, field_type_width
from tiffdecode.tiff.cursor import ByteCursor

# Bytes available in an IFD entry for an inline value
SLOT_SIZE = 4


@dataclass(frozen=True)
class FieldEntry:
    """One decoded IFD entry."""
    tag_id: int
    tag_name: str
    type_name: str
    values: Tuple

    @property
    def is_known(self) -> bool:
        return not self.tag_name.startswith('Tag0x')

    def as_text(self) -> str:
        """ASCII values joined into a string, NUL terminators stripped."""
        if self.type_name == 'ASCII':
            return ''.join(self.values).rstrip('\x00')
        return ', '.join(str(v) for v in self.values)


class FieldTable(Mapping):
    """Read-only mapping of tag name to FieldEntry for one IFD.

    Iteration follows directory entry order. ``skipped`` records entries
    that were present but could not be decoded.
    """

    def __init__(self, entries: List[FieldEntry], index: int = 0, offset: int = 0,
                 skipped: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, FieldEntry] = {}
        for entry in entries:
            self._entries[entry.tag_name] = entry
        self.index = index
        self.offset = offset
        self.skipped: Dict[str, str] = dict(skipped or {})

    def __getitem__(self, name: str) -> FieldEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f'FieldTable(index={self.index}, offset={self.offset}, tags={list(self._entries)})'

    def get_values(self, name: str) -> Tuple:
        """Values of a tag, or an empty tuple when the tag is absent."""
        entry = self._entries.get(name)
        return entry.values if entry is not None else ()

    def first(self, name: str, default=None):
        """First value of a tag, or ``default``."""
        values = self.get_values(name)
        return values[0] if values else default

    def by_id(self, tag_id: int) -> Optional[FieldEntry]:
        for entry in self._entries.values():
            if entry.tag_id == tag_id:
                return entry
        return None

    def as_dict(self) -> Dict[str, dict]:
        """Plain-data view (for document info and JSON output)."""
        return {
            name: {'type': entry.type_name, 'values': list(entry.values)}
            for name, entry in self._entries.items()
        }


# ---------------------------------------------------------------------------
# Value decoding
# ---------------------------------------------------------------------------

def _unpack_slot(slot_value: int, width: int, count: int, big_endian: bool) -> List[int]:
    """Split the byte-order-corrected 4-byte slot into ``count`` elements."""
    mask = (1 << (width * 8)) - 1
    if big_endian:
        # Significant bytes sit at the big end of the slot.
        return [(slot_value >> ((SLOT_SIZE - (i + 1) * width) * 8)) & mask
                for i in range(count)]
    return [(slot_value >> (i * width * 8)) & mask for i in range(count)]


def _to_signed(value: int, bits: int) -> int:
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


def _convert(type_name: str, raw: List[int], width: int) -> Tuple:
    if type_name == 'ASCII':
        return tuple(chr(v) for v in raw)
    if type_name == 'FLOAT':
        return tuple(struct.unpack('>f', v.to_bytes(4, 'big'))[0] for v in raw)
    if type_name in SIGNED_TYPES:
        return tuple(_to_signed(v, width * 8) for v in raw)
    return tuple(raw)


def decode_field_values(cursor: ByteCursor, type_name: str, count: int,
                        slot_value: int) -> Tuple:
    """Decode ``count`` values of ``type_name`` from an IFD entry.

    ``slot_value`` is the entry's last four bytes read in the document's
    byte order: the packed value itself when it fits in four bytes,
    otherwise the offset of the value data.
    """
    width = field_type_width(type_name)

    if width * count <= SLOT_SIZE:
        raw = _unpack_slot(slot_value, width, count, not cursor.little_endian)
        return _convert(type_name, raw, width)

    if type_name in RATIONAL_TYPES:
        data = cursor.slice(slot_value, width * count)
        pairs = []
        for i in range(count):
            numerator = data.read_bytes(4, i * width)
            denominator = data.read_bytes(4, i * width + 4)
            if type_name == 'SRATIONAL':
                numerator = _to_signed(numerator, 32)
                denominator = _to_signed(denominator, 32)
            pairs.append((numerator, denominator))
        return tuple(pairs)

    if width > SLOT_SIZE:
        raise UnsupportedFieldType(type_name)

    data = cursor.slice(slot_value, width * count)
    raw = [data.read_bytes(width, i * width) for i in range(count)]
    return _convert(type_name, raw, width)
