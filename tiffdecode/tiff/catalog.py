"""Static TIFF tables: tag names, field types, compression and photometric ids."""

import logging
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# Field types: {type_id: (type_name, element_size_bytes)}
FIELD_TYPES: Dict[int, Tuple[str, int]] = {
    1: ('BYTE', 1),
    2: ('ASCII', 1),
    3: ('SHORT', 2),
    4: ('LONG', 4),
    5: ('RATIONAL', 8),     # num/denom
    6: ('SBYTE', 1),
    7: ('UNDEFINED', 1),
    8: ('SSHORT', 2),
    9: ('SLONG', 4),
    10: ('SRATIONAL', 8),
    11: ('FLOAT', 4),
    12: ('DOUBLE', 8),
}

FIELD_TYPE_WIDTHS: Dict[str, int] = {name: size for name, size in FIELD_TYPES.values()}

SIGNED_TYPES = frozenset({'SBYTE', 'SSHORT', 'SLONG', 'SRATIONAL'})
RATIONAL_TYPES = frozenset({'RATIONAL', 'SRATIONAL'})

# Tag names by id
TAG_NAMES: Dict[int, str] = {
    # TIFF baseline
    254: 'NewSubfileType', 255: 'SubfileType',
    256: 'ImageWidth', 257: 'ImageLength', 258: 'BitsPerSample',
    259: 'Compression', 262: 'PhotometricInterpretation',
    263: 'Threshholding', 264: 'CellWidth', 265: 'CellLength',
    266: 'FillOrder', 270: 'ImageDescription', 271: 'Make', 272: 'Model',
    273: 'StripOffsets', 274: 'Orientation', 277: 'SamplesPerPixel',
    278: 'RowsPerStrip', 279: 'StripByteCounts',
    280: 'MinSampleValue', 281: 'MaxSampleValue',
    282: 'XResolution', 283: 'YResolution', 284: 'PlanarConfiguration',
    288: 'FreeOffsets', 289: 'FreeByteCounts',
    290: 'GrayResponseUnit', 291: 'GrayResponseCurve',
    296: 'ResolutionUnit', 305: 'Software', 306: 'DateTime',
    315: 'Artist', 316: 'HostComputer', 320: 'ColorMap',
    338: 'ExtraSamples', 33432: 'Copyright',
    # TIFF extended
    269: 'DocumentName', 285: 'PageName', 286: 'XPosition', 287: 'YPosition',
    292: 'T4Options', 293: 'T6Options', 297: 'PageNumber',
    301: 'TransferFunction', 317: 'Predictor', 318: 'WhitePoint',
    319: 'PrimaryChromaticities', 321: 'HalftoneHints',
    322: 'TileWidth', 323: 'TileLength', 324: 'TileOffsets',
    325: 'TileByteCounts', 326: 'BadFaxLines', 327: 'CleanFaxData',
    328: 'ConsecutiveBadFaxLines', 330: 'SubIFDs', 336: 'DotRange',
    339: 'SampleFormat', 343: 'ClipPath', 344: 'XClipPathUnits',
    345: 'YClipPathUnits', 346: 'Indexed', 347: 'JPEGTables',
    433: 'Decode', 434: 'DefaultImageColor',
    529: 'YCbCrCoefficients', 530: 'YCbCrSubSampling',
    531: 'YCbCrPositioning', 532: 'ReferenceBlackWhite',
    559: 'StripRowCounts',
    # EXIF
    33434: 'ExposureTime', 33437: 'FNumber', 34665: 'ExifIFD',
    34853: 'GPSInfo', 36864: 'ExifVersion',
    36867: 'DateTimeOriginal', 36868: 'DateTimeDigitized',
    37377: 'ShutterSpeedValue', 37378: 'ApertureValue',
    37384: 'LightSource', 37385: 'Flash', 37500: 'MakerNote',
    37510: 'UserComment', 40960: 'FlashpixVersion', 40961: 'ColorSpace',
    41728: 'FileSource', 42016: 'ImageUniqueID',
    # IPTC / ICC / XMP / Photoshop
    33723: 'IPTC', 34675: 'ICCProfile', 700: 'XMP', 34377: 'Photoshop',
    # GDAL
    42112: 'GDAL_METADATA', 42113: 'GDAL_NODATA',
}

# Baseline tags the decoder reads by name
IMAGE_WIDTH = 'ImageWidth'
IMAGE_LENGTH = 'ImageLength'
BITS_PER_SAMPLE = 'BitsPerSample'
COMPRESSION = 'Compression'
PHOTOMETRIC_INTERPRETATION = 'PhotometricInterpretation'
STRIP_OFFSETS = 'StripOffsets'
SAMPLES_PER_PIXEL = 'SamplesPerPixel'
ROWS_PER_STRIP = 'RowsPerStrip'
STRIP_BYTE_COUNTS = 'StripByteCounts'
PLANAR_CONFIGURATION = 'PlanarConfiguration'
COLOR_MAP = 'ColorMap'
EXTRA_SAMPLES = 'ExtraSamples'
TILE_OFFSETS = 'TileOffsets'

COMPRESSION_NAMES: Dict[int, str] = {
    1: 'Uncompressed',
    2: 'CCITT 1D',
    3: 'Group 3 Fax',
    4: 'Group 4 Fax',
    5: 'LZW',
    6: 'JPEG (old-style)',
    7: 'JPEG',
    32773: 'PackBits',
}

PHOTOMETRIC_NAMES: Dict[int, str] = {
    0: 'WhiteIsZero',
    1: 'BlackIsZero',
    2: 'RGB',
    3: 'Palette',
    4: 'TransparencyMask',
    5: 'CMYK',
    6: 'YCbCr',
    8: 'CIELab',
}


def tag_name(tag_id: int) -> str:
    """Name for a tag id; unknown ids get a synthesized ``Tag0xHHHH`` name."""
    name = TAG_NAMES.get(tag_id)
    if name is None:
        logger.debug('Unknown field tag %d', tag_id)
        name = f'Tag0x{tag_id:04X}'
    return name


def field_type_name(type_id: int) -> Optional[str]:
    """Name for a field type id, or None when the id is not a TIFF 6.0 type."""
    entry = FIELD_TYPES.get(type_id)
    return entry[0] if entry else None


def field_type_width(type_name: str) -> int:
    """Element width in bytes for a field type name."""
    return FIELD_TYPE_WIDTHS[type_name]
