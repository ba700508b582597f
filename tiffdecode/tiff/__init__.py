"""Low-level TIFF decoding engine.

Re-exports the public names so ``from tiffdecode.tiff import X`` works
without knowing which module X lives in.
"""

# --- cursor.py: byte order, byte sources, byte/bit reads ---
from tiffdecode.tiff.cursor import (  # noqa: F401
    BitRead,
    ByteCursor,
    ByteOrder,
    ByteSource,
    BytesSource,
    FileSource,
)

# --- catalog.py: static tag / type / compression tables ---
from tiffdecode.tiff.catalog import (  # noqa: F401
    COMPRESSION_NAMES,
    FIELD_TYPES,
    PHOTOMETRIC_NAMES,
    TAG_NAMES,
    field_type_name,
    field_type_width,
    tag_name,
)

# --- fields.py: decoded entries and field tables ---
from tiffdecode.tiff.fields import (  # noqa: F401
    FieldEntry,
    FieldTable,
    decode_field_values,
)

# --- parser.py: header and IFD chain ---
from tiffdecode.tiff.parser import (  # noqa: F401
    MAX_IFD_ENTRIES,
    TIFFHeader,
    parse_directories,
    read_directory,
    read_header,
)

# --- strips.py: strip decompression ---
from tiffdecode.tiff.strips import (  # noqa: F401
    PackBitsDecompressor,
    SampleAssembler,
    SampleProperty,
    StripDecompressor,
    StripLayout,
    UncompressedDecompressor,
    get_decompressor,
    register_decompressor,
    sample_properties,
    supported_compressions,
    unpack_bits,
)

# --- raster.py: pixel assembly and photometric resolution ---
from tiffdecode.tiff.raster import (  # noqa: F401
    PhotometricResolver,
    PixelAssembler,
    rows_in_strip,
    scale_to_byte,
)
