"""tiffdecode -- baseline TIFF decoder producing RGBA rasters per directory."""

__version__ = "1.0.0"

from tiffdecode.errors import (
    DataUnavailable,
    TiffError,
    TiffFormatError,
    UnsupportedFeature,
)
from tiffdecode.models import DecodeBatchResult, DirectoryResult, TiffImage
from tiffdecode.document import (
    DecodeContext,
    TiffDocument,
    decode_directory,
    decode_file,
    open_document,
)
from tiffdecode.export import export_image

__all__ = [
    "__version__",
    "TiffError",
    "TiffFormatError",
    "UnsupportedFeature",
    "DataUnavailable",
    "TiffImage",
    "DirectoryResult",
    "DecodeBatchResult",
    "DecodeContext",
    "TiffDocument",
    "decode_directory",
    "decode_file",
    "open_document",
    "export_image",
]
