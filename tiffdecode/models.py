"""Data models for decoded images and decode results."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from tiffdecode.tiff.fields import FieldTable


@dataclass(frozen=True)
class TiffImage:
    """One decoded directory: an RGBA raster plus the fields it came from."""
    index: int
    width: int
    height: int
    data: bytes  # width * height * 4, RGBA, row-major
    fields: FieldTable

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """Return the (R, G, B, A) value at column x, row y."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f'Pixel ({x}, {y}) outside {self.width}x{self.height} image')
        pos = (y * self.width + x) * 4
        r, g, b, a = self.data[pos:pos + 4]
        return r, g, b, a

    def pixels(self) -> List[Tuple[int, int, int, int]]:
        """All pixels in row-major order."""
        d = self.data
        return [(d[i], d[i + 1], d[i + 2], d[i + 3]) for i in range(0, len(d), 4)]


@dataclass
class DirectoryResult:
    """Outcome of decoding a single directory."""
    index: int
    image: Optional[TiffImage] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None  # exception class name, e.g. "UnsupportedCompression"
    decode_time_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.image is not None


@dataclass
class DecodeBatchResult:
    """Result of decoding every directory in a document."""
    results: List[DirectoryResult] = field(default_factory=list)
    total_directories: int = 0
    directories_decoded: int = 0
    directories_failed: int = 0
    total_time_seconds: float = 0.0

    @property
    def images(self) -> List[TiffImage]:
        return [r.image for r in self.results if r.image is not None]
