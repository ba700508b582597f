"""Exception hierarchy for the TIFF decoder.

Everything raised on purpose by tiffdecode derives from ``TiffError``.
``DataUnavailable`` is the one retryable error: the byte source has not
fetched the requested range yet, and the caller is expected to fetch it
and call again.
"""


class TiffError(Exception):
    """Root for all tiffdecode errors. Never raised directly."""

    def __repr__(self):
        return '{}({!r})'.format(self.__class__.__name__, str(self))


class InvalidRequest(TiffError, ValueError):
    """A caller asked for an impossible read (zero, negative or oversized)."""


class DataUnavailable(TiffError):
    """The byte range [begin, end) has not been fetched by the source yet."""

    def __init__(self, begin: int, end: int):
        self.begin = begin
        self.end = end
        super().__init__(begin, end)

    def __str__(self):
        return f'Bytes {self.begin}..{self.end} are not available yet'


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------

class TiffFormatError(TiffError):
    """The file violates the TIFF structure."""


class InvalidHeader(TiffFormatError):
    """Bad byte-order marker, missing magic number or truncated header."""


class OffsetOutOfRange(TiffFormatError):
    """An offset points outside the byte source."""

    def __init__(self, offset: int, length: int):
        self.offset = offset
        self.length = length
        super().__init__(offset, length)

    def __str__(self):
        return f'Offset {self.offset} is outside the source ({self.length} bytes)'


class DirectoryCycle(TiffFormatError):
    """The IFD chain links back to a directory that was already read."""

    def __init__(self, offset: int):
        self.offset = offset
        super().__init__(offset)

    def __str__(self):
        return f'IFD chain revisits offset {self.offset}'


class InvalidDirectory(TiffFormatError):
    """An IFD is structurally implausible (e.g. absurd entry count)."""


class MissingRequiredTag(TiffFormatError):
    """A tag needed to decode the directory is absent."""

    def __init__(self, tag: str, detail: str = ''):
        self.tag = tag
        self.detail = detail
        super().__init__(tag)

    def __str__(self):
        if self.detail:
            return f'Missing required tag {self.tag}: {self.detail}'
        return f'Missing required tag {self.tag}'


class InvalidFieldValue(TiffFormatError):
    """A tag is present but its value cannot be used."""


class RowCountMismatch(TiffFormatError):
    """A strip decoded to fewer pixels than its rows require."""

    def __init__(self, strip: int, expected: int, actual: int):
        self.strip = strip
        self.expected = expected
        self.actual = actual
        super().__init__(strip, expected, actual)

    def __str__(self):
        return (f'Strip {self.strip} holds {self.actual} pixels, '
                f'{self.expected} required')


# ---------------------------------------------------------------------------
# Valid but unsupported input
# ---------------------------------------------------------------------------

class UnsupportedFeature(TiffError):
    """The file is valid TIFF but uses something this decoder cannot handle."""


class UnsupportedFieldType(UnsupportedFeature):
    """Field values of this type cannot be decoded (e.g. DOUBLE)."""

    def __init__(self, type_name):
        self.type_name = type_name
        super().__init__(type_name)

    def __str__(self):
        return f'Cannot decode field type {self.type_name}'


class UnsupportedCompression(UnsupportedFeature):
    """No strip decompressor is available for this compression id."""

    def __init__(self, compression_id: int, name: str = ''):
        self.compression_id = compression_id
        self.name = name
        super().__init__(compression_id)

    def __str__(self):
        if self.name:
            return f'Unsupported compression {self.compression_id} ({self.name})'
        return f'Unsupported compression {self.compression_id}'


class UnsupportedPhotometricInterpretation(UnsupportedFeature):
    """The photometric interpretation cannot be mapped to RGBA."""

    def __init__(self, mode: int, name: str = ''):
        self.mode = mode
        self.name = name
        super().__init__(mode)

    def __str__(self):
        if self.name:
            return f'Unsupported photometric interpretation {self.mode} ({self.name})'
        return f'Unsupported photometric interpretation {self.mode}'


class UnsupportedSampleLayout(UnsupportedFeature):
    """The combination of sample sizes cannot be decoded."""


class UnsupportedImageLayout(UnsupportedFeature):
    """Tiled or planar-separated images."""


class ImageTooLarge(UnsupportedFeature):
    """The raster would exceed the configured pixel limit."""

    def __init__(self, width: int, height: int, limit: int):
        self.width = width
        self.height = height
        self.limit = limit
        super().__init__(width, height, limit)

    def __str__(self):
        return (f'Image is {self.width}x{self.height} ({self.width * self.height} pixels), '
                f'limit is {self.limit}')
