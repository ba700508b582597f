"""Writing decoded images to disk -- Netpbm PAM, or PNG/JPEG through Pillow.

PAM needs nothing beyond the standard library. PNG and JPEG require the
optional Pillow dependency:
    pip install tiffdecode[export]
"""

import logging
from pathlib import Path
from typing import Union

from tiffdecode.errors import InvalidRequest
from tiffdecode.models import TiffImage

logger = logging.getLogger(__name__)

# Lazy-checked at call time
_pil_image = None

EXPORT_FORMATS = ('pam', 'png', 'jpeg')

_EXTENSIONS = {'pam': '.pam', 'png': '.png', 'jpeg': '.jpg'}


def _require_pil():
    global _pil_image
    if _pil_image is not None:
        return _pil_image
    try:
        from PIL import Image
        _pil_image = Image
        return Image
    except ImportError:
        raise ImportError(
            "Pillow is required for PNG/JPEG output. "
            "Install it with: pip install tiffdecode[export]"
        )


def extension_for(fmt: str) -> str:
    try:
        return _EXTENSIONS[fmt]
    except KeyError:
        raise InvalidRequest(f'Unknown export format {fmt!r}') from None


def check_format(fmt: str):
    """Fail early if ``fmt`` is unknown or its optional dependency is missing."""
    extension_for(fmt)
    if fmt != 'pam':
        _require_pil()


def write_pam(image: TiffImage, path: Union[str, Path]):
    """Write an RGBA image as a Netpbm PAM file."""
    header = (f'P7\nWIDTH {image.width}\nHEIGHT {image.height}\n'
              f'DEPTH 4\nMAXVAL 255\nTUPLTYPE RGB_ALPHA\nENDHDR\n')
    with open(path, 'wb') as f:
        f.write(header.encode('ascii'))
        f.write(image.data)


def to_pil(image: TiffImage):
    """Wrap the RGBA buffer in a Pillow image."""
    Image = _require_pil()
    return Image.frombytes('RGBA', (image.width, image.height), image.data)


def export_image(image: TiffImage, path: Union[str, Path], fmt: str = 'pam') -> Path:
    """Write ``image`` to ``path`` in ``fmt``. Returns the path written.

    JPEG has no alpha channel; the image is flattened to RGB first.
    """
    check_format(fmt)
    path = Path(path)
    if fmt == 'pam':
        write_pam(image, path)
    else:
        img = to_pil(image)
        if fmt == 'jpeg':
            img.convert('RGB').save(str(path), format='JPEG', quality=90)
        else:
            img.save(str(path), format='PNG')
    logger.debug('Wrote %dx%d image to %s', image.width, image.height, path)
    return path
