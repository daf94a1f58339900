"""
Image decoding, format sniffing and encoding (Pillow).
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from tilesmith.exceptions import DecodeError, OutputError

logger = logging.getLogger(__name__)

# Pillow format name -> file extension
FORMAT_EXTENSIONS = {
    'JPEG': '.jpg',
    'PNG': '.png',
    'GIF': '.gif',
    'BMP': '.bmp',
    'TIFF': '.tif',
    'WEBP': '.webp',
    'DDS': '.dds',
}


def decode_image(data: bytes, path: str = "<texture>") -> Image.Image:
    """Decode encoded image bytes into an RGB raster."""
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise DecodeError(f"Cannot decode image from {path}.", path=path) from e
    if image.mode != 'RGB':
        image = image.convert('RGB')
    return image


def sniff_extension(data: bytes, path: str = "<texture>") -> str:
    """Detect the file extension of encoded image bytes."""
    try:
        with Image.open(BytesIO(data)) as image:
            fmt = image.format
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeError(f"Cannot detect image type of {path}.", path=path) from e
    if fmt not in FORMAT_EXTENSIONS:
        raise DecodeError(f"Unsupported image type {fmt} of {path}.", path=path)
    return FORMAT_EXTENSIONS[fmt]


def encode_jpeg(image: Image.Image, quality: int = 85) -> bytes:
    buf = BytesIO()
    image.convert('RGB').save(buf, format='JPEG', quality=quality)
    return buf.getvalue()


def write_bytes(path: Union[str, Path], data: bytes) -> None:
    path = Path(path)
    logger.info(f"Writing {path}")
    try:
        path.write_bytes(data)
    except OSError as e:
        raise OutputError(f"Cannot write {path}: {e}") from e
