"""Image discovery and decoding."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from hhts.engine.errors import ImageDecodeError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".ppm", ".pgm"})


def find_images(directory: str | Path) -> list[Path]:
    """Image files directly inside ``directory``, sorted by path."""
    root = Path(directory)
    return sorted(
        p for p in root.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def _to_rgb_array(img: Image.Image, source: str) -> NDArray[np.uint8]:
    if img.width == 0 or img.height == 0:
        raise ImageDecodeError(source, "image has zero width or height")
    return np.asarray(img.convert("RGB"), dtype=np.uint8).copy()


def load_image(path: str | Path) -> NDArray[np.uint8]:
    """Decode a file into an H x W x 3 uint8 RGB array."""
    source = str(path)
    try:
        with Image.open(path) as img:
            return _to_rgb_array(img, source)
    except ImageDecodeError:
        raise
    except (OSError, UnidentifiedImageError, ValueError) as e:
        raise ImageDecodeError(source, str(e)) from e


def decode_image_bytes(data: bytes, source: str = "<bytes>") -> NDArray[np.uint8]:
    """Decode an in-memory PNG/JPEG/... buffer into an RGB array."""
    if not data:
        raise ImageDecodeError(source, "empty buffer")
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _to_rgb_array(img, source)
    except ImageDecodeError:
        raise
    except (OSError, UnidentifiedImageError, ValueError) as e:
        raise ImageDecodeError(source, str(e)) from e
