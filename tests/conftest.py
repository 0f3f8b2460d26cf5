"""Shared test fixtures: small synthetic RGB images."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

RED = (255, 0, 0)
BLUE = (0, 0, 255)


def solid(h: int, w: int, color: tuple[int, int, int]) -> np.ndarray:
    img = np.empty((h, w, 3), dtype=np.uint8)
    img[:, :] = color
    return img


def two_halves(h: int = 4, w: int = 4) -> np.ndarray:
    """Left half red, right half blue."""
    img = solid(h, w, RED)
    img[:, w // 2:] = BLUE
    return img


def textured(h: int = 24, w: int = 24, seed: int = 7) -> np.ndarray:
    """Four colored quadrants, a horizontal gradient and mild noise."""
    rng = np.random.default_rng(seed)
    img = np.zeros((h, w, 3), dtype=np.float64)
    img[: h // 2, : w // 2] = (200, 40, 40)
    img[: h // 2, w // 2:] = (40, 180, 60)
    img[h // 2:, : w // 2] = (50, 60, 200)
    img[h // 2:, w // 2:] = (230, 220, 90)
    img += np.linspace(0, 30, w)[None, :, None]
    img += rng.normal(0, 12, size=img.shape)
    return np.clip(img, 0, 255).astype(np.uint8)


def noisy_gradient(h: int = 48, w: int = 48, seed: int = 3) -> np.ndarray:
    """Diagonal gradient under heavy per-pixel noise."""
    rng = np.random.default_rng(seed)
    ramp = np.add.outer(np.linspace(0, 120, h), np.linspace(0, 120, w))
    img = ramp[:, :, None] + rng.normal(0, 40, size=(h, w, 3))
    return np.clip(img, 0, 255).astype(np.uint8)


def png_bytes(image: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format="PNG")
    return buf.getvalue()


SPLIT_IMAGE = two_halves()
UNIFORM_IMAGE = solid(8, 8, (120, 60, 30))
PIXEL_IMAGE = solid(1, 1, (10, 200, 30))
QUAD_IMAGE = np.array(
    [[(0, 0, 0), (255, 255, 255)], [(255, 0, 0), (0, 255, 0)]], dtype=np.uint8
)
TEXTURED_IMAGE = textured()
NOISY_IMAGE = noisy_gradient()


@pytest.fixture
def split_image() -> np.ndarray:
    return SPLIT_IMAGE.copy()


@pytest.fixture
def uniform_image() -> np.ndarray:
    return UNIFORM_IMAGE.copy()


@pytest.fixture
def textured_image() -> np.ndarray:
    return TEXTURED_IMAGE.copy()


@pytest.fixture
def image_dir(tmp_path):
    """Folder with two valid images, one corrupt image and one non-image."""
    folder = tmp_path / "images"
    folder.mkdir()
    Image.fromarray(TEXTURED_IMAGE).save(folder / "b_textured.png")
    Image.fromarray(two_halves(8, 8)).save(folder / "a_halves.PNG")
    (folder / "c_broken.png").write_bytes(b"not an image")
    (folder / "notes.txt").write_text("ignore me")
    return folder
