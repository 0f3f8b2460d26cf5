"""Output writers: CSV label grids, contour overlays, runtime log."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from PIL import Image
from skimage.segmentation import mark_boundaries

# Pure red contours
_CONTOUR_COLOR = (1.0, 0.0, 0.0)


def write_label_csv(path: str | Path, labels: NDArray[np.integer]) -> None:
    """Row-major integer grid, comma separated, one image row per line."""
    np.savetxt(path, labels, fmt="%d", delimiter=",")


def read_label_csv(path: str | Path) -> NDArray[np.int32]:
    return np.loadtxt(path, dtype=np.int32, delimiter=",", ndmin=2)


def draw_contours(image: NDArray[np.uint8], labels: NDArray[np.integer]) -> NDArray[np.uint8]:
    """Source image with superpixel boundaries painted over it."""
    marked = mark_boundaries(image, labels, color=_CONTOUR_COLOR, mode="thick")
    return np.clip(np.rint(marked * 255.0), 0, 255).astype(np.uint8)


def write_contours(path: str | Path, image: NDArray[np.uint8], labels: NDArray[np.integer]) -> None:
    Image.fromarray(draw_contours(image, labels)).save(path)


def append_runtime(path: str | Path, avg_cpu: float, avg_wall: float) -> None:
    """Append ``"<avg cpu> <avg wall>"`` (seconds) to the cumulative runtime log."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{avg_cpu} {avg_wall}\n")
