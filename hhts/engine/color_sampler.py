"""Color sampling: decoded RGB image to 8-bit channel planes.

Every family is rescaled to the 0-255 range so a single histogram layout
serves RGB, HSV and Lab alike:

- RGB: unchanged
- HSV: skimage gives [0, 1] per channel -> x 255
- Lab: L in [0, 100] -> x 2.55, a/b in [-128, 127] -> + 128
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from skimage.color import rgb2hsv, rgb2lab
from skimage.filters import gaussian

from hhts.engine.config import ColorChannel, SegmentationConfig
from hhts.engine.errors import ImageDecodeError

logger = logging.getLogger(__name__)

# Gaussian smoothing of the source pixels when blur is enabled.
_BLUR_SIGMA = 1.0

_LAB_L_SCALE = 255.0 / 100.0
_LAB_AB_OFFSET = 128.0

_FAMILY_NAMES = {
    ColorChannel.RGB: ("R", "G", "B"),
    ColorChannel.HSV: ("H", "S", "V"),
    ColorChannel.LAB: ("L", "a", "b"),
}


@dataclass(frozen=True)
class ChannelPlanes:
    """Read-only channel planes shared by every region of one image.

    ``values`` is (C, H*W) uint8, pixels in row-major order so a region
    is just an array of flat indices. ``bin_index`` holds each value's
    histogram bin, precomputed once for the configured bin count.
    """

    names: tuple[str, ...]
    height: int
    width: int
    bins: int
    values: NDArray[np.uint8]
    bin_index: NDArray[np.intp]

    @property
    def n_channels(self) -> int:
        return len(self.names)

    @property
    def n_pixels(self) -> int:
        return self.height * self.width

    @property
    def shape(self) -> tuple[int, int]:
        return (self.height, self.width)

    def plane(self, index: int) -> NDArray[np.uint8]:
        """One channel as an H x W view."""
        return self.values[index].reshape(self.height, self.width)


def _to_uint8(plane: NDArray[np.float64]) -> NDArray[np.uint8]:
    return np.clip(np.rint(plane), 0, 255).astype(np.uint8)


def _rgb_float(image: NDArray) -> NDArray[np.float64]:
    """RGB scaled to [0, 1]."""
    return image.astype(np.float64) / 255.0


def _validate_image(image: NDArray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ImageDecodeError("<array>", f"expected H x W x 3 array, got shape {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ImageDecodeError("<array>", "image has zero width or height")


def sample_channels(image: NDArray, config: SegmentationConfig) -> ChannelPlanes:
    """Convert an H x W x 3 uint8 RGB image into the configured channel planes.

    Families are concatenated in the fixed order RGB, HSV, Lab.
    """
    _validate_image(image)
    h, w = image.shape[:2]

    rgb = _rgb_float(image)
    if config.blur:
        rgb = gaussian(rgb, sigma=_BLUR_SIGMA, channel_axis=-1, preserve_range=True)

    planes: list[NDArray[np.uint8]] = []
    names: list[str] = []
    mask = config.channel_mask

    if mask & ColorChannel.RGB:
        scaled = rgb * 255.0
        planes.extend(_to_uint8(scaled[:, :, i]) for i in range(3))
        names.extend(_FAMILY_NAMES[ColorChannel.RGB])

    if mask & ColorChannel.HSV:
        hsv = rgb2hsv(rgb) * 255.0
        planes.extend(_to_uint8(hsv[:, :, i]) for i in range(3))
        names.extend(_FAMILY_NAMES[ColorChannel.HSV])

    if mask & ColorChannel.LAB:
        lab = rgb2lab(rgb)
        planes.append(_to_uint8(lab[:, :, 0] * _LAB_L_SCALE))
        planes.append(_to_uint8(lab[:, :, 1] + _LAB_AB_OFFSET))
        planes.append(_to_uint8(lab[:, :, 2] + _LAB_AB_OFFSET))
        names.extend(_FAMILY_NAMES[ColorChannel.LAB])

    values = np.stack([p.reshape(-1) for p in planes])
    # Equal-width bins over [0, 256): value * bins // 256
    bin_index = (values.astype(np.intp) * config.bins) >> 8
    values.flags.writeable = False
    bin_index.flags.writeable = False

    logger.debug("Sampled %d planes (%s) for %dx%d image", len(names), "".join(names), w, h)
    return ChannelPlanes(
        names=tuple(names),
        height=h,
        width=w,
        bins=config.bins,
        values=values,
        bin_index=bin_index,
    )
