"""Segmentation configuration: immutable per-run settings."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from hhts.engine.errors import ConfigurationError

# Planes are quantized to 8 bits, so more than 256 bins would leave
# permanently empty bins.
MAX_BINS = 256


class ColorChannel(enum.IntFlag):
    RGB = 1
    HSV = 2
    LAB = 4


class ImpurityAggregate(str, enum.Enum):
    """How per-channel scores collapse into one region impurity."""

    MAX = "max"
    SUM = "sum"
    MEAN = "mean"


class SplitPolicy(str, enum.Enum):
    """How an impure region is cut in two."""

    HISTOGRAM = "histogram"  # Otsu cut on the most impure channel
    MIDPOINT = "midpoint"    # spatial cut across the longer bbox axis


@dataclass(frozen=True)
class SegmentationConfig:
    """Controls channel sampling, splitting, extraction and merging.

    Defaults match the command-line tool.
    """

    # Channel families
    rgb: bool = True
    hsv: bool = True
    lab: bool = True
    blur: bool = False

    # Histogram evaluation
    bins: int = 32
    split_threshold: float = 0.0  # max stddev * histogram width of a pure region
    min_hist_width: int = 0       # a bin counts when its pixel count exceeds this
    aggregate: ImpurityAggregate = ImpurityAggregate.MAX

    # Splitting / merging
    min_size: int = 64
    split_policy: SplitPolicy = SplitPolicy.HISTOGRAM
    no_merge: bool = False

    # Requested superpixel counts, any order
    superpixels: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept lists from callers; keep the dataclass hashable.
        if not isinstance(self.superpixels, tuple):
            object.__setattr__(self, "superpixels", tuple(self.superpixels))

    @property
    def channel_mask(self) -> ColorChannel:
        mask = ColorChannel(0)
        if self.rgb:
            mask |= ColorChannel.RGB
        if self.hsv:
            mask |= ColorChannel.HSV
        if self.lab:
            mask |= ColorChannel.LAB
        return mask

    @property
    def max_target(self) -> int:
        return max(self.superpixels)

    def validate(self) -> SegmentationConfig:
        """Raise ConfigurationError on the first invalid setting, else return self."""
        if not self.channel_mask:
            raise ConfigurationError("At least one of rgb, hsv, lab must be selected")
        if self.bins <= 0:
            raise ConfigurationError(f"bins must be positive, got {self.bins}")
        if self.bins > MAX_BINS:
            raise ConfigurationError(f"bins must be at most {MAX_BINS}, got {self.bins}")
        if not self.superpixels:
            raise ConfigurationError("At least one target superpixel count is required")
        bad = [k for k in self.superpixels if k < 1]
        if bad:
            raise ConfigurationError(f"Superpixel counts must be >= 1, got {bad}")
        if self.split_threshold < 0:
            raise ConfigurationError(
                f"split_threshold must be non-negative, got {self.split_threshold}"
            )
        if self.min_hist_width < 0:
            raise ConfigurationError(
                f"min_hist_width must be non-negative, got {self.min_hist_width}"
            )
        if self.min_size < 1:
            raise ConfigurationError(f"min_size must be >= 1, got {self.min_size}")
        return self
