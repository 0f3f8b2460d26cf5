"""Region histogram evaluator: per-channel histograms and impurity score.

For every channel c of a region R:

    width_c  = #{bins b : count_c[b] > min_hist_width}
    score_c  = std_c(R) * width_c

The region impurity aggregates score_c over channels (max by default).
A region is pure when impurity <= split_threshold or when it is too
small to split. Stateless: nothing is cached across regions.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from hhts.engine.color_sampler import ChannelPlanes
from hhts.engine.config import ImpurityAggregate, SegmentationConfig
from hhts.engine.errors import DegenerateRegionError


@dataclass(frozen=True)
class RegionStats:
    """Histogram summary of one region."""

    size: int
    counts: NDArray[np.int64]     # (C, bins)
    mean: NDArray[np.float64]     # (C,)
    std: NDArray[np.float64]      # (C,)
    widths: NDArray[np.int64]     # (C,) occupied-bin count per channel
    scores: NDArray[np.float64]   # (C,) std * width
    impurity: float

    @property
    def worst_channel(self) -> int:
        """Channel with the highest score (lowest index on ties)."""
        return int(np.argmax(self.scores))


def channel_histograms(planes: ChannelPlanes, pixels: NDArray[np.intp]) -> NDArray[np.int64]:
    """(C, bins) bin counts of the given pixels, all channels in one bincount."""
    c, bins = planes.n_channels, planes.bins
    offsets = (np.arange(c, dtype=np.intp) * bins)[:, None]
    flat = (planes.bin_index[:, pixels] + offsets).ravel()
    return np.bincount(flat, minlength=c * bins).reshape(c, bins)


def aggregate_scores(scores: NDArray[np.float64], how: ImpurityAggregate) -> float:
    if how is ImpurityAggregate.SUM:
        return float(scores.sum())
    if how is ImpurityAggregate.MEAN:
        return float(scores.mean())
    return float(scores.max())


def evaluate_region(
    planes: ChannelPlanes,
    pixels: NDArray[np.intp],
    config: SegmentationConfig,
) -> RegionStats:
    """Compute the histogram summary and impurity of a region."""
    size = int(pixels.size)
    if size == 0:
        raise DegenerateRegionError("Cannot evaluate a region with zero pixels")

    counts = channel_histograms(planes, pixels)
    values = planes.values[:, pixels].astype(np.float64)
    mean = values.mean(axis=1)
    std = values.std(axis=1)
    widths = np.count_nonzero(counts > config.min_hist_width, axis=1).astype(np.int64)
    scores = std * widths

    return RegionStats(
        size=size,
        counts=counts,
        mean=mean,
        std=std,
        widths=widths,
        scores=scores,
        impurity=aggregate_scores(scores, config.aggregate),
    )


def is_pure(stats: RegionStats, config: SegmentationConfig) -> bool:
    """Non-splittable: homogeneous enough, or at/below the size floor."""
    if stats.size <= 1 or stats.size <= config.min_size:
        return True
    return stats.impurity <= config.split_threshold
