"""Tests for the region histogram evaluator."""

import numpy as np
import pytest

from hhts.engine.color_sampler import sample_channels
from hhts.engine.config import ImpurityAggregate, SegmentationConfig
from hhts.engine.errors import DegenerateRegionError
from hhts.engine.histogram import channel_histograms, evaluate_region, is_pure


def _rgb_cfg(**kwargs) -> SegmentationConfig:
    return SegmentationConfig(hsv=False, lab=False, superpixels=(2,), min_size=1, **kwargs)


def _all(planes):
    return np.arange(planes.n_pixels)


def test_uniform_region_has_zero_impurity(uniform_image):
    cfg = _rgb_cfg()
    planes = sample_channels(uniform_image, cfg)
    stats = evaluate_region(planes, _all(planes), cfg)
    assert stats.size == 64
    assert stats.impurity == 0.0
    assert stats.widths.tolist() == [1, 1, 1]
    assert stats.std.tolist() == [0.0, 0.0, 0.0]
    assert is_pure(stats, cfg)


def test_two_color_region_score(split_image):
    cfg = _rgb_cfg()
    planes = sample_channels(split_image, cfg)
    stats = evaluate_region(planes, _all(planes), cfg)
    # R and B: half 0, half 255 -> std 127.5, two occupied bins
    assert stats.widths.tolist() == [2, 1, 2]
    assert stats.scores[0] == pytest.approx(255.0)
    assert stats.scores[1] == 0.0
    assert stats.impurity == pytest.approx(255.0)
    assert stats.worst_channel == 0
    assert not is_pure(stats, cfg)


def test_histogram_counts(split_image):
    cfg = _rgb_cfg(bins=4)
    planes = sample_channels(split_image, cfg)
    counts = channel_histograms(planes, _all(planes))
    assert counts.shape == (3, 4)
    assert counts[0].tolist() == [8, 0, 0, 8]
    assert counts[1].tolist() == [16, 0, 0, 0]
    assert counts.sum(axis=1).tolist() == [16, 16, 16]


def test_min_hist_width_ignores_sparse_bins(split_image):
    cfg = _rgb_cfg(min_hist_width=8)
    planes = sample_channels(split_image, cfg)
    stats = evaluate_region(planes, _all(planes), cfg)
    # 8 pixels per bin is not strictly above the occupancy floor
    assert stats.widths.tolist() == [0, 1, 0]
    assert stats.impurity == 0.0
    assert is_pure(stats, cfg)


@pytest.mark.parametrize(
    "how, expected",
    [
        (ImpurityAggregate.MAX, 255.0),
        (ImpurityAggregate.SUM, 510.0),
        (ImpurityAggregate.MEAN, 170.0),
    ],
)
def test_aggregation_policies(split_image, how, expected):
    cfg = _rgb_cfg(aggregate=how)
    planes = sample_channels(split_image, cfg)
    assert evaluate_region(planes, _all(planes), cfg).impurity == pytest.approx(expected)


def test_threshold_makes_region_pure(split_image):
    cfg = _rgb_cfg(split_threshold=255.0)
    planes = sample_channels(split_image, cfg)
    assert is_pure(evaluate_region(planes, _all(planes), cfg), cfg)


def test_small_region_is_pure(split_image):
    cfg = SegmentationConfig(superpixels=(2,), min_size=16)
    planes = sample_channels(split_image, cfg)
    stats = evaluate_region(planes, _all(planes), cfg)
    assert stats.impurity > 0
    assert is_pure(stats, cfg)


def test_single_pixel_is_pure(split_image):
    cfg = _rgb_cfg()
    planes = sample_channels(split_image, cfg)
    assert is_pure(evaluate_region(planes, np.array([3]), cfg), cfg)


def test_empty_region_is_degenerate(split_image):
    cfg = _rgb_cfg()
    planes = sample_channels(split_image, cfg)
    with pytest.raises(DegenerateRegionError):
        evaluate_region(planes, np.array([], dtype=np.intp), cfg)
