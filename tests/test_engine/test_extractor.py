"""Tests for multi-target label map extraction."""

import numpy as np

from hhts.engine.color_sampler import sample_channels
from hhts.engine.config import SegmentationConfig
from hhts.engine.extractor import extract_label_map, extract_label_maps
from hhts.engine.splitter import HierarchicalSplitter
from tests.conftest import QUAD_IMAGE


def _tree(image, targets):
    cfg = SegmentationConfig(superpixels=tuple(targets), min_size=1).validate()
    planes = sample_channels(image, cfg)
    return HierarchicalSplitter(cfg).build(planes)


def test_one_map_per_target_in_request_order(textured_image):
    targets = [9, 1, 4]
    tree = _tree(textured_image, targets)
    maps = extract_label_maps(tree, targets)
    assert len(maps) == 3
    assert [int(m.max()) + 1 for m in maps] == [9, 1, 4]
    for m in maps:
        assert m.shape == textured_image.shape[:2]
        assert m.dtype == np.int32


def test_labels_are_dense_and_cover_everything(textured_image):
    tree = _tree(textured_image, [6])
    labels = extract_label_map(tree, 6)
    assert labels.min() == 0
    np.testing.assert_array_equal(np.unique(labels), np.arange(6))


def test_target_above_leaf_count_is_not_an_error():
    tree = _tree(QUAD_IMAGE, [100])
    labels = extract_label_map(tree, 100)
    assert 1 < len(np.unique(labels)) <= 4


def test_coarse_map_is_union_of_fine_regions(textured_image):
    tree = _tree(textured_image, [3, 10])
    coarse, fine = extract_label_maps(tree, [3, 10])
    pairs = np.unique(np.stack([fine.ravel(), coarse.ravel()], axis=1), axis=0)
    # every fine region maps into exactly one coarse region
    assert len(pairs) == len(np.unique(fine))
