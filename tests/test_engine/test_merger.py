"""Tests for the undersized-region merger."""

import numpy as np

from hhts.engine.color_sampler import sample_channels
from hhts.engine.config import SegmentationConfig
from hhts.engine.extractor import extract_label_map
from hhts.engine.merger import merge_small_regions, region_adjacency, region_graph
from hhts.engine.splitter import HierarchicalSplitter
from tests.conftest import BLUE, RED, two_halves


def _rgb_planes(image):
    cfg = SegmentationConfig(hsv=False, lab=False, superpixels=(2,))
    return sample_channels(image, cfg)


def test_region_graph_adjacency_and_means():
    image = np.zeros((3, 3, 3), dtype=np.uint8)
    image[:, 2] = BLUE
    image[1:, :2] = RED
    labels = np.array([[0, 0, 1], [2, 2, 1], [2, 2, 1]], dtype=np.int32)

    graph = region_graph(labels, _rgb_planes(image))
    assert region_adjacency(graph) == {0: {1, 2}, 1: {0, 2}, 2: {0, 1}}
    assert graph.nodes[1]["pixel count"] == 3
    np.testing.assert_allclose(graph.nodes[1]["mean"], BLUE)
    np.testing.assert_allclose(graph.nodes[2]["mean"], RED)
    np.testing.assert_allclose(graph.nodes[0]["mean"], (0, 0, 0))


def test_region_graph_concatenates_color_families(split_image):
    cfg = SegmentationConfig(superpixels=(2,))
    planes = sample_channels(split_image, cfg)
    labels = np.zeros((4, 4), dtype=np.int32)
    labels[:, 2:] = 1

    graph = region_graph(labels, planes)
    assert graph.nodes[0]["mean"].shape == (planes.n_channels,)
    np.testing.assert_allclose(graph.nodes[0]["mean"], planes.values[:, 0])
    np.testing.assert_allclose(graph.nodes[1]["mean"], planes.values[:, 3])


def test_small_region_joins_most_similar_neighbor():
    image = np.zeros((6, 6, 3), dtype=np.uint8)
    image[:, :3] = RED
    image[:, 3:] = BLUE
    labels = np.zeros((6, 6), dtype=np.int32)
    labels[:, 3:] = 1
    labels[2, 2] = 2  # red pixel touching both halves

    merges = merge_small_regions(labels, _rgb_planes(image), min_size=4)
    assert merges == 1
    assert labels[2, 2] == labels[0, 0]
    assert np.unique(labels).tolist() == [0, 1]


def test_tie_prefers_larger_neighbor():
    image = two_halves(4, 4)
    image[1, 1] = (127, 0, 127)  # equidistant from red and blue in RGB
    labels = np.zeros((4, 4), dtype=np.int32)
    labels[:, 2:] = 1
    labels[1, 1] = 2  # red region now has 7 px, blue 8 px

    merge_small_regions(labels, _rgb_planes(image), min_size=2)
    assert labels[1, 1] == labels[0, 3]
    assert np.count_nonzero(labels == labels[0, 3]) == 9


def test_single_region_is_never_merged_away():
    labels = np.zeros((3, 3), dtype=np.int32)
    image = np.zeros((3, 3, 3), dtype=np.uint8)
    assert merge_small_regions(labels, _rgb_planes(image), min_size=100) == 0
    assert (labels == 0).all()


def test_no_region_left_below_min_size(textured_image):
    cfg = SegmentationConfig(superpixels=(60,), min_size=1).validate()
    planes = sample_channels(textured_image, cfg)
    tree = HierarchicalSplitter(cfg).build(planes)
    labels = extract_label_map(tree, 60)

    merge_small_regions(labels, planes, min_size=12)
    sizes = np.bincount(labels.ravel())
    assert len(sizes) == 1 or sizes.min() >= 12
    np.testing.assert_array_equal(np.unique(labels), np.arange(len(sizes)))


def test_merge_cascades_through_chain():
    # 1x4 strip of single-pixel regions, min_size 2: everything coalesces
    image = np.array([[(0, 0, 0), (10, 10, 10), (20, 20, 20), (250, 250, 250)]], dtype=np.uint8)
    labels = np.array([[0, 1, 2, 3]], dtype=np.int32)
    merge_small_regions(labels, _rgb_planes(image), min_size=2)
    sizes = np.bincount(labels.ravel())
    assert sizes.min() >= 2


def test_full_tie_prefers_lower_id():
    # 1x5 strip: red (id 1) | red | purple (id 2) | blue (id 0) | blue
    image = np.array([[RED, RED, (127, 0, 127), BLUE, BLUE]], dtype=np.uint8)
    labels = np.array([[1, 1, 2, 0, 0]], dtype=np.int32)

    assert merge_small_regions(labels, _rgb_planes(image), min_size=2) == 1
    assert labels[0, 2] == labels[0, 4]
    assert labels.tolist() == [[1, 1, 0, 0, 0]]
