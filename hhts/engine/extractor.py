"""Multi-target extractor: one label map per requested superpixel count.

All maps are cut from the same split tree, so before merging a coarser
map is always a union of regions of any finer map.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from hhts.engine.splitter import SplitTree

logger = logging.getLogger(__name__)


def extract_label_map(tree: SplitTree, target: int) -> NDArray[np.int32]:
    """Label map for the tree frontier at ``target`` leaves.

    Targets above the number of leaves ever produced yield the full leaf
    set; superpixel counts are targets, not guarantees.
    """
    frontier = tree.frontier(target)
    flat = np.full(tree.height * tree.width, -1, dtype=np.int32)
    for label, node in enumerate(frontier):
        flat[tree.pixels[node]] = label

    if len(frontier) < target:
        logger.debug("Target %d: only %d regions available", target, len(frontier))
    return flat.reshape(tree.height, tree.width)


def extract_label_maps(tree: SplitTree, targets: Sequence[int]) -> list[NDArray[np.int32]]:
    """One fresh label map per target, in request order."""
    return [extract_label_map(tree, k) for k in targets]
