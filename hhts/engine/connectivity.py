"""Connectivity enforcer: one 4-connected blob per label.

Labels whose pixels fall into several 4-connected components keep their
largest component (lowest component index on ties, i.e. first in raster
order); every other component gets a fresh id above the current maximum.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from skimage.measure import label as label_components

logger = logging.getLogger(__name__)

# skimage: connectivity=1 -> 4-neighborhood in 2D
_FOUR_CONNECTED = 1


def count_components(labels: NDArray[np.integer]) -> int:
    """Number of 4-connected same-label components in the map."""
    # background=-1 never occurs, so every pixel is labeled
    return int(label_components(labels, background=-1, connectivity=_FOUR_CONNECTED).max())


def enforce_connectivity(labels: NDArray[np.integer]) -> int:
    """Relabel disconnected fragments in place.

    Returns how many labels needed repair (diagnostic only).
    """
    components = label_components(labels, background=-1, connectivity=_FOUR_CONNECTED)
    n_comp = int(components.max())
    flat_comp = components.ravel()
    flat_labels = labels.ravel()

    comp_size = np.bincount(flat_comp, minlength=n_comp + 1)[1:]
    owner = np.empty(n_comp + 1, dtype=np.int64)
    owner[flat_comp] = flat_labels
    owner = owner[1:]
    comp_index = np.arange(n_comp)

    # Sort by owner label, then size descending, then component index.
    order = np.lexsort((comp_index, -comp_size, owner))
    sorted_owner = owner[order]
    keeps = np.ones(n_comp, dtype=bool)
    keeps[1:] = sorted_owner[1:] != sorted_owner[:-1]

    fragments = order[~keeps]
    if fragments.size == 0:
        return 0

    repaired = int(np.unique(sorted_owner[~keeps]).size)
    new_ids = np.concatenate([[0], owner])
    new_ids[fragments + 1] = int(flat_labels.max()) + 1 + np.arange(fragments.size)
    labels[...] = new_ids[components]

    logger.debug("Connectivity: %d labels split into %d extra fragments", repaired, fragments.size)
    return repaired
