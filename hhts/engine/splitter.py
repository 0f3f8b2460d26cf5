"""Hierarchical splitter: builds the shared split tree of one image.

The tree is an arena: node i lives at index i of parallel lists, children
are referenced by index, and nodes are appended in creation order. Each
node records

    created_at  leaf count right after the node came into existence
    split_at    leaf count right after the node was split (_LEAF if never)

Splits are binary, so the leaf count grows by exactly one per split and
"the tree when there were K leaves" is the set of nodes with
created_at <= K < split_at. That makes the extractor a linear scan.

Both children of a split are 4-connected, so every frontier is already a
set of connected regions.

Worklist order: highest impurity first, then larger region, then lower
node index. Splitting stops as soon as the leaf count reaches the largest
requested target or every remaining region is pure.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray
from skimage.filters import threshold_otsu
from skimage.graph import RAG
from skimage.measure import label as label_components

from hhts.engine.color_sampler import ChannelPlanes
from hhts.engine.config import SegmentationConfig, SplitPolicy
from hhts.engine.errors import DegenerateRegionError
from hhts.engine.histogram import RegionStats, evaluate_region, is_pure

logger = logging.getLogger(__name__)

_LEAF = -1  # sentinel for "no child" / "never split"


@dataclass
class SplitTree:
    """Arena of split nodes. Read-only once built."""

    height: int
    width: int
    pixels: list[NDArray[np.intp]] = field(default_factory=list)
    parent: list[int] = field(default_factory=list)
    left: list[int] = field(default_factory=list)
    right: list[int] = field(default_factory=list)
    created_at: list[int] = field(default_factory=list)
    split_at: list[int] = field(default_factory=list)
    n_leaves: int = 1

    def add_node(self, pixels: NDArray[np.intp], parent: int, created_at: int) -> int:
        self.pixels.append(pixels)
        self.parent.append(parent)
        self.left.append(_LEAF)
        self.right.append(_LEAF)
        self.created_at.append(created_at)
        self.split_at.append(_LEAF)
        return len(self.pixels) - 1

    @property
    def n_nodes(self) -> int:
        return len(self.pixels)

    def is_leaf(self, node: int) -> bool:
        return self.split_at[node] == _LEAF

    def children(self, node: int) -> tuple[int, int] | None:
        if self.is_leaf(node):
            return None
        return (self.left[node], self.right[node])

    def leaves(self) -> list[int]:
        return [i for i in range(self.n_nodes) if self.is_leaf(i)]

    def frontier(self, k: int) -> list[int]:
        """Nodes that were leaves when the leaf count was min(k, n_leaves).

        Returned in creation order; the list always partitions the image.
        """
        k = min(max(k, 1), self.n_leaves)
        return [
            i for i in range(self.n_nodes)
            if self.created_at[i] <= k and (self.split_at[i] == _LEAF or self.split_at[i] > k)
        ]


# ---------------------------------------------------------------------------
# Partition rules
# ---------------------------------------------------------------------------

def _midpoint_partition(pixels: NDArray[np.intp], width: int) -> NDArray[np.bool_]:
    """Cut across the longer side of the bounding box; ties cut columns."""
    rows, cols = np.divmod(pixels, width)
    r0, r1 = int(rows.min()), int(rows.max())
    c0, c1 = int(cols.min()), int(cols.max())
    if c1 - c0 >= r1 - r0:
        return cols <= (c0 + c1) // 2
    return rows <= (r0 + r1) // 2


def _histogram_partition(
    planes: ChannelPlanes, pixels: NDArray[np.intp], stats: RegionStats,
) -> NDArray[np.bool_] | None:
    """Threshold the most impure channel at the Otsu cut of its histogram.

    Falls back to the channel mean when all values share one bin.
    Returns None when neither cut separates the region.
    """
    channel = stats.worst_channel
    counts = stats.counts[channel]
    occupied = np.flatnonzero(counts)

    if occupied.size >= 2:
        # Trim to the occupied span so Otsu never divides by an empty class.
        lo, hi = int(occupied[0]), int(occupied[-1])
        centers = np.arange(lo, hi + 1)
        cut = threshold_otsu(hist=(counts[lo:hi + 1], centers))
        low = planes.bin_index[channel, pixels] <= cut
    else:
        low = planes.values[channel, pixels] <= stats.mean[channel]

    n_low = int(np.count_nonzero(low))
    if 0 < n_low < pixels.size:
        return low
    return None


def _fold_components(components: NDArray[np.intp]) -> NDArray[np.intp]:
    """Owner of each component id once the components are folded to two.

    Smallest component first (lowest id on ties), each one absorbed by its
    largest neighbor (lowest id on ties). Id 0 is the area outside the
    region and never takes part.
    """
    n = int(components.max())
    rag = RAG(components, connectivity=1)
    neighbors = {
        int(c): {int(nb) for nb in rag.neighbors(c) if nb != c and nb != 0}
        for c in list(rag.nodes) if c != 0
    }
    sizes = np.bincount(components.ravel(), minlength=n + 1)
    owner = np.arange(n + 1)

    heap = [(int(sizes[c]), c) for c in neighbors]
    heapq.heapify(heap)
    while len(neighbors) > 2:
        size, comp = heapq.heappop(heap)
        if comp not in neighbors or size != sizes[comp]:
            continue  # stale entry
        if not neighbors[comp]:
            raise DegenerateRegionError(f"Component {comp} of a split region has no neighbor")

        target = max(neighbors[comp], key=lambda nb: (sizes[nb], -nb))
        sizes[target] += sizes[comp]
        for nb in neighbors.pop(comp):
            neighbors[nb].discard(comp)
            if nb != target:
                neighbors[nb].add(target)
                neighbors[target].add(nb)
        owner[owner == comp] = target
        heapq.heappush(heap, (int(sizes[target]), target))
    return owner


def _connected_halves(
    pixels: NDArray[np.intp], low: NDArray[np.bool_], width: int,
) -> NDArray[np.bool_]:
    """Reshape a two-sided cut of a connected region into two connected pieces.

    Each side is split into its 4-connected components, which are folded
    until two remain. The piece holding the region's first pixel is True.
    """
    rows, cols = np.divmod(pixels, width)
    r0, c0 = int(rows.min()), int(cols.min())
    grid = np.zeros((int(rows.max()) - r0 + 1, int(cols.max()) - c0 + 1), dtype=np.int8)
    grid[rows - r0, cols - c0] = np.where(low, 1, 2)

    components = label_components(grid, background=0, connectivity=1)
    piece = components[rows - r0, cols - c0]
    if int(components.max()) > 2:
        piece = _fold_components(components)[piece]
    return piece == piece[0]


class HierarchicalSplitter:
    """Grows a SplitTree for one image under a SegmentationConfig."""

    def __init__(self, config: SegmentationConfig) -> None:
        self.config = config

    def _partition(
        self, planes: ChannelPlanes, pixels: NDArray[np.intp], stats: RegionStats,
    ) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        low = None
        if self.config.split_policy is SplitPolicy.HISTOGRAM:
            low = _histogram_partition(planes, pixels, stats)
        if low is None:
            low = _midpoint_partition(pixels, planes.width)

        if low.all() or not low.any():
            raise DegenerateRegionError(
                f"Partition of a {pixels.size}-pixel region produced an empty side"
            )
        low = _connected_halves(pixels, low, planes.width)
        return pixels[low], pixels[~low]

    def build(self, planes: ChannelPlanes, max_leaves: int | None = None) -> SplitTree:
        """Split until max_leaves leaves exist or every region is pure."""
        if max_leaves is None:
            max_leaves = self.config.max_target

        tree = SplitTree(height=planes.height, width=planes.width)
        heap: list[tuple[float, int, int]] = []
        pending: dict[int, RegionStats] = {}

        def offer(pixels: NDArray[np.intp], parent: int, created_at: int) -> None:
            stats = evaluate_region(planes, pixels, self.config)
            node = tree.add_node(pixels, parent, created_at)
            if not is_pure(stats, self.config):
                pending[node] = stats
                heapq.heappush(heap, (-stats.impurity, -stats.size, node))

        offer(np.arange(planes.n_pixels, dtype=np.intp), _LEAF, 1)
        leaf_count = 1

        while heap and leaf_count < max_leaves:
            _, _, node = heapq.heappop(heap)
            stats = pending.pop(node)
            first, second = self._partition(planes, tree.pixels[node], stats)

            leaf_count += 1
            tree.split_at[node] = leaf_count
            tree.left[node] = tree.n_nodes
            offer(first, node, leaf_count)
            tree.right[node] = tree.n_nodes
            offer(second, node, leaf_count)

        tree.n_leaves = leaf_count
        logger.debug(
            "Split tree: %d nodes, %d leaves (%d candidates left, target %d)",
            tree.n_nodes, leaf_count, len(heap), max_leaves,
        )
        return tree
