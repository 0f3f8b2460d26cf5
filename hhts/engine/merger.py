"""Undersized-region merger.

Regions smaller than ``min_size`` are folded into the spatially adjacent
region with the closest per-channel mean vector (ties: larger neighbor,
then lower id). Smallest regions go first; passes repeat until nothing
below the floor has a neighbor left. The label map is rewritten in place
with dense ids.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray
from skimage.graph import RAG, rag_mean_color

from hhts.engine.color_sampler import ChannelPlanes
from hhts.engine.errors import DegenerateRegionError

logger = logging.getLogger(__name__)

_FAMILY = 3  # channels per color family


def region_graph(labels: NDArray[np.integer], planes: ChannelPlanes) -> RAG:
    """4-connected region adjacency graph with sizes and mean channel vectors.

    rag_mean_color works on three channels at a time, so it runs once per
    color family; each node's ``"mean"`` is the concatenation of the family
    means in plane order.
    """
    graph = None
    for start in range(0, planes.n_channels, _FAMILY):
        family = planes.values[start:start + _FAMILY].T.reshape(planes.height, planes.width, _FAMILY)
        rag = rag_mean_color(family.astype(np.float64), labels, connectivity=1)
        if graph is None:
            graph = rag
            for node in graph.nodes:
                graph.nodes[node]["mean"] = [rag.nodes[node]["mean color"]]
        else:
            for node in graph.nodes:
                graph.nodes[node]["mean"].append(rag.nodes[node]["mean color"])
    for node in graph.nodes:
        graph.nodes[node]["mean"] = np.concatenate(graph.nodes[node]["mean"])
    return graph


def region_adjacency(graph: RAG) -> dict[int, set[int]]:
    """Neighbor sets from a region graph, self-loops dropped."""
    return {
        int(node): {int(nb) for nb in graph.neighbors(node) if nb != node}
        for node in graph.nodes
    }


def _resolve_roots(parent: NDArray[np.intp]) -> NDArray[np.intp]:
    """Pointer jumping until every entry points at its root."""
    while True:
        nxt = parent[parent]
        if np.array_equal(nxt, parent):
            return parent
        parent = nxt


def merge_small_regions(
    labels: NDArray[np.integer],
    planes: ChannelPlanes,
    min_size: int,
) -> int:
    """Merge undersized regions in place. Returns the number of merges."""
    flat = labels.ravel()
    if flat.min() == flat.max():
        return 0

    graph = region_graph(labels, planes)
    n = int(flat.max()) + 1
    sizes = np.zeros(n, dtype=np.int64)
    sums = np.zeros((n, planes.n_channels), dtype=np.float64)
    for node, data in graph.nodes(data=True):
        sizes[int(node)] = data["pixel count"]
        sums[int(node)] = data["mean"] * data["pixel count"]
    adjacency = region_adjacency(graph)
    parent = np.arange(n, dtype=np.intp)

    merges = 0
    changed = True
    while changed:
        changed = False
        small = sorted((int(sizes[r]), r) for r in adjacency if sizes[r] < min_size)
        for _, rid in small:
            if rid not in adjacency or sizes[rid] >= min_size:
                continue
            neighbors = adjacency[rid]
            if not neighbors:
                continue

            mean = sums[rid] / sizes[rid]

            def rank(nb: int) -> tuple[float, int, int]:
                dist = float(np.linalg.norm(sums[nb] / sizes[nb] - mean))
                return (dist, -int(sizes[nb]), nb)

            target = min(neighbors, key=rank)
            if sizes[target] == 0:
                raise DegenerateRegionError(f"Merge target {target} has zero pixels")

            # Absorb rid into target
            parent[rid] = target
            sizes[target] += sizes[rid]
            sums[target] += sums[rid]
            sizes[rid] = 0
            sums[rid] = 0.0
            for nb in adjacency.pop(rid):
                adjacency[nb].discard(rid)
                if nb != target:
                    adjacency[nb].add(target)
                    adjacency[target].add(nb)

            merges += 1
            changed = True

    if merges:
        roots = _resolve_roots(parent)[flat]
        _, dense = np.unique(roots, return_inverse=True)
        labels[...] = dense.reshape(labels.shape)
    logger.debug("Merged %d regions below %d px (%d remain)", merges, min_size, len(adjacency))
    return merges
