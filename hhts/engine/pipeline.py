"""Per-image pipeline: sampling, split tree, extraction, merge, connectivity."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from hhts.engine.color_sampler import sample_channels
from hhts.engine.config import SegmentationConfig
from hhts.engine.connectivity import enforce_connectivity
from hhts.engine.extractor import extract_label_maps
from hhts.engine.merger import merge_small_regions
from hhts.engine.splitter import HierarchicalSplitter

logger = logging.getLogger(__name__)


@dataclass
class SegmentationResult:
    """Everything one image produces. Owned by the caller."""

    targets: list[int]
    label_maps: list[NDArray[np.int32]]
    repaired: list[int]            # labels split by connectivity repair, per map
    n_leaves: int                  # leaves of the shared split tree
    wall_time: float = 0.0         # seconds
    cpu_time: float = 0.0          # seconds, this process only
    stage_ms: dict[str, float] = field(default_factory=dict)

    @property
    def label_counts(self) -> list[int]:
        return [int(m.max()) + 1 for m in self.label_maps]


class SuperpixelPipeline:
    """Runs the full segmentation for one image at a time.

    Holds only the immutable config, so one instance may serve any number
    of images, sequentially or from several worker processes.
    """

    def __init__(self, config: SegmentationConfig) -> None:
        self.config = config.validate()
        self.splitter = HierarchicalSplitter(self.config)

    def run(self, image: NDArray) -> SegmentationResult:
        """Segment one H x W x 3 uint8 RGB image."""
        wall0 = time.perf_counter()
        cpu0 = time.process_time()
        stage_ms: dict[str, float] = {}

        t0 = time.perf_counter()
        planes = sample_channels(image, self.config)
        stage_ms["sample"] = (time.perf_counter() - t0) * 1000

        t0 = time.perf_counter()
        tree = self.splitter.build(planes)
        stage_ms["split"] = (time.perf_counter() - t0) * 1000

        targets = list(self.config.superpixels)
        t0 = time.perf_counter()
        label_maps = extract_label_maps(tree, targets)
        stage_ms["extract"] = (time.perf_counter() - t0) * 1000

        if not self.config.no_merge:
            t0 = time.perf_counter()
            for labels in label_maps:
                merge_small_regions(labels, planes, self.config.min_size)
            stage_ms["merge"] = (time.perf_counter() - t0) * 1000

        t0 = time.perf_counter()
        repaired = [enforce_connectivity(labels) for labels in label_maps]
        stage_ms["connectivity"] = (time.perf_counter() - t0) * 1000

        for stage, ms in stage_ms.items():
            logger.debug("  %s completed in %.1fms", stage, ms)

        result = SegmentationResult(
            targets=targets,
            label_maps=label_maps,
            repaired=repaired,
            n_leaves=tree.n_leaves,
            wall_time=time.perf_counter() - wall0,
            cpu_time=time.process_time() - cpu0,
            stage_ms=stage_ms,
        )
        logger.info(
            "Segmented %dx%d image: %d leaves, labels %s, repaired %s in %.0fms",
            planes.width, planes.height, tree.n_leaves,
            result.label_counts, repaired, result.wall_time * 1000,
        )
        return result


def create_pipeline(config: SegmentationConfig) -> SuperpixelPipeline:
    """Factory function for creating a pipeline instance."""
    return SuperpixelPipeline(config)


def segment(image: NDArray, superpixels: list[int] | tuple[int, ...], **options) -> SegmentationResult:
    """One-shot convenience: ``segment(img, [100, 400], min_size=32)``."""
    config = SegmentationConfig(superpixels=tuple(superpixels), **options)
    return create_pipeline(config).run(image)
