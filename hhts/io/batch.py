"""Batch runner: segments a list of images and writes their outputs.

Images share no mutable state, so ``workers > 1`` fans them out over a
process pool. Outputs and aggregate timing are handled here, in the
calling process, in input order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from hhts.engine.config import SegmentationConfig
from hhts.engine.errors import DegenerateRegionError, ImageDecodeError
from hhts.engine.pipeline import SegmentationResult, SuperpixelPipeline
from hhts.io.images import load_image
from hhts.io.writers import append_runtime, write_contours, write_label_csv

logger = logging.getLogger(__name__)


@dataclass
class ImageOutcome:
    path: Path
    result: SegmentationResult | None = None
    error: str = ""
    skipped: bool = False  # undecodable input, as opposed to an engine fault


@dataclass
class BatchSummary:
    """Running totals folded from per-image outcomes."""

    processed: int = 0
    total_cpu: float = 0.0
    total_wall: float = 0.0
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def avg_cpu(self) -> float:
        return self.total_cpu / self.processed if self.processed else 0.0

    @property
    def avg_wall(self) -> float:
        return self.total_wall / self.processed if self.processed else 0.0

    def add(self, outcome: ImageOutcome) -> None:
        if outcome.result is not None:
            self.processed += 1
            self.total_cpu += outcome.result.cpu_time
            self.total_wall += outcome.result.wall_time
        elif outcome.skipped:
            self.skipped.append(str(outcome.path))
        else:
            self.failed[str(outcome.path)] = outcome.error


@dataclass(frozen=True)
class OutputLayout:
    """Where per-target CSVs and overlays go: ``<dir>/<K>/<prefix><stem>.<ext>``."""

    csv_dir: Path | None = None
    vis_dir: Path | None = None
    prefix: str = ""

    def prepare(self, targets: Sequence[int]) -> None:
        for base in (self.csv_dir, self.vis_dir):
            if base is None:
                continue
            for k in targets:
                (base / str(k)).mkdir(parents=True, exist_ok=True)

    def csv_path(self, target: int, image_path: Path) -> Path:
        return self.csv_dir / str(target) / f"{self.prefix}{image_path.stem}.csv"

    def vis_path(self, target: int, image_path: Path) -> Path:
        return self.vis_dir / str(target) / f"{self.prefix}{image_path.stem}.png"

    @property
    def runtime_path(self) -> Path | None:
        if self.csv_dir is None:
            return None
        return self.csv_dir / f"{self.prefix}runtime.txt"


def process_image(path: Path, config: SegmentationConfig) -> ImageOutcome:
    """Load and segment one image; per-image errors become the outcome."""
    try:
        image = load_image(path)
    except ImageDecodeError as e:
        return ImageOutcome(path=path, error=str(e), skipped=True)
    try:
        result = SuperpixelPipeline(config).run(image)
    except DegenerateRegionError as e:
        return ImageOutcome(path=path, error=str(e))
    return ImageOutcome(path=path, result=result)


def _outcomes(paths: Sequence[Path], config: SegmentationConfig, workers: int) -> Iterator[ImageOutcome]:
    if workers <= 1:
        for path in paths:
            yield process_image(path, config)
        return
    with ProcessPoolExecutor(max_workers=workers) as pool:
        yield from pool.map(process_image, paths, [config] * len(paths))


def _write_outputs(outcome: ImageOutcome, layout: OutputLayout) -> None:
    result = outcome.result
    image = load_image(outcome.path) if layout.vis_dir is not None else None
    for target, labels in zip(result.targets, result.label_maps):
        if layout.csv_dir is not None:
            write_label_csv(layout.csv_path(target, outcome.path), labels)
        if image is not None:
            write_contours(layout.vis_path(target, outcome.path), image, labels)


def run_batch(
    paths: Sequence[str | Path],
    config: SegmentationConfig,
    layout: OutputLayout | None = None,
    workers: int = 1,
) -> BatchSummary:
    """Segment every image, write outputs, return aggregate statistics.

    The config is validated before the first image; a ConfigurationError
    therefore aborts the whole batch.
    """
    config.validate()
    layout = layout or OutputLayout()
    layout.prepare(config.superpixels)
    paths = [Path(p) for p in paths]

    summary = BatchSummary()
    for i, outcome in enumerate(_outcomes(paths, config, workers), start=1):
        summary.add(outcome)
        if outcome.result is None:
            logger.warning("%d/%d: skipping %s: %s", i, len(paths), outcome.path.name, outcome.error)
            continue
        _write_outputs(outcome, layout)
        logger.debug(
            "%d/%d: %s -> %s superpixels (%d not connected; %.3fs / avg %.3fs)",
            i, len(paths), outcome.path.name, outcome.result.label_counts,
            sum(outcome.result.repaired), outcome.result.cpu_time, summary.avg_cpu,
        )

    if summary.processed and layout.runtime_path is not None:
        append_runtime(layout.runtime_path, summary.avg_cpu, summary.avg_wall)

    logger.info(
        "Batch complete: %d processed, %d skipped, %d failed (avg %.3fs cpu / %.3fs wall)",
        summary.processed, len(summary.skipped), len(summary.failed),
        summary.avg_cpu, summary.avg_wall,
    )
    return summary
