"""Command-line batch driver.

Usage:
    hhts images/ -s 200 400 1200 -o output/csv -v output/vis -w

Writes ``<csv>/<K>/<prefix><stem>.csv`` for every image and target K,
optional contour overlays under ``<vis>/<K>/``, and appends the average
CPU and wall time of the run to ``<csv>/<prefix>runtime.txt``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from hhts.config import settings
from hhts.engine.config import ImpurityAggregate, SegmentationConfig, SplitPolicy
from hhts.engine.errors import ConfigurationError
from hhts.io.batch import OutputLayout, run_batch
from hhts.io.images import find_images

logger = logging.getLogger("hhts.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hhts",
        description="Hierarchical histogram threshold superpixels for a folder of images.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("input", nargs="?", help="the folder to process")
    parser.add_argument("-i", "--input", dest="input_opt", help="the folder to process (alternative to the positional)")
    parser.add_argument("-s", "--superpixels", type=int, nargs="+", default=[], help="numbers of superpixels")
    parser.add_argument(
        "-t", "--split-threshold", "--splitThreshold", dest="split_threshold",
        type=float, default=0.0, help="min stddev * histWidth of superpixels",
    )
    parser.add_argument("--nrgb", action="store_true", help="do not use rgb channel")
    parser.add_argument("--nhsv", action="store_true", help="do not use hsv channel")
    parser.add_argument("--nlab", action="store_true", help="do not use lab channel")
    parser.add_argument("--blur", action="store_true", help="apply blur to channels")
    parser.add_argument("-b", "--bins", type=int, default=32, help="number of histogram bins")
    parser.add_argument(
        "-m", "--min-size", "--minSize", dest="min_size",
        type=int, default=64, help="minimum size of segments",
    )
    parser.add_argument(
        "--min-hist-width", "--histwmin", dest="min_hist_width", type=int, default=0,
        help="a histogram bin counts toward the width when it holds more pixels than this",
    )
    parser.add_argument("--nomerge", action="store_true", help="do not merge undersized segments")
    parser.add_argument(
        "--aggregate", choices=[a.value for a in ImpurityAggregate],
        default=ImpurityAggregate.MAX.value, help="how channel scores combine",
    )
    parser.add_argument(
        "--split-policy", choices=[p.value for p in SplitPolicy],
        default=SplitPolicy.HISTOGRAM.value, help="how impure regions are cut",
    )
    parser.add_argument("-o", "--csv", default=settings.hhts_output_dir, help="output directory for CSV label grids")
    parser.add_argument("-v", "--vis", default="", help="output directory for contour overlays")
    parser.add_argument("-x", "--prefix", default="", help="output file prefix")
    parser.add_argument("-j", "--workers", type=int, default=settings.hhts_workers, help="worker processes")
    parser.add_argument("-w", "--wordy", action="store_true", help="verbose/wordy/debug")
    return parser


def config_from_args(args: argparse.Namespace) -> SegmentationConfig:
    return SegmentationConfig(
        rgb=not args.nrgb,
        hsv=not args.nhsv,
        lab=not args.nlab,
        blur=args.blur,
        bins=args.bins,
        split_threshold=args.split_threshold,
        min_hist_width=args.min_hist_width,
        aggregate=ImpurityAggregate(args.aggregate),
        min_size=args.min_size,
        split_policy=SplitPolicy(args.split_policy),
        no_merge=args.nomerge,
        superpixels=tuple(args.superpixels),
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.wordy else getattr(logging, settings.hhts_log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    input_dir = args.input_opt or args.input
    if not input_dir or not Path(input_dir).is_dir():
        print("Image directory not found ...", file=sys.stderr)
        return 1

    try:
        config = config_from_args(args).validate()
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    layout = OutputLayout(
        csv_dir=Path(args.csv) if args.csv else None,
        vis_dir=Path(args.vis) if args.vis else None,
        prefix=args.prefix,
    )
    images = find_images(input_dir)
    logger.info("Found %d images in %s", len(images), input_dir)

    summary = run_batch(images, config, layout, workers=args.workers)
    if args.wordy:
        print(f"Average time: {summary.avg_cpu} - {summary.avg_wall}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
