"""Hierarchical histogram threshold superpixel segmentation."""

from hhts.engine import (
    ConfigurationError,
    DegenerateRegionError,
    ImageDecodeError,
    SegmentationConfig,
    SegmentationResult,
    SuperpixelPipeline,
    create_pipeline,
    segment,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DegenerateRegionError",
    "ImageDecodeError",
    "SegmentationConfig",
    "SegmentationResult",
    "SuperpixelPipeline",
    "create_pipeline",
    "segment",
]
