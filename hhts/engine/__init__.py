"""HHTS segmentation engine."""

from hhts.engine.config import ColorChannel, ImpurityAggregate, SegmentationConfig, SplitPolicy
from hhts.engine.errors import (
    ConfigurationError,
    DegenerateRegionError,
    HHTSError,
    ImageDecodeError,
)
from hhts.engine.pipeline import SegmentationResult, SuperpixelPipeline, create_pipeline, segment

__all__ = [
    "ColorChannel",
    "ImpurityAggregate",
    "SegmentationConfig",
    "SplitPolicy",
    "ConfigurationError",
    "DegenerateRegionError",
    "HHTSError",
    "ImageDecodeError",
    "SegmentationResult",
    "SuperpixelPipeline",
    "create_pipeline",
    "segment",
]
