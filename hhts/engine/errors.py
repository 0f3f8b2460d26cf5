"""Error taxonomy for the segmentation engine.

ConfigurationError aborts a run before any image is touched.
ImageDecodeError and DegenerateRegionError are per-image: the batch
runner logs them, skips the image and carries on.
"""

from __future__ import annotations


class HHTSError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(HHTSError, ValueError):
    """Invalid SegmentationConfig (no channels, bad bin count, no targets...)."""


class ImageDecodeError(HHTSError):
    """A file or buffer could not be decoded into a non-empty RGB image."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Cannot decode image {source}: {reason}")
        self.source = source
        self.reason = reason


class DegenerateRegionError(HHTSError):
    """A region collapsed to zero pixels while splitting or merging."""
