"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hhts.engine.config import ImpurityAggregate, SegmentationConfig, SplitPolicy


class SegmentRequest(BaseModel):
    image: str = Field(..., description="Base64-encoded PNG/JPEG/BMP/TIFF image")
    superpixels: list[int] = Field(..., description="Target superpixel counts")
    rgb: bool = True
    hsv: bool = True
    lab: bool = True
    blur: bool = False
    bins: int = 32
    split_threshold: float = 0.0
    min_hist_width: int = 0
    min_size: int = 64
    no_merge: bool = False
    aggregate: ImpurityAggregate = ImpurityAggregate.MAX
    split_policy: SplitPolicy = SplitPolicy.HISTOGRAM
    include_labels: bool = Field(
        default=False,
        description="Return the full label grids (row-major nested lists)",
    )

    def to_config(self) -> SegmentationConfig:
        return SegmentationConfig(
            rgb=self.rgb,
            hsv=self.hsv,
            lab=self.lab,
            blur=self.blur,
            bins=self.bins,
            split_threshold=self.split_threshold,
            min_hist_width=self.min_hist_width,
            aggregate=self.aggregate,
            min_size=self.min_size,
            split_policy=self.split_policy,
            no_merge=self.no_merge,
            superpixels=tuple(self.superpixels),
        )
