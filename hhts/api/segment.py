"""POST /api/segment: superpixels for one uploaded image."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging

from fastapi import APIRouter, HTTPException

from hhts.config import settings
from hhts.engine.errors import ConfigurationError, DegenerateRegionError, ImageDecodeError
from hhts.engine.pipeline import create_pipeline
from hhts.io.images import decode_image_bytes
from hhts.models.requests import SegmentRequest
from hhts.models.responses import SegmentResponse, TargetResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/segment", response_model=SegmentResponse)
async def segment(req: SegmentRequest) -> SegmentResponse:
    try:
        pipeline = create_pipeline(req.to_config())
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    try:
        data = base64.b64decode(req.image, validate=True)
        image = decode_image_bytes(data, source="upload")
    except (binascii.Error, ImageDecodeError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    h, w = image.shape[:2]
    if h * w > settings.hhts_max_pixels:
        raise HTTPException(
            status_code=413,
            detail=f"Image has {h * w} pixels, limit is {settings.hhts_max_pixels}",
        )

    # CPU-bound; keep the event loop free
    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(None, pipeline.run, image)
    except DegenerateRegionError as e:
        logger.error("Segmentation failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e)) from e

    return SegmentResponse(
        width=w,
        height=h,
        n_leaves=result.n_leaves,
        processing_time_ms=round(result.wall_time * 1000, 1),
        results=[
            TargetResult(
                target=target,
                n_labels=n_labels,
                repaired=repaired,
                labels=labels.tolist() if req.include_labels else None,
            )
            for target, n_labels, repaired, labels in zip(
                result.targets, result.label_counts, result.repaired, result.label_maps,
            )
        ],
    )
