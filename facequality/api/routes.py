"""Quality analysis API routes.

This module provides the API endpoints the capture flow calls to grade a
captured frame before it is uploaded, and a batch variant used for
re-grading stored images.
"""

import logging
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from typing import Dict, Optional
from ..core.quality import QualityAnalyzer
from ..core.stats import quality_distribution
from ..models.types import (
    Box,
    QualityMetrics,
    QualityRequest,
    BatchQualityRequest,
    QualityResponse,
    BatchQualityResponse,
    HealthResponse,
    ErrorResponse,
    PixelBuffer
)
from ..utils.display import quality_color, quality_icon, quality_summary
from ..utils.image import ImageProcessingError, load_pixel_buffer

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

def build_response(metrics: QualityMetrics) -> QualityResponse:
    """Bundle metrics with their storage record and display strings."""
    return {
        'metrics': metrics.to_dict(),
        'record': metrics.to_record(),
        'summary': quality_summary(metrics),
        'color': quality_color(metrics.overall),
        'icon': quality_icon(metrics.overall)
    }

async def resolve_face_box(request: Request, image: PixelBuffer,
                           face_box: Optional[Box], detect_face: bool) -> Optional[Box]:
    """Use the caller's box, or ask the detector for one when requested.

    Detector failures are logged and the whole image is analyzed instead.
    """
    if face_box is not None or not detect_face:
        return face_box
    try:
        detector = await request.app.state.detector.get()
        detected = await run_in_threadpool(detector.detect, image)
    except Exception as e:
        logger.warning(f"Face detection unavailable, analyzing whole image: {str(e)}")
        return None
    if detected is None:
        logger.info("No face detected, analyzing whole image")
    return detected

async def grade(request: Request, item: QualityRequest) -> QualityMetrics:
    """Decode, locate and grade one image. Never raises for bad images."""
    analyzer: QualityAnalyzer = request.app.state.analyzer
    try:
        image = await run_in_threadpool(load_pixel_buffer, item['image'])
    except ImageProcessingError as e:
        logger.warning(f"Image decode failed: {str(e)}")
        return QualityMetrics.fallback()

    face_box = await resolve_face_box(
        request, image, item.get('faceBox'), item.get('detectFace', False)
    )
    return await run_in_threadpool(analyzer.analyze_payload, image, face_box)

@router.post("/analyze-quality", response_model=QualityResponse)
async def analyze_quality(request_data: QualityRequest, request: Request) -> Dict:
    """Grade a captured face image.

    Args:
        request_data: Dictionary containing the image and optional face region.
            - image: Base64 string (optionally a data URL) of the capture
            - faceBox: Face region {x, y, width, height}, optional
            - detectFace: Locate the face when no faceBox is given

    Returns:
        Dictionary containing:
            - metrics: Nested face size / sharpness / lighting metrics
            - record: Flat record for the metadata store
            - summary: One-line human readable summary
            - color: CSS class token for the overall level
            - icon: Icon glyph for the overall level

    Raises:
        HTTPException: Only for failures outside image analysis itself
    """
    try:
        metrics = await grade(request, request_data)
        logger.info(
            "Quality analyzed",
            extra={'overall': metrics.overall.value, 'width': metrics.face_size.width}
        )
        return build_response(metrics)

    except Exception as e:
        import traceback
        error_details: ErrorResponse = {
            'error': str(e),
            'traceback': traceback.format_exc()
        }
        logger.error("Error details:", extra=error_details)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_details
        )

@router.post("/analyze-quality/batch", response_model=BatchQualityResponse)
async def analyze_quality_batch(request_data: BatchQualityRequest, request: Request) -> Dict:
    """Grade several images and report the overall-level distribution."""
    try:
        results = []
        for item in request_data['images']:
            results.append(await grade(request, item))
        logger.info(f"Batch quality analyzed: {len(results)} images")
        return {
            'results': [build_response(m) for m in results],
            'distribution': quality_distribution(results)
        }

    except Exception as e:
        import traceback
        error_details: ErrorResponse = {
            'error': str(e),
            'traceback': traceback.format_exc()
        }
        logger.error("Error details:", extra=error_details)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_details
        )

@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> Dict:
    return {'status': 'ok', 'detectorLoaded': request.app.state.detector.loaded}
