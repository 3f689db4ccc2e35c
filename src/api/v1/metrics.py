"""
Metrics Endpoint

GET /api/v1/metrics - Prometheus metrics endpoint
"""

from fastapi import APIRouter, Response

from src.core.metrics import get_metrics, get_metrics_content_type

router = APIRouter()


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Exposes:
    - sticker_stage_latency_seconds (per stage)
    - sticker_encode_quality
    - sticker_budget_misses_total
    - sticker_background_fallbacks_total
    - sticker_packs_total
    - sticker_fetch_total
    - http_requests_total
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
