"""
API v1 Router Module - Sticker Export Service

All v1 endpoints are prefixed with /api/v1/

Primary endpoint: POST /api/v1/stickers/export
- Single sticker (WebP) or sticker pack (zip + pack.json)
"""

from fastapi import APIRouter

from src.api.v1.stickers import router as stickers_router
from src.api.v1.metrics import router as metrics_router

# Main v1 router
api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(stickers_router, prefix="/stickers", tags=["stickers"])
api_v1_router.include_router(metrics_router, tags=["metrics"])
