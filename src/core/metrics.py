"""
Prometheus Metrics for Observability

Tracks sticker pipeline performance, size budget outcomes and fetches.
Exposes /metrics endpoint for Prometheus scraping.
"""

import time
from contextlib import contextmanager

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY
)

# =============================================================================
# Metrics Definitions
# =============================================================================

# Pipeline Latency - Per Stage
sticker_stage_latency_seconds = Histogram(
    "sticker_stage_latency_seconds",
    "Time spent in each sticker pipeline stage",
    labelnames=["stage", "status"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Quality that finally satisfied (or missed) the budget
sticker_encode_quality = Histogram(
    "sticker_encode_quality",
    "WebP quality used for the final sticker encode",
    buckets=[35, 40, 50, 60, 70, 80, 90]
)

sticker_budget_misses_total = Counter(
    "sticker_budget_misses_total",
    "Stickers returned from the fallback encode without meeting the size budget"
)

sticker_background_fallbacks_total = Counter(
    "sticker_background_fallbacks_total",
    "Stickers where background removal was skipped after a failure"
)

sticker_packs_total = Counter(
    "sticker_packs_total",
    "Total number of sticker pack builds",
    labelnames=["status"]
)

sticker_fetch_total = Counter(
    "sticker_fetch_total",
    "Total number of source image fetches",
    labelnames=["status"]
)

# API Request Metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    labelnames=["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# Application Info
app_info = Info(
    "sticker_export_app",
    "Application information"
)


# =============================================================================
# Helper Functions
# =============================================================================

def set_app_info(version: str, environment: str):
    """Set application info metric."""
    app_info.info({
        "version": version,
        "environment": environment
    })


@contextmanager
def track_stage_latency(stage: str):
    """
    Context manager to track stage latency.

    Usage:
        with track_stage_latency("normalize"):
            # do work
    """
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start
        sticker_stage_latency_seconds.labels(stage=stage, status=status).observe(duration)


def record_encode_outcome(quality: int, within_budget: bool):
    """Record which quality produced the final encode."""
    sticker_encode_quality.observe(quality)
    if not within_budget:
        sticker_budget_misses_total.inc()


def record_background_fallback():
    sticker_background_fallbacks_total.inc()


def record_pack_build(status: str):
    sticker_packs_total.labels(status=status).inc()


def record_fetch(status: str):
    sticker_fetch_total.labels(status=status).inc()


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST
