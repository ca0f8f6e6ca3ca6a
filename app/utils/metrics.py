"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
image_generation_requests_total = Counter(
    "image_generation_requests_total",
    "Total generate-image requests by outcome",
    ["mode", "status"],  # status: success or a FailureType value
)

image_generation_attempts_total = Counter(
    "image_generation_attempts_total",
    "Total provider call attempts",
    ["mode", "outcome"],
)

# Histograms
image_generation_duration_seconds = Histogram(
    "image_generation_duration_seconds",
    "Generate-image request duration",
    ["mode"],
    buckets=[1, 5, 10, 30, 60, 120, 300],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
