"""Metrics endpoint:
    GET  /metrics
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from app.models.schemas import MetricsResponse

router = APIRouter(tags=["Metrics"])


@router.get("/metrics", response_model=MetricsResponse, summary="Request and memory metrics")
async def metrics_report(request: Request) -> MetricsResponse:
    """Counts, error rate and mean latency of every request completed so far."""
    return MetricsResponse(**request.app.state.metrics.snapshot())
