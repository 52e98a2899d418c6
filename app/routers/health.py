"""Probe endpoints:
    GET  /health   liveness, never touches dependencies
    GET  /status   readiness, round-trips the database and the cache
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from app.models.schemas import HealthResponse, StatusResponse
from app.services.health_service import check_dependencies
from app.utils.helpers import iso_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=iso_timestamp())


@router.get("/status", response_model=StatusResponse, summary="Readiness probe")
async def status_check(request: Request) -> StatusResponse:
    """Always answers 200; the body's ``status`` carries the real verdict.

    ``healthy`` when both dependencies answered, ``degraded`` otherwise.
    """
    state = request.app.state
    report = await check_dependencies(
        state.store,
        state.cache,
        timeout=state.settings.HEALTH_CHECK_TIMEOUT,
    )
    return StatusResponse(
        status=report.status,
        timestamp=iso_timestamp(),
        database=report.database,
        cache=report.cache,
        uptime=round(state.metrics.uptime_seconds(), 3),
    )
