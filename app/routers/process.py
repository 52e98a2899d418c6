"""Data ingest endpoint:
    POST  /process
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.models.schemas import ErrorResponse, ProcessRequest, ProcessResponse
from app.services.process_service import ingest_payload
from app.utils.helpers import iso_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Process"])


@router.post(
    "/process",
    response_model=ProcessResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Store an arbitrary JSON payload",
)
async def process_data(request: Request, body: Optional[ProcessRequest] = None):
    """Persist ``data`` and return the id the database assigned to it.

    ``data`` may be any JSON value; only a missing or ``null`` field is
    rejected, and then the database is not touched.
    """
    if body is None or body.data is None:
        logger.debug("Rejected /process request without a data field.")
        return JSONResponse(status_code=400, content={"error": "Missing data field"})

    state = request.app.state
    try:
        record = await ingest_payload(state.store, body.data)
    except Exception as exc:
        logger.error("Process error: %s", exc, exc_info=True)
        message = str(exc) if state.settings.is_development else "An error occurred"
        return JSONResponse(
            status_code=500,
            content={"error": "Processing failed", "message": message},
        )

    return ProcessResponse(id=record.id, timestamp=iso_timestamp())
