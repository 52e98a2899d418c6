"""Data ingest: persist an opaque JSON payload and hand back its id."""

from __future__ import annotations

import logging
from typing import Any

from app.models.db_models import ProcessLog

logger = logging.getLogger(__name__)


async def ingest_payload(store, data: Any) -> ProcessLog:
    """Insert *data* as a new ``process_logs`` row.

    The payload is stored as-is; no schema is imposed on it.  Store errors
    (unavailable, pool exhausted, driver failures) propagate to the caller.
    """
    record = await store.insert(data)
    logger.info("Processed data with ID: %s", record.id)
    return record
