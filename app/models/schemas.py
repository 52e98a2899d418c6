"""Pydantic request / response schemas for all API endpoints.

Field names are camelCase where the wire format is, to keep the JSON contract
identical for existing probes and dashboards.
"""

from __future__ import annotations
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field

# ── GET /health ──────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    timestamp: str = Field(..., description="ISO-8601 UTC time of the probe")

# ── GET /status ──────────────────────────────────────────────────────────

class StatusResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    timestamp: str
    database: Literal["connected", "error"]
    cache: Literal["connected", "error"]
    uptime: float = Field(..., description="Seconds since the application started")

# ── GET /metrics ─────────────────────────────────────────────────────────

class MemoryUsage(BaseModel):
    rss: str = Field(..., description="Resident set size, e.g. '48MB'")
    vms: str = Field(..., description="Virtual memory size")
    uss: str = Field(..., description="Unique set size (memory freed if the process exited)")

class MetricsResponse(BaseModel):
    uptime: int = Field(..., description="Whole seconds since the metrics clock started")
    requestCount: int
    errorCount: int
    errorRate: str = Field(..., description="'0%' or a two-decimal percentage, e.g. '12.50%'")
    avgResponseTime: str = Field(..., description="Mean latency, e.g. '3.27ms'")
    memory: MemoryUsage

# ── POST /process ────────────────────────────────────────────────────────

class ProcessRequest(BaseModel):
    """Only ``data`` is read; it may be any JSON value."""
    data: Optional[Any] = None

class ProcessResponse(BaseModel):
    message: str = "Data processed successfully"
    id: int
    timestamp: str

# ── Errors ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
