"""
Pydantic schemas for the export HTTP service.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ExportJobRequest(BaseModel):
    """
    Request body for POST /export. Unset fields use the service defaults.

    Filesystem options (logo, directories, browser binary) are server-side
    only; unknown fields in the body are ignored.
    """
    url: str
    title: Optional[str] = None
    date: Optional[str] = None
    wait_time_ms: Optional[int] = None
    send_email: Optional[bool] = None
    email_to: Optional[List[str]] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    delete_after_email: Optional[bool] = None


class StageModel(BaseModel):
    state: str
    ok: bool
    duration_ms: float
    error: Optional[str] = None


class ExportJobResponse(BaseModel):
    """Response model for POST /export."""
    ok: bool
    state: str
    path: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    stages: List[StageModel] = []


class HealthResponse(BaseModel):
    """Response model for GET /health."""
    status: str
    busy: bool
    browser_path: Optional[str] = None
    driver_path: Optional[str] = None
    defaults: Dict[str, Any] = Field(default_factory=dict)
