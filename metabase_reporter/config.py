"""
Report configuration.

ReportConfig is built once at the process boundary (CLI or HTTP service) and
passed by value into the export pipeline. Nothing below this module reads
environment variables.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

DEFAULT_TITLE = "Report"
DEFAULT_SENDER = "reports@example.com"
DEFAULT_BODY = "Please find the attached report."


class ReportConfig(BaseModel):
    """Resolved, validated options for a single export run."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Dashboard public URL")
    title: str = DEFAULT_TITLE
    date: Optional[str] = Field(None, description="Date shown in the header (default: today, DD/MM/YYYY)")
    logo_path: Optional[Path] = None
    wait_time_ms: int = Field(3000, gt=0, description="Settle delay after customization")

    # Email delivery
    send_email: bool = False
    email_from: str = DEFAULT_SENDER
    email_to: List[str] = Field(default_factory=list)
    subject: Optional[str] = None
    body: str = DEFAULT_BODY
    smtp_host: str = "localhost"
    smtp_port: int = Field(25, gt=0, lt=65536)
    delete_after_email: bool = False

    # Filesystem and browser
    reports_dir: Path = Field(default_factory=Path.cwd)
    download_dir: Path = Field(default_factory=lambda: Path.cwd() / "downloads")
    chrome_binary: Optional[str] = None
    headless: bool = True

    # Stage bounds
    navigation_timeout_ms: int = Field(60000, gt=0)
    export_delay_ms: int = Field(5000, ge=0)
    download_timeout_ms: int = Field(30000, gt=0)
    poll_interval_ms: int = Field(500, gt=0)

    @field_validator("url")
    @classmethod
    def _url_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Metabase dashboard URL is required")
        return v

    @field_validator("email_to", mode="before")
    @classmethod
    def _split_recipients(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [addr.strip() for addr in v.split(",") if addr.strip()]
        return v

    @property
    def email_subject(self) -> str:
        return self.subject or f"{self.title} Report"

    @property
    def wants_delivery(self) -> bool:
        return self.send_email and bool(self.email_to)

    def display_date(self, today: datetime.date) -> str:
        if self.date:
            return self.date
        return today.strftime("%d/%m/%Y")


def build_config(**values: Any) -> ReportConfig:
    """
    Validate raw option values into a ReportConfig.

    Options left as None fall back to the model defaults.

    Raises:
        ConfigurationError: If validation fails (e.g. missing URL)
    """
    cleaned = {k: v for k, v in values.items() if v is not None}
    try:
        return ReportConfig(**cleaned)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(problems) from e
