"""
Export Service: HTTP Trigger for Report Runs

A small FastAPI app so schedulers and other services can request a report
without shelling out to the CLI.

    GET  /health  -> service status
    POST /export  -> run one export, return the artifact path

Runs share one download directory, so they are serialized with a lock:
a second request waits for the first to finish.

USAGE:
    python main.py --serve --port 8081
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException

from .config import build_config
from .errors import ConfigurationError, DeliveryError, ReportError
from .export.orchestrator import ExportOrchestrator
from .export.session import locate_browser, locate_driver
from .schemas import ExportJobRequest, ExportJobResponse, HealthResponse, StageModel

logger = logging.getLogger(__name__)


def create_app(
    defaults: Optional[Dict[str, Any]] = None,
    orchestrator_factory=ExportOrchestrator,
) -> FastAPI:
    """
    Build the service.

    Args:
        defaults: Server-side option values (dirs, SMTP settings, ...) that
                  requests may override
        orchestrator_factory: Callable taking a ReportConfig and returning
                              an object with run() / state / history
    """
    app = FastAPI(
        title="Metabase Reporter",
        description="Export Metabase dashboards to branded PDFs",
        version="1.0.0",
    )
    run_lock = threading.Lock()
    base = dict(defaults or {})

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        browser = locate_browser(base.get("chrome_binary"))
        return HealthResponse(
            status="healthy" if browser else "degraded",
            busy=run_lock.locked(),
            browser_path=browser,
            driver_path=locate_driver(),
            defaults={k: str(v) for k, v in base.items() if "smtp" not in k},
        )

    @app.post("/export", response_model=ExportJobResponse)
    def export(req: ExportJobRequest) -> ExportJobResponse:
        values = {**base, **req.model_dump(exclude_none=True)}
        try:
            config = build_config(**values)
        except ConfigurationError as e:
            raise HTTPException(status_code=422, detail=str(e))

        # Plain def endpoint: runs in the threadpool, so blocking here is fine
        with run_lock:
            orchestrator = orchestrator_factory(config)
            try:
                path = orchestrator.run()
                error: Optional[ReportError] = None
            except ReportError as e:
                path = e.artifact_path if isinstance(e, DeliveryError) else None
                error = e

        return ExportJobResponse(
            ok=error is None,
            state=orchestrator.state.value,
            path=str(path) if path else None,
            error=str(error) if error else None,
            error_type=type(error).__name__ if error else None,
            stages=[StageModel(**r.to_dict()) for r in orchestrator.history],
        )

    return app
