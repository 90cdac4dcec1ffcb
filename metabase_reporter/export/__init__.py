"""
Export Module: Dashboard to PDF via Headless Chrome

Components:
- Session: launches and releases the browser (session.py)
- PageCustomizer: replaces the dashboard header with report branding
- ExportTrigger: finds and clicks the PDF export control
- DownloadWatcher: waits for the finished PDF in the download directory
- ExportOrchestrator: sequences the stages and guarantees cleanup
"""

from .artifact import (
    CompletionState,
    DownloadCandidate,
    ExportRequest,
    artifact_filename,
    artifact_path,
    load_logo,
    read_logo,
)
from .download_watcher import await_artifact, find_completed
from .export_trigger import activate_export, select_export_control
from .orchestrator import ExportOrchestrator, ExportState, run
from .page_customizer import build_header_html, install_header_replacer
from .session import browser_session, make_driver

__all__ = [
    "CompletionState",
    "DownloadCandidate",
    "ExportRequest",
    "artifact_filename",
    "artifact_path",
    "load_logo",
    "read_logo",
    "await_artifact",
    "find_completed",
    "activate_export",
    "select_export_control",
    "ExportOrchestrator",
    "ExportState",
    "run",
    "build_header_html",
    "install_header_replacer",
    "browser_session",
    "make_driver",
]
