"""
Error taxonomy for the report pipeline.

ConfigurationError is raised before any browser is launched. The
ExportError family covers stage-local terminal failures: each one aborts the
run, but the browser session is still released. LogoReadError never leaves
the request builder. DeliveryError keeps the already-produced artifact.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ReportError(Exception):
    """Base class for every failure the pipeline reports."""


class ConfigurationError(ReportError):
    """Required configuration is missing or invalid."""


class LogoReadError(ReportError):
    """The logo file could not be read."""


class ExportError(ReportError):
    """A pipeline stage failed. `state` is the stage that was running."""

    state: Optional[str] = None

    def __init__(self, message: str, *, state: Optional[str] = None):
        super().__init__(message)
        if state is not None:
            self.state = state


class NavigationTimeout(ExportError):
    state = "navigating"


class ControlNotFound(ExportError):
    state = "triggering"


class DownloadTimeout(ExportError):
    state = "watching"


class DeliveryError(ExportError):
    """Email delivery failed. The artifact on disk is still valid."""

    state = "delivering"

    def __init__(self, message: str, *, artifact_path: Optional[Path] = None):
        super().__init__(message)
        self.artifact_path = artifact_path
