"""
Metabase Reporter: export a dashboard to a branded PDF and email it.
"""

from .config import ReportConfig, build_config
from .errors import (
    ConfigurationError,
    ControlNotFound,
    DeliveryError,
    DownloadTimeout,
    ExportError,
    LogoReadError,
    NavigationTimeout,
    ReportError,
)
from .export import ExportOrchestrator, ExportState, run

__version__ = "1.0.0"

__all__ = [
    "ReportConfig",
    "build_config",
    "ConfigurationError",
    "ControlNotFound",
    "DeliveryError",
    "DownloadTimeout",
    "ExportError",
    "LogoReadError",
    "NavigationTimeout",
    "ReportError",
    "ExportOrchestrator",
    "ExportState",
    "run",
]
