"""
Artifact: Values Flowing Through an Export Run

- ExportRequest: immutable inputs for the browser stages
- DownloadCandidate: a file seen in the download directory
- artifact_path / finalize_artifact: the deterministic output file
- read_logo / load_logo: logo file to data URI
"""

from __future__ import annotations

import base64
import logging
import mimetypes
import shutil
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

from ..config import ReportConfig
from ..errors import LogoReadError

logger = logging.getLogger(__name__)

PDF_SUFFIX = ".pdf"

# Chromium writes .crdownload, Firefox .part; .partial/.tmp cover Edge and others
IN_PROGRESS_SUFFIXES = (".crdownload", ".part", ".partial", ".tmp")


class CompletionState(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class DownloadCandidate:
    """
    A file observed in the watched download directory.

    Attributes:
        path: Full path of the entry
        completion_state: Derived from the filename suffix
    """
    path: Path
    completion_state: CompletionState

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_pdf(self) -> bool:
        return self.name.lower().endswith(PDF_SUFFIX)

    @property
    def claimable(self) -> bool:
        return self.is_pdf and self.completion_state is CompletionState.COMPLETE

    @staticmethod
    def from_path(path: Path) -> "DownloadCandidate":
        name = path.name.lower()
        state = (
            CompletionState.IN_PROGRESS
            if name.endswith(IN_PROGRESS_SUFFIXES)
            else CompletionState.COMPLETE
        )
        return DownloadCandidate(path=path, completion_state=state)


@dataclass(frozen=True)
class ExportRequest:
    """
    Immutable inputs for one export run.

    Attributes:
        target_url: Dashboard URL to load
        title: Report title shown in the header and used in the filename
        display_date: Date string shown in the header
        logo_data: Logo as a data URI (data:<image mime>;base64,...) or None
        settle_delay_ms: Fixed wait after installing the header replacer
    """
    target_url: str
    title: str
    display_date: str
    logo_data: Optional[str] = None
    settle_delay_ms: int = 3000

    @staticmethod
    def from_config(config: ReportConfig, today: date) -> "ExportRequest":
        return ExportRequest(
            target_url=config.url,
            title=config.title,
            display_date=config.display_date(today),
            logo_data=load_logo(config.logo_path),
            settle_delay_ms=config.wait_time_ms,
        )


def artifact_filename(title: str, on: date) -> str:
    """'Weekly Sales' on 2024-03-07 -> 'Weekly Sales 2024-03-07.pdf'"""
    return f"{title} {on.isoformat()}{PDF_SUFFIX}"


def artifact_path(reports_dir: Path, title: str, on: date) -> Path:
    return Path(reports_dir).resolve() / artifact_filename(title, on)


def read_logo(path: Path) -> str:
    """
    Read an image file and encode it as a data URI.

    Raises:
        LogoReadError: If the file is missing or unreadable
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise LogoReadError(f"Cannot read logo {path}: {e}") from e
    mime, _ = mimetypes.guess_type(path.name)
    if not mime or not mime.startswith("image/"):
        mime = f"image/{path.suffix.lstrip('.').lower() or 'png'}"
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


def load_logo(path: Optional[Path]) -> Optional[str]:
    """Logo data URI, or None when no logo is configured or it can't be read."""
    if not path:
        return None
    try:
        return read_logo(path)
    except LogoReadError as e:
        logger.warning(f"[LOGO] {e} - continuing without logo")
        return None


def finalize_artifact(candidate: Path, destination: Path) -> Path:
    """
    Move a completed download to its final location.

    Same-day runs overwrite the previous artifact.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(candidate, destination)
    candidate.unlink()
    logger.info(f"[EXPORT] PDF report saved to: {destination}")
    return destination
