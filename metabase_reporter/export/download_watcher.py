"""
Download Watcher: Wait for the Exported PDF to Land on Disk

Polls the download directory at a fixed interval. Only regular files that
end in .pdf and carry no in-progress suffix are ever returned, so unrelated
files and half-written transfers in the same directory are never claimed.

Concurrent runs sharing one download directory race for candidates; callers
must serialize them.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..errors import DownloadTimeout
from .artifact import DownloadCandidate

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 500


def scan_candidates(directory: Path, ignore: Iterable[str] = ()) -> List[DownloadCandidate]:
    """
    List the entries of `directory` as download candidates.

    Args:
        directory: Download directory
        ignore: File names to skip (e.g. files present before the export began)

    Returns:
        Candidates for regular files, in directory listing order
    """
    skip = set(ignore)
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return [
        DownloadCandidate.from_path(p)
        for p in directory.iterdir()
        if p.is_file() and p.name not in skip
    ]


def snapshot(directory: Path) -> set:
    """Names of the files currently in `directory`."""
    return {c.name for c in scan_candidates(directory)}


def find_completed(directory: Path, ignore: Iterable[str] = ()) -> Optional[Path]:
    """First claimable PDF in `directory`, or None."""
    for candidate in scan_candidates(directory, ignore):
        if candidate.claimable:
            return candidate.path
    return None


def await_artifact(
    directory: Path,
    timeout_ms: int,
    *,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ignore: Iterable[str] = (),
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Path:
    """
    Wait for a completed PDF download.

    Args:
        directory: Directory the browser downloads into
        timeout_ms: Overall ceiling for the wait
        poll_interval_ms: Delay between directory listings
        ignore: File names that must not be claimed

    Returns:
        Path to the first completed PDF found

    Raises:
        DownloadTimeout: If no completed PDF appears before the deadline
    """
    ignore = frozenset(ignore)
    deadline = clock() + timeout_ms / 1000.0
    logger.info(f"[WATCH] Waiting up to {timeout_ms}ms for a PDF in {directory}")

    while True:
        found = find_completed(directory, ignore)
        if found is not None:
            logger.info(f"[WATCH] Download complete: {found.name}")
            return found
        if clock() >= deadline:
            break
        sleep(poll_interval_ms / 1000.0)

    pending = [c.name for c in scan_candidates(directory, ignore) if not c.claimable]
    if pending:
        logger.debug(f"[WATCH] Unclaimed entries at timeout: {pending}")
    raise DownloadTimeout(f"PDF download did not complete within {timeout_ms}ms")
