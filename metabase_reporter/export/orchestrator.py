"""
Export Orchestrator: Dashboard to Branded PDF, One Stage at a Time

State machine:

    LAUNCHING -> NAVIGATING -> CUSTOMIZING -> SETTLING -> TRIGGERING
              -> WATCHING -> FINALIZING -> DELIVERING (optional) -> DONE

FAILED is reachable from every state. Each stage either completes or raises
and aborts the run; there is no retry at this level. The browser session is
released on every exit path, before delivery starts.

The two fixed delays are best-effort synchronization points:
- settle: lets client-side rendering and the header observer finish
- export: lets the dashboard start generating the PDF before polling
"""

from __future__ import annotations

import logging
import time
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.support.ui import WebDriverWait
from urllib3.exceptions import HTTPError as DriverTransportError

from ..config import ReportConfig
from ..delivery import SmtpMailer
from ..errors import DeliveryError, ExportError, NavigationTimeout, ReportError
from ..telemetry import StageRecord, StageTimer
from .artifact import ExportRequest, artifact_path, finalize_artifact
from .download_watcher import await_artifact, snapshot
from .export_trigger import activate_export
from .page_customizer import header_replaced, install_header_replacer
from .session import DriverFactory, browser_session, make_driver

logger = logging.getLogger(__name__)

READY_STATE_SCRIPT = "return document.readyState"


class ExportState(str, Enum):
    LAUNCHING = "launching"
    NAVIGATING = "navigating"
    CUSTOMIZING = "customizing"
    SETTLING = "settling"
    TRIGGERING = "triggering"
    WATCHING = "watching"
    FINALIZING = "finalizing"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"


class ExportOrchestrator:
    """
    Runs one export. Instances are single-shot.

    Usage:
        config = build_config(url="https://metabase.example.com/public/dashboard/...")
        path = ExportOrchestrator(config).run()
    """

    def __init__(
        self,
        config: ReportConfig,
        *,
        driver_factory: DriverFactory = make_driver,
        mailer: Optional[SmtpMailer] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        today: Optional[date] = None,
    ):
        self.config = config
        self.driver_factory = driver_factory
        self.mailer = mailer or SmtpMailer()
        self.sleep = sleep
        self.clock = clock
        self.today = today

        self.state = ExportState.LAUNCHING
        self.history: List[StageRecord] = []
        self.artifact: Optional[Path] = None
        self.error: Optional[ReportError] = None

    # ------------------------------------------------------------------

    def run(self) -> Path:
        """
        Execute the pipeline.

        Returns:
            Path of the finalized PDF

        Raises:
            NavigationTimeout, ControlNotFound, DownloadTimeout, DeliveryError,
            or ExportError for any other browser failure
        """
        if self.state is not ExportState.LAUNCHING or self.history:
            raise RuntimeError("ExportOrchestrator instances are single-shot")

        today = self.today or date.today()
        cfg = self.config
        request = ExportRequest.from_config(cfg, today)
        output = artifact_path(cfg.reports_dir, cfg.title, today)

        try:
            logger.info(f"[EXPORT] Exporting '{cfg.title}' to {output}")
            with browser_session(
                cfg.download_dir,
                headless=cfg.headless,
                binary=cfg.chrome_binary,
                factory=self.driver_factory,
            ) as driver:
                self._navigate(driver, request)
                self._customize(driver, request)
                self._settle(driver, request)
                existing = self._trigger(driver)
                downloaded = self._watch(existing)
                self.artifact = self._finalize(downloaded, output)

            if cfg.wants_delivery:
                self._deliver(self.artifact)

        except WebDriverException as e:
            error = ExportError(f"Browser error: {e.msg or e}", state=self.state.value)
            self._fail(error)
            raise error from e
        except ReportError as e:
            self._fail(e)
            raise
        except (OSError, DriverTransportError) as e:
            # chromedriver gone (connection refused) or download dir unreadable
            error = ExportError(f"{type(e).__name__}: {e}", state=self.state.value)
            self._fail(error)
            raise error from e

        self.state = ExportState.DONE
        logger.info(f"[EXPORT] Done: {self.artifact}")
        return self.artifact

    # ------------------------------------------------------------------

    def _enter(self, state: ExportState) -> StageTimer:
        self.state = state
        return StageTimer(state.value, self.history)

    def _navigate(self, driver, request: ExportRequest) -> None:
        timeout_s = self.config.navigation_timeout_ms / 1000.0
        with self._enter(ExportState.NAVIGATING):
            logger.info(f"[EXPORT] Loading {request.target_url}...")
            deadline = self.clock() + timeout_s
            driver.set_page_load_timeout(timeout_s)
            try:
                driver.get(request.target_url)
                # readyState wait shares the page-load budget
                remaining = max(deadline - self.clock(), 0.0)
                WebDriverWait(driver, remaining).until(
                    lambda d: d.execute_script(READY_STATE_SCRIPT) == "complete"
                )
            except TimeoutException as e:
                raise NavigationTimeout(
                    f"Timed out loading {request.target_url} after {self.config.navigation_timeout_ms}ms"
                ) from e

    def _customize(self, driver, request: ExportRequest) -> None:
        with self._enter(ExportState.CUSTOMIZING):
            install_header_replacer(
                driver, request.title, request.display_date, request.logo_data
            )

    def _settle(self, driver, request: ExportRequest) -> None:
        with self._enter(ExportState.SETTLING):
            self.sleep(request.settle_delay_ms / 1000.0)
            if not header_replaced(driver):
                logger.warning("[HEADER] No dashboard header replaced before export")

    def _trigger(self, driver) -> set:
        with self._enter(ExportState.TRIGGERING):
            existing = snapshot(self.config.download_dir)
            activate_export(driver)
        return existing

    def _watch(self, existing: set) -> Path:
        cfg = self.config
        with self._enter(ExportState.WATCHING):
            self.sleep(cfg.export_delay_ms / 1000.0)
            return await_artifact(
                cfg.download_dir,
                cfg.download_timeout_ms,
                poll_interval_ms=cfg.poll_interval_ms,
                ignore=existing,
                sleep=self.sleep,
            )

    def _finalize(self, downloaded: Path, output: Path) -> Path:
        with self._enter(ExportState.FINALIZING):
            try:
                return finalize_artifact(downloaded, output)
            except OSError as e:
                raise ExportError(f"Could not move {downloaded} to {output}: {e}") from e

    def _deliver(self, artifact: Path) -> None:
        cfg = self.config
        with self._enter(ExportState.DELIVERING):
            try:
                self.mailer.send(
                    artifact,
                    artifact.name,
                    cfg.email_to,
                    cfg.email_from,
                    cfg.email_subject,
                    cfg.body,
                    cfg.smtp_host,
                    cfg.smtp_port,
                )
            except DeliveryError as e:
                e.artifact_path = artifact
                raise

            if cfg.delete_after_email:
                artifact.unlink(missing_ok=True)
                logger.info("[EXPORT] PDF file deleted after sending email")

    def _fail(self, error: ReportError) -> None:
        failed_in = self.state.value
        if isinstance(error, ExportError) and error.state is None:
            error.state = failed_in
        self.state = ExportState.FAILED
        self.error = error
        logger.error(f"[EXPORT] Failed during {failed_in}: {error}")


def run(config: ReportConfig, **kwargs) -> Path:
    """Run one export with `config`. See ExportOrchestrator for kwargs."""
    return ExportOrchestrator(config, **kwargs).run()
