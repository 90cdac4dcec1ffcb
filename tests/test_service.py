from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from metabase_reporter.errors import ControlNotFound
from metabase_reporter.export.orchestrator import ExportState
from metabase_reporter import service
from metabase_reporter.service import create_app
from metabase_reporter.telemetry import StageRecord


class StubOrchestrator:
    configs = []

    def __init__(self, config, outcome=None):
        StubOrchestrator.configs.append(config)
        self.config = config
        self.outcome = outcome
        self.state = ExportState.LAUNCHING
        self.history = []

    def run(self):
        self.history.append(StageRecord("navigating", True, 12.0))
        if isinstance(self.outcome, Exception):
            self.history.append(StageRecord("triggering", False, 1.0, str(self.outcome)))
            self.state = ExportState.FAILED
            raise self.outcome
        self.state = ExportState.DONE
        return Path(self.config.reports_dir) / f"{self.config.title} 2024-03-07.pdf"


@pytest.fixture(autouse=True)
def _reset():
    StubOrchestrator.configs = []


@pytest.fixture
def defaults(tmp_path):
    return {"reports_dir": str(tmp_path), "download_dir": str(tmp_path / "dl"), "title": "Default"}


def test_health_reports_browser(defaults, monkeypatch):
    monkeypatch.setattr(service, "locate_browser", lambda binary: "/usr/bin/chromium")
    monkeypatch.setattr(service, "locate_driver", lambda: "/usr/bin/chromedriver")
    client = TestClient(create_app(defaults, StubOrchestrator))
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["busy"] is False
    assert body["browser_path"] == "/usr/bin/chromium"
    assert body["driver_path"] == "/usr/bin/chromedriver"


def test_health_degraded_without_browser(defaults, monkeypatch):
    seen = []
    monkeypatch.setattr(service, "locate_browser", lambda binary: seen.append(binary))
    monkeypatch.setattr(service, "locate_driver", lambda: None)
    defaults["chrome_binary"] = "/opt/missing/chrome"
    client = TestClient(create_app(defaults, StubOrchestrator))
    body = client.get("/health").json()
    assert body["status"] == "degraded"
    assert body["browser_path"] is None
    assert seen == ["/opt/missing/chrome"]


def test_export_success(defaults, tmp_path):
    client = TestClient(create_app(defaults, StubOrchestrator))
    resp = client.post("/export", json={"url": "https://m/d/1", "title": "Weekly Sales"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["state"] == "done"
    assert body["path"] == str(tmp_path / "Weekly Sales 2024-03-07.pdf")
    assert body["stages"][0]["state"] == "navigating"
    config, = StubOrchestrator.configs
    assert config.download_dir == tmp_path / "dl"


def test_request_falls_back_to_service_defaults(defaults):
    client = TestClient(create_app(defaults, StubOrchestrator))
    client.post("/export", json={"url": "https://m/d/1"})
    assert StubOrchestrator.configs[0].title == "Default"


def test_export_failure_reported(defaults):
    factory = lambda config: StubOrchestrator(config, ControlNotFound("Export button not found"))
    client = TestClient(create_app(defaults, factory))
    body = client.post("/export", json={"url": "https://m/d/1"}).json()
    assert body["ok"] is False
    assert body["state"] == "failed"
    assert body["error_type"] == "ControlNotFound"
    assert body["path"] is None


def test_invalid_config_is_422(defaults):
    client = TestClient(create_app(defaults, StubOrchestrator))
    resp = client.post("/export", json={"url": "  "})
    assert resp.status_code == 422
    assert StubOrchestrator.configs == []


def test_logo_path_only_from_service_defaults(defaults, tmp_path):
    defaults["logo_path"] = str(tmp_path / "brand.png")
    client = TestClient(create_app(defaults, StubOrchestrator))
    resp = client.post("/export", json={"url": "https://m/d/1", "logo_path": "/etc/passwd"})
    assert resp.status_code == 200
    assert StubOrchestrator.configs[0].logo_path == tmp_path / "brand.png"


def test_request_cannot_set_directories(defaults, tmp_path):
    client = TestClient(create_app(defaults, StubOrchestrator))
    client.post("/export", json={"url": "https://m/d/1", "reports_dir": "/", "logo_path": "/etc/shadow"})
    config, = StubOrchestrator.configs
    assert config.reports_dir == tmp_path
    assert config.logo_path is None
