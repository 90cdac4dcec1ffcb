from __future__ import annotations

import pytest
from selenium.common.exceptions import WebDriverException

from fakes import FakeDriver
from metabase_reporter.export import session


def test_chrome_options_flags(tmp_path):
    opts = session.chrome_options(str(tmp_path), headless=True, binary="/usr/bin/chromium")
    for flag in ("--headless=new", "--no-sandbox", "--disable-setuid-sandbox",
                 "--disable-dev-shm-usage", "--disable-gpu", "--window-size=1200,1600"):
        assert flag in opts.arguments
    assert opts.binary_location == "/usr/bin/chromium"
    prefs = opts.experimental_options["prefs"]
    assert prefs["download.default_directory"] == str(tmp_path)
    assert prefs["download.prompt_for_download"] is False


def test_headed_mode_omits_headless_flag(tmp_path):
    assert "--headless=new" not in session.chrome_options(str(tmp_path), headless=False).arguments


class FakeChrome:
    instances = []

    def __init__(self, options=None):
        self.options = options
        self.cdp = []
        self.size = None
        self.quit_count = 0
        FakeChrome.instances.append(self)

    def execute_cdp_cmd(self, cmd, params):
        self.cdp.append((cmd, params))

    def set_window_size(self, w, h):
        self.size = (w, h)

    def quit(self):
        self.quit_count += 1


def test_make_driver_routes_downloads(tmp_path, monkeypatch):
    FakeChrome.instances = []
    monkeypatch.setattr(session.webdriver, "Chrome", FakeChrome)
    target = tmp_path / "new" / "downloads"

    driver = session.make_driver(target)

    assert target.is_dir()
    assert driver.cdp == [("Page.setDownloadBehavior",
                           {"behavior": "allow", "downloadPath": str(target.resolve())})]
    assert driver.size == (1200, 1600)


def test_make_driver_quits_when_setup_fails(tmp_path, monkeypatch):
    class BrokenCdp(FakeChrome):
        def execute_cdp_cmd(self, cmd, params):
            raise WebDriverException("cdp unavailable")

    FakeChrome.instances = []
    monkeypatch.setattr(session.webdriver, "Chrome", BrokenCdp)
    with pytest.raises(WebDriverException):
        session.make_driver(tmp_path)
    assert FakeChrome.instances[0].quit_count == 1


def test_browser_session_releases_on_error(tmp_path):
    driver = FakeDriver()
    with pytest.raises(ValueError):
        with session.browser_session(tmp_path, factory=lambda d, h, b: driver):
            raise ValueError("stage failed")
    assert driver.quit_count == 1


def test_release_tolerates_quit_failure():
    class Stuck:
        def quit(self):
            raise WebDriverException("already gone")

    session.release(Stuck())


def test_locate_browser_uses_configured_binary(tmp_path):
    chrome = tmp_path / "chrome"
    chrome.write_text("#!/bin/sh\n")
    assert session.locate_browser(str(chrome)) == str(chrome)
    assert session.locate_browser(str(tmp_path / "missing")) is None


def test_locate_browser_searches_path(monkeypatch):
    monkeypatch.setattr(session.shutil, "which",
                        lambda name: "/usr/bin/chromium" if name == "chromium" else None)
    assert session.locate_browser() == "/usr/bin/chromium"


def test_locate_browser_none_when_absent(monkeypatch):
    monkeypatch.setattr(session.shutil, "which", lambda name: None)
    assert session.locate_browser() is None
    assert session.locate_driver() is None
