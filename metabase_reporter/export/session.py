"""
Session Manager: One Headless Chrome per Export Run

The browser is launched with a fixed viewport and the sandboxing flags
needed for unattended container runs, and downloads are routed into the
run's download directory. browser_session() guarantees the browser is quit
on every exit path.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options

logger = logging.getLogger(__name__)

VIEWPORT_WIDTH = 1200
VIEWPORT_HEIGHT = 1600

SANDBOX_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
)

CHROME_NAMES = ("google-chrome", "google-chrome-stable", "chromium", "chromium-browser", "chrome")
DRIVER_NAME = "chromedriver"


def chrome_options(
    download_dir: str,
    headless: bool = True,
    binary: Optional[str] = None,
) -> Options:
    """Build Chrome options for an unattended export run."""
    opts = Options()
    if headless:
        opts.add_argument("--headless=new")
    for arg in SANDBOX_ARGS:
        opts.add_argument(arg)
    opts.add_argument(f"--window-size={VIEWPORT_WIDTH},{VIEWPORT_HEIGHT}")
    opts.add_argument("--force-device-scale-factor=1")
    if binary:
        opts.binary_location = binary

    prefs = {
        "download.default_directory": download_dir,
        "download.prompt_for_download": False,
        "download.directory_upgrade": True,
        "plugins.always_open_pdf_externally": True,  # Download PDFs instead of opening
    }
    opts.add_experimental_option("prefs", prefs)
    return opts


def make_driver(
    download_dir: Path,
    headless: bool = True,
    binary: Optional[str] = None,
) -> "webdriver.Chrome":
    """
    Launch Chrome configured to download into `download_dir`.

    The download directory is created if it does not exist.
    """
    download_dir = Path(download_dir).resolve()
    download_dir.mkdir(parents=True, exist_ok=True)

    driver = webdriver.Chrome(options=chrome_options(str(download_dir), headless, binary))
    try:
        # Headless Chrome ignores the download prefs unless told explicitly
        driver.execute_cdp_cmd(
            "Page.setDownloadBehavior",
            {"behavior": "allow", "downloadPath": str(download_dir)},
        )
        driver.set_window_size(VIEWPORT_WIDTH, VIEWPORT_HEIGHT)
    except WebDriverException:
        driver.quit()
        raise
    return driver


DriverFactory = Callable[[Path, bool, Optional[str]], "webdriver.Chrome"]


def release(driver) -> None:
    """Quit the browser and every child process it owns."""
    try:
        driver.quit()
        logger.info("[SESSION] Browser closed")
    except WebDriverException as e:
        logger.warning(f"[SESSION] Browser quit failed: {e}")


@contextmanager
def browser_session(
    download_dir: Path,
    *,
    headless: bool = True,
    binary: Optional[str] = None,
    factory: DriverFactory = make_driver,
) -> Iterator["webdriver.Chrome"]:
    """
    Acquire a browser for the duration of a `with` block.

    Usage:
        with browser_session(Path("downloads")) as driver:
            driver.get(url)
    """
    logger.info("[SESSION] Launching browser...")
    driver = factory(Path(download_dir), headless, binary)
    try:
        yield driver
    finally:
        release(driver)


def locate_browser(binary: Optional[str] = None) -> Optional[str]:
    """Path of the Chrome executable that would be launched, or None."""
    if binary:
        return binary if Path(binary).is_file() else None
    for name in CHROME_NAMES:
        found = shutil.which(name)
        if found:
            return found
    return None


def locate_driver() -> Optional[str]:
    """chromedriver on PATH. When absent, Selenium Manager fetches one at launch."""
    return shutil.which(DRIVER_NAME)
