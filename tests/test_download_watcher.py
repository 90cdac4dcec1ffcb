from __future__ import annotations

import pytest

from fakes import write_pdf
from metabase_reporter.errors import DownloadTimeout
from metabase_reporter.export.download_watcher import await_artifact, find_completed, snapshot


def test_returns_completed_pdf(tmp_path):
    pdf = write_pdf(tmp_path)
    assert await_artifact(tmp_path, 100, poll_interval_ms=10) == pdf


def test_ignores_in_progress_and_unrelated_files(tmp_path):
    (tmp_path / "dashboard.pdf.crdownload").write_bytes(b"partial")
    (tmp_path / "other.pdf.part").write_bytes(b"partial")
    (tmp_path / "notes.txt").write_text("hello")
    (tmp_path / "folder.pdf").mkdir()
    assert find_completed(tmp_path) is None


def test_timeout_when_only_partial_downloads(tmp_path):
    (tmp_path / "dashboard.pdf.crdownload").write_bytes(b"partial")
    with pytest.raises(DownloadTimeout):
        await_artifact(tmp_path, 50, poll_interval_ms=10)


def test_picks_up_file_that_completes_mid_wait(tmp_path):
    partial = tmp_path / "dashboard.pdf.crdownload"
    partial.write_bytes(b"partial")
    polls = []

    def sleep(_):
        polls.append(1)
        if len(polls) == 2:
            partial.rename(tmp_path / "dashboard.pdf")

    found = await_artifact(tmp_path, 5000, poll_interval_ms=1, sleep=sleep)
    assert found.name == "dashboard.pdf"
    assert len(polls) == 2


def test_ignore_set_excludes_preexisting_files(tmp_path):
    write_pdf(tmp_path, "old.pdf")
    existing = snapshot(tmp_path)
    assert existing == {"old.pdf"}
    with pytest.raises(DownloadTimeout):
        await_artifact(tmp_path, 30, poll_interval_ms=5, ignore=existing)


def test_deadline_uses_clock(tmp_path):
    now = [0.0]

    def clock():
        return now[0]

    def sleep(seconds):
        now[0] += seconds

    with pytest.raises(DownloadTimeout):
        await_artifact(tmp_path, 30000, poll_interval_ms=500, sleep=sleep, clock=clock)
    assert now[0] == pytest.approx(30.0)


def test_missing_directory_times_out(tmp_path):
    with pytest.raises(DownloadTimeout):
        await_artifact(tmp_path / "absent", 20, poll_interval_ms=5)
