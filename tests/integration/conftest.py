import threading
import time
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from app.browser.base import BaseBrowserSession
from app.config.settings import Settings


class DelayedReportSession(BaseBrowserSession):
    """Browser stand-in whose report lands on disk a little after submit.

    The report is written to a .part file first and renamed, the same way
    the Playwright session saves downloads.
    """

    def __init__(self, report_bytes: bytes | None, delay_seconds: float = 0.15) -> None:
        self.report_bytes = report_bytes
        self.delay_seconds = delay_seconds
        self.download_dir: Path | None = None
        self.filled: list[tuple[str, str]] = []
        self.closed = False
        self._writer: threading.Thread | None = None

    def configure_downloads(self, target_dir: Path) -> None:
        self.download_dir = target_dir

    def navigate(self, url: str, timeout_seconds: float) -> None:
        pass

    def fill_field(self, selector: str, value: str) -> None:
        self.filled.append((selector, value))

    def submit_and_await_navigation(self, selector: str, timeout_seconds: float) -> None:
        if self.report_bytes is None or self.download_dir is None:
            return
        self._writer = threading.Thread(target=self._write_report, args=(self.download_dir,))
        self._writer.start()

    def pause(self, seconds: float) -> None:
        time.sleep(seconds)

    def close(self) -> None:
        if self._writer is not None:
            self._writer.join()
        self.closed = True

    def _write_report(self, target_dir: Path) -> None:
        time.sleep(self.delay_seconds)
        partial = target_dir / "example.com-seo-audit.pdf.part"
        partial.write_bytes(self.report_bytes or b"")
        partial.replace(target_dir / "example.com-seo-audit.pdf")


@pytest.fixture()
def integration_settings(tmp_path: Path) -> Settings:
    return Settings(
        downloads_root=str(tmp_path / "downloads"),
        download_poll_interval_seconds=0.05,
        download_timeout_seconds=2.0,
        google_application_credentials_base64="",
        google_application_credentials_file="",
    )


@pytest.fixture()
def drive_api() -> Iterator[MagicMock]:
    """Patched Drive client; files().create().execute() returns id 'abc123'."""
    with (
        patch("app.storage.drive_adapter.build") as mock_build,
        patch("app.storage.drive_adapter.MediaFileUpload"),
    ):
        files = mock_build.return_value.files.return_value
        files.create.return_value.execute.return_value = {"id": "abc123"}
        yield files


class FakeBrowserPool:
    """Stands in for BrowserSessionFactory.create and keeps every session it opened."""

    def __init__(self, report_bytes: bytes | None) -> None:
        self.report_bytes = report_bytes
        self.opened: list[DelayedReportSession] = []

    def open(self, settings: Settings) -> DelayedReportSession:
        session = DelayedReportSession(self.report_bytes)
        self.opened.append(session)
        return session


@pytest.fixture()
def browser_pool(monkeypatch: pytest.MonkeyPatch, sample_pdf_bytes: bytes) -> FakeBrowserPool:
    pool = FakeBrowserPool(sample_pdf_bytes)
    monkeypatch.setattr("app.processor.processor.BrowserSessionFactory.create", pool.open)
    return pool
