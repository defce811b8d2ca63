import io
import time
from collections.abc import Callable
from pathlib import Path

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.browser.base import BaseBrowserSession


class FakeBrowserSession(BaseBrowserSession):
    """Records every call; can fail at one operation; drops a report on submit."""

    def __init__(
        self,
        *,
        report_bytes: bytes | None = None,
        report_name: str = "seo-audit-report.pdf",
        fail_on: str | None = None,
        error: Exception | None = None,
        real_pause: bool = True,
    ) -> None:
        self.calls: list[tuple[object, ...]] = []
        self.close_calls = 0
        self.download_dir: Path | None = None
        self._report_bytes = report_bytes
        self._report_name = report_name
        self._fail_on = fail_on
        self._error = error or RuntimeError(f"injected failure in {fail_on}")
        self._real_pause = real_pause

    def _maybe_fail(self, operation: str) -> None:
        if self._fail_on == operation:
            raise self._error

    def configure_downloads(self, target_dir: Path) -> None:
        self.calls.append(("configure_downloads", target_dir))
        self._maybe_fail("configure_downloads")
        self.download_dir = target_dir

    def navigate(self, url: str, timeout_seconds: float) -> None:
        self.calls.append(("navigate", url, timeout_seconds))
        self._maybe_fail("navigate")

    def fill_field(self, selector: str, value: str) -> None:
        self.calls.append(("fill_field", selector, value))
        self._maybe_fail("fill_field")

    def submit_and_await_navigation(self, selector: str, timeout_seconds: float) -> None:
        self.calls.append(("submit", selector, timeout_seconds))
        self._maybe_fail("submit")
        if self._report_bytes is not None and self.download_dir is not None:
            (self.download_dir / self._report_name).write_bytes(self._report_bytes)

    def pause(self, seconds: float) -> None:
        self.calls.append(("pause", seconds))
        if self._real_pause:
            time.sleep(seconds)

    def close(self) -> None:
        self.calls.append(("close",))
        self.close_calls += 1

    def operations(self) -> list[str]:
        return [str(call[0]) for call in self.calls]


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF standing in for an audit report."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "SEO Audit Report for example.com")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def make_session(sample_pdf_bytes: bytes) -> Callable[..., FakeBrowserSession]:
    """Build FakeBrowserSession instances that produce a real PDF by default."""

    def _make(**kwargs: object) -> FakeBrowserSession:
        kwargs.setdefault("report_bytes", sample_pdf_bytes)
        return FakeBrowserSession(**kwargs)  # type: ignore[arg-type]

    return _make
