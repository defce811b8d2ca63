"""Polling watcher for files written into a directory by an external process."""

import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from app.downloads.exceptions import DownloadCancelledError, DownloadTimeoutError
from app.downloads.models import DownloadArtifact
from app.logging.logger import Log

FileMatcher = Callable[[str], bool]


def suffix_matcher(suffix: str) -> FileMatcher:
    """Match file names ending with suffix, ignoring case."""
    expected = suffix.lower()
    return lambda name: name.lower().endswith(expected)


class DownloadWatcher:
    """Waits for a matching file to appear in a directory.

    Every poll lists the directory, keeps regular files accepted by the
    matcher and, if any remain, returns the first one in lexicographic name
    order. A missing directory counts as no matches. Once the time budget is
    spent without a match, DownloadTimeoutError is raised.

    The watcher does not know whether a file is still being written unless
    require_stable_size is enabled, in which case a candidate is only accepted
    once its size is non-zero and unchanged between two consecutive polls.
    """

    def __init__(
        self,
        *,
        poll_interval_seconds: float = 2.0,
        timeout_seconds: float = 120.0,
        require_stable_size: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        if timeout_seconds < 0:
            raise ValueError("timeout_seconds must not be negative")
        self._poll_interval = poll_interval_seconds
        self._timeout = timeout_seconds
        self._require_stable_size = require_stable_size
        self._sleep = sleep
        self._clock = clock

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def with_sleep(self, sleep: Callable[[float], None]) -> "DownloadWatcher":
        """Return a copy of this watcher that waits between polls with sleep."""
        return DownloadWatcher(
            poll_interval_seconds=self._poll_interval,
            timeout_seconds=self._timeout,
            require_stable_size=self._require_stable_size,
            sleep=sleep,
            clock=self._clock,
        )

    def wait_for(
        self,
        target_dir: Path,
        match: FileMatcher,
        cancel_event: threading.Event | None = None,
    ) -> DownloadArtifact:
        """Block until a matching file exists in target_dir.

        Raises:
            DownloadTimeoutError: if nothing matches within the budget.
            DownloadCancelledError: if cancel_event is set while waiting.
        """
        deadline = self._clock() + self._timeout
        last_sizes: dict[str, int] = {}
        polls = 0

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise DownloadCancelledError(f"Stopped watching {target_dir}: cancelled")

            polls += 1
            found = self._poll(target_dir, match, last_sizes)
            if found is not None:
                Log.info(f"Found {found.name} in {target_dir} after {polls} poll(s)")
                return DownloadArtifact(path=found, discovered_at=datetime.now(timezone.utc))

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise DownloadTimeoutError(
                    f"No matching file appeared in {target_dir} within {self._timeout:g}s"
                )
            Log.debug(f"No download yet in {target_dir}, {remaining:.1f}s left")
            self._sleep(min(self._poll_interval, remaining))

    def _poll(
        self,
        target_dir: Path,
        match: FileMatcher,
        last_sizes: dict[str, int],
    ) -> Path | None:
        candidates = self._list_matches(target_dir, match)
        if not self._require_stable_size:
            return candidates[0] if candidates else None

        sizes: dict[str, int] = {}
        for path in candidates:
            try:
                sizes[path.name] = path.stat().st_size
            except FileNotFoundError:
                continue
        for path in candidates:
            size = sizes.get(path.name)
            if size and last_sizes.get(path.name) == size:
                return path
        last_sizes.clear()
        last_sizes.update(sizes)
        return None

    @staticmethod
    def _list_matches(target_dir: Path, match: FileMatcher) -> list[Path]:
        try:
            entries = list(target_dir.iterdir())
        except FileNotFoundError:
            return []
        return sorted(
            (entry for entry in entries if entry.is_file() and match(entry.name)),
            key=lambda entry: entry.name,
        )
