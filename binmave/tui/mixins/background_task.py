"""
Background Task Mixin for fetching results off the event loop.

Provides a reusable pattern for:
- Running a blocking fetch in a background thread
- Delivering the result (or the error) back onto the event loop
- Skipping a fetch while the previous one of the same kind is in flight
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from textual import work

from binmave.errors import BinmaveError

logger = logging.getLogger(__name__)


class BackgroundTaskMixin:
    """Mixin providing background fetches for screens.

    The fetch function runs in a worker thread; on_success / on_error are
    always invoked on the event loop via ``call_from_thread``, so they may
    mutate screen state freely.

    Usage:
        class MyScreen(BackgroundTaskMixin, Screen):
            def on_mount(self):
                self._run_fetch(
                    "status",
                    lambda: self.source.get_execution_status(self.execution_id),
                    on_success=self._on_status,
                    on_error=self._on_fetch_error,
                )
    """

    def _in_flight(self) -> set[str]:
        in_flight = getattr(self, "_fetches_in_flight", None)
        if in_flight is None:
            in_flight = self._fetches_in_flight = set()
        return in_flight

    def _run_fetch(
        self,
        source: str,
        fetch_fn: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_error: Callable[[str, BinmaveError], None],
    ) -> bool:
        """Start a fetch unless one for the same source is still running.

        Args:
            source: Short name of the fetch ("status", "results", ...).
            fetch_fn: Blocking call returning the fetched value.
            on_success: Called with the value on the event loop.
            on_error: Called with (source, error) on the event loop.

        Returns:
            False if the fetch was skipped because one is already running.
        """
        in_flight = self._in_flight()
        if source in in_flight:
            logger.debug("Skipping %s fetch, previous one still running", source)
            return False
        in_flight.add(source)
        self._run_fetch_worker(source, fetch_fn, on_success, on_error)
        return True

    def _finish_fetch(self, source: str, callback: Callable[..., None], *args: Any) -> None:
        self._in_flight().discard(source)
        callback(*args)

    @work(thread=True, exit_on_error=False)
    def _run_fetch_worker(
        self,
        source: str,
        fetch_fn: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_error: Callable[[str, BinmaveError], None],
    ) -> None:
        """Background worker for one fetch.

        Every outcome ends in _finish_fetch, so the source never stays in
        flight after the worker returns.
        """
        try:
            value = fetch_fn()
        except BinmaveError as e:
            logger.warning("%s fetch failed: %s", source, e)
            self.app.call_from_thread(self._finish_fetch, source, on_error, source, e)
        except Exception as e:
            logger.exception("Unexpected error in %s fetch", source)
            error = BinmaveError(f"unexpected error: {e}")
            self.app.call_from_thread(self._finish_fetch, source, on_error, source, error)
        else:
            self.app.call_from_thread(self._finish_fetch, source, on_success, value)
