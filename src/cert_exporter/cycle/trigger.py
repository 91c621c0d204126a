"""Hand-off between scrape requests and the refresh loop.

A scrape handler calls :meth:`ScrapeTrigger.request` and blocks.  The
refresh loop picks the request up with :meth:`ScrapeTrigger.wait_request`,
refreshes the gauges and releases the returned guard, at which point the
handler renders a fully updated registry.

Usage::

    trigger = ScrapeTrigger()

    # refresh loop
    guard = trigger.wait_request(timeout=1.0)
    if guard is not None:
        with guard:
            refresh()

    # HTTP handler thread
    trigger.request()
    body = registry.export()
"""

from __future__ import annotations

import queue
import threading


class ScrapeGuard:
    """Releases every scrape that was waiting when the guard was taken."""

    def __init__(self, waiters: list[threading.Event]) -> None:
        self._waiters = waiters

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    def release(self) -> None:
        for waiter in self._waiters:
            waiter.set()

    def __enter__(self) -> ScrapeGuard:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class ScrapeTrigger:
    """Queue of pending scrapes, consumed by a single refresh loop."""

    def __init__(self) -> None:
        self._pending: queue.SimpleQueue[threading.Event] = queue.SimpleQueue()

    def request(self, timeout: float | None = None) -> bool:
        """Announce a scrape and block until a refresh releases it.

        Returns ``False`` if *timeout* elapsed first.
        """
        done = threading.Event()
        self._pending.put(done)
        return done.wait(timeout)

    def wait_request(self, timeout: float | None = None) -> ScrapeGuard | None:
        """Block until at least one scrape is pending.

        All scrapes queued at that moment share the returned guard.
        Returns ``None`` if *timeout* elapsed without a request.
        """
        try:
            first = self._pending.get(timeout=timeout)
        except queue.Empty:
            return None

        waiters = [first]
        while True:
            try:
                waiters.append(self._pending.get_nowait())
            except queue.Empty:
                break
        return ScrapeGuard(waiters)
