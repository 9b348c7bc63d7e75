"""
Background auto-refresh worker.

- Runs on its own daemon thread so API requests and the UI stay responsive.
- Every ``interval`` seconds calls the refresh callback once.
- A tick that fires while the previous callback is still running is skipped.
- Methods:
    start(): begin ticking (replaces a running worker); immediate=True ticks once right away
    stop(): stop producing ticks and wait for the thread to finish
- Callback failures are logged; they never stop the timer.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class AutoRefresh:
    def __init__(self, callback: Callable[[], Any], interval: float = 30.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self._in_flight = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, *, immediate: bool = False) -> None:
        self.stop()
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._loop, args=(self._stop, immediate), name="survey-auto-refresh", daemon=True
        )
        self._thread.start()
        logger.info("Auto-refresh started (every %s seconds)", self.interval)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("Auto-refresh stopped")

    def tick(self) -> bool:
        """Run one refresh unless another one is in flight. Returns True if it ran."""
        if not self._in_flight.acquire(blocking=False):
            self.skipped += 1
            logger.debug("Skipping auto-refresh tick: previous refresh still running")
            return False
        try:
            self.ticks += 1
            logger.debug("Auto-refreshing data")
            self.callback()
        except Exception:
            logger.exception("Auto-refresh tick failed")
        finally:
            self._in_flight.release()
        return True

    def _loop(self, stop: threading.Event, immediate: bool = False) -> None:
        if immediate:
            self.tick()
        while not stop.wait(self.interval):
            self.tick()
