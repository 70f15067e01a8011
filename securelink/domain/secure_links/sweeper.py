"""
Periodic Sweeper

Background thread that runs a cleanup callable on a fixed interval until
it is stopped. Owned by the registry: started with it, stopped with it.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicSweeper:
    """
    Repeating task with a cancellation handle.

    The first run happens one interval after start(). A failing run is
    logged and the loop keeps going.
    """

    def __init__(self, sweep: Callable[[], int], interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._sweep = sweep
        self.interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        """Start the background thread; calling it again while running is a no-op."""
        with self._lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, name="secure-link-sweeper", daemon=True
            )
            self._thread.start()
            logger.debug(f"Sweeper started (interval={self.interval_seconds}s)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the thread to exit and wait for it."""
        with self._lock:
            thread = self._thread
            self._stop_event.set()
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            logger.debug("Sweeper stopped")

    def run_once(self) -> int:
        """Run one sweep in the calling thread, logging instead of raising."""
        try:
            return self._sweep()
        except Exception as e:
            logger.error(f"Secure link sweep failed: {e}", exc_info=True)
            return 0

    def _run(self) -> None:
        # Event.wait returns True once stop() was called
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
