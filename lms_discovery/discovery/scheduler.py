"""Periodic scheduling of discovery broadcasts."""

import threading
from typing import Callable, Optional


class DiscoveryScheduler:
    """Runs an action immediately, then at a fixed interval.

    Each run is independent: the scheduler never waits for responses
    to a previous broadcast.
    """

    def __init__(self, interval: float, action: Callable[[], None]):
        """Initialize scheduler.

        Args:
            interval: Seconds between runs.
            action: Callable to run. Must not raise.
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self._action = action
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._stop_event is not None and not self._stop_event.is_set()

    def start(self) -> None:
        """Start the schedule. The first run happens right away."""
        if self.is_running:
            raise RuntimeError("Scheduler is already running")

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._run,
            args=(stop_event,),
            name="lms-discovery-scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Cancel further runs. Safe to call more than once."""
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None
        self._thread = None

    def _run(self, stop_event: threading.Event) -> None:
        self._action()
        while not stop_event.wait(self.interval):
            self._action()
