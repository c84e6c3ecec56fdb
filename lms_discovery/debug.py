"""Debug trace sink for the discovery service."""

from typing import Callable, Optional

DEFAULT_PREFIX = "[lms-discovery]"


class DebugLog:
    """Routes trace lines to a callback or to stdout.

    Disabled by default. Components receive the instance and call it
    like a function.
    """

    def __init__(self):
        self.enabled = False
        self.callback: Optional[Callable[[str], None]] = None

    def configure(
        self,
        enabled: bool,
        callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        """Enable or disable tracing.

        Args:
            enabled: Whether to emit trace lines.
            callback: Receives each line. None = print to stdout.
        """
        self.enabled = bool(enabled)
        self.callback = callback

    def __call__(self, msg: str) -> None:
        if not self.enabled:
            return
        if self.callback:
            self.callback(msg)
        else:
            print(f"{DEFAULT_PREFIX} {msg}")
