"""
Cancellation signal for blocking lock operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import threading
import time


class CancelSignal:
    """
    Fires when cancel() is called or when an optional deadline passes.

    Waiting on the signal is how blocking operations sleep, so a cancel from
    another thread wakes a sleeping waiter immediately.
    """

    def __init__(self, timeout: float | None = None):
        """
        Initialize the signal.

        Args:
            timeout: Seconds from now after which the signal fires (None for no deadline)
        """
        self._event = threading.Event()
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def cancel(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`, waking early if the signal fires.

        Returns:
            True if the signal fired
        """
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._event.wait(remaining)
        else:
            self._event.wait(seconds)
        return self.is_set()
