import logging
from typing import Callable, Optional

ProgressCallback = Callable[[int, str], None]

logger = logging.getLogger("aurora")


def compute_percent(processed: int, total: int) -> int:
    """Percentage of a running batch, halves rounded up; never reaches 100 before completion."""
    if total <= 0:
        return 0
    return min(99, int(100 * processed / total + 0.5))


class ProgressReporter:
    """
    Log and progress channel injected into each engine.

    Every info/success/warning/error message goes to the `aurora` logger and is
    forwarded with the current percentage to the subscriber, if one is set.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None,
                 log: Optional[logging.Logger] = None):
        self._callback = callback
        self.log = log or logger
        self.processed = 0
        self.total = 0
        self._last_percent = 0

    def set_subscriber(self, callback: Optional[ProgressCallback]) -> None:
        """Replace the current subscriber; None removes it."""
        self._callback = callback

    @property
    def percent(self) -> int:
        return self._last_percent

    def start(self, total: int) -> None:
        self.processed = 0
        self.total = total
        self._last_percent = 0

    def advance(self, message: Optional[str] = None) -> int:
        self.processed += 1
        # Keep the emitted sequence non-decreasing even if total was underestimated
        self._last_percent = max(self._last_percent, compute_percent(self.processed, self.total))
        if message:
            self._emit(message)
        return self._last_percent

    def complete(self, message: str = "Done") -> None:
        self._last_percent = 100
        self.log.info(message)
        self._emit(message)

    def info(self, message: str) -> None:
        self.log.info(message)
        self._emit(message)

    def success(self, message: str) -> None:
        self.log.info(message)
        self._emit(message)

    def warning(self, message: str) -> None:
        self.log.warning(message)
        self._emit(message)

    def error(self, message: str) -> None:
        self.log.error(message)
        self._emit(f"ERROR: {message}")

    def status(self, message: str) -> None:
        """Transient status line, e.g. encoder elapsed time."""
        self.log.debug(message)
        self._emit(message)

    def _emit(self, message: str) -> None:
        if self._callback is not None:
            self._callback(self._last_percent, message)
