import time

from typing import Callable, Optional

__all__ = [
    "GrooveTimer",
    "format_groove_time"
]


def format_groove_time(seconds: int) -> str:
    minutes, seconds = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{seconds:02d}"


class GrooveTimer:
    """
    Stopwatch for the time in the groove.

    The grading engine only samples it: the elapsed whole seconds are copied into the grade entry
    when the pass ends (wire, outcome deviation, no hook) or when the grade is saved.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._started: Optional[float] = None
        self._elapsed = 0

    @property
    def is_running(self) -> bool:
        return self._started is not None

    @property
    def elapsed_seconds(self) -> int:
        if self._started is not None:
            return int(self._clock() - self._started)
        return self._elapsed

    @property
    def formatted_time(self) -> str:
        return format_groove_time(self.elapsed_seconds)

    def start(self) -> None:
        if self.is_running:
            return
        self._started = self._clock()
        self._elapsed = 0

    def stop(self) -> int:
        if self._started is not None:
            self._elapsed = int(self._clock() - self._started)
            self._started = None
        return self._elapsed

    def reset(self) -> None:
        self._started = None
        self._elapsed = 0
