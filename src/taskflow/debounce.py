"""Debounced callbacks for rapidly changing input such as search text."""

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Run a callback once input has been quiet for `delay` seconds.

    Deadline based: call() pushes the deadline back, and the callback only
    ever runs on the thread that calls poll() or flush(), never on a timer
    thread. cancel() drops a pending run.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.delay = delay
        self.callback = callback
        self.clock = clock
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def call(self) -> None:
        if self.delay <= 0:
            self.callback()
            return
        self._deadline = self.clock() + self.delay

    def poll(self) -> bool:
        """Run the callback if the quiet period has elapsed. Returns whether it ran."""
        if self._deadline is None or self.clock() < self._deadline:
            return False
        self._deadline = None
        self.callback()
        return True

    def flush(self) -> None:
        """Run the pending callback now, if any."""
        if self._deadline is None:
            return
        self._deadline = None
        self.callback()

    def cancel(self) -> None:
        if self._deadline is not None:
            self._deadline = None
            logger.debug("Cancelled pending debounced call")
