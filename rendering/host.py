from collections import deque
from typing import Callable, Deque, Optional


class CooperativeLoop:
    """
    Minimal single-threaded callback loop, the headless counterpart of a UI
    event loop. Its call_soon() is the yield hook handed to the scheduler.
    """

    def __init__(self) -> None:
        self._queue: Deque[Callable[[], None]] = deque()
        self.steps = 0

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._queue.append(callback)

    __call__ = call_soon

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_once(self) -> bool:
        """Run the oldest queued callback. Returns False when idle."""
        if not self._queue:
            return False
        callback = self._queue.popleft()
        self.steps += 1
        callback()
        return True

    def run_until_idle(self, max_steps: Optional[int] = None) -> int:
        """Drain the queue; returns the number of callbacks run."""
        ran = 0
        while max_steps is None or ran < max_steps:
            if not self.run_once():
                break
            ran += 1
        return ran
