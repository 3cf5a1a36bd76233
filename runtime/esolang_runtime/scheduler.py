"""
Esolang Runtime - Host Run Loop

Engines never block. When they yield they ask the host to call them again
"on the next opportunity". RunLoop is a minimal FIFO host for that
contract, used by the tests and by hosts without their own event loop.
An asyncio host can pass `loop.call_soon` instead.
"""

from collections import deque
from typing import Callable, Deque


class RunLoop:
    """FIFO callback queue"""

    def __init__(self):
        self._queue: Deque[Callable[[], None]] = deque()

    def call_soon(self, callback: Callable[[], None]):
        self._queue.append(callback)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_once(self) -> bool:
        """Run the oldest callback; False when the queue was empty"""
        if not self._queue:
            return False
        self._queue.popleft()()
        return True

    def run_until_idle(self, max_callbacks: int = 1_000_000) -> int:
        """Run callbacks until none are left; returns how many ran"""
        count = 0
        while count < max_callbacks and self.run_once():
            count += 1
        return count

    def clear(self):
        self._queue.clear()


__all__ = ['RunLoop']
