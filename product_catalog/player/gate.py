"""
Single-slot suspension gate.

Manual playback parks the run here until someone calls release().
"""

import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class GateAlreadyArmedError(RuntimeError):
    """Raised when a second wait is armed while one is outstanding."""


class SuspensionGate:
    """
    Holds at most one outstanding wait.

    arm() returns a future that resolves when release() (True) or
    discard() (False) is called. Releasing an empty gate does nothing.
    """

    def __init__(self):
        self._waiter: Optional[asyncio.Future] = None

    @property
    def armed(self) -> bool:
        return self._waiter is not None and not self._waiter.done()

    def arm(self) -> asyncio.Future:
        if self.armed:
            raise GateAlreadyArmedError("A wait is already armed")

        loop = asyncio.get_running_loop()
        self._waiter = loop.create_future()
        return self._waiter

    def release(self) -> bool:
        """Resume the armed wait. Returns False if nothing was armed."""
        return self._resolve(True)

    def discard(self) -> bool:
        """Abandon the armed wait; the waiter resumes with False."""
        resolved = self._resolve(False)
        if resolved:
            logger.debug("Discarded armed wait")
        return resolved

    def _resolve(self, value: bool) -> bool:
        waiter, self._waiter = self._waiter, None
        if waiter is None or waiter.done():
            return False
        waiter.set_result(value)
        return True
