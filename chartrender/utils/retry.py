"""
Bounded polling for conditions that become true asynchronously.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PollState(str, Enum):
    """Lifecycle of a poller."""

    PENDING = "pending"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class PollExhausted(Exception):
    """The condition never held within the allowed attempts."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Condition not met after {attempts} attempts")


class BoundedPoller:
    """Check a condition up to ``max_attempts`` times with a fixed delay between checks.

    Each check is an async callable returning True when the condition holds.
    Exceptions raised by the check are not retried and propagate unchanged.

    Args:
        max_attempts: Maximum number of checks
        delay: Seconds to wait between a failed check and the next one
        sleep: Awaitable sleep, replaceable in tests
        name: Label used in log messages
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        name: str = "condition",
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.delay = delay
        self.name = name
        self._sleep = sleep
        self.attempts = 0
        self.state = PollState.PENDING

    async def run(self, check: Callable[[], Awaitable[bool]]) -> int:
        """Poll until ``check`` succeeds.

        Returns:
            Number of attempts used

        Raises:
            PollExhausted: If every attempt failed
        """
        self.state = PollState.WAITING
        while self.attempts < self.max_attempts:
            self.attempts += 1
            if await check():
                self.state = PollState.SUCCEEDED
                return self.attempts

            logger.warning(
                "%s not met on attempt %s/%s",
                self.name,
                self.attempts,
                self.max_attempts,
            )
            if self.attempts < self.max_attempts:
                await self._sleep(self.delay)

        self.state = PollState.EXHAUSTED
        raise PollExhausted(self.attempts)
