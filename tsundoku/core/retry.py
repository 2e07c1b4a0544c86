"""
Retry timing shared by the translator and the name scout.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts, including the first one
        initial_delay: Base delay in seconds
        backoff_factor: Multiplier applied per failed attempt
        max_delay: Optional cap on the delay in seconds
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: Optional[float] = None

    def get_delay(self, failures: int) -> float:
        """
        Delay before the next attempt after `failures` failed attempts.

        With the defaults this is 2s after the first failure, then 4s, 8s...
        """
        delay = self.initial_delay * (self.backoff_factor ** failures)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    async def wait(self, failures: int) -> None:
        delay = self.get_delay(failures)
        if delay > 0:
            await asyncio.sleep(delay)


async def pause(seconds: float) -> None:
    """Rate-limit delay before a network operation."""
    if seconds > 0:
        await asyncio.sleep(seconds)
