"""Pacing between consecutive Jira calls so bulk exports are not throttled."""

import asyncio
from typing import Protocol


class Pacer(Protocol):
    """Anything with an awaitable wait() that enforces the gap between two remote calls."""

    async def wait(self) -> None: ...


class SleepPacer:
    """Fixed delay via asyncio.sleep."""

    def __init__(self, delay_sec: float) -> None:
        if delay_sec < 0:
            raise ValueError("delay_sec must be >= 0")
        self.delay_sec = delay_sec

    async def wait(self) -> None:
        await asyncio.sleep(self.delay_sec)


class NoDelayPacer:
    """Zero-delay pacer for tests and local fakes; counts how often it was asked to wait."""

    def __init__(self) -> None:
        self.wait_count = 0

    async def wait(self) -> None:
        self.wait_count += 1
