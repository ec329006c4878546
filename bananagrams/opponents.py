"""Simulated opponents.

Each opponent gets its own asyncio task that sleeps until its next tile is due and
then hands control back to the owner through `on_due`. The scheduler itself never
touches game state; the controller applies every firing under its own lock.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

OnDue = Callable[[int, int], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    # Seconds before an opponent places its next tile: base + uniform(0, jitter).
    base_delay_s: float = 4.0
    jitter_s: float = 4.0
    # Multiplier for the delay before an opponent plays its final tile.
    last_tile_slowdown: float = 2.5


class OpponentScheduler:
    def __init__(self, *, on_due: OnDue, config: SchedulerConfig | None = None, rng: random.Random | None = None) -> None:
        self._on_due = on_due
        self.config = config or SchedulerConfig()
        self._rng = rng or random.Random()
        self._tasks: dict[int, asyncio.Task[None]] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        """Bumped by every `cancel_all`; firings from an older generation are stale."""

        return self._generation

    @property
    def pending(self) -> frozenset[int]:
        return frozenset(i for i, t in self._tasks.items() if not t.done())

    def delay_for(self, hand_size: int) -> float:
        cfg = self.config
        delay = cfg.base_delay_s + (self._rng.uniform(0.0, cfg.jitter_s) if cfg.jitter_s > 0 else 0.0)
        if hand_size == 1:
            delay *= cfg.last_tile_slowdown
        return delay

    def arm(self, hand_sizes: Sequence[int]) -> None:
        """(Re)start the clock of every opponent."""

        self.cancel_all()
        for index, size in enumerate(hand_sizes):
            self.schedule(index, size)

    def schedule(self, index: int, hand_size: int) -> float:
        existing = self._tasks.pop(index, None)
        if existing is not None and existing is not asyncio.current_task():
            existing.cancel()

        delay = self.delay_for(hand_size)
        task = asyncio.get_running_loop().create_task(
            self._run(index, delay, self._generation),
            name=f"opponent-{index}",
        )
        task.add_done_callback(self._log_failure)
        self._tasks[index] = task
        logger.debug("Opponent %d next tile in %.2fs (hand=%d)", index, delay, hand_size)
        return delay

    def cancel_all(self) -> None:
        self._generation += 1
        current = asyncio.current_task() if self._has_running_loop() else None
        for task in self._tasks.values():
            if task is not current:
                task.cancel()
        self._tasks.clear()

    async def _run(self, index: int, delay: float, generation: int) -> None:
        await asyncio.sleep(delay)
        if self._tasks.get(index) is asyncio.current_task():
            del self._tasks[index]
        await self._on_due(index, generation)

    @staticmethod
    def _log_failure(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Opponent timer %s failed", task.get_name(), exc_info=exc)

    @staticmethod
    def _has_running_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True
