from __future__ import annotations

import asyncio
import logging
import random

import pytest

from bananagrams.api.models import GameStatus
from bananagrams.core.board import Position
from bananagrams.core.events import GameEvent
from bananagrams.core.moves import HAND, MoveIntent, OnBoard
from bananagrams.opponents import OpponentScheduler, SchedulerConfig

FAST = SchedulerConfig(base_delay_s=0.01, jitter_s=0.0, last_tile_slowdown=1.0)


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


async def _noop(index: int, generation: int) -> None:
    return None


def test_delay_without_jitter() -> None:
    s = OpponentScheduler(on_due=_noop, config=SchedulerConfig(base_delay_s=1.0, jitter_s=0.0, last_tile_slowdown=2.5))

    assert s.delay_for(5) == 1.0
    assert s.delay_for(2) == 1.0


def test_last_tile_is_slower() -> None:
    s = OpponentScheduler(on_due=_noop, config=SchedulerConfig(base_delay_s=1.0, jitter_s=0.0, last_tile_slowdown=2.5))

    assert s.delay_for(1) == 2.5


def test_jitter_stays_in_range() -> None:
    s = OpponentScheduler(
        on_due=_noop,
        config=SchedulerConfig(base_delay_s=1.0, jitter_s=2.0, last_tile_slowdown=1.0),
        rng=random.Random(5),
    )

    delays = [s.delay_for(3) for _ in range(200)]
    assert all(1.0 <= d <= 3.0 for d in delays)
    assert len(set(delays)) > 1


@pytest.mark.asyncio
async def test_arm_fires_each_opponent_once() -> None:
    calls: list[tuple[int, int]] = []

    async def _on_due(index: int, generation: int) -> None:
        calls.append((index, generation))

    s = OpponentScheduler(on_due=_on_due, config=FAST)
    s.arm([3, 1, 2])
    gen = s.generation

    await _wait_for(lambda: len(calls) == 3)

    assert sorted(calls) == [(0, gen), (1, gen), (2, gen)]
    assert s.pending == frozenset()


@pytest.mark.asyncio
async def test_cancel_all_stops_pending_timers() -> None:
    calls: list[int] = []

    async def _on_due(index: int, generation: int) -> None:
        calls.append(index)

    s = OpponentScheduler(on_due=_on_due, config=SchedulerConfig(base_delay_s=0.05, jitter_s=0.0))
    s.arm([2, 2])
    before = s.generation
    s.cancel_all()
    await asyncio.sleep(0.15)

    assert calls == []
    assert s.generation == before + 1
    assert s.pending == frozenset()


@pytest.mark.asyncio
async def test_rearm_replaces_timer() -> None:
    calls: list[int] = []

    async def _on_due(index: int, generation: int) -> None:
        calls.append(index)

    s = OpponentScheduler(on_due=_on_due, config=SchedulerConfig(base_delay_s=0.05, jitter_s=0.0))
    s.schedule(0, 3)
    s.schedule(0, 3)
    await asyncio.sleep(0.15)

    assert calls == [0]


@pytest.mark.asyncio
async def test_opponent_plays_out_and_wins_on_its_own(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(
        make_controller(scheduler_config=FAST),
        hand=make_tiles("HEJ"),
        opponent_hands=[make_tiles("AB")],
    )
    c.scheduler.arm([2])

    await _wait_for(lambda: c.status == GameStatus.lost)

    assert c.state.opponents[0].hand == []
    assert len(c.state.opponents[0].placed) == 2
    assert c.snapshot().message == "Player 2 used all their tiles first. You lose!"
    assert c.state.tile_count() == c.state.total_tiles


@pytest.mark.asyncio
async def test_opponent_peel_is_credited(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(
        make_controller(),
        hand=make_tiles("HEJ"),
        pool=make_tiles("XYZ"),
        opponent_hands=[make_tiles("A"), make_tiles("BC")],
    )

    await c.run_opponent_turn(0)
    snap = c.snapshot()
    c.shutdown()

    assert snap.status == GameStatus.in_progress
    assert snap.last_opponent_peeler == 0
    assert snap.message == "Player 2 peeled! Everyone drew a tile."
    assert len(snap.hand) == 4
    assert snap.opponent_hand_sizes == [1, 3]
    assert snap.pool_size == 0


@pytest.mark.asyncio
async def test_stale_firing_is_ignored(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(make_controller(), hand=make_tiles("HEJ"), opponent_hands=[make_tiles("AB")])
    stale = c.scheduler.generation
    c.scheduler.cancel_all()

    await c._on_opponent_due(0, stale)

    assert len(c.state.opponents[0].hand) == 2


@pytest.mark.asyncio
async def test_firing_after_game_over_is_ignored(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(make_controller(), hand=make_tiles("HEJ"), opponent_hands=[make_tiles("AB")])
    c.state.status = GameStatus.won

    await c.run_opponent_turn(0)

    assert len(c.state.opponents[0].hand) == 2
    assert c.status == GameStatus.won


@pytest.mark.asyncio
async def test_opponent_peel_that_drains_pool_loses_immediately(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(
        make_controller(),
        hand=make_tiles("HEJ"),
        pool=make_tiles("X"),
        opponent_hands=[make_tiles("A"), make_tiles("BC")],
    )

    await c.run_opponent_turn(0)

    snap = c.snapshot()
    assert snap.status == GameStatus.lost
    assert snap.message == "Player 2 used all their tiles first. You lose!"
    assert snap.opponent_hand_sizes == [0, 2]
    assert snap.pool_size == 0
    assert len(snap.hand) == 4
    assert c.scheduler.pending == frozenset()


@pytest.mark.asyncio
async def test_human_peel_that_strands_an_empty_opponent_loses(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(
        make_controller(),
        hand=make_tiles("HEJ"),
        pool=make_tiles("X"),
        opponent_hands=[make_tiles("AB"), []],
    )

    res = await c.peel()

    assert res.snapshot.status == GameStatus.lost
    assert res.snapshot.message == "Player 3 used all their tiles first. You lose!"


@pytest.mark.asyncio
async def test_concurrent_turns_are_serialized(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(
        make_controller(),
        hand=make_tiles("HEJ"),
        pool=make_tiles("XYZW"),
        opponent_hands=[make_tiles("A"), make_tiles("B")],
    )
    seen: list[GameEvent] = []

    async def _listener(event: GameEvent) -> None:
        seen.append(event)

    c.add_listener(_listener)
    human_tile = c.state.hand[0]

    results = await asyncio.gather(
        c.run_opponent_turn(0),
        c.move_tile(MoveIntent(tile=human_tile, origin=HAND), OnBoard(Position(2, 2))),
        c.run_opponent_turn(1),
    )
    c.shutdown()

    assert results[1].ok
    peels = [e for e in seen if e.type == "PEELED"]
    assert len(peels) == 1
    assert c.state.last_opponent_peeler in (0, 1)
    assert peels[0].payload["opponent"] == c.state.last_opponent_peeler
    assert c.status == GameStatus.in_progress
    assert len(c.state.pool) == 1
    assert c.state.tile_count() == c.state.total_tiles


@pytest.mark.asyncio
async def test_racing_timers_credit_one_peel_and_never_overdraw(make_controller, make_tiles, put_in_progress) -> None:
    c = put_in_progress(
        make_controller(scheduler_config=FAST),
        hand=make_tiles("HEJ"),
        pool=make_tiles("XY"),
        opponent_hands=[make_tiles("A"), make_tiles("B")],
    )
    seen: list[GameEvent] = []

    async def _listener(event: GameEvent) -> None:
        seen.append(event)

    c.add_listener(_listener)
    c.scheduler.arm([1, 1])

    await _wait_for(lambda: c.status == GameStatus.lost)

    assert [e.type for e in seen].count("PEELED") == 1
    assert c.state.last_opponent_peeler in (0, 1)
    assert c.state.pool == []
    assert c.state.tile_count() == c.state.total_tiles


@pytest.mark.asyncio
async def test_failing_timer_callback_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    async def _on_due(index: int, generation: int) -> None:
        raise RuntimeError("boom")

    s = OpponentScheduler(on_due=_on_due, config=FAST)
    with caplog.at_level(logging.ERROR, logger="bananagrams.opponents"):
        s.schedule(0, 2)
        await _wait_for(lambda: "Opponent timer opponent-0 failed" in caplog.text)

    assert "boom" in caplog.text
