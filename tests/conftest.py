from __future__ import annotations

import random
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi.testclient import TestClient

from bananagrams.api.models import GameStatus
from bananagrams.controller import GameController, OpponentState
from bananagrams.core.board import Board, Position
from bananagrams.core.tiles import Tile
from bananagrams.dictionary import WordList
from bananagrams.opponents import SchedulerConfig

TEST_WORDS = ("bat", "car", "cat", "dog", "hej", "tak", "katt", "ost")

# Timers that never fire during a test unless a test fires them by hand.
IDLE_SCHEDULER = SchedulerConfig(base_delay_s=3600.0, jitter_s=0.0, last_tile_slowdown=1.0)


def _tile_ids() -> Iterator[str]:
    i = 0
    while True:
        yield f"t-{i}"
        i += 1


@pytest.fixture()
def make_tiles() -> Callable[[str], list[Tile]]:
    """`make_tiles("BAT")` -> three tiles with unique ids."""

    ids = _tile_ids()

    def _make(letters: str) -> list[Tile]:
        return [Tile(id=next(ids), letter=ch) for ch in letters]

    return _make


@pytest.fixture()
def make_board(make_tiles: Callable[[str], list[Tile]]) -> Callable[..., Board]:
    """Build a board from text rows; '.' is an empty cell."""

    def _make(rows: list[str], *, size: int = 7) -> Board:
        board = Board(size)
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                if ch != ".":
                    board.set(Position(x=x, y=y), make_tiles(ch)[0])
        return board

    return _make


@pytest.fixture()
def words() -> WordList:
    return WordList.from_words(TEST_WORDS)


@pytest.fixture()
def make_controller(words: WordList) -> Callable[..., GameController]:
    def _make(
        *,
        dictionary: WordList | None = None,
        scheduler_config: SchedulerConfig = IDLE_SCHEDULER,
        board_size: int = 7,
        seed: int = 1,
    ) -> GameController:
        return GameController(
            dictionary=dictionary if dictionary is not None else words,
            board_size=board_size,
            scheduler_config=scheduler_config,
            rng=random.Random(seed),
        )

    return _make


@pytest.fixture()
def put_in_progress() -> Callable[..., GameController]:
    """Force a controller into a hand-built mid-game position.

    Skips the deal so tests control exactly which tiles live where.
    """

    def _apply(
        controller: GameController,
        *,
        hand: list[Tile] | None = None,
        board: Board | None = None,
        pool: list[Tile] | None = None,
        opponent_hands: list[list[Tile]] | None = None,
    ) -> GameController:
        s = controller.state
        s.status = GameStatus.in_progress
        s.hand = list(hand or [])
        s.board = board if board is not None else Board(controller.board_size)
        s.pool = list(pool or [])
        s.opponents = [OpponentState(hand=list(h)) for h in (opponent_hands or [])]
        s.participant_count = len(s.opponents) + 1
        s.total_tiles = s.tile_count()
        return controller

    return _apply


@pytest.fixture()
def client(words: WordList) -> Generator[TestClient, None, None]:
    from bananagrams.game_store import GameRegistry, reset_registry_for_tests
    from bananagrams.main import app
    from bananagrams.settings import Settings

    settings = Settings(
        opponent_base_delay_s=IDLE_SCHEDULER.base_delay_s,
        opponent_jitter_s=IDLE_SCHEDULER.jitter_s,
        opponent_last_tile_slowdown=IDLE_SCHEDULER.last_tile_slowdown,
    )
    reset_registry_for_tests(GameRegistry(settings=settings, dictionary=words))
    with TestClient(app) as c:
        yield c
    reset_registry_for_tests()
