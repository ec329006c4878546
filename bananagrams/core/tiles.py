from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


# Swedish letter frequencies. Every pool in the game is generated from this table.
TILE_DISTRIBUTION: Mapping[str, int] = {
    "A": 13, "B": 2, "C": 2, "D": 7, "E": 14, "F": 3, "G": 4, "H": 3, "I": 8,
    "J": 1, "K": 5, "L": 8, "M": 5, "N": 12, "O": 6, "P": 3, "R": 12, "S": 9,
    "T": 11, "U": 3, "V": 3, "X": 1, "Y": 1, "Ä": 4, "Ö": 2, "Å": 2,
}

TOTAL_TILES = sum(TILE_DISTRIBUTION.values())

DUMP_DRAW_COUNT = 3


@dataclass(frozen=True, slots=True)
class Tile:
    id: str
    letter: str


@dataclass(frozen=True, slots=True)
class DrawResult:
    drawn: list[Tile]
    remaining: list[Tile]


@dataclass(frozen=True, slots=True)
class Deal:
    human_hand: list[Tile]
    opponent_hands: list[list[Tile]]
    remaining_pool: list[Tile]


@dataclass(frozen=True, slots=True)
class DumpResult:
    hand: list[Tile]
    pool: list[Tile]
    drawn: list[Tile]


class DumpError(ValueError):
    pass


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Fisher-Yates shuffle on a copy; the input is never modified."""

    rng = rng or random.Random()
    out = list(items)
    i = len(out)
    while i > 1:
        j = rng.randrange(i)
        i -= 1
        out[i], out[j] = out[j], out[i]
    return out


def generate_tile_pool(rng: random.Random | None = None) -> list[Tile]:
    tiles: list[Tile] = []
    for letter, count in TILE_DISTRIBUTION.items():
        for _ in range(count):
            tiles.append(Tile(id=f"tile-{len(tiles)}", letter=letter))
    return shuffle(tiles, rng)


def draw_tiles(pool: Sequence[Tile], n: int) -> DrawResult:
    if n < 0:
        raise ValueError("n must be >= 0")
    return DrawResult(drawn=list(pool[:n]), remaining=list(pool[n:]))


def deal_initial_tiles(pool: Sequence[Tile], participant_count: int, per_participant: int) -> Deal:
    """Deal to the human first, then each opponent in seat order.

    When the pool runs dry, later seats simply get fewer tiles.
    """

    result = draw_tiles(pool, per_participant)
    human_hand, remaining = result.drawn, result.remaining

    opponent_hands: list[list[Tile]] = []
    for _ in range(1, participant_count):
        result = draw_tiles(remaining, per_participant)
        opponent_hands.append(result.drawn)
        remaining = result.remaining

    return Deal(human_hand=human_hand, opponent_hands=opponent_hands, remaining_pool=remaining)


def starting_tile_count(participant_count: int) -> int:
    if participant_count >= 7:
        return 11
    if participant_count >= 5:
        return 15
    return 21


def dump_tile(
    pool: Sequence[Tile],
    hand: Sequence[Tile],
    tile_id: str,
    rng: random.Random | None = None,
) -> DumpResult:
    """Swap one hand tile for three from the pool.

    The dumped tile goes back into the pool before the reshuffle, so it may be
    drawn straight back.
    """

    if len(pool) < DUMP_DRAW_COUNT:
        raise DumpError("Not enough tiles in the pool to dump.")

    tile = next((t for t in hand if t.id == tile_id), None)
    if tile is None:
        raise DumpError("That tile is not in your hand.")

    reshuffled = shuffle([*pool, tile], rng)
    result = draw_tiles(reshuffled, DUMP_DRAW_COUNT)
    new_hand = [t for t in hand if t.id != tile_id] + result.drawn
    return DumpResult(hand=new_hand, pool=result.remaining, drawn=result.drawn)
