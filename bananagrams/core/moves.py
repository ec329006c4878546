"""Tile movement between the hand and the board.

All functions are pure: they take the current board and hand and return new
values, leaving their inputs untouched.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from bananagrams.core.board import Board, Position
from bananagrams.core.tiles import Tile


@dataclass(frozen=True, slots=True)
class InHand:
    pass


@dataclass(frozen=True, slots=True)
class OnBoard:
    position: Position


Location = InHand | OnBoard

HAND = InHand()


class TypingDirection(StrEnum):
    horizontal = "horizontal"
    vertical = "vertical"


class Arrow(StrEnum):
    up = "up"
    down = "down"
    left = "left"
    right = "right"


@dataclass(frozen=True, slots=True)
class MoveIntent:
    tile: Tile
    origin: Location


@dataclass(frozen=True, slots=True)
class MoveResult:
    board: Board
    hand: Sequence[Tile]


@dataclass(frozen=True, slots=True)
class CursorResult:
    board: Board
    hand: Sequence[Tile]
    cursor: Position
    tile: Tile | None = None


class LetterNotInHandError(ValueError):
    def __init__(self, letter: str) -> None:
        super().__init__(f"No tile with the letter {letter.upper()} in your hand.")
        self.letter = letter


def move_tile(board: Board, hand: Sequence[Tile], intent: MoveIntent, destination: Location) -> MoveResult:
    tile, origin = intent.tile, intent.origin

    if isinstance(origin, InHand) and isinstance(destination, OnBoard):
        new_board = board.copy()
        displaced = new_board.get(destination.position)
        new_hand = [t for t in hand if t.id != tile.id]
        new_board.set(destination.position, tile)
        if displaced is not None:
            new_hand.append(displaced)
        return MoveResult(board=new_board, hand=new_hand)

    if isinstance(origin, OnBoard) and isinstance(destination, InHand):
        new_board = board.copy()
        new_board.set(origin.position, None)
        new_hand = list(hand)
        if not any(t.id == tile.id for t in new_hand):
            new_hand.append(tile)
        return MoveResult(board=new_board, hand=new_hand)

    if isinstance(origin, OnBoard) and isinstance(destination, OnBoard):
        if origin.position == destination.position:
            return MoveResult(board=board, hand=hand)
        new_board = board.copy()
        displaced = new_board.get(destination.position)
        new_board.set(destination.position, tile)
        new_board.set(origin.position, displaced)
        return MoveResult(board=new_board, hand=hand)

    if isinstance(origin, InHand) and isinstance(destination, InHand):
        return MoveResult(board=board, hand=hand)

    raise TypeError(f"Unsupported move: {origin!r} -> {destination!r}")


def step_cursor(cursor: Position, direction: TypingDirection, delta: int, size: int) -> Position:
    def clamp(v: int) -> int:
        return max(0, min(size - 1, v))

    if direction == TypingDirection.horizontal:
        return Position(x=clamp(cursor.x + delta), y=cursor.y)
    return Position(x=cursor.x, y=clamp(cursor.y + delta))


def move_cursor(cursor: Position, arrow: Arrow, size: int) -> Position:
    if arrow == Arrow.up:
        return step_cursor(cursor, TypingDirection.vertical, -1, size)
    if arrow == Arrow.down:
        return step_cursor(cursor, TypingDirection.vertical, 1, size)
    if arrow == Arrow.left:
        return step_cursor(cursor, TypingDirection.horizontal, -1, size)
    return step_cursor(cursor, TypingDirection.horizontal, 1, size)


def place_by_letter(
    board: Board,
    hand: Sequence[Tile],
    cursor: Position,
    direction: TypingDirection,
    letter: str,
) -> CursorResult:
    """Place the first matching hand tile at the cursor, then advance the cursor."""

    wanted = letter.strip().casefold()
    tile = next((t for t in hand if t.letter.casefold() == wanted), None) if wanted else None
    if tile is None:
        raise LetterNotInHandError(letter)

    moved = move_tile(board, hand, MoveIntent(tile=tile, origin=HAND), OnBoard(cursor))
    return CursorResult(
        board=moved.board,
        hand=moved.hand,
        cursor=step_cursor(cursor, direction, 1, board.size),
        tile=tile,
    )


def backspace(board: Board, hand: Sequence[Tile], cursor: Position, direction: TypingDirection) -> CursorResult:
    previous = step_cursor(cursor, direction, -1, board.size)
    tile = board.get(cursor)
    if tile is None:
        return CursorResult(board=board, hand=hand, cursor=previous)

    moved = move_tile(board, hand, MoveIntent(tile=tile, origin=OnBoard(cursor)), HAND)
    return CursorResult(board=moved.board, hand=moved.hand, cursor=previous, tile=tile)
