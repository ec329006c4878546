from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from bananagrams.core.tiles import Tile

BOARD_SIZE = 25


@dataclass(frozen=True, slots=True)
class Position:
    x: int  # column
    y: int  # row


class Board:
    """Square grid of tiles.

    Only storage primitives live here; rule enforcement belongs to the move engine
    and the controller.
    """

    __slots__ = ("size", "_cells")

    def __init__(self, size: int = BOARD_SIZE, cells: list[list[Tile | None]] | None = None) -> None:
        if size < 1:
            raise ValueError("board size must be >= 1")
        self.size = size
        self._cells = cells if cells is not None else [[None] * size for _ in range(size)]

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.size and 0 <= pos.y < self.size

    def get(self, pos: Position) -> Tile | None:
        return self._cells[pos.y][pos.x]

    def set(self, pos: Position, tile: Tile | None) -> None:
        self._cells[pos.y][pos.x] = tile

    def copy(self) -> Board:
        return Board(self.size, [list(row) for row in self._cells])

    def rows(self) -> list[list[Tile | None]]:
        return [list(row) for row in self._cells]

    def occupied(self) -> Iterator[tuple[Position, Tile]]:
        """Occupied cells in row-major scan order."""

        for y, row in enumerate(self._cells):
            for x, tile in enumerate(row):
                if tile is not None:
                    yield Position(x=x, y=y), tile

    def tile_count(self) -> int:
        return sum(1 for _ in self.occupied())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self._cells == other._cells

    def __repr__(self) -> str:
        return f"Board(size={self.size}, tiles={self.tile_count()})"
