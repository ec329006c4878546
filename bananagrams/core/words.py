from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from bananagrams.core.board import Board, Position
from bananagrams.core.tiles import Tile

MIN_WORD_LENGTH = 2


def _runs(line: Iterable[Tile | None]) -> list[str]:
    words: list[str] = []
    current = ""
    for tile in line:
        if tile is not None:
            current += tile.letter
            continue
        if len(current) >= MIN_WORD_LENGTH:
            words.append(current)
        current = ""
    if len(current) >= MIN_WORD_LENGTH:
        words.append(current)
    return words


def extract_words(board: Board) -> list[str]:
    """All horizontal then all vertical runs of two or more letters.

    Single letters are never reported, and nothing is deduplicated.
    """

    grid = board.rows()
    words: list[str] = []
    for row in grid:
        words.extend(_runs(row))
    for x in range(board.size):
        words.extend(_runs(row[x] for row in grid))
    return words


def is_connected(positions: Iterable[Position]) -> bool:
    """True iff the occupied cells form one 4-connected group.

    An empty board is not considered connected.
    """

    occupied = list(positions)
    if not occupied:
        return False

    remaining = set(occupied)
    start = occupied[0]
    visited = {start}
    queue = deque([start])
    while queue:
        pos = queue.popleft()
        for nxt in (
            Position(pos.x - 1, pos.y),
            Position(pos.x + 1, pos.y),
            Position(pos.x, pos.y - 1),
            Position(pos.x, pos.y + 1),
        ):
            if nxt in remaining and nxt not in visited:
                visited.add(nxt)
                queue.append(nxt)

    return len(visited) == len(remaining)
