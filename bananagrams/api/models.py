from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from bananagrams.core.moves import Arrow, TypingDirection

MAX_PARTICIPANTS = 8


class GameStatus(StrEnum):
    pre_game = "pre-game"
    in_progress = "in-progress"
    won = "won"
    lost = "lost"
    # Rotten banana: hand and pool empty but the board does not hold up.
    forfeited = "forfeited"


TERMINAL_STATUSES = frozenset({GameStatus.won, GameStatus.lost, GameStatus.forfeited})


class PositionModel(BaseModel):
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)


class TileModel(BaseModel):
    id: str
    letter: str


class GameSnapshot(BaseModel):
    game_id: str
    status: GameStatus
    is_rotten_banana: bool = False
    participant_count: int
    board_size: int
    board: list[list[TileModel | None]]
    hand: list[TileModel] = Field(default_factory=list)
    opponent_hand_sizes: list[int] = Field(default_factory=list)
    pool_size: int = 0
    total_tiles: int = 0
    message: str = ""
    selection: PositionModel | None = None
    typing_direction: TypingDirection = TypingDirection.horizontal

    # Index into opponent_hand_sizes of whoever caused the most recent peel; None when the human peeled.
    last_opponent_peeler: int | None = None


class GameCreateRequest(BaseModel):
    participant_count: int = Field(1, ge=1, le=MAX_PARTICIPANTS)


class StartGameRequest(BaseModel):
    participant_count: int | None = Field(None, ge=1, le=MAX_PARTICIPANTS)


class MoveTileRequest(BaseModel):
    tile_id: str
    origin: Literal["hand"] | PositionModel
    destination: Literal["hand"] | PositionModel


class DumpRequest(BaseModel):
    tile_id: str


class SelectionRequest(BaseModel):
    position: PositionModel | None = None


class CursorRequest(BaseModel):
    arrow: Arrow


class PlaceLetterRequest(BaseModel):
    letter: str = Field(..., min_length=1, max_length=1)


class GameListResponse(BaseModel):
    games: list[GameSnapshot]


class ActionResponse(BaseModel):
    ok: bool
    game: GameSnapshot
