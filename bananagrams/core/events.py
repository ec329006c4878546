from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "GAME_STARTED",
    "GAME_RESET",
    "TILE_MOVED",
    "CURSOR_CHANGED",
    "PEELED",
    "DUMPED",
    "OPPONENT_PLACED_TILE",
    "GAME_OVER",
    "REJECTED",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    game_id: str
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, game_id: str, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, game_id=game_id, payload=payload, ts=datetime.now(timezone.utc))

    def as_message(self) -> dict[str, object]:
        return {
            "type": "game_updated",
            "event": self.type,
            "game_id": self.game_id,
            "payload": self.payload,
            "ts": self.ts.isoformat(),
        }
