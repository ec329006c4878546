from __future__ import annotations

from fastapi import HTTPException, status

from bananagrams.controller import GameController
from bananagrams.game_store import GameRegistry, get_registry


def get_games() -> GameRegistry:
    return get_registry()


def require_controller(registry: GameRegistry, game_id: str) -> GameController:
    try:
        return registry.require_game(game_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
