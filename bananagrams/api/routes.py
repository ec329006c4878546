from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from bananagrams.api.deps import get_games, require_controller
from bananagrams.api.models import (
    ActionResponse,
    CursorRequest,
    DumpRequest,
    GameCreateRequest,
    GameListResponse,
    GameSnapshot,
    MoveTileRequest,
    PlaceLetterRequest,
    PositionModel,
    SelectionRequest,
    StartGameRequest,
)
from bananagrams.controller import ActionResult
from bananagrams.core.board import Position
from bananagrams.core.moves import HAND, Location, MoveIntent, OnBoard
from bananagrams.core.tiles import Tile
from bananagrams.game_store import GameRegistry
from bananagrams.websocket_hub import hub

router = APIRouter()


def _location(value: Literal["hand"] | PositionModel) -> Location:
    if isinstance(value, PositionModel):
        return OnBoard(Position(x=value.x, y=value.y))
    return HAND


async def _run(action: Callable[[], Awaitable[ActionResult]]) -> ActionResponse:
    try:
        result = await action()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return ActionResponse(ok=result.ok, game=result.snapshot)


@router.websocket("/ws/game/{game_id}")
async def game_updates_ws(websocket: WebSocket, game_id: str) -> None:
    await hub.connect(game_id, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(game_id, websocket)
    except Exception:
        await hub.disconnect(game_id, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/game", response_model=GameSnapshot, status_code=status.HTTP_201_CREATED)
async def create_game_route(payload: GameCreateRequest, games: GameRegistry = Depends(get_games)) -> GameSnapshot:
    try:
        controller = games.create_game(participant_count=payload.participant_count)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    controller.add_listener(hub.publish)
    return controller.snapshot()


@router.get("/game", response_model=GameListResponse)
async def list_games_route(games: GameRegistry = Depends(get_games)) -> GameListResponse:
    return GameListResponse(games=[c.snapshot() for c in games.list_games()])


@router.get("/game/{game_id}", response_model=GameSnapshot)
async def get_game_route(game_id: str, games: GameRegistry = Depends(get_games)) -> GameSnapshot:
    return require_controller(games, game_id).snapshot()


@router.delete("/game/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_game_route(game_id: str, games: GameRegistry = Depends(get_games)) -> None:
    try:
        games.remove_game(game_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post("/game/{game_id}/start", response_model=ActionResponse)
async def start_route(game_id: str, payload: StartGameRequest, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(lambda: c.start_game(payload.participant_count))


@router.post("/game/{game_id}/move", response_model=ActionResponse)
async def move_route(game_id: str, payload: MoveTileRequest, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    origin = _location(payload.origin)
    # An unknown id still goes through the controller so the rejection is reported like any other.
    tile = c.find_tile(payload.tile_id, origin) or Tile(id=payload.tile_id, letter="")
    return await _run(lambda: c.move_tile(MoveIntent(tile=tile, origin=origin), _location(payload.destination)))


@router.post("/game/{game_id}/peel", response_model=ActionResponse)
async def peel_route(game_id: str, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(c.peel)


@router.post("/game/{game_id}/dump", response_model=ActionResponse)
async def dump_route(game_id: str, payload: DumpRequest, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(lambda: c.dump(payload.tile_id))


@router.post("/game/{game_id}/check", response_model=ActionResponse)
async def check_route(game_id: str, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(c.check_win)


@router.post("/game/{game_id}/selection", response_model=ActionResponse)
async def selection_route(
    game_id: str,
    payload: SelectionRequest,
    games: GameRegistry = Depends(get_games),
) -> ActionResponse:
    c = require_controller(games, game_id)
    pos = Position(x=payload.position.x, y=payload.position.y) if payload.position is not None else None
    return await _run(lambda: c.set_selection(pos))


@router.post("/game/{game_id}/direction", response_model=ActionResponse)
async def direction_route(game_id: str, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(c.toggle_typing_direction)


@router.post("/game/{game_id}/cursor", response_model=ActionResponse)
async def cursor_route(game_id: str, payload: CursorRequest, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(lambda: c.move_selection(payload.arrow))


@router.post("/game/{game_id}/place", response_model=ActionResponse)
async def place_route(
    game_id: str,
    payload: PlaceLetterRequest,
    games: GameRegistry = Depends(get_games),
) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(lambda: c.place_by_letter(payload.letter))


@router.post("/game/{game_id}/backspace", response_model=ActionResponse)
async def backspace_route(game_id: str, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(c.backspace)


@router.post("/game/{game_id}/reset", response_model=ActionResponse)
async def reset_route(game_id: str, games: GameRegistry = Depends(get_games)) -> ActionResponse:
    c = require_controller(games, game_id)
    return await _run(c.reset)
