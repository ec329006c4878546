from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

from bananagrams.core.events import GameEvent

logger = logging.getLogger(__name__)


class GameWebSocketHub:
    """Pushes game events to every socket watching a game.

    Opponent timers change state without any HTTP request, so this is the only way
    a client learns about an opponent peel or a loss. Messages are small; clients
    re-fetch the snapshot when they see one.
    """

    def __init__(self) -> None:
        self._sockets: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, game_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._sockets[game_id].add(websocket)

    async def disconnect(self, game_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            watchers = self._sockets.get(game_id)
            if watchers is None:
                return
            watchers.discard(websocket)
            if not watchers:
                del self._sockets[game_id]

    def watcher_count(self, game_id: str) -> int:
        return len(self._sockets.get(game_id, ()))

    async def publish(self, event: GameEvent) -> None:
        await self.broadcast(event.game_id, event.as_message())

    async def broadcast(self, game_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            targets = list(self._sockets.get(game_id, ()))

        stale: list[WebSocket] = []
        for ws in targets:
            try:
                await ws.send_json(payload)
            except Exception:
                logger.debug("Dropping dead socket for game %s", game_id)
                stale.append(ws)

        for ws in stale:
            await self.disconnect(game_id, ws)


hub = GameWebSocketHub()
