from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from bananagrams.api.models import (
    MAX_PARTICIPANTS,
    GameSnapshot,
    GameStatus,
    PositionModel,
    TileModel,
)
from bananagrams.core import moves
from bananagrams.core.board import BOARD_SIZE, Board, Position
from bananagrams.core.events import EventType, GameEvent
from bananagrams.core.moves import Arrow, InHand, Location, MoveIntent, OnBoard, TypingDirection
from bananagrams.core.tiles import (
    DumpError,
    Tile,
    deal_initial_tiles,
    draw_tiles,
    dump_tile,
    generate_tile_pool,
    starting_tile_count,
)
from bananagrams.core.words import extract_words, is_connected
from bananagrams.dictionary import WordChecker
from bananagrams.fsm import GameFSM
from bananagrams.opponents import OpponentScheduler, SchedulerConfig
from bananagrams.turn_processing.validators import GameStatusError, ValidationContext, pipeline_for_action

logger = logging.getLogger(__name__)

Listener = Callable[[GameEvent], Awaitable[None]]

WELCOME_MESSAGE = "Select player count and start the game!"


@dataclass(slots=True)
class OpponentState:
    hand: list[Tile] = field(default_factory=list)
    # Tiles the opponent has already laid down on its own board.
    placed: list[Tile] = field(default_factory=list)


@dataclass(slots=True)
class GameState:
    game_id: str
    board: Board
    status: GameStatus = GameStatus.pre_game
    participant_count: int = 1
    hand: list[Tile] = field(default_factory=list)
    opponents: list[OpponentState] = field(default_factory=list)
    pool: list[Tile] = field(default_factory=list)
    message: str = WELCOME_MESSAGE
    selection: Position | None = None
    typing_direction: TypingDirection = TypingDirection.horizontal
    last_opponent_peeler: int | None = None
    total_tiles: int = 0

    def tile_count(self) -> int:
        """Tiles across every location; constant for the lifetime of a game."""

        opponents = sum(len(o.hand) + len(o.placed) for o in self.opponents)
        return len(self.pool) + len(self.hand) + opponents + self.board.tile_count()


@dataclass(frozen=True, slots=True)
class ActionResult:
    ok: bool
    snapshot: GameSnapshot


def _tile_model(tile: Tile) -> TileModel:
    return TileModel(id=tile.id, letter=tile.letter)


class GameController:
    """Single owner of one game's canonical state.

    Every intent and every opponent timer firing goes through `_lock`, and the state
    changes themselves are synchronous, so no two mutations can interleave.
    """

    def __init__(
        self,
        *,
        dictionary: WordChecker,
        board_size: int = BOARD_SIZE,
        scheduler_config: SchedulerConfig | None = None,
        rng: random.Random | None = None,
        game_id: str | None = None,
    ) -> None:
        self.dictionary = dictionary
        self.board_size = board_size
        self._rng = rng or random.Random()
        self.state = GameState(game_id=game_id or str(uuid4()), board=Board(board_size))
        self.scheduler = OpponentScheduler(on_due=self._on_opponent_due, config=scheduler_config, rng=self._rng)
        self.history: list[GameEvent] = []
        self._lock = asyncio.Lock()
        self._listeners: list[Listener] = []
        self._outbox: list[GameEvent] = []

    @property
    def game_id(self) -> str:
        return self.state.game_id

    @property
    def status(self) -> GameStatus:
        return self.state.status

    # ---- listeners ----

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ---- read side ----

    def snapshot(self) -> GameSnapshot:
        s = self.state
        return GameSnapshot(
            game_id=s.game_id,
            status=s.status,
            is_rotten_banana=s.status == GameStatus.forfeited,
            participant_count=s.participant_count,
            board_size=s.board.size,
            board=[[_tile_model(t) if t is not None else None for t in row] for row in s.board.rows()],
            hand=[_tile_model(t) for t in s.hand],
            opponent_hand_sizes=[len(o.hand) for o in s.opponents],
            pool_size=len(s.pool),
            total_tiles=s.total_tiles,
            message=s.message,
            selection=PositionModel(x=s.selection.x, y=s.selection.y) if s.selection is not None else None,
            typing_direction=s.typing_direction,
            last_opponent_peeler=s.last_opponent_peeler,
        )

    def find_tile(self, tile_id: str, origin: Location) -> Tile | None:
        """Resolve a tile id at its claimed origin (used to build intents from ids)."""

        if isinstance(origin, InHand):
            return next((t for t in self.state.hand if t.id == tile_id), None)
        if not self.state.board.in_bounds(origin.position):
            return None
        tile = self.state.board.get(origin.position)
        return tile if tile is not None and tile.id == tile_id else None

    # ---- intents ----

    async def configure(self, participant_count: int) -> ActionResult:
        return await self._dispatch("configure", lambda: self._configure(participant_count))

    async def start_game(self, participant_count: int | None = None) -> ActionResult:
        return await self._dispatch("start", lambda: self._start(participant_count))

    async def move_tile(self, intent: MoveIntent, destination: Location) -> ActionResult:
        return await self._dispatch("move", lambda: self._move(intent, destination))

    async def peel(self) -> ActionResult:
        return await self._dispatch("peel", lambda: self._peel(opponent_index=None))

    async def dump(self, tile_id: str) -> ActionResult:
        return await self._dispatch("dump", lambda: self._dump(tile_id))

    async def check_win(self) -> ActionResult:
        return await self._dispatch("check", self._check_win)

    async def set_selection(self, position: Position | None) -> ActionResult:
        return await self._dispatch("selection", lambda: self._select(position))

    async def toggle_typing_direction(self) -> ActionResult:
        return await self._dispatch("direction", self._toggle_direction)

    async def move_selection(self, arrow: Arrow) -> ActionResult:
        return await self._dispatch("cursor", lambda: self._move_selection(arrow))

    async def place_by_letter(self, letter: str) -> ActionResult:
        return await self._dispatch("place", lambda: self._place_letter(letter))

    async def backspace(self) -> ActionResult:
        return await self._dispatch("backspace", self._backspace)

    async def reset(self) -> ActionResult:
        return await self._dispatch("reset", self._reset)

    async def run_opponent_turn(self, index: int) -> None:
        """Fire one opponent's timer right away (the scheduler does this on its own clock)."""

        await self._on_opponent_due(index, self.scheduler.generation)

    def shutdown(self) -> None:
        self.scheduler.cancel_all()

    # ---- dispatch plumbing ----

    async def _dispatch(self, action: str, apply: Callable[[], bool]) -> ActionResult:
        async with self._lock:
            pipeline_for_action(action).validate(
                ctx=ValidationContext(game_id=self.game_id, action=action),
                state=self.state,
            )
            ok = apply()
            events = self._drain()
            snapshot = self.snapshot()
        await self._publish(events)
        return ActionResult(ok=ok, snapshot=snapshot)

    async def _on_opponent_due(self, index: int, generation: int) -> None:
        async with self._lock:
            if generation != self.scheduler.generation or self.state.status != GameStatus.in_progress:
                logger.debug("Ignoring stale timer for opponent %d in game %s", index, self.game_id)
                return
            if index >= len(self.state.opponents):
                return
            self._advance_opponent(index)
            events = self._drain()
        await self._publish(events)

    def _emit(self, type: EventType, **payload: Any) -> None:
        event = GameEvent.now(type=type, game_id=self.game_id, payload=payload)
        self.history.append(event)
        self._outbox.append(event)

    def _drain(self) -> list[GameEvent]:
        events, self._outbox = self._outbox, []
        return events

    async def _publish(self, events: list[GameEvent]) -> None:
        for event in events:
            for listener in list(self._listeners):
                try:
                    await listener(event)
                except Exception:
                    logger.exception("Listener failed for %s in game %s", event.type, self.game_id)

    def _reject(self, message: str) -> bool:
        self.state.message = message
        self._emit("REJECTED", message=message)
        return False

    def _transition(self, event: str) -> None:
        fsm = GameFSM(self.state)
        fsm.send(event)
        fsm.sync_status_to_model()

    # ---- state changes (always called with the lock held) ----

    def _configure(self, participant_count: int) -> bool:
        if not 1 <= participant_count <= MAX_PARTICIPANTS:
            raise ValueError(f"participant_count must be between 1 and {MAX_PARTICIPANTS}")
        self.state.participant_count = participant_count
        self.state.message = f"{participant_count} player(s) selected."
        return True

    def _start(self, participant_count: int | None) -> bool:
        if participant_count is not None:
            self._configure(participant_count)

        s = self.state
        pool = generate_tile_pool(self._rng)
        deal = deal_initial_tiles(pool, s.participant_count, starting_tile_count(s.participant_count))

        s.board = Board(self.board_size)
        s.hand = deal.human_hand
        s.opponents = [OpponentState(hand=h) for h in deal.opponent_hands]
        s.pool = deal.remaining_pool
        s.total_tiles = len(pool)
        s.selection = None
        s.typing_direction = TypingDirection.horizontal
        s.last_opponent_peeler = None
        s.message = "Game started! Build your word grid."
        self._transition("start_game")

        if s.opponents:
            self.scheduler.arm([len(o.hand) for o in s.opponents])

        logger.info(
            "Game %s started: %d participant(s), %d tiles each, %d left in pool",
            self.game_id, s.participant_count, len(s.hand), len(s.pool),
        )
        self._emit("GAME_STARTED", participant_count=s.participant_count, hand_size=len(s.hand))
        return True

    def _move(self, intent: MoveIntent, destination: Location) -> bool:
        s = self.state
        if self.find_tile(intent.tile.id, intent.origin) != intent.tile:
            return self._reject("That tile is no longer there.")
        if isinstance(destination, OnBoard) and not s.board.in_bounds(destination.position):
            return self._reject("That cell is outside the board.")

        result = moves.move_tile(s.board, s.hand, intent, destination)
        if result.board is s.board and result.hand is s.hand:
            return True

        s.board, s.hand = result.board, list(result.hand)
        s.message = ""
        self._emit("TILE_MOVED", tile_id=intent.tile.id)
        self._after_hand_change()
        return True

    def _after_hand_change(self) -> None:
        if self.state.hand or self.state.status != GameStatus.in_progress:
            return
        if self.state.pool:
            self._peel(opponent_index=None)
        else:
            self._check_win()

    def _peel(self, *, opponent_index: int | None) -> bool:
        s = self.state
        if not s.pool:
            return self._reject("No more tiles to peel!")

        pool = s.pool
        drawn = draw_tiles(pool, 1)
        hand = s.hand + drawn.drawn
        pool = drawn.remaining
        opponent_hands: list[list[Tile]] = []
        for opp in s.opponents:
            drawn = draw_tiles(pool, 1)
            opponent_hands.append(opp.hand + drawn.drawn)
            pool = drawn.remaining

        s.hand, s.pool = hand, pool
        for opp, new_hand in zip(s.opponents, opponent_hands, strict=True):
            opp.hand = new_hand
        s.last_opponent_peeler = opponent_index

        who = "You" if opponent_index is None else f"Player {opponent_index + 2}"
        s.message = f"{who} peeled! Everyone drew a tile."
        logger.info("Game %s: %s peeled, %d tiles left", self.game_id, who, len(s.pool))
        self._emit("PEELED", opponent=opponent_index, pool_size=len(s.pool))

        if not s.pool:
            # The last draw may leave an opponent with nothing in hand and nothing to peel.
            out = next((i for i, o in enumerate(s.opponents) if not o.hand), None)
            if out is not None:
                self._opponent_out(out)
                return True

        if s.opponents:
            self.scheduler.arm([len(o.hand) for o in s.opponents])
        return True

    def _dump(self, tile_id: str) -> bool:
        s = self.state
        try:
            result = dump_tile(s.pool, s.hand, tile_id, self._rng)
        except DumpError as e:
            return self._reject(str(e))

        s.hand, s.pool = result.hand, result.pool
        s.message = "Dumped 1 tile for 3 new ones."
        logger.debug("Game %s: dumped %s", self.game_id, tile_id)
        self._emit("DUMPED", tile_id=tile_id, pool_size=len(s.pool))
        return True

    def _check_win(self) -> bool:
        s = self.state
        if s.hand:
            return self._reject("You must use all your tiles to win!")

        positions = [pos for pos, _ in s.board.occupied()]
        if not positions:
            return self._reject("Board is empty. Nothing to check.")

        if not self.dictionary.is_loaded:
            if self.dictionary.load_error:
                return self._reject("Error checking words. Could not load dictionary.")
            return self._reject("The dictionary is still loading. Try again in a moment.")

        words = extract_words(s.board)
        invalid = [w for w in words if not self.dictionary.contains(w)]
        if invalid:
            return self._reject_board(f"Invalid words: {', '.join(dict.fromkeys(invalid))}")

        if not words:
            return self._reject("Tiles must form words of at least 2 letters.")

        if not is_connected(positions):
            return self._reject_board("All tiles must be connected in a single group.")

        self._finish("declare_win", "Bananagrams! You win!")
        return True

    def _reject_board(self, reason: str) -> bool:
        if self.state.pool:
            return self._reject(reason)
        # Nothing left to draw, so the board can never be fixed.
        self._finish("declare_forfeit", f"Rotten banana! {reason}")
        return False

    def _finish(self, event: str, message: str) -> None:
        self.scheduler.cancel_all()
        self._transition(event)
        self.state.selection = None
        self.state.message = message
        logger.info("Game %s over (%s): %s", self.game_id, self.state.status.value, message)
        self._emit("GAME_OVER", status=self.state.status.value, message=message)

    def _advance_opponent(self, index: int) -> None:
        s = self.state
        opp = s.opponents[index]
        if opp.hand:
            tile, *rest = opp.hand
            opp.hand, opp.placed = rest, [*opp.placed, tile]
            logger.debug("Game %s: opponent %d placed a tile (%d left)", self.game_id, index, len(opp.hand))
            self._emit("OPPONENT_PLACED_TILE", opponent=index, hand_size=len(opp.hand))

        if opp.hand:
            self.scheduler.schedule(index, len(opp.hand))
            return

        if not s.pool:
            self._opponent_out(index)
            return

        self._peel(opponent_index=index)

    def _opponent_out(self, index: int) -> None:
        self._finish("declare_loss", f"Player {index + 2} used all their tiles first. You lose!")

    def _require_selection(self) -> Position:
        selection = self.state.selection
        if selection is None:
            raise GameStatusError("No cell is selected")
        return selection

    def _select(self, position: Position | None) -> bool:
        if position is not None and not self.state.board.in_bounds(position):
            return self._reject("That cell is outside the board.")
        self.state.selection = position
        self._emit("CURSOR_CHANGED", selection=None if position is None else [position.x, position.y])
        return True

    def _toggle_direction(self) -> bool:
        s = self.state
        s.typing_direction = (
            TypingDirection.vertical if s.typing_direction == TypingDirection.horizontal else TypingDirection.horizontal
        )
        s.message = f"Typing direction: {s.typing_direction.value}."
        self._emit("CURSOR_CHANGED", typing_direction=s.typing_direction.value)
        return True

    def _move_selection(self, arrow: Arrow) -> bool:
        s = self.state
        s.selection = moves.move_cursor(self._require_selection(), arrow, s.board.size)
        self._emit("CURSOR_CHANGED", selection=[s.selection.x, s.selection.y])
        return True

    def _place_letter(self, letter: str) -> bool:
        s = self.state
        cursor = self._require_selection()
        try:
            result = moves.place_by_letter(s.board, s.hand, cursor, s.typing_direction, letter)
        except moves.LetterNotInHandError as e:
            return self._reject(str(e))

        s.board, s.hand, s.selection = result.board, list(result.hand), result.cursor
        s.message = ""
        self._emit("TILE_MOVED", tile_id=result.tile.id if result.tile else None)
        self._after_hand_change()
        return True

    def _backspace(self) -> bool:
        s = self.state
        result = moves.backspace(s.board, s.hand, self._require_selection(), s.typing_direction)
        s.board, s.hand, s.selection = result.board, list(result.hand), result.cursor
        if result.tile is not None:
            self._emit("TILE_MOVED", tile_id=result.tile.id)
        else:
            self._emit("CURSOR_CHANGED", selection=[s.selection.x, s.selection.y])
        return True

    def _reset(self) -> bool:
        self.scheduler.cancel_all()
        s = self.state
        if s.status != GameStatus.pre_game:
            self._transition("reset_game")
        s.board = Board(self.board_size)
        s.hand, s.opponents, s.pool = [], [], []
        s.selection = None
        s.typing_direction = TypingDirection.horizontal
        s.last_opponent_peeler = None
        s.total_tiles = 0
        s.message = WELCOME_MESSAGE
        logger.info("Game %s reset", self.game_id)
        self._emit("GAME_RESET")
        return True

