from __future__ import annotations

from typing import TYPE_CHECKING

from statemachine import State, StateMachine

from bananagrams.api.models import GameStatus

if TYPE_CHECKING:
    from bananagrams.controller import GameState


class GameFSM(StateMachine):
    """FSM wrapper around the game status.

    - statuses: pre-game -> in-progress -> won | lost | forfeited
    - any status returns to pre-game through a reset
    - the controller mutates tiles; the FSM only guards status transitions.
    """

    pre_game = State(GameStatus.pre_game.value, value=GameStatus.pre_game.value, initial=True)
    in_progress = State(GameStatus.in_progress.value, value=GameStatus.in_progress.value)
    won = State(GameStatus.won.value, value=GameStatus.won.value)
    lost = State(GameStatus.lost.value, value=GameStatus.lost.value)
    forfeited = State(GameStatus.forfeited.value, value=GameStatus.forfeited.value)

    start_game = pre_game.to(in_progress)
    declare_win = in_progress.to(won)
    declare_loss = in_progress.to(lost)
    declare_forfeit = in_progress.to(forfeited)
    reset_game = in_progress.to(pre_game) | won.to(pre_game) | lost.to(pre_game) | forfeited.to(pre_game)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=game.status.value)

    def sync_status_to_model(self) -> None:
        self.game.status = GameStatus(str(self.current_state.value))
