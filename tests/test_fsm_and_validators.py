from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from bananagrams.api.models import GameStatus
from bananagrams.controller import GameState
from bananagrams.core.board import Board, Position
from bananagrams.fsm import GameFSM
from bananagrams.turn_processing.validators import (
    DEFAULT_ACTION_PIPELINES,
    GameStatusError,
    ValidationContext,
    pipeline_for_action,
)


def _state(status: GameStatus) -> GameState:
    return GameState(game_id="g1", board=Board(5), status=status)


def test_fsm_start_then_win() -> None:
    gs = _state(GameStatus.pre_game)
    fsm = GameFSM(gs)

    fsm.send("start_game")
    fsm.sync_status_to_model()
    assert gs.status == GameStatus.in_progress

    fsm.send("declare_win")
    fsm.sync_status_to_model()
    assert gs.status == GameStatus.won


@pytest.mark.parametrize(
    ("event", "expected"),
    [("declare_loss", GameStatus.lost), ("declare_forfeit", GameStatus.forfeited)],
)
def test_fsm_terminal_transitions(event: str, expected: GameStatus) -> None:
    gs = _state(GameStatus.in_progress)
    fsm = GameFSM(gs)

    fsm.send(event)
    fsm.sync_status_to_model()

    assert gs.status == expected


@pytest.mark.parametrize("status", [GameStatus.in_progress, GameStatus.won, GameStatus.lost, GameStatus.forfeited])
def test_fsm_reset_from_anywhere_but_pre_game(status: GameStatus) -> None:
    gs = _state(status)
    fsm = GameFSM(gs)

    fsm.send("reset_game")
    fsm.sync_status_to_model()

    assert gs.status == GameStatus.pre_game


def test_fsm_rejects_win_before_start() -> None:
    fsm = GameFSM(_state(GameStatus.pre_game))

    with pytest.raises(TransitionNotAllowed):
        fsm.send("declare_win")


def test_fsm_terminal_states_do_not_restart() -> None:
    fsm = GameFSM(_state(GameStatus.won))

    with pytest.raises(TransitionNotAllowed):
        fsm.send("start_game")


def test_status_validator_denies_wrong_status() -> None:
    gs = _state(GameStatus.pre_game)
    ctx = ValidationContext(game_id=gs.game_id, action="peel")

    with pytest.raises(GameStatusError) as e:
        pipeline_for_action("peel").validate(ctx=ctx, state=gs)

    assert "not allowed" in str(e.value)
    assert "pre-game" in str(e.value)


def test_status_errors_are_value_errors() -> None:
    assert issubclass(GameStatusError, ValueError)


def test_keyboard_actions_need_a_selection() -> None:
    gs = _state(GameStatus.in_progress)
    ctx = ValidationContext(game_id=gs.game_id, action="place")

    with pytest.raises(GameStatusError) as e:
        pipeline_for_action("place").validate(ctx=ctx, state=gs)
    assert str(e.value) == "Action 'place' requires a selected cell"

    gs.selection = Position(0, 0)
    pipeline_for_action("place").validate(ctx=ctx, state=gs)


@pytest.mark.parametrize("status", list(GameStatus))
def test_reset_always_allowed(status: GameStatus) -> None:
    gs = _state(status)
    pipeline_for_action("reset").validate(ctx=ValidationContext(game_id="g1", action="reset"), state=gs)


def test_start_only_in_pre_game() -> None:
    gs = _state(GameStatus.in_progress)
    with pytest.raises(GameStatusError):
        pipeline_for_action("start").validate(ctx=ValidationContext(game_id="g1", action="start"), state=gs)


def test_unknown_action_pipeline_raises() -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_action("nope")

    assert str(e.value) == "Unknown action: nope"
    assert "nope" not in DEFAULT_ACTION_PIPELINES
