from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from bananagrams.api.models import GameStatus

if TYPE_CHECKING:
    from bananagrams.controller import GameState


class GameStatusError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    game_id: str
    action: str


class IntentValidator(ABC):
    """A small, composable validation unit for an incoming intent."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class StatusValidator(IntentValidator):
    """Validates the current game status for a given intent."""

    allowed_statuses: frozenset[GameStatus]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.status not in self.allowed_statuses:
            allowed = ",".join(sorted(s.value for s in self.allowed_statuses))
            raise GameStatusError(
                f"Action '{ctx.action}' not allowed in status '{state.status.value}' (allowed: {allowed})"
            )


@dataclass(frozen=True, slots=True)
class SelectionValidator(IntentValidator):
    """Keyboard placement needs a selected cell to type into."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.selection is None:
            raise GameStatusError(f"Action '{ctx.action}' requires a selected cell")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[IntentValidator, ...]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


_PRE_GAME = StatusValidator(allowed_statuses=frozenset({GameStatus.pre_game}))
_IN_PROGRESS = StatusValidator(allowed_statuses=frozenset({GameStatus.in_progress}))

DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "configure": ValidatorPipeline(validators=(_PRE_GAME,)),
    "start": ValidatorPipeline(validators=(_PRE_GAME,)),
    "move": ValidatorPipeline(validators=(_IN_PROGRESS,)),
    "peel": ValidatorPipeline(validators=(_IN_PROGRESS,)),
    "dump": ValidatorPipeline(validators=(_IN_PROGRESS,)),
    "check": ValidatorPipeline(validators=(_IN_PROGRESS,)),
    "selection": ValidatorPipeline(validators=(_IN_PROGRESS,)),
    "direction": ValidatorPipeline(validators=(_IN_PROGRESS,)),
    "cursor": ValidatorPipeline(validators=(_IN_PROGRESS, SelectionValidator())),
    "place": ValidatorPipeline(validators=(_IN_PROGRESS, SelectionValidator())),
    "backspace": ValidatorPipeline(validators=(_IN_PROGRESS, SelectionValidator())),
    # Reset is always allowed.
    "reset": ValidatorPipeline(validators=()),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
