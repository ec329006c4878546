from __future__ import annotations

import logging
import random

from bananagrams.api.models import MAX_PARTICIPANTS
from bananagrams.controller import GameController
from bananagrams.dictionary import DictionaryLoadError, WordList
from bananagrams.opponents import SchedulerConfig
from bananagrams.settings import Settings

logger = logging.getLogger(__name__)


def validate_participant_count(participant_count: int, *, max_participants: int = MAX_PARTICIPANTS) -> None:
    if participant_count < 1:
        raise ValueError("At least one participant is required")
    if participant_count > max_participants:
        raise ValueError(f"At most {max_participants} participants allowed")


class GameRegistry:
    """In-process table of live games.

    Games live only as long as the process; there is no persistence.
    """

    def __init__(self, *, settings: Settings, dictionary: WordList | None = None) -> None:
        self.settings = settings
        self.dictionary = dictionary if dictionary is not None else WordList()
        self._games: dict[str, GameController] = {}

    def scheduler_config(self) -> SchedulerConfig:
        s = self.settings
        return SchedulerConfig(
            base_delay_s=s.opponent_base_delay_s,
            jitter_s=s.opponent_jitter_s,
            last_tile_slowdown=s.opponent_last_tile_slowdown,
        )

    async def load_dictionary(self) -> None:
        try:
            await self.dictionary.load(self.settings.word_list_path, column=self.settings.word_list_column)
        except DictionaryLoadError:
            # Already logged; win checks report it and fail closed.
            return

    def create_game(self, *, participant_count: int = 1, rng: random.Random | None = None) -> GameController:
        validate_participant_count(participant_count)

        seed = random.SystemRandom().randint(1, 2**31 - 1)
        controller = GameController(
            dictionary=self.dictionary,
            board_size=self.settings.board_size,
            scheduler_config=self.scheduler_config(),
            rng=rng or random.Random(seed),
        )
        controller.state.participant_count = participant_count
        self._games[controller.game_id] = controller
        logger.info("Created game %s for %d participant(s)", controller.game_id, participant_count)
        return controller

    def get_game(self, game_id: str) -> GameController | None:
        return self._games.get(game_id)

    def require_game(self, game_id: str) -> GameController:
        controller = self.get_game(game_id)
        if controller is None:
            raise LookupError("Game not found")
        return controller

    def remove_game(self, game_id: str) -> None:
        controller = self._games.pop(game_id, None)
        if controller is None:
            raise LookupError("Game not found")
        controller.shutdown()
        logger.info("Removed game %s", game_id)

    def list_games(self) -> list[GameController]:
        return list(self._games.values())

    def shutdown(self) -> None:
        for controller in self._games.values():
            controller.shutdown()


_REGISTRY: GameRegistry | None = None


def init_registry(*, settings: Settings) -> GameRegistry:
    """Create the process-wide registry once.

    Safe to call multiple times; subsequent calls return the existing instance.
    """

    global _REGISTRY
    if _REGISTRY is None:
        _REGISTRY = GameRegistry(settings=settings)
    return _REGISTRY


def reset_registry_for_tests(registry: GameRegistry | None = None) -> None:
    global _REGISTRY
    if _REGISTRY is not None:
        _REGISTRY.shutdown()
    _REGISTRY = registry


def get_registry() -> GameRegistry:
    if _REGISTRY is None:
        raise RuntimeError("Game registry not initialized. Call init_registry() at startup.")
    return _REGISTRY
