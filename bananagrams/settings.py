from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from bananagrams.core.board import BOARD_SIZE
from bananagrams.dictionary import DEFAULT_WORD_LIST


@dataclass(frozen=True, slots=True)
class Settings:
    board_size: int = BOARD_SIZE
    word_list_path: Path = DEFAULT_WORD_LIST
    # None => one word per line; otherwise CSV column holding the word.
    word_list_column: int | None = None
    opponent_base_delay_s: float = 4.0
    opponent_jitter_s: float = 4.0
    opponent_last_tile_slowdown: float = 2.5
    log_level: str = "INFO"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def settings_from_env(*, env_file: Path | None = None) -> Settings:
    """Build settings from BANANAGRAMS_* environment variables.

    A `.env` file (if present) fills in variables that are not already exported.
    """

    load_dotenv(dotenv_path=env_file, override=False)

    defaults = Settings()
    board_size = _env_int("BANANAGRAMS_BOARD_SIZE", defaults.board_size)
    if board_size is None or board_size < 5:
        raise ValueError("BANANAGRAMS_BOARD_SIZE must be >= 5")

    word_list = os.environ.get("BANANAGRAMS_WORD_LIST", "").strip()

    return Settings(
        board_size=board_size,
        word_list_path=Path(word_list) if word_list else defaults.word_list_path,
        word_list_column=_env_int("BANANAGRAMS_WORD_LIST_COLUMN", None),
        opponent_base_delay_s=_env_float("BANANAGRAMS_OPPONENT_BASE_DELAY", defaults.opponent_base_delay_s),
        opponent_jitter_s=_env_float("BANANAGRAMS_OPPONENT_JITTER", defaults.opponent_jitter_s),
        opponent_last_tile_slowdown=_env_float(
            "BANANAGRAMS_OPPONENT_LAST_TILE_SLOWDOWN", defaults.opponent_last_tile_slowdown
        ),
        log_level=os.environ.get("BANANAGRAMS_LOG_LEVEL", defaults.log_level).strip().upper() or "INFO",
    )
