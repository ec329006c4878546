from __future__ import annotations

import asyncio
import csv
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_WORD_LIST = Path(__file__).resolve().parent / "assets" / "words.txt"


class DictionaryLoadError(RuntimeError):
    pass


class WordChecker(Protocol):
    """What the controller needs from a dictionary."""

    @property
    def is_loaded(self) -> bool:  # pragma: no cover
        ...

    @property
    def load_error(self) -> str | None:  # pragma: no cover
        ...

    def contains(self, word: str) -> bool:  # pragma: no cover
        ...


def _norm(word: str) -> str:
    return word.strip().casefold()


def read_word_list(path: Path, *, column: int | None = None) -> set[str]:
    """Read a word list file.

    With `column=None` every non-empty line is a word. Otherwise the file is read as
    CSV and the word is taken from the given zero-based column (the SAOL export keeps
    it in column 1).
    """

    try:
        raw = path.read_text(encoding="utf-8-sig")
    except (FileNotFoundError, UnicodeDecodeError) as e:
        raise DictionaryLoadError(f"Word list not readable: {path}") from e

    if column is None:
        cells: Iterable[str] = raw.splitlines()
    else:
        cells = (row[column] for row in csv.reader(raw.splitlines()) if len(row) > column)

    words = {_norm(c) for c in cells}
    words.discard("")
    if not words:
        raise DictionaryLoadError(f"Empty word list: {path}")
    return words


class WordList:
    """Case-insensitive word set with an explicit loaded flag.

    `contains` answers False until a load has finished; callers that must fail
    closed check `is_loaded` first.
    """

    def __init__(self, words: Iterable[str] | None = None) -> None:
        self._words: frozenset[str] = frozenset()
        self._loaded = False
        self._load_error: str | None = None
        if words is not None:
            self.replace(words)

    @classmethod
    def from_words(cls, words: Iterable[str]) -> WordList:
        return cls(words)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def load_error(self) -> str | None:
        return self._load_error

    def __len__(self) -> int:
        return len(self._words)

    def replace(self, words: Iterable[str]) -> None:
        normalized = frozenset(_norm(w) for w in words)
        self._words = normalized - {""}
        self._loaded = True
        self._load_error = None

    def contains(self, word: str) -> bool:
        if not self._loaded:
            return False
        return _norm(word) in self._words

    def load_from(self, path: Path, *, column: int | None = None) -> None:
        try:
            words = read_word_list(path, column=column)
        except DictionaryLoadError as e:
            self._load_error = str(e)
            logger.warning("Could not load dictionary: %s", e)
            raise
        self.replace(words)
        logger.info("Loaded %d words from %s", len(self._words), path)

    async def load(self, path: Path = DEFAULT_WORD_LIST, *, column: int | None = None) -> None:
        await asyncio.to_thread(self.load_from, path, column=column)
