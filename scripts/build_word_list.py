"""Build `bananagrams/assets/words.txt` from a SAOL-style CSV export.

Contract
- Input: a CSV (no header) with the headword in column 1.
- Output: one lowercase word per line, sorted, deduplicated.
- Drops:
  - words shorter than 2 letters (they can never be played)
  - entries with characters outside the tile alphabet (spaces, hyphens, digits)

Usage:
    python scripts/build_word_list.py path/to/saol2018clean.csv

This script is deterministic.
"""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

from bananagrams.core.tiles import TILE_DISTRIBUTION

WORD_COLUMN = 1
MIN_LENGTH = 2


def _alphabet_pattern() -> str:
    letters = "".join(sorted(letter.casefold() for letter in TILE_DISTRIBUTION))
    return f"[{letters}]+"


def clean_words(raw: pd.Series) -> pd.Series:
    words = raw.dropna().astype(str).str.strip().str.casefold()
    words = words[words.str.len() >= MIN_LENGTH]
    words = words[words.str.fullmatch(_alphabet_pattern())]
    return words.drop_duplicates().sort_values(ignore_index=True)


def main() -> None:
    repo_root = Path(__file__).resolve().parents[1]

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("source", type=Path)
    parser.add_argument("--column", type=int, default=WORD_COLUMN)
    parser.add_argument("--out", type=Path, default=repo_root / "bananagrams" / "assets" / "words.txt")
    args = parser.parse_args()

    if not args.source.exists():
        raise FileNotFoundError(f"Missing source word list: {args.source}")

    df = pd.read_csv(args.source, header=None, dtype=str, keep_default_na=False)
    if args.column >= len(df.columns):
        raise ValueError(f"{args.source} has {len(df.columns)} column(s); no column {args.column}")

    words = clean_words(df[args.column])
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text("\n".join(words) + "\n", encoding="utf-8")
    print(f"Wrote {len(words)} words to {args.out}")


if __name__ == "__main__":
    main()
