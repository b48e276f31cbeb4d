"""
Tokenize cleaned chyron text into (group, word) pairs.

Words are lowercased runs of letters/digits; an apostrophe inside a word
is kept, so "don't" stays one token. Tokens are dropped when they are
English stopwords (scripts/stopwords_en.txt) or contain no a-z letter at
all, which removes numbers and symbol-only OCR noise.

Usage:
    from scripts.tokenize_text import tokenize, tokenize_records

    tokenize("Breaking News: Trump's 2020 budget")
    # ['breaking', 'news', "trump's", 'budget']

    tokens = tokenize_records(records, "station")
    # [('CNNW', 'breaking'), ('CNNW', 'news'), ...]
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Callable, Iterable, Union


STOPWORDS_FILE = Path(__file__).parent / "stopwords_en.txt"

_WORD_RE = re.compile(r"[^\W_]+(?:'[^\W_]+)*")
_HAS_LETTER_RE = re.compile(r"[a-z]")
_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})

GroupKey = Union[str, Callable]


def load_stopwords(path: str | Path = STOPWORDS_FILE) -> frozenset:
    """Read one lowercase word per line; '#' starts a comment."""
    words = set()
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            word = line.split("#", 1)[0].strip().lower()
            if word:
                words.add(word)
    return frozenset(words)


STOPWORDS = load_stopwords()


def tokenize(text: str, stopwords: frozenset = STOPWORDS) -> list[str]:
    """Lowercase word tokens with stopwords and letterless noise removed."""
    text = text.lower().translate(_APOSTROPHES)
    return [
        word for word in _WORD_RE.findall(text)
        if word not in stopwords and _HAS_LETTER_RE.search(word)
    ]


def _key_getter(group_key: GroupKey) -> Callable:
    if callable(group_key):
        return group_key
    if not isinstance(group_key, str) or not group_key:
        raise ValueError(f"group_key must be an attribute name or a callable, got {group_key!r}")

    def getter(record):
        try:
            return getattr(record, group_key)
        except AttributeError:
            raise ValueError(f"records have no attribute {group_key!r} to group by") from None

    return getter


def tokenize_records(
    records: Iterable,
    group_key: GroupKey = "station",
    stopwords: frozenset = STOPWORDS,
) -> list[tuple[str, str]]:
    """Flatten records into (group, word) pairs.

    group_key is a record attribute ("station", "program", "date", ...) or a
    callable taking a record. Records whose key is None are skipped.
    """
    get_key = _key_getter(group_key)
    tokens = []

    for record in records:
        key = get_key(record)
        if key is None:
            continue
        if isinstance(key, date):
            key = key.isoformat()
        tokens.extend((key, word) for word in tokenize(record.text, stopwords))

    return tokens
