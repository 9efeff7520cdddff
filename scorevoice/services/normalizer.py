from __future__ import annotations

import re
import unicodedata
from difflib import SequenceMatcher
from functools import lru_cache
from typing import Mapping

from scorevoice.services.vocabulary import Vocabulary, get_vocabulary

_PUNCTUATION = re.compile(r"[^\w\s]|_", flags=re.UNICODE)
_SPACES = re.compile(r"\s+")


def normalize_text(value: str, vocab: Vocabulary | None = None) -> str:
    """Lowercase, strip accents and punctuation, then apply number words and
    phonetic corrections of the language."""
    vocab = vocab or get_vocabulary(None)
    value = basic_normalize(value)
    value = _replace_phrases(value, vocab.numbers)
    value = _replace_phrases(value, vocab.phonetic)
    return _SPACES.sub(" ", value).strip()


def basic_normalize(value: str) -> str:
    value = strip_accents(value.lower())
    value = _PUNCTUATION.sub(" ", value)
    return _SPACES.sub(" ", value).strip()


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def contains_phrase(text: str, phrase: str) -> bool:
    """Whole-word phrase containment on normalized text."""
    if not phrase:
        return False
    return f" {phrase} " in f" {text} "


def contains_any(text: str, phrases) -> bool:
    return any(contains_phrase(text, phrase) for phrase in phrases)


def edit_distance(left: str, right: str) -> int:
    """Edit distance derived from difflib opcodes.

    Each non-equal opcode costs the longer of its two spans, which matches
    Levenshtein distance for the short tokens compared here and never
    underestimates it.
    """
    matcher = SequenceMatcher(None, left, right, autojunk=False)
    return sum(
        max(i2 - i1, j2 - j1)
        for tag, i1, i2, j1, j2 in matcher.get_opcodes()
        if tag != "equal"
    )


def is_fuzzy_match(spoken: str, target: str, threshold: int = 2) -> bool:
    allowed = max(threshold, int(len(target) * 0.3))
    if abs(len(spoken) - len(target)) > allowed:
        return False
    return edit_distance(spoken, target) <= allowed


def _replace_phrases(value: str, table: Mapping[str, str]) -> str:
    if not table or not value:
        return value
    pattern = _phrase_pattern(tuple(sorted(table, key=len, reverse=True)))
    return pattern.sub(lambda match: table[match.group(0)], value)


@lru_cache(maxsize=32)
def _phrase_pattern(phrases: tuple[str, ...]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(phrase) for phrase in phrases)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)")
