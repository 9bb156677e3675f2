"""Name similarity for gating fuzzy search hits.

Favours recall: abbreviations and plural forms match through substring
containment between tokens, at the price of the occasional false positive.
Tokens of two characters or fewer are dropped to keep those in check.
"""

from __future__ import annotations

import re

STOP_WORDS = frozenset(
    {
        "mod",
        "mods",
        "fabric",
        "forge",
        "neoforge",
        "quilt",
        "api",
        "lib",
        "plugin",
        "remastered",
        "support",
        "vanilla",
        "the",
        "for",
        "and",
    }
)

_PUNCTUATION = re.compile(r"[^a-z0-9\s]+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_MIN_RATIO = 0.6


def normalize_tokens(name: str) -> set[str]:
    """Lowercase, strip punctuation and stop words, drop tokens of length <= 2."""
    cleaned = _PUNCTUATION.sub(" ", name.lower())
    return {token for token in cleaned.split() if len(token) > 2 and token not in STOP_WORDS}


def _compact(name: str) -> str:
    return _NON_ALNUM.sub("", name.lower())


def _related(a: str, b: str) -> bool:
    return a in b or b in a


def _covers(tokens: set[str], others: set[str]) -> bool:
    return all(any(_related(token, other) for other in others) for token in tokens)


def similar(a: str, b: str, min_ratio: float = DEFAULT_MIN_RATIO) -> bool:
    """Decide whether two free-text names plausibly denote the same project."""
    tokens_a = normalize_tokens(a)
    tokens_b = normalize_tokens(b)

    if not tokens_a or not tokens_b:
        compact_a = _compact(a)
        compact_b = _compact(b)
        if not compact_a or not compact_b:
            return False
        return _related(compact_a, compact_b)

    if _covers(tokens_a, tokens_b) or _covers(tokens_b, tokens_a):
        return True

    smaller, larger = sorted((tokens_a, tokens_b), key=len)
    matched = sum(1 for token in smaller if any(_related(token, other) for other in larger))
    return matched / len(larger) >= min_ratio
