"""Tiered prefix ranking shared by bang, performer and term autocomplete."""

from __future__ import annotations

from typing import Callable, Iterable, List, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")

PREFIX_TIER = 3
WORD_PREFIX_TIER = 2
SUBSTRING_TIER = 1
# Candidates longer than this all tie on length within a tier.
TIER_WIDTH = 1000

KeyFunc = Callable[[T], Union[str, Sequence[str]]]


def score(prefix: str, candidate: str) -> int:
    """Score one candidate string against a lowercase prefix.

    Exact prefix beats whole-word prefix beats substring; within a tier the
    shorter candidate wins. Zero means no match.
    """
    text = candidate.lower()
    if not prefix or not text:
        return 0
    length_penalty = min(len(text), TIER_WIDTH - 1)
    if text.startswith(prefix):
        tier = PREFIX_TIER
    elif any(word.startswith(prefix) for word in text.split()[1:]):
        tier = WORD_PREFIX_TIER
    elif prefix in text:
        tier = SUBSTRING_TIER
    else:
        return 0
    return tier * TIER_WIDTH - length_penalty


def best_score(prefix: str, keys: Union[str, Sequence[str]]) -> int:
    if isinstance(keys, str):
        return score(prefix, keys)
    return max((score(prefix, key) for key in keys), default=0)


def rank(
    prefix: str,
    candidates: Iterable[T],
    limit: int,
    *,
    key: KeyFunc = str,
    min_length: int = 2,
) -> List[Tuple[T, int]]:
    """Return up to ``limit`` ``(candidate, score)`` pairs, best first.

    ``key`` maps a candidate to the string (or strings, best one counts)
    it is matched on. Ties keep the candidates' original order.
    """
    prefix = (prefix or "").strip().lower()
    if limit <= 0 or len(prefix) < min_length:
        return []

    scored = []
    for candidate in candidates:
        value = best_score(prefix, key(candidate))
        if value > 0:
            scored.append((candidate, value))
    # sorted() is stable, so equal scores stay in table order.
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]
