"""Autocomplete and related-search suggestions.

The term and performer tables are immutable. Custom terms from config are
merged into a fresh :class:`SuggestionTables` on load or reload and the
module-level reference is swapped in one assignment, so a request always
sees one consistent table set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from aggregator.models import Suggestion
from aggregator.suggestions.performers import PERFORMERS, popular_performers
from aggregator.suggestions.ranker import rank
from aggregator.suggestions.taxonomy import smart_related
from aggregator.suggestions.terms import (
    CATEGORIZED_SUGGESTIONS,
    POPULAR_SEARCHES,
    SEARCH_TERMS,
    unique_terms,
)

logger = logging.getLogger(__name__)

MIN_PREFIX_LENGTH = 2


@dataclass(frozen=True)
class SuggestionTables:
    terms: Tuple[str, ...]
    performers: Tuple[str, ...]
    custom_terms: Tuple[str, ...] = ()

    @classmethod
    def build(cls, custom_terms: Iterable[str] = ()) -> "SuggestionTables":
        custom = tuple(unique_terms(custom_terms))
        return cls(
            terms=tuple(unique_terms(SEARCH_TERMS, custom)),
            performers=tuple(PERFORMERS),
            custom_terms=custom,
        )


_tables = SuggestionTables.build()


def get_tables() -> SuggestionTables:
    return _tables


def set_custom_terms(terms: Iterable[str]) -> SuggestionTables:
    global _tables
    tables = SuggestionTables.build(terms)
    _tables = tables
    logger.info(f"[Suggestions] {len(tables.custom_terms)} custom terms, {len(tables.terms)} total")
    return tables


def autocomplete_terms(prefix: str, limit: int = 10) -> List[Suggestion]:
    ranked = rank(prefix, get_tables().terms, limit, min_length=MIN_PREFIX_LENGTH)
    return [Suggestion(term=term, type="search", score=score) for term, score in ranked]


def autocomplete_performers(prefix: str, limit: int = 10) -> List[Suggestion]:
    ranked = rank(prefix, get_tables().performers, limit, min_length=MIN_PREFIX_LENGTH)
    return [Suggestion(term=name, type="performer", score=score) for name, score in ranked]


def autocomplete_combined(prefix: str, limit: int = 10) -> List[Suggestion]:
    """Performers first, then terms, de-duplicated case-insensitively."""
    if limit <= 0:
        return []
    candidates = autocomplete_performers(prefix, max(1, limit // 2)) + autocomplete_terms(prefix, limit)
    seen = set()
    combined: List[Suggestion] = []
    for suggestion in candidates:
        key = suggestion.term.lower()
        if key in seen:
            continue
        seen.add(key)
        combined.append(suggestion)
        if len(combined) >= limit:
            break
    return combined


def popular_searches(count: int = 10) -> List[str]:
    return POPULAR_SEARCHES[:max(0, count)]


def _shared_word_score(query: str, query_words: List[str], term: str) -> int:
    score = 0
    term_words = term.split()
    for query_word in query_words:
        if len(query_word) < 3:
            continue
        for term_word in term_words:
            if term_word == query_word:
                score += 20
            elif term_word.startswith(query_word) or query_word.startswith(term_word):
                score += 10
            elif term_word in query_word or query_word in term_word:
                score += 5
    if score and (term in query or query in term):
        score += 15
    return score


def related_searches(query: str, limit: int = 8) -> List[str]:
    """Taxonomy variations first, then table terms sharing words with ``query``."""
    query = " ".join((query or "").lower().split())
    if not query or limit <= 0:
        return []

    related = smart_related(query, limit // 2)
    seen = {term.lower() for term in related}
    seen.add(query)

    query_words = query.split()
    matched: List[Tuple[str, int]] = []
    for term in get_tables().terms:
        lowered = term.lower()
        if lowered in seen:
            continue
        score = _shared_word_score(query, query_words, lowered)
        if score > 0:
            seen.add(lowered)
            matched.append((term, score))
    matched.sort(key=lambda pair: pair[1], reverse=True)

    for term, _ in matched:
        if len(related) >= limit:
            break
        related.append(term)
    return related[:limit]


def categorized_suggestions() -> List[Dict[str, object]]:
    categories = [dict(category) for category in CATEGORIZED_SUGGESTIONS]
    categories.append({
        "name": "performers",
        "display_name": "Performers",
        "terms": popular_performers(8),
    })
    return categories


__all__ = [
    "SuggestionTables",
    "autocomplete_combined",
    "autocomplete_performers",
    "autocomplete_terms",
    "categorized_suggestions",
    "get_tables",
    "popular_searches",
    "related_searches",
    "set_custom_terms",
]
