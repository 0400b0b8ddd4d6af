"""Category taxonomy used to expand queries into related searches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

QUALITY_MODIFIERS: Tuple[str, ...] = ("hd", "4k", "amateur", "homemade", "pov")


@dataclass(frozen=True)
class Category:
    name: str
    synonyms: Tuple[str, ...] = field(default_factory=tuple)
    related: Tuple[str, ...] = field(default_factory=tuple)


_CATEGORIES: List[Category] = [
    # age
    Category(
        "teen",
        ("teen", "18", "19", "eighteen", "nineteen", "barely legal", "young", "18yo", "19yo"),
        ("college", "student", "petite", "amateur"),
    ),
    Category("milf", ("milf", "mom", "mother", "mommy", "cougar"), ("stepmom", "step mom", "housewife", "30s", "40s")),
    Category("mature", ("mature", "older", "granny", "gilf", "grandma", "old"), ("50s", "60s", "experienced", "milf")),
    # body
    Category(
        "bbw",
        ("bbw", "chubby", "fat", "plump", "thick", "curvy", "plus size", "heavy"),
        ("pawg", "voluptuous", "big ass", "big tits"),
    ),
    Category("petite", ("petite", "tiny", "small", "skinny", "slim", "thin"), ("teen", "flat chest", "small tits")),
    Category(
        "busty",
        ("busty", "big tits", "big boobs", "huge tits", "large breasts", "natural tits"),
        ("milf", "titjob"),
    ),
    # ethnicity
    Category("asian", ("asian", "oriental"), ("japanese", "chinese", "korean", "thai", "filipina", "vietnamese")),
    Category("latina", ("latina", "latino", "hispanic", "spanish"), ("mexican", "brazilian", "colombian", "puerto rican")),
    Category("ebony", ("ebony", "black", "african", "dark skin"), ("bbc", "interracial")),
    # orientation and acts
    Category(
        "lesbian",
        ("lesbian", "lesbo", "girl on girl", "girls", "lez", "lesbians"),
        ("scissoring", "tribbing", "strapon", "fingering"),
    ),
    Category("gay", ("gay", "homosexual", "guy on guy", "men"), ("twink", "bear", "daddy")),
    Category("anal", ("anal", "ass fuck", "butt fuck", "ass sex", "backdoor"), ("anal creampie", "gape", "dp", "atm")),
    Category(
        "blowjob",
        ("blowjob", "bj", "oral", "sucking", "head", "fellatio"),
        ("deepthroat", "face fuck", "gagging", "cum in mouth"),
    ),
    Category(
        "creampie",
        ("creampie", "cream pie", "cum inside", "internal cumshot", "internal"),
        ("breeding", "pregnant"),
    ),
    # scenarios
    Category(
        "amateur",
        ("amateur", "homemade", "real", "authentic", "verified", "genuine"),
        ("pov", "couple", "first time"),
    ),
    Category("pov", ("pov", "point of view", "first person", "gonzo"), ("amateur", "blowjob", "virtual")),
    Category("threesome", ("threesome", "3some", "three way", "threeway", "trio"), ("ffm", "mmf", "group", "orgy")),
    Category("gangbang", ("gangbang", "gang bang", "gb"), ("group", "orgy", "dp")),
    # physical
    Category(
        "pregnant",
        ("pregnant", "preggo", "preggy", "expecting", "knocked up"),
        ("lactating", "breeding", "creampie"),
    ),
    Category("hairy", ("hairy", "bush", "unshaved", "natural", "hairy pussy"), ("vintage", "retro")),
    # production
    Category("hd", ("hd", "1080p", "high definition", "full hd", "fhd"), ("4k", "uhd", "high quality")),
    Category("4k", ("4k", "uhd", "ultra hd", "2160p"), ("hd", "high quality", "vr")),
    # relationships
    Category("stepmom", ("stepmom", "step mom", "step mother", "stepmother"), ("milf", "taboo", "family")),
    Category("stepsister", ("stepsister", "step sister", "step sis", "stepsis"), ("teen", "taboo", "family")),
    # fetish
    Category(
        "bdsm",
        ("bdsm", "bondage", "domination", "submission", "s&m", "sm"),
        ("tied up", "spanking", "femdom", "slave"),
    ),
    Category("feet", ("feet", "foot", "toes", "soles", "foot fetish", "footjob"), ("high heels", "stockings", "worship")),
]

CATEGORIES: Dict[str, Category] = {category.name: category for category in _CATEGORIES}


def _build_lookup() -> Dict[str, str]:
    # Category names claim their own key before any synonym can.
    lookup = {name: name for name in CATEGORIES}
    for category in _CATEGORIES:
        for synonym in category.synonyms:
            lookup.setdefault(synonym.lower(), category.name)
    return lookup


_LOOKUP: Dict[str, str] = _build_lookup()


def normalize_term(term: str) -> str:
    term = term.strip().lower()
    return _LOOKUP.get(term, term)


def synonyms(term: str) -> List[str]:
    term = term.strip().lower()
    category = CATEGORIES.get(_LOOKUP.get(term, ""))
    return list(category.synonyms) if category else [term]


def related_terms(term: str) -> List[str]:
    category = CATEGORIES.get(_LOOKUP.get(term.strip().lower(), ""))
    return list(category.related) if category else []


def smart_related(query: str, limit: int) -> List[str]:
    """Variations of ``query`` built from the taxonomy, in priority order.

    Individual words come first, then related terms (alone and combined with
    the other words), then quality modifiers, synonym swaps and, for longer
    queries, word pairs.
    """
    query = " ".join(query.lower().split())
    words = query.split()
    if not words or limit <= 0:
        return []

    seen = {query}
    related: List[str] = []

    def add(term: str) -> None:
        term = term.strip()
        if term and term not in seen:
            seen.add(term)
            related.append(term)

    for word in words:
        if len(word) >= 3:
            add(word)

    for word in words:
        for term in related_terms(word):
            add(term)
            for other in words:
                if other != word:
                    add(f"{term} {other}")
                    add(f"{other} {term}")

    for modifier in QUALITY_MODIFIERS:
        if modifier not in words:
            add(f"{query} {modifier}")

    for index, word in enumerate(words):
        for synonym in synonyms(word):
            if synonym != word:
                swapped = list(words)
                swapped[index] = synonym
                add(" ".join(swapped))

    if len(words) >= 3:
        for i in range(len(words) - 1):
            for j in range(i + 1, len(words)):
                add(f"{words[i]} {words[j]}")

    return related[:limit]
