"""Bang routing mini-language.

A raw query may carry directives alongside plain words:

    !ph !rt "exact phrase" -excluded @performer plain words

``!alias`` selects engines, ``"..."`` requires a phrase, ``-word``
excludes a term and ``@name`` filters by performer. Everything else is
the query sent upstream.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple

from exceptions import ConfigurationError
from aggregator.models import BangInfo, ParsedQuery
from aggregator.suggestions.ranker import rank

logger = logging.getLogger(__name__)

BANG_TABLE: Dict[str, str] = {
    # tier 1
    "ph": "pornhub",
    "pornhub": "pornhub",
    "xv": "xvideos",
    "xvideos": "xvideos",
    "xn": "xnxx",
    "xnxx": "xnxx",
    "rt": "redtube",
    "redtube": "redtube",
    "xh": "xhamster",
    "xhamster": "xhamster",
    # tier 2
    "ep": "eporner",
    "eporner": "eporner",
    "yp": "youporn",
    "youporn": "youporn",
    "pmd": "pornmd",
    "pornmd": "pornmd",
    # tier 3
    "4t": "4tube",
    "4tube": "4tube",
    "fux": "fux",
    "pt": "porntube",
    "porntube": "porntube",
    "yj": "youjizz",
    "youjizz": "youjizz",
    "sp": "sunporno",
    "sunporno": "sunporno",
    "tx": "txxx",
    "txxx": "txxx",
    "nv": "nuvid",
    "nuvid": "nuvid",
    "tna": "tnaflix",
    "tnaflix": "tnaflix",
    "dt": "drtuber",
    "drtuber": "drtuber",
    "emp": "empflix",
    "empflix": "empflix",
    "hp": "hellporno",
    "hellporno": "hellporno",
    "ap": "alphaporno",
    "alphaporno": "alphaporno",
    "pf": "pornflip",
    "pornflip": "pornflip",
    "zp": "zenporn",
    "zenporn": "zenporn",
    "gp": "gotporn",
    "gotporn": "gotporn",
    "hz": "hdzog",
    "hdzog": "hdzog",
    "xxxy": "xxxymovies",
    "xxxymovies": "xxxymovies",
    "lhp": "lovehomeporn",
    "lovehomeporn": "lovehomeporn",
    "any": "anyporn",
    "anyporn": "anyporn",
    "superporn": "superporn",
    "tg": "tubegalore",
    "tubegalore": "tubegalore",
    "ml": "motherless",
    "motherless": "motherless",
    "keezmovies": "keezmovies",
    "spankwire": "spankwire",
    "extremetube": "extremetube",
    "3m": "3movs",
    "3movs": "3movs",
    "sleazyneasy": "sleazyneasy",
    # tier 4
    "pb": "pornerbros",
    "pornerbros": "pornerbros",
    "nk": "nonktube",
    "nonktube": "nonktube",
    "np": "nubilesporn",
    "nubilesporn": "nubilesporn",
    "pbox": "pornbox",
    "pornbox": "pornbox",
    "ptop": "porntop",
    "porntop": "porntop",
    "pnt": "pornotube",
    "pornotube": "pornotube",
    "vporn": "vporn",
    "phd": "pornhd",
    "pornhd": "pornhd",
    "xb": "xbabe",
    "xbabe": "xbabe",
    "p1": "pornone",
    "pornone": "pornone",
    "phat": "pornhat",
    "pornhat": "pornhat",
    "ptrex": "porntrex",
    "porntrex": "porntrex",
    "hq": "hqporner",
    "hqporner": "hqporner",
    "vj": "vjav",
    "vjav": "vjav",
    "ff": "flyflv",
    "flyflv": "flyflv",
    "t8": "tube8",
    "tube8": "tube8",
    "xtube": "xtube",
}


def _aliases_by_engine() -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for alias, engine in BANG_TABLE.items():
        grouped.setdefault(engine, []).append(alias)
    return grouped


ENGINE_ALIASES: Dict[str, List[str]] = _aliases_by_engine()


@lru_cache(maxsize=1)
def _display_names() -> Dict[str, str]:
    from aggregator.adapters import engine_display_names

    return engine_display_names()


def short_code(engine: str) -> str:
    """Shortest alias for ``engine``; table order breaks ties."""
    aliases = ENGINE_ALIASES.get(engine)
    if not aliases:
        return engine
    return min(aliases, key=len)


def _bang_info(engine: str) -> BangInfo:
    return BangInfo(
        bang=f"!{engine}",
        engine_name=engine,
        display_name=_display_names().get(engine, engine),
        short_code=f"!{short_code(engine)}",
        aliases=[f"!{alias}" for alias in ENGINE_ALIASES[engine]],
    )


def list_bangs() -> List[BangInfo]:
    """One entry per engine reachable by bang, in table order."""
    return [_bang_info(engine) for engine in ENGINE_ALIASES]


def autocomplete_bangs(prefix: str, limit: int = 10) -> List[BangInfo]:
    """Rank engines for a partial bang; ``prefix`` may include the leading ``!``."""
    prefix = (prefix or "").lstrip("!")
    ranked = rank(
        prefix,
        ENGINE_ALIASES,
        limit,
        key=lambda engine: ENGINE_ALIASES[engine] + [engine],
        min_length=1,
    )
    return [_bang_info(engine) for engine, _ in ranked]


def _extract_phrases(text: str) -> Tuple[str, List[str]]:
    phrases: List[str] = []
    while True:
        start = text.find('"')
        if start == -1:
            break
        end = text.find('"', start + 1)
        if end == -1:
            break
        phrase = text[start + 1:end].strip()
        if phrase:
            phrases.append(phrase)
        # Leave a space so words on either side of the quotes stay separate.
        text = f"{text[:start]} {text[end + 1:]}"
    return text, phrases


def parse_bangs(raw: str) -> ParsedQuery:
    """Split ``raw`` into target engines, operators and the cleaned query."""
    raw = raw or ""
    remaining, phrases = _extract_phrases(raw)

    engines: List[str] = []
    performers: List[str] = []
    exclusions: List[str] = []
    words: List[str] = []
    invalid_bang: Optional[str] = None

    for token in remaining.split():
        if len(token) > 1 and token.startswith("!"):
            engine = BANG_TABLE.get(token[1:].lower())
            if engine is None:
                invalid_bang = token
                words.append(token)
            elif engine not in engines:
                engines.append(engine)
        elif len(token) > 1 and token.startswith("@"):
            performer = token[1:].lower()
            if performer not in performers:
                performers.append(performer)
        elif len(token) > 1 and token.startswith("-"):
            exclusions.append(token[1:].lower())
        else:
            words.append(token)

    return ParsedQuery(
        original=raw,
        query=" ".join(words).strip(),
        engines=engines,
        exact_phrases=phrases,
        exclusions=exclusions,
        performers=performers,
        has_bang=bool(engines),
        invalid_bang=invalid_bang,
    )


def validate_bang_table(engine_names: Iterable[str]) -> None:
    """Raise ConfigurationError if any alias targets an unregistered engine."""
    known = set(engine_names)
    unknown = sorted({engine for engine in BANG_TABLE.values() if engine not in known})
    if unknown:
        raise ConfigurationError(
            "Bang table references unknown engines",
            detail={"engines": unknown},
        )
    logger.debug(f"[Bangs] table ok: {len(BANG_TABLE)} aliases for {len(ENGINE_ALIASES)} engines")


def bang_table_is_valid(engine_names: Iterable[str]) -> bool:
    try:
        validate_bang_table(engine_names)
    except ConfigurationError:
        return False
    return True
