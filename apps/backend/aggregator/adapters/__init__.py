"""Engine registry.

Engines are built once per process from a static table: bespoke and API
engines first, then the data-only generic HTML sites. Registry order is the
dispatch and listing order.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Callable, Dict, List

from aggregator.adapters.api import EpornerEngine, XHamsterEngine
from aggregator.adapters.base import CircuitBreaker, SearchEngine
from aggregator.adapters.html import GENERIC_SITES, GenericSite, HtmlEngine
from aggregator.adapters.sites import (
    PornHubEngine,
    PornMDEngine,
    RedTubeEngine,
    XNXXEngine,
    XVideosEngine,
    YouPornEngine,
)
from aggregator.config import SearchSettings

BESPOKE_ENGINES: List[Callable[..., SearchEngine]] = [
    PornHubEngine,
    XVideosEngine,
    XNXXEngine,
    RedTubeEngine,
    XHamsterEngine,
    EpornerEngine,
    YouPornEngine,
    PornMDEngine,
]


def build_engines(settings: SearchSettings) -> Dict[str, SearchEngine]:
    """Instantiate every registered engine, keyed by name in registry order."""
    engines: Dict[str, SearchEngine] = {}
    for factory in BESPOKE_ENGINES:
        engine = factory(max_retries=settings.engine_max_retries)
        engines[engine.name] = engine
    for site in GENERIC_SITES:
        engines[site.name] = site.build(settings.engine_max_retries)
    return engines


def available_engine_names() -> List[str]:
    return list(engine_display_names())


@lru_cache(maxsize=1)
def engine_display_names() -> Dict[str, str]:
    """Engine name to display name, in registry order."""
    names = {engine.name: engine.display_name for engine in (factory() for factory in BESPOKE_ENGINES)}
    names.update((site.name, site.display_name) for site in GENERIC_SITES)
    return names


__all__ = [
    "BESPOKE_ENGINES",
    "CircuitBreaker",
    "GENERIC_SITES",
    "GenericSite",
    "HtmlEngine",
    "SearchEngine",
    "available_engine_names",
    "build_engines",
    "engine_display_names",
]
