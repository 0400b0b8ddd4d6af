"""Runtime search settings and the hot-reloadable store that serves them.

Settings come from the process environment, seeded from ``apps/backend/.env``
by python-dotenv. A request reads one immutable :class:`SearchSettings`
snapshot when it starts; ``ConfigStore.reload()`` swaps in a new snapshot
without touching requests already in flight.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


def _csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip().lower() for item in value.split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class SearchSettings(BaseModel):
    """Immutable snapshot of everything the search path reads from config."""

    model_config = ConfigDict(frozen=True)

    default_engines: List[str] = Field(default_factory=list)
    disabled_engines: List[str] = Field(default_factory=list)
    engine_timeout_seconds: float = Field(15.0, gt=0)
    search_deadline_seconds: float = Field(25.0, gt=0)
    results_per_page: int = Field(50, ge=1)
    max_pages: int = Field(10, ge=1)
    min_duration_seconds: int = Field(0, ge=0)
    filter_premium: bool = True
    engine_max_retries: int = Field(2, ge=0)
    tor_enabled: bool = False
    tor_proxy_url: str = "socks5://127.0.0.1:9050"
    user_agent: str = DEFAULT_USER_AGENT
    custom_search_terms: List[str] = Field(default_factory=list)
    thumbnail_proxy_url: str = ""

    @field_validator("default_engines", "disabled_engines", "custom_search_terms", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if isinstance(value, str):
            return _csv(value)
        return value or []

    @model_validator(mode="after")
    def _deadline_covers_engine_timeout(self) -> "SearchSettings":
        if self.search_deadline_seconds < self.engine_timeout_seconds:
            raise ValueError("SEARCH_DEADLINE_SECONDS must be >= ENGINE_TIMEOUT_SECONDS")
        return self

    @classmethod
    def from_env(cls) -> "SearchSettings":
        return cls(
            default_engines=os.getenv("DEFAULT_ENGINES", ""),
            disabled_engines=os.getenv("DISABLED_ENGINES", ""),
            engine_timeout_seconds=float(os.getenv("ENGINE_TIMEOUT_SECONDS", "15")),
            search_deadline_seconds=float(os.getenv("SEARCH_DEADLINE_SECONDS", "25")),
            results_per_page=int(os.getenv("RESULTS_PER_PAGE", "50")),
            max_pages=int(os.getenv("MAX_PAGES", "10")),
            min_duration_seconds=int(os.getenv("MIN_DURATION_SECONDS", "0")),
            filter_premium=_env_bool("FILTER_PREMIUM", True),
            engine_max_retries=int(os.getenv("ENGINE_MAX_RETRIES", "2")),
            tor_enabled=_env_bool("TOR_ENABLED", False),
            tor_proxy_url=os.getenv("TOR_PROXY_URL", "socks5://127.0.0.1:9050"),
            user_agent=os.getenv("ENGINE_USER_AGENT") or DEFAULT_USER_AGENT,
            custom_search_terms=os.getenv("CUSTOM_SEARCH_TERMS", ""),
            thumbnail_proxy_url=os.getenv("THUMBNAIL_PROXY_URL", ""),
        )

    def enabled_engine_names(self, registered: List[str]) -> List[str]:
        """Registered engines narrowed by DEFAULT_ENGINES and DISABLED_ENGINES, in registry order."""
        allowed = set(self.default_engines) if self.default_engines else None
        disabled = set(self.disabled_engines)
        return [
            name for name in registered
            if (allowed is None or name in allowed) and name not in disabled
        ]


ReloadListener = Callable[[SearchSettings], None]


class ConfigStore:
    """Holds the current SearchSettings and rebuilds it on demand.

    ``validator`` runs against every candidate snapshot before it is
    published and should raise ConfigurationError if the snapshot would
    leave the service unusable (for example, no enabled engines).
    """

    def __init__(
        self,
        settings: Optional[SearchSettings] = None,
        *,
        env_file: Optional[Path] = ENV_FILE,
        validator: Optional[Callable[[SearchSettings], None]] = None,
    ):
        self._env_file = env_file
        self._validator = validator
        self._listeners: List[ReloadListener] = []
        self._lock = threading.Lock()
        if settings is None:
            if env_file is not None:
                load_dotenv(dotenv_path=env_file, override=False)
            settings = self._build()
        self._settings = settings

    @property
    def settings(self) -> SearchSettings:
        return self._settings

    def set_validator(self, validator: Callable[[SearchSettings], None]) -> None:
        self._validator = validator
        validator(self._settings)

    def add_listener(self, listener: ReloadListener) -> None:
        self._listeners.append(listener)

    def _build(self) -> SearchSettings:
        try:
            return SearchSettings.from_env()
        except ValueError as exc:
            # pydantic.ValidationError and bad int()/float() casts both land here.
            raise ConfigurationError("Invalid search configuration", detail={"error": str(exc)[:300]}) from exc

    def reload(self) -> SearchSettings:
        """Re-read .env and the environment, validate, then publish.

        On any ConfigurationError the previous snapshot stays active and
        the error propagates to the caller.
        """
        with self._lock:
            if self._env_file is not None:
                load_dotenv(dotenv_path=self._env_file, override=True)
            candidate = self._build()
            if self._validator is not None:
                self._validator(candidate)
            self._settings = candidate

        logger.info(
            "[Config] reloaded",
            extra={
                "default_engines": candidate.default_engines,
                "disabled_engines": candidate.disabled_engines,
                "engine_timeout_seconds": candidate.engine_timeout_seconds,
                "tor_enabled": candidate.tor_enabled,
            },
        )
        for listener in self._listeners:
            listener(candidate)
        return candidate
