"""Tests for search settings and hot reload."""

import pytest

from exceptions import ConfigurationError
from aggregator.config import ConfigStore, SearchSettings

ENV_DEFAULTS = {
    "DEFAULT_ENGINES": "",
    "DISABLED_ENGINES": "",
    "ENGINE_TIMEOUT_SECONDS": "15",
    "SEARCH_DEADLINE_SECONDS": "25",
    "TOR_ENABLED": "",
    "CUSTOM_SEARCH_TERMS": "",
}


@pytest.fixture
def env_file(tmp_path, monkeypatch):
    # Register every key with monkeypatch so values written by dotenv are undone.
    for key, value in ENV_DEFAULTS.items():
        monkeypatch.setenv(key, value)
    path = tmp_path / ".env"
    path.write_text("")
    return path


class TestSearchSettings:
    def test_defaults(self):
        settings = SearchSettings()
        assert settings.engine_timeout_seconds == 15.0
        assert settings.search_deadline_seconds == 25.0
        assert settings.results_per_page == 50
        assert settings.filter_premium is True
        assert settings.tor_proxy_url == "socks5://127.0.0.1:9050"

    def test_csv_fields(self):
        settings = SearchSettings(default_engines="PornHub, redtube,,", disabled_engines="redtube")
        assert settings.default_engines == ["pornhub", "redtube"]
        assert settings.enabled_engine_names(["xvideos", "redtube", "pornhub"]) == ["pornhub"]

    def test_empty_default_enables_everything(self):
        assert SearchSettings().enabled_engine_names(["a", "b"]) == ["a", "b"]

    def test_deadline_must_cover_engine_timeout(self):
        with pytest.raises(ValueError):
            SearchSettings(engine_timeout_seconds=30, search_deadline_seconds=10)

    def test_snapshot_is_frozen(self):
        settings = SearchSettings()
        with pytest.raises(Exception):
            settings.max_pages = 3


class TestConfigStore:
    def test_reload_reads_env_file_and_notifies(self, env_file):
        store = ConfigStore(env_file=env_file)
        assert store.settings.disabled_engines == []

        seen = []
        store.add_listener(seen.append)
        env_file.write_text("DISABLED_ENGINES=redtube\nTOR_ENABLED=true\nCUSTOM_SEARCH_TERMS=alpha,beta\n")
        reloaded = store.reload()

        assert store.settings is reloaded
        assert reloaded.disabled_engines == ["redtube"]
        assert reloaded.tor_enabled is True
        assert reloaded.custom_search_terms == ["alpha", "beta"]
        assert seen == [reloaded]

    def test_rejected_reload_keeps_previous_snapshot(self, env_file):
        store = ConfigStore(env_file=env_file)
        before = store.settings

        def validator(candidate):
            if "pornhub" in candidate.disabled_engines:
                raise ConfigurationError("Configuration enables no engines")

        store.set_validator(validator)
        listener_calls = []
        store.add_listener(listener_calls.append)
        env_file.write_text("DISABLED_ENGINES=pornhub\n")

        with pytest.raises(ConfigurationError):
            store.reload()
        assert store.settings is before
        assert listener_calls == []

    def test_malformed_values_are_configuration_errors(self, env_file):
        store = ConfigStore(env_file=env_file)
        env_file.write_text("ENGINE_TIMEOUT_SECONDS=abc\n")
        with pytest.raises(ConfigurationError):
            store.reload()

        env_file.write_text("ENGINE_TIMEOUT_SECONDS=30\nSEARCH_DEADLINE_SECONDS=10\n")
        with pytest.raises(ConfigurationError):
            store.reload()

    def test_set_validator_checks_current_snapshot(self):
        store = ConfigStore(SearchSettings(), env_file=None)

        def reject(candidate):
            raise ConfigurationError("nope")

        with pytest.raises(ConfigurationError):
            store.set_validator(reject)
