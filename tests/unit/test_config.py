"""Tests for YAML + env configuration loading."""

import pytest
from pydantic import ValidationError

from modules.tracker.config import TrackerConfig, load_config, normalize_database_url


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("JOBTRACKER_CONFIG", raising=False)
    for key in ("TRACKER__SESSION__AUTH_TIMEOUT_S", "TRACKER__LOG_LEVEL", "TRACKER__DATABASE__URL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "jobtracker.yml"
    path.write_text(
        "database:\n"
        "  url: sqlite+aiosqlite:///tmp/yaml.db\n"
        "session:\n"
        "  auth_timeout_s: 2\n"
        "log_level: DEBUG\n"
    )
    return path


class TestDefaults:

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yml"))
        assert config == TrackerConfig()
        assert config.session.auth_timeout_s == 5.0
        assert config.session.load_timeout_s == 10.0
        assert config.local_storage.key_prefix == "jobTracker"

    def test_env_selects_file(self, monkeypatch, config_file):
        monkeypatch.setenv("JOBTRACKER_CONFIG", str(config_file))
        assert load_config().log_level == "DEBUG"


class TestYaml:

    def test_values_loaded(self, config_file):
        config = load_config(str(config_file))
        assert config.database.url == "sqlite+aiosqlite:///tmp/yaml.db"
        assert config.session.auth_timeout_s == 2.0
        assert config.session.load_timeout_s == 10.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config(str(path)) == TrackerConfig()


class TestEnvOverrides:

    def test_nested_override(self, monkeypatch, config_file):
        monkeypatch.setenv("TRACKER__SESSION__AUTH_TIMEOUT_S", "0.5")
        config = load_config(str(config_file))
        assert config.session.auth_timeout_s == 0.5

    def test_top_level_override(self, monkeypatch, config_file):
        monkeypatch.setenv("TRACKER__LOG_LEVEL", "WARNING")
        assert load_config(str(config_file)).log_level == "WARNING"

    def test_database_url_env(self, monkeypatch, config_file):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/tracker")
        config = load_config(str(config_file))
        assert config.database.url == "postgresql+asyncpg://u:p@db/tracker"

    def test_prefixed_override_beats_database_url(self, monkeypatch, config_file):
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/tracker")
        monkeypatch.setenv("TRACKER__DATABASE__URL", "sqlite+aiosqlite:///tmp/env.db")
        assert load_config(str(config_file)).database.url == "sqlite+aiosqlite:///tmp/env.db"

    def test_invalid_timeout_rejected(self, monkeypatch, config_file):
        monkeypatch.setenv("TRACKER__SESSION__AUTH_TIMEOUT_S", "0")
        with pytest.raises(ValidationError):
            load_config(str(config_file))


class TestNormalizeUrl:

    @pytest.mark.parametrize("url,expected", [
        ("postgres://h/db", "postgresql+asyncpg://h/db"),
        ("postgresql://h/db", "postgresql+asyncpg://h/db"),
        ("postgresql+asyncpg://h/db", "postgresql+asyncpg://h/db"),
        ("sqlite+aiosqlite:///x.db", "sqlite+aiosqlite:///x.db"),
    ])
    def test_normalize(self, url, expected):
        assert normalize_database_url(url) == expected
