"""
Unit tests for proxy configuration loading.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import DEFAULT_API_URL, get_config


ENV_VARS = (
    "PORT", "RATE_LIMIT_WINDOW", "RATE_LIMIT_MAX", "CACHE_DURATION", "API_URL",
    "SNAPSHOT_PATH", "UPSTREAM_TIMEOUT", "REFRESH_INTERVAL", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults():
    config = get_config("proxy")

    assert config.service_name == "proxy"
    assert config.port == 3000
    assert config.rate_limit_window == 1
    assert config.rate_limit_window_ms == 60000
    assert config.rate_limit_max == 10
    assert config.cache_duration == 60
    assert config.api_url == DEFAULT_API_URL
    assert config.snapshot_path == "data.json"
    assert config.refresh_interval == 0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("RATE_LIMIT_WINDOW", "5")
    monkeypatch.setenv("RATE_LIMIT_MAX", "2")
    monkeypatch.setenv("CACHE_DURATION", "30")
    monkeypatch.setenv("API_URL", "https://upstream.test/todos")
    monkeypatch.setenv("REFRESH_INTERVAL", "300")

    config = get_config("proxy")

    assert config.port == 8080
    assert config.rate_limit_window_ms == 5 * 60 * 1000
    assert config.rate_limit_max == 2
    assert config.cache_duration == 30
    assert config.api_url == "https://upstream.test/todos"
    assert config.refresh_interval == 300


@pytest.mark.parametrize("value", ["", "abc", "0", "-3"])
def test_invalid_numbers_fall_back_to_defaults(monkeypatch, value):
    monkeypatch.setenv("RATE_LIMIT_MAX", value)
    monkeypatch.setenv("CACHE_DURATION", value)
    monkeypatch.setenv("UPSTREAM_TIMEOUT", value)
    monkeypatch.setenv("REFRESH_INTERVAL", value)

    config = get_config("proxy")

    assert config.rate_limit_max == 10
    assert config.cache_duration == 60
    assert config.upstream_timeout == 10.0
    assert config.refresh_interval == 0


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("CACHE_DURATION=15\nRATE_LIMIT_MAX=4\n", encoding="utf-8")

    config = get_config("proxy")

    assert config.cache_duration == 15
    assert config.rate_limit_max == 4


def test_explicit_overrides_win(monkeypatch):
    monkeypatch.setenv("CACHE_DURATION", "30")

    config = get_config("proxy", cache_duration=5)

    assert config.cache_duration == 5
