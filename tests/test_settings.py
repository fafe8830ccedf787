import importlib

import pytest
from pydantic import ValidationError

import coalescer.settings
from coalescer.settings import Settings


def test_defaults_when_environment_is_empty():
    settings = Settings.from_env({})
    assert settings.http_base_url == ""
    assert settings.http_timeout == 30.0
    assert settings.http_follow_redirects is True
    assert settings.coalescer_debug is False


def test_reads_aliased_environment_variables():
    settings = Settings.from_env(
        {"HTTP_TIMEOUT": "5", "COALESCER_DEBUG": "1", "UNRELATED": "ignored"}
    )
    assert settings.http_timeout == 5.0
    assert settings.coalescer_debug is True


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("HTTP_BASE_URL", "https://env.example.com")
    settings = Settings.from_env()
    assert settings.http_base_url == "https://env.example.com"


def test_malformed_environment_only_fails_when_settings_are_read(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT", "")
    module = importlib.reload(coalescer.settings)
    with pytest.raises(ValidationError):
        module.Settings.from_env()
