"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest

from veritas.config import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("VERITAS_GOOGLE_API_KEY", "GOOGLE_API_KEY", "API_KEY",
                 "VERITAS_VISUAL_CONCURRENCY", "VERITAS_ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = Settings(_env_file=None)
    assert s.google_api_key == ""
    assert s.visual_concurrency is None
    assert s.text_model == "gemini-2.5-flash"


@pytest.mark.parametrize("variable", ["VERITAS_GOOGLE_API_KEY", "GOOGLE_API_KEY", "API_KEY"])
def test_api_key_aliases(monkeypatch, variable):
    monkeypatch.setenv(variable, "secret")
    assert Settings(_env_file=None).google_api_key == "secret"


def test_prefixed_values(monkeypatch):
    monkeypatch.setenv("VERITAS_VISUAL_CONCURRENCY", "4")
    monkeypatch.setenv("VERITAS_ALLOWED_ORIGINS", "http://a.test, http://b.test,")
    s = Settings(_env_file=None)
    assert s.visual_concurrency == 4
    assert s.get_allowed_origins() == ["http://a.test", "http://b.test"]
