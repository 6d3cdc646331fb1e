"""Tests for citation deduplication."""
from __future__ import annotations

from veritas.models.report import Citation
from veritas.orchestrator.sources import dedupe


def test_first_position_last_value():
    raw = [
        {"title": "A", "url": "u1"},
        {"title": "B", "url": "u2"},
        {"title": "C", "url": "u1"},
    ]
    assert dedupe(raw) == [Citation("C", "u1"), Citation("B", "u2")]


def test_malformed_entries_are_discarded():
    raw = [
        {"title": "Kept", "url": "https://a.example"},
        {"title": None, "url": "https://b.example"},
        {"title": "No url"},
        {"url": "https://c.example"},
        {"title": "", "url": "https://d.example"},
        "not a mapping",
    ]
    assert dedupe(raw) == [Citation("Kept", "https://a.example")]


def test_malformed_duplicate_does_not_overwrite():
    raw = [{"title": "Good", "url": "u1"}, {"title": None, "url": "u1"}]
    assert dedupe(raw) == [Citation("Good", "u1")]


def test_accepts_citation_objects():
    raw = [Citation("One", "u1"), Citation("Two", "u1"), Citation("Three", "u3")]
    assert dedupe(raw) == [Citation("Two", "u1"), Citation("Three", "u3")]


def test_empty_input():
    assert dedupe([]) == []
