"""
Shared fixtures for Veritas tests.

The Gemini collaborators are replaced by in-memory fakes; the report store
is a throwaway SQLite file per test.
"""
from __future__ import annotations

import asyncio
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from veritas.backends.base import TextResult
from veritas.db.database import Database
from veritas.main import app, get_database, get_pipeline
from veritas.orchestrator.pipeline import ReportPipeline

SAMPLE_DRAFT = (
    "# Big Story\n\nLede paragraph.\n\n## Section One\nBody text.\n\n"
    "[VISUAL_PROMPT: bar chart of X]\n\n## Conclusion\nDone."
)
IMAGE_URI = "data:image/png;base64,iVBORw0KGgo="


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

class FakeTextBackend:
    """Returns a canned draft, or raises ``error`` if set."""

    name = "fake-text"

    def __init__(self, text: str | None = SAMPLE_DRAFT, sources: list[dict] | None = None):
        self.text = text
        self.sources = sources or []
        self.error: Exception | None = None
        self.calls: list[tuple[str, bool]] = []

    async def generate_text(self, prompt: str, *, grounded: bool = True) -> TextResult:
        self.calls.append((prompt, grounded))
        if self.error is not None:
            raise self.error
        return TextResult(text=self.text, sources=list(self.sources))


class FakeImageBackend:
    """Answers image prompts by substring match against ``outcomes``.

    An outcome may be a data URI, None (no image payload) or an exception
    to raise.  ``delays`` works the same way, in seconds.  Unmatched
    prompts get ``IMAGE_URI`` immediately.
    """

    name = "fake-image"

    def __init__(self, outcomes: dict | None = None, delays: dict | None = None):
        self.outcomes = outcomes or {}
        self.delays = delays or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate_image(self, prompt: str) -> str | None:
        self.calls.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(_lookup(self.delays, prompt, 0))
            outcome = _lookup(self.outcomes, prompt, IMAGE_URI)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


def _lookup(table: dict, prompt: str, default):
    for key, value in table.items():
        if key in prompt:
            return value
    return default


class FakeStore:
    """Stands in for Database where an event-loop-bound connection won't do."""

    def __init__(self):
        self.saved = []

    async def save_report(self, report) -> str:
        self.saved.append(report)
        return report.identifier


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def text_backend() -> FakeTextBackend:
    return FakeTextBackend()


@pytest.fixture
def image_backend() -> FakeImageBackend:
    return FakeImageBackend()


@pytest.fixture
def pipeline(text_backend, image_backend) -> ReportPipeline:
    return ReportPipeline(text_backend, image_backend, visual_timeout=5.0)


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    store = Database(str(tmp_path / "veritas-test.db"))
    await store.connect()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def client(pipeline, database) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient wired to the app with fake backends and a temp store."""
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_database] = lambda: database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
