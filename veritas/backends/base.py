"""Base protocols for the generative collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass
class TextResult:
    """Result returned by a text-generation backend."""

    text: str | None
    # Raw {"title", "url"} records from grounding metadata; may be incomplete.
    sources: list[dict] = field(default_factory=list)


@runtime_checkable
class TextBackend(Protocol):
    """Interface for backends that draft the report text."""

    name: str

    async def generate_text(self, prompt: str, *, grounded: bool = True) -> TextResult:
        """Generate free-form text, optionally grounded with web search."""
        ...


@runtime_checkable
class ImageBackend(Protocol):
    """Interface for backends that render report visuals."""

    name: str

    async def generate_image(self, prompt: str) -> str | None:
        """Return the first generated image as a data URI, or None if there is none."""
        ...
