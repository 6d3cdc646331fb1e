"""Gemini backend — Generative Language REST API via httpx."""

from __future__ import annotations

import logging

import httpx

from veritas.backends.base import TextResult
from veritas.config import settings
from veritas.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


class GeminiBackend:
    """Text and image generation using Google's Gemini models."""

    name: str = "Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        text_model: str | None = None,
        image_model: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_api_key
        if not self.api_key:
            raise ConfigurationError("Server API key not configured")
        self.text_model = text_model or settings.text_model
        self.image_model = image_model or settings.image_model
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._transport = transport

    async def generate_text(self, prompt: str, *, grounded: bool = True) -> TextResult:
        """Draft text with the text model and collect grounding sources."""
        body: dict = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": settings.text_temperature},
        }
        if grounded:
            body["tools"] = [{"google_search": {}}]

        data = await self._generate(self.text_model, body, timeout=settings.text_timeout)
        candidate = self._first_candidate(data)
        text = self._extract_text(candidate)
        sources = self._extract_sources(candidate)
        logger.info(
            "Gemini text returned %d chars, %d grounding chunks",
            len(text or ""), len(sources),
        )
        return TextResult(text=text, sources=sources)

    async def generate_image(self, prompt: str) -> str | None:
        """Render an image and return it as a data URI."""
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        data = await self._generate(self.image_model, body, timeout=settings.image_timeout)
        candidate = self._first_candidate(data)
        for part in (candidate.get("content") or {}).get("parts") or []:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_MIME_TYPE
                return f"data:{mime_type};base64,{inline['data']}"
        return None

    async def _generate(self, model: str, body: dict, *, timeout: float) -> dict:
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/models/{model}:generateContent",
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.api_key,
                },
                json=body,
            )
            response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from {model}, got {type(data).__name__}")
        return data

    def _first_candidate(self, data: dict) -> dict:
        candidates = data.get("candidates") or []
        return candidates[0] if candidates else {}

    def _extract_text(self, candidate: dict) -> str | None:
        """Join the candidate's text parts, skipping thought summaries."""
        parts = (candidate.get("content") or {}).get("parts") or []
        texts = [p["text"] for p in parts if p.get("text") and not p.get("thought")]
        return "".join(texts) if texts else None

    def _extract_sources(self, candidate: dict) -> list[dict]:
        metadata = candidate.get("groundingMetadata") or {}
        sources: list[dict] = []
        for chunk in metadata.get("groundingChunks") or []:
            web = chunk.get("web") or {}
            sources.append({"title": web.get("title"), "url": web.get("uri")})
        return sources
