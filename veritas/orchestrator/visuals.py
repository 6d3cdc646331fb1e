"""Visual synthesis — fans chart prompts out to the image backend."""

from __future__ import annotations

import asyncio
import logging

import httpx

from veritas.backends.base import ImageBackend
from veritas.errors import SynthesisError
from veritas.models.report import Block
from veritas.orchestrator.segmenter import PlaceholderRequest

logger = logging.getLogger(__name__)

STYLE_TEMPLATE = """\
Create a high-quality editorial infographic or data visualization.
Subject: {prompt}.
Style: Professional investigative journalism, New York Times or Economist style.
Clean vector lines, mature color palette (dark slate, mute gold, alert red).
No cartoony elements. Highly detailed and legible.
Aspect Ratio: 16:9.\
"""


def style_prompt(prompt: str) -> str:
    return STYLE_TEMPLATE.format(prompt=prompt)


class VisualSynthesizer:
    """Turns one chart description into an image reference."""

    def __init__(self, backend: ImageBackend) -> None:
        self.backend = backend

    async def synthesize(self, prompt: str) -> str:
        """Return a displayable image reference or raise SynthesisError."""
        try:
            image = await self.backend.generate_image(style_prompt(prompt))
        except httpx.HTTPError as exc:
            raise SynthesisError(f"Image request failed: {exc}") from exc
        except (ValueError, AttributeError, KeyError, TypeError) as exc:
            raise SynthesisError(f"Malformed image response: {exc}") from exc
        if not image:
            raise SynthesisError("Image response contained no image payload")
        return image


class FanOutCoordinator:
    """Resolves every pending visual block, each independently of the others.

    Results are written back by the index recorded at segmentation time, so
    completion order never changes document order.  A failed or timed-out
    visual becomes a fallback message; it never fails the batch.
    """

    def __init__(
        self,
        synthesizer: VisualSynthesizer,
        *,
        max_concurrency: int | None = None,
        timeout: float | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be a positive integer or None")
        self.synthesizer = synthesizer
        self.max_concurrency = max_concurrency
        self.timeout = timeout

    async def resolve_all(
        self, requests: list[PlaceholderRequest], blocks: list[Block]
    ) -> list[Block]:
        """Patch every requested block in place and return the block list."""
        if not requests:
            return blocks

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        tasks = [self._run_request(req, semaphore) for req in requests]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        failed = 0
        for req, outcome in zip(requests, outcomes):
            block = blocks[req.index]
            if isinstance(outcome, BaseException):
                failed += 1
                logger.error("Visual %d failed (%r): %s", req.index, req.prompt, outcome)
                block.fail()
            else:
                block.resolve(outcome)

        logger.info("Resolved %d visuals (%d failed)", len(requests), failed)
        return blocks

    async def _run_request(
        self, req: PlaceholderRequest, semaphore: asyncio.Semaphore | None
    ) -> str:
        if semaphore is None:
            return await self._synthesize(req)
        async with semaphore:
            return await self._synthesize(req)

    async def _synthesize(self, req: PlaceholderRequest) -> str:
        logger.info("Synthesizing visual %d", req.index)
        try:
            return await asyncio.wait_for(self.synthesizer.synthesize(req.prompt), self.timeout)
        except asyncio.TimeoutError as exc:
            raise SynthesisError(f"Image request exceeded {self.timeout}s") from exc
