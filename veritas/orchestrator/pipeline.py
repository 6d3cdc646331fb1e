"""Report pipeline — drafts, segments, illustrates and assembles a report."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

import httpx

from veritas.backends.base import ImageBackend, TextBackend, TextResult
from veritas.backends.gemini import GeminiBackend
from veritas.config import settings
from veritas.errors import GenerationError
from veritas.models.report import Report
from veritas.orchestrator.segmenter import segment
from veritas.orchestrator.sources import dedupe
from veritas.orchestrator.visuals import FanOutCoordinator, VisualSynthesizer

logger = logging.getLogger(__name__)

ProgressSink = Callable[[str], Awaitable[None] | None]

NOT_FOUND_MARKER = "Requested entity was not found"
ACCESS_DENIED_STATUSES = (403, 404)

INVESTIGATION_PROMPT = """\
You are an award-winning investigative journalist known for "The Veritas Report".

Your Task: Conduct a deep-dive investigation into: "{topic}".

Style Guide:
- **Unapologetic & Conclusive**: Do not hedge. Use definitive language based on facts.
- **Connect the Dots**: Look for patterns, financial trails, hypocrisy, or root causes.
- **Hard-Hitting**: This is an exposé, not a Wikipedia summary.
- **Data-Driven**: Use the search tool to find concrete statistics and evidence.
- **Formatting**: Use Markdown for emphasis (bold **text**, italic *text*). \
Use headers (## and ###) to structure the report.

Output Format:
Structure your response EXACTLY as follows using these tags:

# [Catchy, Hard-Hitting Headline]

[Executive Summary: A powerful bold introductory paragraph summarizing the findings.]

## [Section Header]
[Paragraphs of deep analysis. Use **bold** for key facts.]

[VISUAL_PROMPT: Detailed description of a chart, graph, or infographic that \
visualizes the data mentioned above. Style: High-end editorial data visualization, \
clean, authoritative, dark mode friendly.]

## [Next Section Header]
[More analysis...]

[VISUAL_PROMPT: Another visual description...]

## Conclusion
[Final verdict.]

Grounding:
You MUST use the Google Search tool to gather real-time facts.\
"""


class ReportPipeline:
    """Generates a complete, illustrated report for one topic.

    Each call to ``generate_report`` owns its own blocks and citations;
    a pipeline instance can serve concurrent invocations.
    """

    def __init__(
        self,
        text_backend: TextBackend,
        image_backend: ImageBackend,
        *,
        max_concurrency: int | None = None,
        visual_timeout: float | None = None,
    ) -> None:
        self.text_backend = text_backend
        self.coordinator = FanOutCoordinator(
            VisualSynthesizer(image_backend),
            max_concurrency=max_concurrency,
            timeout=visual_timeout,
        )

    async def generate_report(self, topic: str, progress: ProgressSink | None = None) -> Report:
        """Run the full pipeline and return the finished report.

        Raises GenerationError if the drafting call fails.  Visual failures
        are absorbed into fallback blocks.
        """
        await self._notify(progress, "Deploying investigative agents...")
        logger.info("Generating report for topic %r", topic)

        await self._notify(progress, "Cross-referencing sources...")
        result = await self._draft(topic)
        raw_text = result.text
        if not raw_text:
            logger.warning("Text backend returned no text for %r; using empty draft", topic)
            raw_text = ""

        await self._notify(progress, "Analyzing data patterns...")
        segmentation = segment(raw_text)
        citations = dedupe(result.sources)
        logger.info(
            "Segmented %d blocks, %d visuals, %d sources",
            len(segmentation.blocks), len(segmentation.placeholders), len(citations),
        )

        if segmentation.placeholders:
            await self._notify(
                progress, f"Visualizing evidence ({len(segmentation.placeholders)} charts)..."
            )
            await self.coordinator.resolve_all(segmentation.placeholders, segmentation.blocks)

        await self._notify(progress, "Assembling report...")
        return Report(
            topic=topic,
            title=segmentation.title,
            blocks=segmentation.blocks,
            citations=citations,
        )

    async def _draft(self, topic: str) -> TextResult:
        prompt = INVESTIGATION_PROMPT.format(topic=topic)
        try:
            return await self.text_backend.generate_text(prompt, grounded=True)
        except httpx.HTTPStatusError as exc:
            denied = exc.response.status_code in ACCESS_DENIED_STATUSES or (
                NOT_FOUND_MARKER in exc.response.text
            )
            logger.error("Text generation rejected (%d): %s", exc.response.status_code, exc)
            raise GenerationError(str(exc), access_denied=denied) from exc
        except Exception as exc:
            logger.error("Text generation failed: %s", exc)
            raise GenerationError(str(exc), access_denied=NOT_FOUND_MARKER in str(exc)) from exc

    async def _notify(self, progress: ProgressSink | None, message: str) -> None:
        """Deliver a progress message; sink failures are logged and ignored."""
        if progress is None:
            return
        try:
            outcome = progress(message)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            logger.warning("Progress sink failed on %r: %s", message, exc)


def build_pipeline() -> ReportPipeline:
    """Build a pipeline from settings. Raises ConfigurationError without a key."""
    backend = GeminiBackend()
    return ReportPipeline(
        backend,
        backend,
        max_concurrency=settings.visual_concurrency,
        visual_timeout=settings.visual_timeout,
    )
