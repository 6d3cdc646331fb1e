"""Segmenter — turns a drafted Markdown report into ordered, typed blocks.

The draft is semi-structured: ``#`` marks the headline, ``##`` and ``###``
mark section headers, and ``[VISUAL_PROMPT: ...]`` tags (in whatever
brackets or emphasis the model chose) mark where a chart belongs.
Everything else is prose.

Segmentation is a reducer over classified lines.  Prose lines accumulate in
a buffer; any structural line flushes the buffer into one prose block before
its own block is appended.  Visual blocks are appended as pending
placeholders and their positions recorded so the fan-out can patch them in
place later.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from veritas.models.report import DEFAULT_TITLE, Block, BlockKind

VISUAL_TOKEN = "VISUAL_PROMPT"

_TITLE_RE = re.compile(r"^#[ \t]+(.+?)[ \t]*\r?$", re.MULTILINE)
_HEADING_RE = re.compile(r"(#{1,3})[ \t]")
_LEADING_NOISE_RE = re.compile(r"^[\s*_\[\]]+")
_VISUAL_PROMPT_RE = re.compile(rf"{VISUAL_TOKEN}[^:]*:(.*)$", re.IGNORECASE)
_TRAILING_NOISE_RE = re.compile(r"[\]*_\s]+$")
_PROMPT_LEAD_RE = re.compile(r"^[*_\s]+")
_EMPHASIS = "**"


class LineKind(Enum):
    TITLE = "title"
    HEADER = "header"
    SUBHEADER = "subheader"
    VISUAL = "visual"
    PROSE = "prose"


_HEADING_KINDS = {1: LineKind.TITLE, 2: LineKind.HEADER, 3: LineKind.SUBHEADER}


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    payload: str


@dataclass(frozen=True)
class PlaceholderRequest:
    """A pending visual: the block index to patch and the prompt to render."""

    index: int
    prompt: str


@dataclass
class Segmentation:
    title: str
    blocks: list[Block] = field(default_factory=list)
    placeholders: list[PlaceholderRequest] = field(default_factory=list)


def classify_line(line: str) -> ClassifiedLine:
    """Classify one raw line and extract its cleaned payload.

    Prose payloads keep the raw line so the caller can buffer it verbatim.
    """
    heading = _HEADING_RE.match(line)
    if heading:
        kind = _HEADING_KINDS[len(heading.group(1))]
        return ClassifiedLine(kind, _clean_heading(line[heading.end():]))

    stripped = line.strip()
    normalized = _LEADING_NOISE_RE.sub("", stripped).upper()
    if normalized.startswith(VISUAL_TOKEN):
        return ClassifiedLine(LineKind.VISUAL, _extract_visual_prompt(stripped))

    return ClassifiedLine(LineKind.PROSE, line)


def extract_title(raw_text: str) -> str:
    """Return the first headline in the text, or the default title."""
    match = _TITLE_RE.search(raw_text)
    if match is None:
        return DEFAULT_TITLE
    title = _clean_heading(match.group(1))
    return title or DEFAULT_TITLE


def _clean_heading(text: str) -> str:
    return text.replace(_EMPHASIS, "").strip()


def _extract_visual_prompt(stripped: str) -> str:
    match = _VISUAL_PROMPT_RE.search(stripped)
    if match is None:
        return ""
    prompt = _TRAILING_NOISE_RE.sub("", match.group(1))
    return _PROMPT_LEAD_RE.sub("", prompt).strip()


class Segmenter:
    """Accumulates classified lines into blocks.

    The segmenter is either accumulating prose into its buffer or flushing
    that buffer ahead of a structural block; ``feed`` drives the transition.
    """

    def __init__(self) -> None:
        self.blocks: list[Block] = []
        self.placeholders: list[PlaceholderRequest] = []
        self._buffer: list[str] = []

    def feed(self, classified: ClassifiedLine) -> None:
        kind = classified.kind
        if kind is LineKind.PROSE:
            self._buffer.append(classified.payload + "\n")
        elif kind is LineKind.TITLE:
            # The headline is extracted separately; it never becomes a block.
            return
        elif kind is LineKind.HEADER:
            self.flush()
            self.blocks.append(Block(BlockKind.HEADER, classified.payload))
        elif kind is LineKind.SUBHEADER:
            self.flush()
            self.blocks.append(Block(BlockKind.SUBHEADER, classified.payload))
        elif kind is LineKind.VISUAL:
            self.flush()
            self.placeholders.append(PlaceholderRequest(len(self.blocks), classified.payload))
            self.blocks.append(Block.placeholder(classified.payload))

    def flush(self) -> None:
        """Emit buffered prose as one block if it has any content."""
        text = "".join(self._buffer).strip()
        self._buffer.clear()
        if text:
            self.blocks.append(Block(BlockKind.PROSE, text))


def segment(raw_text: str) -> Segmentation:
    """Split raw report text into a title, ordered blocks and visual requests."""
    segmenter = Segmenter()
    if raw_text:
        for line in raw_text.split("\n"):
            segmenter.feed(classify_line(line.rstrip("\r")))
    segmenter.flush()
    return Segmentation(
        title=extract_title(raw_text),
        blocks=segmenter.blocks,
        placeholders=segmenter.placeholders,
    )
