"""Report, block and citation data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

PENDING = "pending"
DEFAULT_TITLE = "Untitled Report"
FALLBACK_TEMPLATE = "[Visual Data Unavailable: {prompt}]"


class BlockKind(Enum):
    PROSE = "prose"
    HEADER = "header"
    SUBHEADER = "subheader"
    VISUAL = "visual"


@dataclass
class Block:
    """One ordered unit of report content."""

    kind: BlockKind
    payload: str
    visual_prompt: str | None = None

    @classmethod
    def placeholder(cls, prompt: str) -> Block:
        return cls(kind=BlockKind.VISUAL, payload=PENDING, visual_prompt=prompt)

    @property
    def is_pending(self) -> bool:
        return self.kind is BlockKind.VISUAL and self.payload == PENDING

    def resolve(self, payload: str) -> None:
        """Move a pending visual to its final payload. Allowed exactly once."""
        if not self.is_pending:
            raise ValueError(f"Block is not a pending visual (kind={self.kind.value})")
        self.payload = payload

    def fail(self) -> None:
        """Resolve a pending visual to its fallback message."""
        self.resolve(FALLBACK_TEMPLATE.format(prompt=self.visual_prompt or ""))

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "payload": self.payload,
            "visual_prompt": self.visual_prompt,
        }


@dataclass
class Citation:
    """A source consulted while drafting, keyed by url."""

    title: str
    url: str

    def to_dict(self) -> dict:
        return {"title": self.title, "url": self.url}


@dataclass
class Report:
    """A finished investigative report."""

    topic: str
    title: str = DEFAULT_TITLE
    blocks: list[Block] = field(default_factory=list)
    citations: list[Citation] = field(default_factory=list)
    identifier: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "topic": self.topic,
            "title": self.title,
            "blocks": [b.to_dict() for b in self.blocks],
            "citations": [c.to_dict() for c in self.citations],
            "created_at": self.created_at.isoformat(),
        }
