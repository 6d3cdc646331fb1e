"""Source deduplication for grounding citations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from veritas.models.citation import Citation

logger = logging.getLogger(__name__)


def dedupe(raw_citations: Iterable[Mapping | Citation]) -> list[Citation]:
    """Collapse citations sharing a url.

    Each url keeps the position of its first occurrence but takes the field
    values of its last occurrence.  Records missing a title or url are
    discarded.
    """
    seen: dict[str, Citation] = {}
    for raw in raw_citations:
        citation = _coerce(raw)
        if citation is None:
            logger.debug("Discarding malformed citation: %r", raw)
            continue
        # Reassigning an existing key keeps its insertion position.
        seen[citation.url] = citation
    return list(seen.values())


def _coerce(raw: Mapping | Citation) -> Citation | None:
    if isinstance(raw, Citation):
        title, url = raw.title, raw.url
    elif isinstance(raw, Mapping):
        title, url = raw.get("title"), raw.get("url")
    else:
        return None
    if not isinstance(title, str) or not isinstance(url, str) or not title or not url:
        return None
    return Citation(title=title, url=url)
