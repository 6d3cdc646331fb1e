"""Tests for the report history store."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from veritas.db.database import Database
from veritas.models.report import Block, BlockKind, Citation, Report


def _report(topic: str, created_at: datetime) -> Report:
    return Report(
        topic=topic,
        title=f"{topic} exposed",
        blocks=[Block(BlockKind.PROSE, "Lede."), Block(BlockKind.VISUAL, "data:x", "chart")],
        citations=[Citation("Source", "https://source.example")],
        created_at=created_at,
    )


@pytest.mark.asyncio
async def test_save_and_get(database: Database):
    report = _report("Shipping", datetime(2026, 1, 2, tzinfo=timezone.utc))
    await database.save_report(report)

    stored = await database.get_report(report.identifier)
    assert stored == report.to_dict()


@pytest.mark.asyncio
async def test_get_missing_report(database: Database):
    assert await database.get_report("missing") is None


@pytest.mark.asyncio
async def test_list_newest_first(database: Database):
    base = datetime(2026, 3, 1, tzinfo=timezone.utc)
    older = _report("Older", base)
    newer = _report("Newer", base + timedelta(hours=1))
    await database.save_report(older)
    await database.save_report(newer)

    history = await database.list_reports()
    assert [r["topic"] for r in history] == ["Newer", "Older"]
    assert set(history[0]) == {"identifier", "topic", "title", "created_at"}

    assert len(await database.list_reports(limit=1)) == 1


@pytest.mark.asyncio
async def test_requires_connection(tmp_path):
    store = Database(str(tmp_path / "unused.db"))
    with pytest.raises(RuntimeError):
        await store.get_report("x")
