"""SQLite report history via aiosqlite."""

from __future__ import annotations

import json

import aiosqlite

from veritas.models.report import Report

SCHEMA = """
CREATE TABLE IF NOT EXISTS reports (
    identifier TEXT PRIMARY KEY,
    topic TEXT NOT NULL,
    title TEXT NOT NULL,
    blocks_json TEXT NOT NULL DEFAULT '[]',
    citations_json TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_reports_created_at ON reports (created_at);
"""


class Database:
    """Async SQLite database for persisting generated reports."""

    def __init__(self, path: str = "veritas.db") -> None:
        self.path = path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected — call connect() first")
        return self._db

    async def save_report(self, report: Report) -> str:
        data = report.to_dict()
        await self.db.execute(
            "INSERT OR REPLACE INTO reports "
            "(identifier, topic, title, blocks_json, citations_json, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                data["identifier"],
                data["topic"],
                data["title"],
                json.dumps(data["blocks"]),
                json.dumps(data["citations"]),
                data["created_at"],
            ),
        )
        await self.db.commit()
        return report.identifier

    async def get_report(self, identifier: str) -> dict | None:
        cursor = await self.db.execute(
            "SELECT * FROM reports WHERE identifier = ?", (identifier,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return {
            "identifier": row["identifier"],
            "topic": row["topic"],
            "title": row["title"],
            "blocks": json.loads(row["blocks_json"]),
            "citations": json.loads(row["citations_json"]),
            "created_at": row["created_at"],
        }

    async def list_reports(self, limit: int = 50) -> list[dict]:
        """Summaries of stored reports, newest first."""
        cursor = await self.db.execute(
            "SELECT identifier, topic, title, created_at FROM reports "
            "ORDER BY created_at DESC LIMIT ?",
            (limit,),
        )
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]
