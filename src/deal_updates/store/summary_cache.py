"""SQLite cache of generated note summaries keyed by (deal_key, notes_hash, model)."""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class SummaryCacheStore:
    """SQLite store for summary cache entries."""

    def __init__(self, db_path: str | Path = "deal_updates.db"):
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._connection() as conn:
            conn.executescript(schema_path.read_text())

    def get(self, deal_key: str, notes_hash: str, model: str) -> Optional[str]:
        """Cached summary for this exact notes content, or None."""
        with self._connection() as conn:
            row = conn.execute(
                """
                SELECT summary FROM deal_summary_cache
                WHERE deal_key = ? AND notes_hash = ? AND model = ?
                """,
                (deal_key, notes_hash, model),
            ).fetchone()
        return row["summary"] if row else None

    def put(self, deal_key: str, notes_hash: str, model: str, summary: str) -> None:
        """Insert or replace a cache entry."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO deal_summary_cache (deal_key, notes_hash, model, summary, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(deal_key, notes_hash, model) DO UPDATE SET
                    summary = excluded.summary,
                    created_at = excluded.created_at
                """,
                (deal_key, notes_hash, model, summary, now),
            )
            conn.commit()

    def count(self) -> int:
        with self._connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM deal_summary_cache").fetchone()[0]
