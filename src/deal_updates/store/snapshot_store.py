"""SQLite-backed snapshot store: one upload row per import, one deal row per deal key."""

import json
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from deal_updates.models.deal import Deal, Snapshot
from deal_updates.models.scoring_config import ScoringConfig


class SnapshotRecord:
    """Stored snapshot header."""

    def __init__(
        self,
        id: str,
        generated_date: date,
        created_at: datetime,
        deal_count: int,
        scoring_config: Optional[dict],
    ):
        self.id = id
        self.generated_date = generated_date
        self.created_at = created_at
        self.deal_count = deal_count
        self.scoring_config = scoring_config


class SnapshotStore:
    """
    SQLite store for deal snapshots.
    Treated as opaque storage keyed by snapshot id; saving an existing id replaces it.
    """

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

    def _serialize_deal(self, deal: Deal) -> str:
        """Serialize deal to JSON for storage."""
        return json.dumps(deal.model_dump(mode="json"), default=str)

    def _deserialize_deal(self, row: sqlite3.Row) -> Deal:
        return Deal.model_validate(json.loads(row["data"]))

    def _row_to_record(self, row: sqlite3.Row) -> SnapshotRecord:
        return SnapshotRecord(
            id=row["id"],
            generated_date=date.fromisoformat(row["generated_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            deal_count=row["deal_count"],
            scoring_config=json.loads(row["scoring_config"]) if row["scoring_config"] else None,
        )

    def save_snapshot(
        self,
        snapshot: Snapshot,
        scoring_config: Optional[ScoringConfig] = None,
    ) -> SnapshotRecord:
        """Persist all deals of a snapshot, replacing any snapshot stored under the same id."""
        now = datetime.now(timezone.utc).isoformat()
        config_json = (
            json.dumps(scoring_config.model_dump(mode="json")) if scoring_config is not None else None
        )
        with self._connection() as conn:
            conn.execute("DELETE FROM deals WHERE upload_id = ?", (snapshot.snapshot_id,))
            conn.execute(
                """
                INSERT INTO uploads (id, generated_date, created_at, deal_count, scoring_config)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    generated_date = excluded.generated_date,
                    created_at = excluded.created_at,
                    deal_count = excluded.deal_count,
                    scoring_config = excluded.scoring_config
                """,
                (
                    snapshot.snapshot_id,
                    snapshot.generated_date.isoformat(),
                    now,
                    len(snapshot.deals),
                    config_json,
                ),
            )
            for deal in snapshot.deals:
                health = deal.health
                comps = health.components if health else None
                conn.execute(
                    """
                    INSERT INTO deals (
                        upload_id, deal_key, notes_hash, notes_summary, health_score,
                        hs_stage_probability, hs_velocity, hs_activity_recency,
                        hs_close_date, hs_acv, hs_notes_signal, data
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        snapshot.snapshot_id,
                        deal.deal_key,
                        deal.notes_hash,
                        deal.notes_summary,
                        health.score if health else None,
                        comps.stage_probability if comps else None,
                        comps.velocity if comps else None,
                        comps.activity_recency if comps else None,
                        comps.close_date_integrity if comps else None,
                        comps.acv if comps else None,
                        comps.notes_signal if comps else None,
                        self._serialize_deal(deal),
                    ),
                )
            conn.commit()
        return SnapshotRecord(
            id=snapshot.snapshot_id,
            generated_date=snapshot.generated_date,
            created_at=datetime.fromisoformat(now),
            deal_count=len(snapshot.deals),
            scoring_config=json.loads(config_json) if config_json else None,
        )

    def get_deals(self, snapshot_id: str, now: Optional[date] = None) -> list[Deal]:
        """
        Return all deals stored under snapshot_id.
        When now is given, day deltas are recomputed against it.
        """
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT data FROM deals WHERE upload_id = ? ORDER BY deal_key",
                (snapshot_id,),
            ).fetchall()
        deals = [self._deserialize_deal(r) for r in rows]
        if now is not None:
            for deal in deals:
                deal.refresh_derived(now)
        return deals

    def get_snapshot(self, snapshot_id: str, now: Optional[date] = None) -> Optional[Snapshot]:
        """Return a full snapshot, or None when the id is unknown."""
        record = self.get_record(snapshot_id)
        if record is None:
            return None
        return Snapshot(
            snapshot_id=record.id,
            generated_date=record.generated_date,
            deals=self.get_deals(snapshot_id, now=now),
        )

    def get_record(self, snapshot_id: str) -> Optional[SnapshotRecord]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM uploads WHERE id = ?", (snapshot_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def list_snapshots(self) -> list[SnapshotRecord]:
        """All stored snapshots, newest report date first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM uploads ORDER BY generated_date DESC, created_at DESC"
            ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def latest_snapshot_id(self, exclude: Optional[str] = None) -> Optional[str]:
        """Id of the newest stored snapshot, optionally skipping one id."""
        for record in self.list_snapshots():
            if record.id != exclude:
                return record.id
        return None

    def health_history(self, deal_key: str) -> list[tuple[str, date, Optional[int]]]:
        """(snapshot_id, generated_date, health_score) for a deal, oldest first."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT u.id, u.generated_date, d.health_score
                FROM deals d JOIN uploads u ON u.id = d.upload_id
                WHERE d.deal_key = ?
                ORDER BY u.generated_date ASC, u.created_at ASC
                """,
                (deal_key,),
            ).fetchall()
        return [
            (r["id"], date.fromisoformat(r["generated_date"]), r["health_score"])
            for r in rows
        ]
