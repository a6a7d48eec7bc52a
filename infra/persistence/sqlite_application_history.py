from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Sequence

from domain.models import ApplicationOutcome, ApplicationStatus


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps are UTC.
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _stamp(moment: datetime | None) -> str | None:
    return _as_utc(moment).isoformat() if moment else None


def _parse_stamp(raw: object) -> datetime | None:
    return _as_utc(datetime.fromisoformat(str(raw))) if raw else None


class SQLiteApplicationHistory:
    """
    SQLite-backed implementation of ``ApplicationHistoryPort``.

    One row per normalized job URL; recording an outcome for a URL that was
    seen before replaces the earlier row.
    """

    _SCHEMA_SQL = """\
    CREATE TABLE IF NOT EXISTS application_history (
        url_key       TEXT PRIMARY KEY,
        job_url       TEXT NOT NULL,
        company_name  TEXT NOT NULL,
        job_title     TEXT NOT NULL,
        status        TEXT NOT NULL,
        platform      TEXT NOT NULL,
        reason        TEXT,
        filled_count  INTEGER NOT NULL DEFAULT 0,
        failed_count  INTEGER NOT NULL DEFAULT 0,
        agent_steps   INTEGER NOT NULL DEFAULT 0,
        needs_review  INTEGER NOT NULL DEFAULT 0,
        recorded_at   TEXT,
        debug_run_id  TEXT
    );
    """
    _COLUMNS = (
        "url_key, job_url, company_name, job_title, status, platform, reason, "
        "filled_count, failed_count, agent_steps, needs_review, recorded_at, debug_run_id"
    )

    def __init__(self, db_path: str = ":memory:") -> None:
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(self._SCHEMA_SQL)

    def record(self, outcome: ApplicationOutcome) -> None:
        self._conn.execute(
            f"INSERT OR REPLACE INTO application_history ({self._COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            self._outcome_to_row(outcome),
        )
        self._conn.commit()

    def get(self, url_key: str) -> ApplicationOutcome | None:
        row = self._conn.execute(
            f"SELECT {self._COLUMNS} FROM application_history WHERE url_key = ?",
            (url_key,),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_outcome(row)

    def list_all(self) -> Sequence[ApplicationOutcome]:
        rows = self._conn.execute(
            f"SELECT {self._COLUMNS} FROM application_history ORDER BY recorded_at DESC",
        ).fetchall()
        return [self._row_to_outcome(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _outcome_to_row(o: ApplicationOutcome) -> tuple[object, ...]:
        return (
            o.url_key,
            o.job_url,
            o.company_name,
            o.job_title,
            o.status.value,
            o.platform,
            o.reason,
            o.filled_count,
            o.failed_count,
            o.agent_steps,
            int(o.needs_review),
            _stamp(o.recorded_at),
            o.debug_run_id,
        )

    @staticmethod
    def _row_to_outcome(row: tuple[object, ...]) -> ApplicationOutcome:
        return ApplicationOutcome(
            url_key=str(row[0]),
            job_url=str(row[1]),
            company_name=str(row[2]),
            job_title=str(row[3]),
            status=ApplicationStatus(row[4]),
            platform=str(row[5]),
            reason=str(row[6]) if row[6] is not None else None,
            filled_count=int(row[7]),
            failed_count=int(row[8]),
            agent_steps=int(row[9]),
            needs_review=bool(row[10]),
            recorded_at=_parse_stamp(row[11]),
            debug_run_id=str(row[12]) if row[12] else None,
        )
