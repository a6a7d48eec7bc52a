from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

from domain.models import ApplicationOutcome, ApplicationStatus
from domain.ports import ApplicationHistoryPort
from infra.persistence import SQLiteApplicationHistory


@pytest.fixture()
def history(tmp_path: str) -> SQLiteApplicationHistory:
    db = os.path.join(tmp_path, "history.db")
    h = SQLiteApplicationHistory(db_path=db)
    yield h
    h.close()


def _make_outcome(**overrides: object) -> ApplicationOutcome:
    defaults: dict = dict(
        url_key="https://boards.greenhouse.io/acme/jobs/1",
        job_url="https://boards.greenhouse.io/acme/jobs/1?gh_src=abc",
        company_name="Acme Inc",
        job_title="Backend Engineer",
        status=ApplicationStatus.COMPLETED,
        platform="greenhouse",
        reason="Form filled; ready for review and submit",
        filled_count=11,
        agent_steps=0,
        needs_review=True,
        recorded_at=datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
    )
    defaults.update(overrides)
    return ApplicationOutcome(**defaults)


# -- protocol conformance --------------------------------------------------

def test_conforms_to_application_history_port(history: SQLiteApplicationHistory) -> None:
    assert isinstance(history, ApplicationHistoryPort)


# -- record / get -----------------------------------------------------------

def test_list_all_empty_initially(history: SQLiteApplicationHistory) -> None:
    assert history.list_all() == []


def test_record_and_get_round_trip(history: SQLiteApplicationHistory) -> None:
    outcome = _make_outcome(debug_run_id="run-7", failed_count=2)
    history.record(outcome)
    assert history.get(outcome.url_key) == outcome


def test_get_returns_none_for_missing(history: SQLiteApplicationHistory) -> None:
    assert history.get("https://nowhere.test/job") is None


def test_same_url_replaces_earlier_outcome(history: SQLiteApplicationHistory) -> None:
    history.record(_make_outcome(status=ApplicationStatus.NEEDS_HELP, reason="CAPTCHA detected"))
    history.record(_make_outcome())

    rows = history.list_all()
    assert len(rows) == 1
    assert rows[0].status is ApplicationStatus.COMPLETED


def test_list_all_newest_first(history: SQLiteApplicationHistory) -> None:
    history.record(_make_outcome(url_key="a", recorded_at=datetime(2025, 1, 1, tzinfo=timezone.utc)))
    history.record(_make_outcome(url_key="b", recorded_at=datetime(2025, 3, 1, tzinfo=timezone.utc)))
    assert [o.url_key for o in history.list_all()] == ["b", "a"]


def test_naive_timestamps_are_stored_as_utc(history: SQLiteApplicationHistory) -> None:
    history.record(_make_outcome(recorded_at=datetime(2025, 6, 1, 12, 0), reason=None))
    loaded = history.get("https://boards.greenhouse.io/acme/jobs/1")
    assert loaded is not None
    assert loaded.recorded_at == datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert loaded.reason is None


def test_persists_across_connections(tmp_path: str) -> None:
    db = os.path.join(tmp_path, "persist.db")
    first = SQLiteApplicationHistory(db_path=db)
    first.record(_make_outcome(status=ApplicationStatus.FAILED, reason="Oracle unavailable: boom"))
    first.close()

    second = SQLiteApplicationHistory(db_path=db)
    loaded = second.get("https://boards.greenhouse.io/acme/jobs/1")
    second.close()
    assert loaded is not None
    assert loaded.status is ApplicationStatus.FAILED
