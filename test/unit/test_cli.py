from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from cli.main import build_parser, main
from domain.models import ApplicationOutcome, ApplicationStatus
from infra.persistence import SQLiteApplicationHistory
from test.fixtures import sample_profile_dict


def _write_valid_config(base: Path) -> None:
    (base / "config.json").write_text(
        json.dumps({"OPENAI_KEY": "sk-abc12345678", "OPENAI_BASE_URL": "https://api.example.com/v1"})
    )
    (base / "candidate-profile.json").write_text(json.dumps(sample_profile_dict()))
    (base / "resume.pdf").write_bytes(b"%PDF-1.4 fake")


def test_parser_apply_url_defaults() -> None:
    args = build_parser().parse_args(
        ["apply-url", "https://boards.greenhouse.io/acme/jobs/1", "--company", "Acme", "--title", "SRE"]
    )
    assert args.command == "apply-url"
    assert args.mode == "rules"
    assert args.headless is None
    assert args.no_oracle is False
    assert args.db_path == "application_history.db"


def test_parser_headless_flags() -> None:
    parser = build_parser()
    base = ["apply-url", "https://x.test/1", "--company", "A", "--title", "B"]
    assert parser.parse_args([*base, "--headless"]).headless is True
    assert parser.parse_args([*base, "--no-headless"]).headless is False
    assert parser.parse_args([*base, "--mode", "agent"]).mode == "agent"


def test_parser_rejects_unknown_mode() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["apply-url", "https://x.test/1", "--company", "A", "--title", "B", "--mode", "x"])


def test_validate_config_ok(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_valid_config(tmp_path)
    assert main(["validate-config", "--config-dir", str(tmp_path)]) == 0
    assert "Config OK. Profile: Ada Lovelace (ada@example.com)" in capsys.readouterr().out


def test_validate_config_lists_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["validate-config", "--config-dir", str(tmp_path)]) == 1
    out = capsys.readouterr().out
    assert out.startswith("Config validation failed:")
    assert "Missing file:" in out


def test_history_lists_outcomes(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    db = str(tmp_path / "history.db")
    store = SQLiteApplicationHistory(db_path=db)
    store.record(
        ApplicationOutcome(
            url_key="https://boards.greenhouse.io/acme/jobs/1",
            job_url="https://boards.greenhouse.io/acme/jobs/1",
            company_name="Acme",
            job_title="SRE",
            status=ApplicationStatus.NEEDS_HELP,
            reason="CAPTCHA detected",
            recorded_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
        )
    )
    store.close()

    assert main(["--db-path", db, "history"]) == 0
    assert capsys.readouterr().out.strip() == (
        "Acme | 2025-06-01T00:00:00+00:00 | https://boards.greenhouse.io/acme/jobs/1 | needs_help | CAPTCHA detected"
    )
