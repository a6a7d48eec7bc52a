from __future__ import annotations

import io
import json
from datetime import datetime

import pytest

from domain.ports import LoggerPort
from infra.runtime import StructuredLogger


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_emits_one_json_object_per_event() -> None:
    stream = io.StringIO()
    logger = StructuredLogger(stream=stream)
    assert isinstance(logger, LoggerPort)

    logger.info("field_filled", selector="#email", module="basic")
    logger.error("application_failed", error="boom", when=datetime(2025, 1, 1))

    first, second = _lines(stream)
    assert first["level"] == "info"
    assert first["message"] == "field_filled"
    assert first["fields"] == {"selector": "#email", "module": "basic"}
    assert second["fields"]["when"] == "2025-01-01 00:00:00"
    assert "ts" in first


def test_drops_events_below_threshold() -> None:
    stream = io.StringIO()
    logger = StructuredLogger(level="warning", stream=stream)
    logger.info("noise")
    logger.warning("fill_failed", reason="Element not found")

    assert [e["message"] for e in _lines(stream)] == ["fill_failed"]


def test_rejects_unknown_level() -> None:
    with pytest.raises(ValueError, match="verbose"):
        StructuredLogger(level="verbose")
