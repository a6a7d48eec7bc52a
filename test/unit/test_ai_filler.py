from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from domain.errors import OracleTimeoutError, OracleTransportError
from domain.models import JobPostingRef
from domain.services import AIFillReport, AIFormFiller, FieldExtractor, FillExecutor, FormTracker
from domain.services.ai_filler import AIAnswer, parse_answers
from test.fixtures import GREENHOUSE_URL, load_html, sample_profile
from test.mocks import FakeDocument, FixedClock, InMemoryLogger, ScriptedLLMClient

_JOB = JobPostingRef(company_name="Acme", job_title="Backend Engineer", job_url=GREENHOUSE_URL)


def _fill(script: list, html: str | None = None) -> tuple[AIFillReport, FakeDocument, ScriptedLLMClient, InMemoryLogger]:
    page = FakeDocument(html or load_html("application_form.html"), url=GREENHOUSE_URL)
    llm = ScriptedLLMClient(script)
    logger = InMemoryLogger()
    tracker = FormTracker(clock=FixedClock(datetime(2025, 6, 1, tzinfo=timezone.utc)))
    filler = AIFormFiller(
        llm=llm,
        executor=FillExecutor(page=page, tracker=tracker, logger=logger),
        extractor=FieldExtractor(logger=logger),
        logger=logger,
    )
    report = asyncio.run(filler.fill(page, sample_profile(), _JOB, "Resume: Ada Lovelace, engineer"))
    return report, page, llm, logger


def test_parse_answers_plain_and_fenced() -> None:
    raw = '{"answers": [{"fieldIndex": 1, "answer": "Ada"}, {"fieldIndex": "2", "answer": 5}]}'
    assert parse_answers(raw) == [AIAnswer(1, "Ada"), AIAnswer(2, "5")]
    fenced = "Here you go:\n```json\n" + raw + "\n```"
    assert parse_answers(fenced) == parse_answers(raw)


def test_parse_answers_skips_bad_items() -> None:
    raw = (
        '{"answers": [{"fieldIndex": true, "answer": "x"}, {"fieldIndex": "a", "answer": "x"},'
        ' {"fieldIndex": 3}, {"fieldIndex": 4, "answer": "  "}, "junk", {"fieldIndex": 5, "answer": "ok"}]}'
    )
    assert parse_answers(raw) == [AIAnswer(5, "ok")]
    assert parse_answers("no json at all") == []
    assert parse_answers('["answers"]') == []


def test_answers_are_applied_by_one_based_index() -> None:
    report, page, llm, logger = _fill(
        [
            {
                "answers": [
                    {"fieldIndex": 1, "answer": "Ada"},
                    {"fieldIndex": 11, "answer": "check"},
                    {"fieldIndex": 99, "answer": "ignored"},
                ]
            }
        ]
    )

    assert report == AIFillReport(requested=11, answered=3, filled=2)
    assert page.value_of("#first_name") == "Ada"
    assert page.checked("#privacy")
    assert logger.find("ai_answer_index_out_of_range") == [{"field_index": 99}]
    assert llm.calls == [{"max_tokens": 4000, "temperature": 0.3}]


def test_prompt_lists_open_fields_without_file_inputs() -> None:
    _, _, llm, _ = _fill([{"answers": []}])
    prompt = llm.prompts[0]

    assert "1. [text] First Name (required) selector=#first_name" in prompt
    assert "11. [checkbox] I agree to the privacy policy (required) selector=#privacy" in prompt
    assert "#resume" not in prompt
    assert "Company: Acme" in prompt
    assert "Resume: Ada Lovelace, engineer" in prompt


def test_nothing_open_means_no_oracle_call() -> None:
    html = '<html><body><label for="a">Name</label><input id="a" value="Ada"></body></html>'
    report, _, llm, logger = _fill([], html)

    assert report == AIFillReport(requested=0, answered=0, filled=0)
    assert llm.call_count == 0
    assert logger.find("ai_fill_skipped")


def test_timeout_is_not_fatal() -> None:
    report, page, _, logger = _fill([OracleTimeoutError("slow")])

    assert report.filled == 0
    assert logger.find("ai_fill_timeout")
    assert page.count("fill") == 0


def test_unparsable_reply_is_logged() -> None:
    report, _, _, logger = _fill(["I would rather not"])
    assert report.answered == 0
    assert logger.find("ai_fill_unparsable")[0]["preview"] == "I would rather not"


def test_transport_error_propagates() -> None:
    with pytest.raises(OracleTransportError):
        _fill([OracleTransportError("Oracle unreachable")])
