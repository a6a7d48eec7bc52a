from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any

from domain.errors import OracleTimeoutError
from domain.models import CandidateProfile, Field, FieldKind, JobPostingRef, ObservationMode
from domain.ports import BrowserPagePort, LLMClientPort, LoggerPort
from domain.prompts import build_ai_fill_prompt
from domain.services.field_extractor import FieldExtractor
from domain.services.fill_executor import FillExecutor
from domain.services.rule_filler import has_answer

AI_MODULE = "ai"
AI_MAX_TOKENS = 4000
AI_TEMPERATURE = 0.3

_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class AIAnswer:
    field_index: int
    answer: str


@dataclass(frozen=True)
class AIFillReport:
    requested: int
    answered: int
    filled: int


def parse_answers(text: str) -> list[AIAnswer]:
    """``{"answers": [{"fieldIndex", "answer"}]}`` from raw or fenced JSON."""
    data = _load_answers_object(text or "")
    if not isinstance(data, dict):
        return []
    answers: list[AIAnswer] = []
    for item in data.get("answers") or ():
        if not isinstance(item, dict):
            continue
        index = item.get("fieldIndex")
        answer = item.get("answer")
        if isinstance(index, bool) or answer is None:
            continue
        try:
            number = int(index)
        except (TypeError, ValueError):
            continue
        text_answer = answer if isinstance(answer, str) else json.dumps(answer)
        if text_answer.strip():
            answers.append(AIAnswer(field_index=number, answer=text_answer.strip()))
    return answers


def _load_answers_object(text: str) -> Any:
    candidates = [m.group(1) for m in _FENCE.finditer(text)]
    candidates.append(text)
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])
    for candidate in candidates:
        try:
            return json.loads(candidate.strip())
        except ValueError:
            continue
    return None


class AIFormFiller:
    """Answers every still-open visible field with a single oracle call."""

    def __init__(
        self,
        *,
        llm: LLMClientPort,
        executor: FillExecutor,
        extractor: FieldExtractor,
        logger: LoggerPort,
        oracle_timeout_s: float = 60.0,
    ) -> None:
        self._llm = llm
        self._executor = executor
        self._extractor = extractor
        self._logger = logger
        self._oracle_timeout = oracle_timeout_s

    async def fill(
        self,
        page: BrowserPagePort,
        profile: CandidateProfile,
        job: JobPostingRef | None,
        resume_text: str | None = None,
    ) -> AIFillReport:
        tracker = self._executor.tracker
        fields = [
            f
            for f in await self._extractor.extract(page, ObservationMode.RULE_VISIBLE)
            if f.kind is not FieldKind.FILE
            and not tracker.is_filled(f.selector)
            and not has_answer(f)
        ]
        if not fields:
            self._logger.info("ai_fill_skipped", reason="no open fields")
            return AIFillReport(requested=0, answered=0, filled=0)

        prompt = build_ai_fill_prompt(fields=fields, profile=profile, job=job, resume_text=resume_text)
        try:
            text = await asyncio.wait_for(
                self._llm.complete(prompt, max_tokens=AI_MAX_TOKENS, temperature=AI_TEMPERATURE),
                timeout=self._oracle_timeout,
            )
        except (asyncio.TimeoutError, OracleTimeoutError):
            self._logger.warning("ai_fill_timeout", fields=len(fields))
            return AIFillReport(requested=len(fields), answered=0, filled=0)

        answers = parse_answers(text)
        if not answers:
            self._logger.warning("ai_fill_unparsable", preview=(text or "")[:120])
            return AIFillReport(requested=len(fields), answered=0, filled=0)

        filled = 0
        for answer in answers:
            field = _field_at(fields, answer.field_index)
            if field is None:
                self._logger.warning("ai_answer_index_out_of_range", field_index=answer.field_index)
                continue
            if await self._executor.fill(field, answer.answer, AI_MODULE):
                filled += 1
        return AIFillReport(requested=len(fields), answered=len(answers), filled=filled)


def _field_at(fields: list[Field], one_based: int) -> Field | None:
    if 1 <= one_based <= len(fields):
        return fields[one_based - 1]
    return None
