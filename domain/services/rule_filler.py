"""Deterministic fill passes driven by the platform table and question bank.

Passes run in a fixed order and share one tracker: basic fields, resume
upload, education, compliance, then the remaining questions. A field that
already shows an answer on the page is left alone.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from typing import Mapping

from domain.models import (
    CandidateProfile,
    Field,
    FieldKind,
    JobPostingRef,
    ObservationMode,
    PlatformProfile,
    PlatformTable,
    QuestionBank,
)
from domain.platforms import DEFAULT_PLATFORM_TABLE, field_selectors, resume_selectors
from domain.ports import BrowserPagePort, LoggerPort
from domain.questions import DEFAULT_QUESTION_BANK
from domain.services.field_extractor import FieldExtractor
from domain.services.fill_executor import FillExecutor
from domain.services.matching import matches_pattern, resolve_profile_value
from domain.services.value_resolver import ValueResolver, merged_aliases

BASIC_FIELDS: tuple[tuple[str, str, str | None], ...] = (
    ("first_name", "First Name", "personal.first_name"),
    ("last_name", "Last Name", "personal.last_name"),
    ("full_name", "Full Name", None),
    ("email", "Email", "personal.email"),
    ("phone", "Phone", "personal.phone"),
    ("location", "Location", "personal.location"),
    ("linkedin", "LinkedIn", "links.linkedin"),
    ("github", "GitHub", "links.github"),
    ("portfolio", "Portfolio", "links.portfolio"),
)
EDUCATION_KEYS = frozenset({"school", "degree", "discipline"})
GRADUATION_PATTERNS = ("graduation", "grad date", "end date", "completion")
_PLACEHOLDER_PREFIXES = ("select", "choose", "please select", "--", "none selected")
_CHOICE_KINDS = (FieldKind.SELECT, FieldKind.RADIO)


@dataclass(frozen=True)
class RuleFillReport:
    filled: int
    failed: int
    needs_review: tuple[str, ...] = ()


class RuleBasedFiller:
    """Runs the rule passes over one page through a shared :class:`FillExecutor`."""

    def __init__(
        self,
        *,
        executor: FillExecutor,
        extractor: FieldExtractor,
        logger: LoggerPort,
        platforms: PlatformTable = DEFAULT_PLATFORM_TABLE,
        questions: QuestionBank = DEFAULT_QUESTION_BANK,
    ) -> None:
        self._executor = executor
        self._extractor = extractor
        self._logger = logger
        self._platforms = platforms
        self._questions = questions

    async def fill_all(
        self,
        page: BrowserPagePort,
        profile: CandidateProfile,
        job: JobPostingRef | None,
        platform: PlatformProfile,
        *,
        resume_path: str | None = None,
    ) -> RuleFillReport:
        resolver = ValueResolver(profile=profile, questions=self._questions, job=job)
        self._logger.info("rule_fill_started", platform=platform.key)

        await self.fill_basic(page, profile, platform)
        if resume_path:
            await self.upload_resume(page, platform, resume_path)
        await self.fill_education(page, resolver, profile)
        await self.fill_compliance(page, resolver)
        needs_review = await self.fill_questions(page, resolver)

        tracker = self._executor.tracker
        report = RuleFillReport(
            filled=tracker.filled_count,
            failed=tracker.failed_count,
            needs_review=tuple(needs_review),
        )
        self._logger.info(
            "rule_fill_finished",
            filled=report.filled,
            failed=report.failed,
            needs_review=len(report.needs_review),
        )
        return report

    # -- passes -------------------------------------------------------------

    async def fill_basic(
        self,
        page: BrowserPagePort,
        profile: CandidateProfile,
        platform: PlatformProfile,
    ) -> int:
        filled = 0
        for name, label, path in BASIC_FIELDS:
            value = profile.full_name if path is None else resolve_profile_value(profile, path)
            if not isinstance(value, str) or not value.strip():
                continue
            for selector in field_selectors(self._platforms, platform.key, name):
                matches = await page.query_all(selector)
                if not matches or not await page.computed_visible(matches[0]):
                    continue
                if (await page.input_value(matches[0])).strip():
                    break
                if await self._executor.fill_selector(selector, value, "basic", label=label):
                    filled += 1
                    break
        return filled

    async def upload_resume(
        self,
        page: BrowserPagePort,
        platform: PlatformProfile,
        resume_path: str,
    ) -> bool:
        for selector in resume_selectors(self._platforms, platform.key):
            if await page.query_all(selector):
                return await self._executor.upload(selector, resume_path, "resume")
        self._logger.warning("resume_input_not_found", platform=platform.key)
        return False

    async def fill_education(
        self,
        page: BrowserPagePort,
        resolver: ValueResolver,
        profile: CandidateProfile,
    ) -> int:
        filled = 0
        graduation = _graduation_parts(profile)
        for field in await self._open_fields(page):
            if field.kind in _CHOICE_KINDS:
                resolved = resolver.resolve_choice(field.label)
                if resolved is not None and resolved.source in EDUCATION_KEYS:
                    aliases = merged_aliases(resolved.aliases)
                    if await self._executor.fill(field, resolved.value, "education", aliases=aliases):
                        filled += 1
                    continue
            if graduation and matches_pattern(field.label, GRADUATION_PATTERNS):
                value, aliases = _graduation_value(field, graduation)
                if value and await self._executor.fill(field, value, "education", aliases=aliases):
                    filled += 1
        return filled

    async def fill_compliance(self, page: BrowserPagePort, resolver: ValueResolver) -> int:
        filled = 0
        for field in await self._open_fields(page):
            if field.kind not in _CHOICE_KINDS:
                continue
            resolved = resolver.resolve_choice(field.label)
            if resolved is None or resolved.source in EDUCATION_KEYS:
                continue
            aliases = merged_aliases(resolved.aliases)
            if await self._executor.fill(field, resolved.value, "compliance", aliases=aliases):
                filled += 1
        return filled

    async def fill_questions(self, page: BrowserPagePort, resolver: ValueResolver) -> list[str]:
        """Remaining mapped and open-ended questions; returns labels needing review."""
        needs_review: list[str] = []
        for field in await self._open_fields(page):
            if field.kind in (FieldKind.FILE, FieldKind.CHECKBOX):
                continue
            resolved = resolver.resolve(field)
            if resolved is None:
                found = resolver.open_ended_question(field.label)
                if found is not None and found[1].requires_ai:
                    needs_review.append(field.label)
                continue
            aliases = merged_aliases(resolved.aliases)
            if await self._executor.fill(field, resolved.value, "questions", aliases=aliases):
                if resolved.needs_review:
                    needs_review.append(field.label)
        return needs_review

    # -- helpers ------------------------------------------------------------

    async def _open_fields(self, page: BrowserPagePort) -> list[Field]:
        """Visible fields neither tracked as filled nor showing an answer."""
        tracker = self._executor.tracker
        fields = await self._extractor.extract(page, ObservationMode.RULE_VISIBLE)
        return [f for f in fields if not tracker.is_filled(f.selector) and not has_answer(f)]


def has_answer(field: Field) -> bool:
    if field.kind is FieldKind.CHECKBOX:
        return field.current_value == "checked"
    value = field.current_value.strip()
    if not value:
        return False
    if field.kind is FieldKind.SELECT and field.options:
        for option in field.options:
            if option.value == field.current_value:
                return not option.text.strip().lower().startswith(_PLACEHOLDER_PREFIXES)
    return True


def _graduation_parts(profile: CandidateProfile) -> tuple[str, int | None] | None:
    """``("2025", 5)`` from a ``YYYY-MM`` graduation entry; month may be missing."""
    if not profile.education:
        return None
    raw = str(profile.education[0].get("graduation") or "").strip()
    if not raw:
        return None
    year, _, month = raw.partition("-")
    if not year.isdigit():
        return None
    return year, int(month) if month.isdigit() and 1 <= int(month) <= 12 else None


def _graduation_value(
    field: Field,
    parts: tuple[str, int | None],
) -> tuple[str | None, Mapping[str, tuple[str, ...]] | None]:
    year, month = parts
    label = field.label.lower()
    if "month" in label:
        if month is None:
            return None, None
        name = calendar.month_name[month]
        synonyms = (name.lower(), calendar.month_abbr[month].lower(), str(month), f"{month:02d}")
        return name, {name.lower(): synonyms}
    if "year" in label or field.kind in _CHOICE_KINDS:
        return year, None
    if month is None:
        return year, None
    return f"{month:02d}/{year}", None
