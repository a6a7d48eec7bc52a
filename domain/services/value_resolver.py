from __future__ import annotations

from typing import Mapping, Sequence

from domain.models import (
    CandidateProfile,
    Field,
    FieldKind,
    JobPostingRef,
    OpenEndedQuestion,
    QuestionBank,
    ResolvedValue,
    TEXT_LIKE_KINDS,
)
from domain.questions import DEFAULT_QUESTION_BANK
from domain.services.matching import (
    DEFAULT_OPTION_ALIASES,
    apply_value_map,
    match_option,
    matches_pattern,
    render_template,
    resolve_profile_value,
    truncate_answer,
)


class ValueResolver:
    """Answers a field from the candidate profile through the question bank.

    ``resolve`` returns ``None`` when nothing applies; the caller skips the
    field. An empty string from the profile is a real answer.
    """

    def __init__(
        self,
        *,
        profile: CandidateProfile,
        questions: QuestionBank = DEFAULT_QUESTION_BANK,
        job: JobPostingRef | None = None,
    ) -> None:
        self._profile = profile
        self._questions = questions
        self._job = job

    def resolve(self, field: Field) -> ResolvedValue | None:
        if field.kind in (FieldKind.SELECT, FieldKind.RADIO):
            return self.resolve_choice(field.label)
        if field.kind is FieldKind.TEXTAREA:
            return self.resolve_open_ended(field.label) or self.resolve_text(field.label)
        if field.kind in TEXT_LIKE_KINDS:
            return self.resolve_text(field.label)
        return None

    def resolve_choice(self, label: str) -> ResolvedValue | None:
        for key, mapping in self._questions.dropdown_mappings.items():
            if not matches_pattern(label, mapping.patterns):
                continue
            value = resolve_profile_value(self._profile, mapping.profile_field)
            if value is None:
                continue
            return ResolvedValue(
                value=apply_value_map(value, mapping.value_map),
                source=key,
                aliases=mapping.options,
            )
        return None

    def resolve_text(self, label: str) -> ResolvedValue | None:
        for key, mapping in self._questions.text_field_mappings.items():
            if not matches_pattern(label, mapping.patterns):
                continue
            value = resolve_profile_value(self._profile, mapping.profile_field)
            if value is None:
                continue
            return ResolvedValue(value=apply_value_map(value), source=key)
        return None

    def open_ended_question(self, label: str) -> tuple[str, OpenEndedQuestion] | None:
        for key, question in self._questions.open_ended_questions.items():
            if matches_pattern(label, question.patterns):
                return key, question
        return None

    def resolve_open_ended(self, label: str) -> ResolvedValue | None:
        found = self.open_ended_question(label)
        if found is None:
            return None
        key, question = found
        text: str | None = None
        if question.template_key:
            template = self._profile.templates.get(question.template_key)
            if template:
                text = render_template(template, self._profile, self._job)
        if text is None and question.default_value is not None:
            text = question.default_value
        if text is None:
            return None
        return ResolvedValue(
            value=truncate_answer(text, question.max_length),
            source=key,
            needs_review=question.requires_ai,
        )

    def choose_option(self, field: Field, resolved: ResolvedValue) -> str | None:
        """Option value of ``field`` answering ``resolved``, alias table included."""
        return match_option(field.options or (), resolved.value, merged_aliases(resolved.aliases))


def merged_aliases(
    extra: Mapping[str, Sequence[str]] | None,
) -> Mapping[str, Sequence[str]]:
    if not extra:
        return DEFAULT_OPTION_ALIASES
    merged: dict[str, Sequence[str]] = dict(extra)
    for key, synonyms in DEFAULT_OPTION_ALIASES.items():
        merged.setdefault(key, synonyms)
    return merged
