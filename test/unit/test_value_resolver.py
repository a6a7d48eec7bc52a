from __future__ import annotations

from domain.models import CandidateProfile, Field, FieldKind, FieldOption, JobPostingRef
from domain.services import ValueResolver
from test.fixtures import sample_profile, sample_profile_dict

_JOB = JobPostingRef(
    company_name="Acme",
    job_title="Backend Engineer",
    job_url="https://boards.greenhouse.io/acme/jobs/1",
)


def _resolver(profile: CandidateProfile | None = None) -> ValueResolver:
    return ValueResolver(profile=profile or sample_profile(), job=_JOB)


def test_boolean_compliance_answer_maps_to_yes_no() -> None:
    resolved = _resolver().resolve_choice("Are you legally authorized to work in the US?")
    assert resolved is not None
    assert resolved.value == "Yes"
    assert resolved.source == "work_authorization"

    sponsorship = _resolver().resolve_choice("Will you require visa sponsorship?")
    assert sponsorship is not None
    assert sponsorship.value == "No"


def test_degree_carries_alias_table() -> None:
    resolved = _resolver().resolve_choice("Highest degree obtained")
    assert resolved is not None
    assert resolved.value == "MS"
    assert resolved.aliases is not None
    assert "ms" in resolved.aliases["master"]


def test_missing_education_entry_resolves_to_nothing() -> None:
    profile = sample_profile(education=[])
    assert _resolver(profile).resolve_choice("Degree") is None
    assert _resolver(profile).resolve_text("School") is None


def test_unmatched_label_resolves_to_nothing() -> None:
    assert _resolver().resolve_choice("Favourite colour") is None
    assert _resolver().resolve_text("Favourite colour") is None


def test_text_mapping_for_links() -> None:
    resolved = _resolver().resolve_text("LinkedIn Profile URL")
    assert resolved is not None
    assert resolved.value == "https://linkedin.com/in/ada"


def test_empty_profile_string_is_a_real_answer() -> None:
    data = sample_profile_dict()
    data["personal"]["salary_expectation"] = ""
    resolved = _resolver(CandidateProfile.from_dict(data)).resolve_text("Salary expectations")
    assert resolved is not None
    assert resolved.value == ""


def test_open_ended_question_uses_template_and_needs_review() -> None:
    resolved = _resolver().resolve_open_ended("Why do you want to join Acme?")
    assert resolved is not None
    assert resolved.value == "I want to build Backend Engineer tooling at Acme using Python, Go, SQL."
    assert resolved.needs_review
    assert resolved.source == "why_company"


def test_open_ended_question_without_template_is_unresolved() -> None:
    assert _resolver().resolve_open_ended("Tell us about yourself") is None


def test_open_ended_default_value() -> None:
    resolved = _resolver().resolve_open_ended("Anything else we should know?")
    assert resolved is not None
    assert resolved.value == ""
    assert not resolved.needs_review


def test_resolve_dispatches_by_kind() -> None:
    resolver = _resolver()
    select = Field(selector="#s", kind=FieldKind.SELECT, label="Are you authorized to work here?")
    text = Field(selector="#t", kind=FieldKind.TEXT, label="Current location")
    checkbox = Field(selector="#c", kind=FieldKind.CHECKBOX, label="Current location")

    assert resolver.resolve(select).value == "Yes"
    assert resolver.resolve(text).value == "San Francisco, CA"
    assert resolver.resolve(checkbox) is None


def test_choose_option_uses_aliases() -> None:
    resolver = _resolver()
    field = Field(
        selector="#degree",
        kind=FieldKind.SELECT,
        label="Degree",
        options=(
            FieldOption(value="", text="Select..."),
            FieldOption(value="b", text="Bachelor's"),
            FieldOption(value="m", text="Master's"),
        ),
    )
    resolved = resolver.resolve_choice(field.label)
    assert resolver.choose_option(field, resolved) == "m"
