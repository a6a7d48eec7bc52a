"""Built-in question bank used by the value resolver.

``form-questions.json`` in the config directory can replace it; the layout
is the one :func:`question_bank_from_dict` reads.
"""

from __future__ import annotations

from typing import Any, Mapping

from domain.models import (
    DropdownMapping,
    OpenEndedQuestion,
    QuestionBank,
    TextFieldMapping,
)

YES_NO = {"true": "Yes", "false": "No"}

DEGREE_ALIASES: dict[str, tuple[str, ...]] = {
    "bachelor": ("bachelor", "bachelors", "bs", "ba", "bsc", "undergraduate"),
    "master": ("master", "masters", "ms", "ma", "msc", "mba", "graduate"),
    "phd": ("phd", "doctorate", "doctoral"),
    "associate": ("associate", "associates", "aas"),
    "high school": ("high school", "hs", "diploma", "ged"),
}

DEFAULT_QUESTION_BANK = QuestionBank(
    dropdown_mappings={
        "work_authorization": DropdownMapping(
            patterns=(
                "authorized to work",
                "legally authorized",
                "work authorization",
                "eligible to work",
            ),
            profile_field="compliance.authorized_to_work",
            value_map=YES_NO,
        ),
        "sponsorship": DropdownMapping(
            patterns=("sponsorship", "require.*visa", "visa status"),
            profile_field="compliance.require_sponsorship",
            value_map=YES_NO,
        ),
        "veteran": DropdownMapping(
            patterns=("veteran",),
            profile_field="compliance.veteran_status",
        ),
        "disability": DropdownMapping(
            patterns=("disability",),
            profile_field="compliance.disability_status",
        ),
        "gender": DropdownMapping(
            patterns=("gender",),
            profile_field="compliance.gender",
        ),
        "race": DropdownMapping(
            patterns=("race", "ethnicity"),
            profile_field="compliance.race_ethnicity",
        ),
        "relocate": DropdownMapping(
            patterns=("relocat",),
            profile_field="personal.willing_to_relocate",
            value_map=YES_NO,
        ),
        "background_check": DropdownMapping(
            patterns=("background check",),
            profile_field="application_defaults.willing_to_background_check",
            value_map=YES_NO,
        ),
        "how_did_you_hear": DropdownMapping(
            patterns=("how did you hear", "hear about"),
            profile_field="application_defaults.how_did_you_hear",
        ),
        "degree": DropdownMapping(
            patterns=("degree", "level of education", "highest education"),
            profile_field="education[0].degree",
            options=DEGREE_ALIASES,
        ),
        "school": DropdownMapping(
            patterns=("school", "university", "college", "institution"),
            profile_field="education[0].school",
        ),
        "discipline": DropdownMapping(
            patterns=("discipline", "major", "field of study"),
            profile_field="education[0].field",
        ),
    },
    text_field_mappings={
        "salary": TextFieldMapping(
            patterns=("salary", "compensation expectation", "desired pay"),
            profile_field="personal.salary_expectation",
        ),
        "start_date": TextFieldMapping(
            patterns=("start date", "earliest.*start", "available to start"),
            profile_field="personal.start_date",
        ),
        "linkedin": TextFieldMapping(patterns=("linkedin",), profile_field="links.linkedin"),
        "github": TextFieldMapping(patterns=("github",), profile_field="links.github"),
        "portfolio": TextFieldMapping(
            patterns=("portfolio", "website", "personal site"),
            profile_field="links.portfolio",
        ),
        "location": TextFieldMapping(
            patterns=("current location", "city", "location"),
            profile_field="personal.location",
        ),
        "referrer": TextFieldMapping(
            patterns=("referred by", "referrer name", "who referred you"),
            profile_field="application_defaults.referrer_name",
        ),
        "gpa": TextFieldMapping(patterns=("gpa",), profile_field="education[0].gpa"),
        "school": TextFieldMapping(
            patterns=("school", "university", "college"),
            profile_field="education[0].school",
        ),
        "discipline": TextFieldMapping(
            patterns=("major", "field of study", "discipline"),
            profile_field="education[0].field",
        ),
    },
    open_ended_questions={
        "why_company": OpenEndedQuestion(
            patterns=("why.*(company|us|join|work here)", "why are you interested"),
            template_key="why_company",
            requires_ai=True,
            max_length=1000,
        ),
        "about_me": OpenEndedQuestion(
            patterns=("tell us about yourself", "about yourself"),
            template_key="about_me",
            requires_ai=True,
            max_length=1000,
        ),
        "cover_letter": OpenEndedQuestion(
            patterns=("cover letter",),
            template_key="cover_letter",
            requires_ai=True,
            max_length=3000,
        ),
        "additional_info": OpenEndedQuestion(
            patterns=("additional information", "anything else"),
            default_value="",
        ),
    },
)


def question_bank_from_dict(data: Mapping[str, Any]) -> QuestionBank:
    """Build a bank from the ``form-questions.json`` layout."""
    return QuestionBank(
        dropdown_mappings={
            key: DropdownMapping(
                patterns=tuple(raw.get("patterns") or ()),
                profile_field=raw["profile_field"],
                options=(
                    {k: tuple(v) for k, v in raw["options"].items()}
                    if raw.get("options")
                    else None
                ),
                value_map=dict(raw["value_map"]) if raw.get("value_map") else None,
            )
            for key, raw in (data.get("dropdown_mappings") or {}).items()
        },
        text_field_mappings={
            key: TextFieldMapping(
                patterns=tuple(raw.get("patterns") or ()),
                profile_field=raw["profile_field"],
            )
            for key, raw in (data.get("text_field_mappings") or {}).items()
        },
        open_ended_questions={
            key: OpenEndedQuestion(
                patterns=tuple(raw.get("patterns") or ()),
                template_key=raw.get("template_key"),
                default_value=raw.get("default_value"),
                requires_ai=bool(raw.get("requires_ai", False)),
                max_length=raw.get("max_length"),
            )
            for key, raw in (data.get("open_ended_questions") or {}).items()
        },
    )
