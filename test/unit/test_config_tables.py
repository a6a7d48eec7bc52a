from __future__ import annotations

from domain.platforms import (
    CUSTOM_PLATFORM,
    DEFAULT_PLATFORM_TABLE,
    detect_platform,
    field_selectors,
    platform_table_from_dict,
    resume_selectors,
)
from domain.questions import DEFAULT_QUESTION_BANK, question_bank_from_dict


def test_detect_platform_by_url() -> None:
    assert detect_platform("https://boards.greenhouse.io/acme/jobs/1").key == "greenhouse"
    assert detect_platform("https://jobs.lever.co/acme/123").key == "lever"
    assert detect_platform("https://acme.wd5.myworkdayjobs.com/x").key == "workday"
    assert detect_platform("https://careers.example.test/job/1").key == CUSTOM_PLATFORM


def test_field_selectors_fall_back_to_custom() -> None:
    table = DEFAULT_PLATFORM_TABLE
    assert field_selectors(table, "greenhouse", "first_name")[0] == "#first_name"
    assert field_selectors(table, "greenhouse", "github") == table.profiles[CUSTOM_PLATFORM].field_mappings["github"]
    assert field_selectors(table, "unknown-ats", "email")[0] == 'input[type="email"]'
    assert resume_selectors(table, "lever") == ('input[name="resume"]', "#resume-upload-input")


def test_platform_table_from_dict() -> None:
    table = platform_table_from_dict(
        {
            "patterns": {
                "acme": {
                    "urlPattern": "acme-ats.test",
                    "resumeSelectors": ["#cv"],
                    "fieldMappings": {"first_name": ["#fn", "#given"]},
                }
            },
            "captchaIndicators": [".captcha"],
            "successIndicators": [".done"],
        }
    )

    acme = table.profiles["acme"]
    assert acme.name == "acme"
    assert acme.field_mappings == {"first_name": ("#fn", "#given")}
    assert acme.resume_selectors == ("#cv",)
    assert table.profiles[CUSTOM_PLATFORM] == DEFAULT_PLATFORM_TABLE.profiles[CUSTOM_PLATFORM]
    assert table.captcha_indicators == (".captcha",)
    assert table.login_indicators == ()
    assert detect_platform("https://acme-ats.test/jobs/9", table).key == "acme"


def test_question_bank_from_dict() -> None:
    bank = question_bank_from_dict(
        {
            "dropdown_mappings": {
                "clearance": {
                    "patterns": ["security clearance"],
                    "profile_field": "compliance.clearance",
                    "value_map": {"true": "Active"},
                    "options": {"active": ["active", "current"]},
                }
            },
            "text_field_mappings": {
                "pronouns": {"patterns": ["pronouns"], "profile_field": "personal.pronouns"}
            },
            "open_ended_questions": {
                "why_us": {"patterns": ["why.*us"], "template_key": "why_company", "requires_ai": True, "max_length": 500}
            },
        }
    )

    clearance = bank.dropdown_mappings["clearance"]
    assert clearance.patterns == ("security clearance",)
    assert clearance.value_map == {"true": "Active"}
    assert clearance.options == {"active": ("active", "current")}
    assert bank.text_field_mappings["pronouns"].profile_field == "personal.pronouns"
    why = bank.open_ended_questions["why_us"]
    assert why.requires_ai and why.max_length == 500 and why.default_value is None


def test_default_bank_covers_compliance_and_education() -> None:
    for key in ("work_authorization", "sponsorship", "degree", "school", "how_did_you_hear"):
        assert key in DEFAULT_QUESTION_BANK.dropdown_mappings
