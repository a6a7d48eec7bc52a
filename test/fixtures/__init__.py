"""Test fixtures for integration and unit tests."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from domain.models import CandidateProfile

_FIXTURES_DIR = Path(__file__).parent

GREENHOUSE_URL = "https://boards.greenhouse.io/acme/jobs/4012345"

_PROFILE: dict[str, Any] = {
    "personal": {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "phone": "+1 415 555 0100",
        "location": "San Francisco, CA",
        "willing_to_relocate": True,
    },
    "education": [
        {
            "school": "University of London",
            "degree": "MS",
            "field": "Mathematics",
            "graduation": "2020-05",
        }
    ],
    "work_experience": [
        {"company": "Analytical Engines Ltd", "title": "Software Engineer", "start": "2020-06"}
    ],
    "skills": {"languages": ["Python", "Go", "SQL", "Rust"]},
    "links": {
        "linkedin": "https://linkedin.com/in/ada",
        "github": "https://github.com/ada",
    },
    "compliance": {
        "authorized_to_work": True,
        "require_sponsorship": False,
        "gender": "Decline to self-identify",
    },
    "application_defaults": {"how_did_you_hear": "LinkedIn"},
    "resume": {"file_path": "resume.pdf"},
    "ai_responses": {
        "templates": {
            "why_company": "I want to build {role} tooling at {company} using {skills}.",
        }
    },
}


def fixture_path(*parts: str) -> Path:
    """Resolve a path relative to the test/fixtures/ directory."""
    return _FIXTURES_DIR.joinpath(*parts)


def load_html(name: str) -> str:
    return fixture_path("html", name).read_text(encoding="utf-8")


def mock_resume_path() -> str:
    return str(fixture_path("documents", "mock_resume.pdf"))


def sample_profile_dict() -> dict[str, Any]:
    """A fresh, mutable copy of the sample candidate profile."""
    return copy.deepcopy(_PROFILE)


def sample_profile(**overrides: Any) -> CandidateProfile:
    data = sample_profile_dict()
    data.update(overrides)
    return CandidateProfile.from_dict(data)
