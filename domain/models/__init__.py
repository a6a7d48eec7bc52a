from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence


# -- form model -------------------------------------------------------------


class FieldKind(str, Enum):
    """Canonical control variants recognised by the extractor."""

    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    NUMBER = "number"
    DATE = "date"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    FILE = "file"


TEXT_LIKE_KINDS = frozenset({
    FieldKind.TEXT,
    FieldKind.EMAIL,
    FieldKind.TEL,
    FieldKind.NUMBER,
    FieldKind.DATE,
    FieldKind.TEXTAREA,
})


@dataclass(frozen=True)
class FieldOption:
    """One selectable choice of a select, radio group or custom dropdown."""

    value: str
    text: str


@dataclass(frozen=True)
class Field:
    """
    Canonical representation of one fillable control.

    Two fields with the same ``selector`` are the same control.
    ``options`` is ``None`` for kinds that have no choices.
    """

    selector: str
    kind: FieldKind
    label: str
    required: bool = False
    current_value: str = ""
    options: tuple[FieldOption, ...] | None = None
    group_name: str | None = None
    is_visible: bool = True
    name: str = ""
    placeholder: str = ""

    def __post_init__(self) -> None:
        if self.options is not None and not isinstance(self.options, tuple):
            object.__setattr__(self, "options", tuple(self.options))

    @property
    def option_texts(self) -> list[str]:
        return [opt.text for opt in self.options or ()]


class ButtonKind(str, Enum):
    ADD = "add"
    NEXT = "next"
    SUBMIT = "submit"
    OTHER = "other"


@dataclass(frozen=True)
class Button:
    """An enabled, visible, clickable button seen in one observation."""

    selector: str
    text: str
    kind: ButtonKind


@dataclass(frozen=True)
class FormSnapshot:
    """One point-in-time observation of the page. Never cached across navigations."""

    url: str
    title: str
    fields: tuple[Field, ...] = ()
    buttons: tuple[Button, ...] = ()
    errors: tuple[str, ...] = ()
    current_section: str | None = None
    page_text: str = ""

    def field_by_selector(self, selector: str) -> Field | None:
        for item in self.fields:
            if item.selector == selector:
                return item
        return None


@dataclass(frozen=True)
class FillRecord:
    """Outcome of one fill attempt, owned by the tracker."""

    selector: str
    label: str
    value: str
    success: bool
    module: str
    timestamp: datetime
    reason: str | None = None


class ObservationMode(str, Enum):
    """Whether hidden controls are kept (agent) or dropped (rule engine)."""

    AGENT_FULL = "agent_full"
    RULE_VISIBLE = "rule_visible"


class PageState(str, Enum):
    LISTING = "listing"
    APPLICATION_FORM = "application_form"
    ACCOUNT_CREATION = "account_creation"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PageStateReport:
    """Classifier verdict plus the marker counts it was derived from."""

    state: PageState
    listing_markers: int = 0
    application_markers: int = 0
    account_creation: bool = False

    @property
    def requires_human(self) -> bool:
        return self.account_creation or self.state in (
            PageState.ACCOUNT_CREATION,
            PageState.UNKNOWN,
        )


# -- agent ------------------------------------------------------------------


class AgentActionType(str, Enum):
    FILL_FIELD = "fill_field"
    SELECT_OPTION = "select_option"
    CLICK_BUTTON = "click_button"
    CLICK_ELEMENT = "click_element"
    SCROLL = "scroll"
    WAIT = "wait"
    DONE = "done"
    NEED_HELP = "need_help"


@dataclass(frozen=True)
class AgentAction:
    """One decision returned by the oracle."""

    type: AgentActionType
    target: str | None = None
    value: str | None = None
    reason: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.type.value, self.target or "")


class AgentState(str, Enum):
    OBSERVING = "observing"
    DECIDING = "deciding"
    ACTING = "acting"
    DONE = "done"
    NEEDS_HELP = "needs_help"
    FAILED = "failed"


@dataclass(frozen=True)
class AgentRunResult:
    """Terminal outcome of the observe-decide-act loop."""

    success: bool
    steps_taken: int
    reason: str
    state: AgentState
    history: tuple[str, ...] = ()


# -- platforms and candidate data -------------------------------------------


@dataclass(frozen=True)
class PlatformProfile:
    """Static per-ATS configuration. Read-only during a session."""

    key: str
    name: str
    url_pattern: str | None
    resume_selectors: tuple[str, ...] = ()
    field_mappings: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "resume_selectors", tuple(self.resume_selectors))
        object.__setattr__(
            self,
            "field_mappings",
            MappingProxyType({k: tuple(v) for k, v in self.field_mappings.items()}),
        )


@dataclass(frozen=True)
class PlatformTable:
    """All known platforms plus page-level checkpoint indicator selectors.

    Insertion order of ``profiles`` is the detection order; the entry keyed
    ``custom`` is the fallback.
    """

    profiles: Mapping[str, PlatformProfile]
    login_indicators: tuple[str, ...] = ()
    captcha_indicators: tuple[str, ...] = ()
    email_verification_indicators: tuple[str, ...] = ()
    success_indicators: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "profiles", MappingProxyType(dict(self.profiles)))
        for name in (
            "login_indicators",
            "captcha_indicators",
            "email_verification_indicators",
            "success_indicators",
        ):
            object.__setattr__(self, name, tuple(getattr(self, name)))


@dataclass(frozen=True)
class CandidateProfile:
    """
    Nested candidate data the resolver reads through dotted paths.

    Sections mirror ``candidate-profile.json``; only ``personal`` is required.
    """

    personal: Mapping[str, Any]
    education: Sequence[Mapping[str, Any]] = ()
    work_experience: Sequence[Mapping[str, Any]] = ()
    skills: Mapping[str, Sequence[str]] = field(default_factory=dict)
    links: Mapping[str, str] = field(default_factory=dict)
    compliance: Mapping[str, Any] = field(default_factory=dict)
    application_defaults: Mapping[str, Any] = field(default_factory=dict)
    resume: Mapping[str, str] = field(default_factory=dict)
    ai_responses: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CandidateProfile:
        return cls(
            personal=dict(data.get("personal") or {}),
            education=tuple(data.get("education") or ()),
            work_experience=tuple(data.get("work_experience") or ()),
            skills=dict(data.get("skills") or {}),
            links=dict(data.get("links") or {}),
            compliance=dict(data.get("compliance") or {}),
            application_defaults=dict(data.get("application_defaults") or {}),
            resume=dict(data.get("resume") or {}),
            ai_responses=dict(data.get("ai_responses") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "personal": dict(self.personal),
            "education": [dict(e) for e in self.education],
            "work_experience": [dict(w) for w in self.work_experience],
            "skills": {k: list(v) for k, v in self.skills.items()},
            "links": dict(self.links),
            "compliance": dict(self.compliance),
            "application_defaults": dict(self.application_defaults),
            "resume": dict(self.resume),
            "ai_responses": dict(self.ai_responses),
        }

    @property
    def first_name(self) -> str:
        return str(self.personal.get("first_name", ""))

    @property
    def last_name(self) -> str:
        return str(self.personal.get("last_name", ""))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def email(self) -> str:
        return str(self.personal.get("email", ""))

    @property
    def templates(self) -> Mapping[str, str]:
        return self.ai_responses.get("templates") or {}


@dataclass(frozen=True)
class DropdownMapping:
    """Label patterns whose answer is a choice derived from a profile path."""

    patterns: tuple[str, ...]
    profile_field: str
    options: Mapping[str, tuple[str, ...]] | None = None
    value_map: Mapping[str, str] | None = None


@dataclass(frozen=True)
class TextFieldMapping:
    patterns: tuple[str, ...]
    profile_field: str


@dataclass(frozen=True)
class OpenEndedQuestion:
    patterns: tuple[str, ...]
    template_key: str | None = None
    default_value: str | None = None
    requires_ai: bool = False
    max_length: int | None = None


@dataclass(frozen=True)
class QuestionBank:
    """Label-pattern driven answers for dropdowns, text fields and essays."""

    dropdown_mappings: Mapping[str, DropdownMapping] = field(default_factory=dict)
    text_field_mappings: Mapping[str, TextFieldMapping] = field(default_factory=dict)
    open_ended_questions: Mapping[str, OpenEndedQuestion] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("dropdown_mappings", "text_field_mappings", "open_ended_questions"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))


@dataclass(frozen=True)
class ResolvedValue:
    """A value the resolver picked for a field and where it came from."""

    value: str
    source: str
    needs_review: bool = False
    aliases: Mapping[str, tuple[str, ...]] | None = None


# -- application lifecycle --------------------------------------------------


@dataclass(frozen=True)
class JobPostingRef:
    """Lightweight reference to the job posting being applied to."""

    company_name: str
    job_title: str
    job_url: str
    location: str | None = None
    job_board_type: str | None = None


class ApplicationStatus(str, Enum):
    """High-level outcome of one application attempt."""

    PENDING = "pending"
    COMPLETED = "completed"
    NEEDS_HELP = "needs_help"
    FAILED = "failed"
    SKIPPED = "skipped"


class ApplicationMode(str, Enum):
    RULES = "rules"
    AGENT = "agent"


class CheckpointKind(str, Enum):
    LOGIN = "login"
    CAPTCHA = "captcha"
    EMAIL_VERIFICATION = "email_verification"
    ACCOUNT_CREATION = "account_creation"


@dataclass(frozen=True)
class ApplicationOutcome:
    """Record handed to the history store, keyed by normalized URL."""

    url_key: str
    job_url: str
    company_name: str
    job_title: str
    status: ApplicationStatus
    platform: str = "custom"
    reason: str | None = None
    filled_count: int = 0
    failed_count: int = 0
    agent_steps: int = 0
    needs_review: bool = False
    recorded_at: datetime | None = None
    debug_run_id: str | None = None


@dataclass(frozen=True)
class RunContext:
    """
    Per-run context for orchestrating applications and debug sessions.

    The log directory is an abstract path; infra decides how it maps
    to the real filesystem.
    """

    run_id: str
    is_debug: bool = False
    log_directory: str | None = None


@dataclass(frozen=True)
class BrowserSettings:
    headless: bool = True
    slow_mo: int = 0
    timeout_ms: int = 30_000
    viewport_width: int = 1280
    viewport_height: int = 900


@dataclass(frozen=True)
class AppConfig:
    """Application-level configuration loaded from config.json."""

    openai_key: str
    openai_base_url: str
    openai_model: str = "gpt-4o-mini"
    debug_mode: bool = False
    agent_max_steps: int = 50
    action_timeout_ms: int = 10_000
    oracle_timeout_seconds: float = 60.0
    agent_time_budget_seconds: float | None = None
    ai_fill_enabled: bool = True
    pause_on_checkpoint: bool = False
    log_level: str = "info"
    browser: BrowserSettings = field(default_factory=BrowserSettings)


__all__ = [
    "FieldKind",
    "TEXT_LIKE_KINDS",
    "FieldOption",
    "Field",
    "ButtonKind",
    "Button",
    "FormSnapshot",
    "FillRecord",
    "ObservationMode",
    "PageState",
    "PageStateReport",
    "AgentActionType",
    "AgentAction",
    "AgentState",
    "AgentRunResult",
    "PlatformProfile",
    "PlatformTable",
    "CandidateProfile",
    "DropdownMapping",
    "TextFieldMapping",
    "OpenEndedQuestion",
    "QuestionBank",
    "ResolvedValue",
    "JobPostingRef",
    "ApplicationStatus",
    "ApplicationMode",
    "CheckpointKind",
    "ApplicationOutcome",
    "RunContext",
    "BrowserSettings",
    "AppConfig",
]
