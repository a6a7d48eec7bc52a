"""
Domain layer package.

This package contains the form engine's models, ports and services,
independent of any browser driver or oracle vendor.
"""

from .models import (  # noqa: F401
    ApplicationMode,
    ApplicationOutcome,
    ApplicationStatus,
    CandidateProfile,
    Field,
    FieldKind,
    FormSnapshot,
    JobPostingRef,
    PageState,
    RunContext,
)
from .ports import (  # noqa: F401
    ApplicationHistoryPort,
    BrowserPagePort,
    ClockPort,
    DomInspectorPort,
    IdGeneratorPort,
    LLMClientPort,
    LoggerPort,
    PageActionsPort,
    UserInteractionPort,
)

__all__ = [
    # Models
    "Field",
    "FieldKind",
    "FormSnapshot",
    "PageState",
    "CandidateProfile",
    "JobPostingRef",
    "ApplicationMode",
    "ApplicationStatus",
    "ApplicationOutcome",
    "RunContext",
    # Ports
    "DomInspectorPort",
    "PageActionsPort",
    "BrowserPagePort",
    "LLMClientPort",
    "ApplicationHistoryPort",
    "UserInteractionPort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
