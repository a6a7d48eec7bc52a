"""Prompt builders: page state and candidate data rendered for the oracle."""

from __future__ import annotations

from typing import Sequence

from domain.models import CandidateProfile, Field, FormSnapshot, JobPostingRef

from .system_prompt import AGENT_INSTRUCTIONS, AGENT_JSON_REMINDER, AI_FILL_INSTRUCTIONS

RESUME_PROMPT_LIMIT = 4000
HISTORY_PROMPT_LIMIT = 5
FIELD_VALUE_PREVIEW = 50
OPTION_PREVIEW = 10


def summarize_profile(profile: CandidateProfile, resume_text: str | None = None) -> str:
    """Plain-text candidate excerpt: resume text when available, else the profile."""
    if resume_text and resume_text.strip():
        text = resume_text.strip()
        if len(text) > RESUME_PROMPT_LIMIT:
            return text[:RESUME_PROMPT_LIMIT] + "\n... (truncated)"
        return text

    personal = profile.personal
    lines = [
        f"Name: {profile.full_name}",
        f"Email: {profile.email}",
        f"Phone: {personal.get('phone', '')}",
        f"Location: {personal.get('location', '')}",
        "",
        "Education:",
    ]
    for entry in profile.education:
        lines.append(
            f"  - {entry.get('degree', '')} in {entry.get('field', '')} "
            f"from {entry.get('school', '')} ({entry.get('graduation', '')})"
        )
    if profile.work_experience:
        lines.append("")
        lines.append("Experience:")
        for entry in profile.work_experience:
            lines.append(
                f"  - {entry.get('title', '')} at {entry.get('company', '')} "
                f"({entry.get('start', '')} - {entry.get('end', 'present')})"
            )
    lines.append("")
    lines.append("Skills:")
    for group in ("languages", "ml", "tools"):
        values = profile.skills.get(group) or ()
        if values:
            lines.append(f"  - {group}: {', '.join(values)}")
    if profile.links:
        lines.append("")
        lines.append("Links:")
        for name, url in profile.links.items():
            if url:
                lines.append(f"  - {name}: {url}")
    compliance = profile.compliance
    if compliance:
        lines.append("")
        lines.append("Work authorization:")
        lines.append(f"  - Authorized to work: {_yes_no(compliance.get('authorized_to_work'))}")
        lines.append(f"  - Requires sponsorship: {_yes_no(compliance.get('require_sponsorship'))}")
        for key in ("veteran_status", "disability_status"):
            if compliance.get(key):
                lines.append(f"  - {key.replace('_', ' ').capitalize()}: {compliance[key]}")
    return "\n".join(lines)


def _yes_no(value: object) -> str:
    return "Yes" if value else "No"


def _job_block(job: JobPostingRef | None) -> str:
    if job is None:
        return "Company: Unknown\nPosition: Unknown"
    return (
        f"Company: {job.company_name}\n"
        f"Position: {job.job_title}\n"
        f"Location: {job.location or 'Unknown'}"
    )


def format_observed_field(number: int, item: Field, filled: bool) -> str:
    line = f'{number}. [{item.kind.value}] "{item.label}"'
    if item.required:
        line += " *"
    if not item.is_visible:
        line += " (hidden/not visible)"
    shown = item.current_value if item.current_value != "unchecked" else ""
    if filled:
        line += " (already filled)"
    elif shown:
        line += f' = "{shown[:FIELD_VALUE_PREVIEW]}"'
    else:
        line += " (empty)"
    line += f" selector={item.selector}"
    if item.options:
        texts = [o.text for o in item.options[:OPTION_PREVIEW]]
        more = "..." if len(item.options) > OPTION_PREVIEW else ""
        line += f" Options: [{', '.join(texts)}{more}]"
    return line


def build_agent_prompt(
    *,
    snapshot: FormSnapshot,
    profile_summary: str,
    job: JobPostingRef | None,
    history: Sequence[str],
    filled_selectors: frozenset[str] = frozenset(),
) -> str:
    """One decision request: page state, candidate, job and recent actions."""
    fields_text = "\n".join(
        format_observed_field(i, item, item.selector in filled_selectors)
        for i, item in enumerate(snapshot.fields, start=1)
    ) or "No form fields found"
    buttons_text = "\n".join(
        f'- [{b.kind.value}] "{b.text}"' for b in snapshot.buttons
    ) or "No clickable buttons found - focus on filling fields"
    errors_text = ""
    if snapshot.errors:
        errors_text = "\nERRORS ON PAGE:\n" + "\n".join(snapshot.errors) + "\n"
    recent = "\n".join(history[-HISTORY_PROMPT_LIMIT:]) or "None yet"

    return (
        f"{AGENT_INSTRUCTIONS}\n"
        f"CURRENT PAGE STATE:\n"
        f"URL: {snapshot.url}\n"
        f"Section: {snapshot.current_section or 'Unknown'}\n"
        f"{errors_text}"
        f"\n"
        f"ALL FORM FIELDS (including hidden ones that may become visible):\n"
        f"{fields_text}\n"
        f"\n"
        f"AVAILABLE BUTTONS (only click these):\n"
        f"{buttons_text}\n"
        f"\n"
        f"CANDIDATE:\n"
        f"{profile_summary}\n"
        f"\n"
        f"JOB BEING APPLIED TO:\n"
        f"{_job_block(job)}\n"
        f"\n"
        f"RECENT ACTIONS:\n"
        f"{recent}\n"
        f"\n"
        f"{AGENT_JSON_REMINDER}"
    )


def build_ai_fill_prompt(
    *,
    fields: Sequence[Field],
    profile: CandidateProfile,
    job: JobPostingRef | None,
    resume_text: str | None = None,
) -> str:
    """One request answering every listed field at once."""
    from domain.services.field_extractor import format_fields_for_prompt

    resume_block = ""
    if resume_text and resume_text.strip():
        resume_block = f"\nRESUME:\n{summarize_profile(profile, resume_text)}\n"
    return (
        f"{AI_FILL_INSTRUCTIONS}\n"
        f"JOB DETAILS:\n"
        f"{_job_block(job)}\n"
        f"\n"
        f"CANDIDATE PROFILE:\n"
        f"{summarize_profile(profile)}\n"
        f"{resume_block}"
        f"\n"
        f"FORM FIELDS:\n"
        f"{format_fields_for_prompt(fields)}\n"
        f"\n"
        f"Answer every field you can. Match each answer to its field number."
    )
