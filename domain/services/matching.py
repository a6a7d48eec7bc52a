"""Value resolution and option matching heuristics.

Option matching is rule-ordered, not scored: alias table, then exact
equality, then substring containment. The first rule that finds an option
wins, which keeps the choice deterministic and easy to audit.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from domain.models import CandidateProfile, FieldOption, JobPostingRef

_INDEXED_SEGMENT = re.compile(r"^(?P<name>\w+)\[(?P<index>\d+)\]$")
_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_PLACEHOLDER_TEXTS = ("select", "choose", "please select", "--", "none selected")

DEFAULT_OPTION_ALIASES: Mapping[str, tuple[str, ...]] = {
    "yes": ("yes", "true"),
    "no": ("no", "false"),
    "bachelor": ("bachelor", "bachelors", "bs", "ba", "bsc", "undergraduate"),
    "master": ("master", "masters", "ms", "ma", "msc", "mba", "graduate"),
    "phd": ("phd", "doctorate", "doctoral"),
    "associate": ("associate", "associates", "aas"),
    "high school": ("high school", "hs", "diploma", "ged"),
    "decline": ("decline", "prefer not", "not wish", "do not want"),
}

TEMPLATE_PLACEHOLDERS = (
    "company",
    "role",
    "first_name",
    "last_name",
    "school",
    "degree",
    "field",
    "skills",
)


# -- profile lookup ----------------------------------------------------------


def resolve_profile_value(
    profile: CandidateProfile | Mapping[str, Any],
    dotted_path: str,
) -> str | bool | None:
    """Value at ``dotted_path`` (``education[0].school`` style), ``None`` if missing.

    Only strings and booleans are returned; numbers come back as strings.
    An empty string is a real value and is returned as such.
    """
    current: Any = profile.to_dict() if isinstance(profile, CandidateProfile) else profile
    for segment in dotted_path.split("."):
        if current is None:
            return None
        indexed = _INDEXED_SEGMENT.match(segment)
        if indexed:
            current = _child(current, indexed.group("name"))
            index = int(indexed.group("index"))
            if not isinstance(current, (list, tuple)) or index >= len(current):
                return None
            current = current[index]
        else:
            current = _child(current, segment)

    if isinstance(current, (str, bool)):
        return current
    if isinstance(current, (int, float)):
        return str(current)
    return None


def _child(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(key)
    return None


def apply_value_map(value: str | bool, value_map: Mapping[str, str] | None = None) -> str:
    """Booleans never reach a form directly: map them to a choice string."""
    if isinstance(value, bool):
        key = "true" if value else "false"
        if value_map and key in value_map:
            return value_map[key]
        return "Yes" if value else "No"
    return value


def matches_pattern(label: str, patterns: Sequence[str]) -> bool:
    """A pattern containing ``.*`` is a regex, anything else a substring."""
    lowered = label.lower()
    for pattern in patterns:
        if ".*" in pattern:
            if re.search(pattern, label, re.IGNORECASE):
                return True
        elif pattern.lower() in lowered:
            return True
    return False


# -- option matching ---------------------------------------------------------


def normalize_tokens(text: str) -> list[str]:
    cleaned = text.lower().replace("'", "").replace("’", "").replace(".", "")
    return [token for token in _TOKEN_SPLIT.split(cleaned) if token]


def _normalized(text: str) -> str:
    return " ".join(normalize_tokens(text))


def _selectable(option: FieldOption) -> bool:
    text = option.text.strip().lower()
    if not text:
        return False
    if not option.value and any(text.startswith(p) for p in _PLACEHOLDER_TEXTS):
        return False
    return True


def _synonym_hit(tokens: Sequence[str], normalized: str, synonyms: Sequence[str]) -> bool:
    for synonym in synonyms:
        syn = _normalized(synonym)
        if " " in syn:
            if f" {syn} " in f" {normalized} ":
                return True
        elif syn in tokens:
            return True
    return False


def _match_alias(
    options: Sequence[FieldOption],
    target: str,
    aliases: Mapping[str, Sequence[str]],
) -> FieldOption | None:
    target_tokens = normalize_tokens(target)
    target_norm = " ".join(target_tokens)
    for key, synonyms in aliases.items():
        group = (key, *synonyms)
        if not _synonym_hit(target_tokens, target_norm, group):
            continue
        exact = _match_exact(options, target)
        candidates = []
        for option in options:
            tokens = normalize_tokens(option.text)
            if _synonym_hit(tokens, " ".join(tokens), group):
                candidates.append(option)
        if exact is not None and exact in candidates:
            return exact
        if candidates:
            return candidates[0]
    return None


def _match_exact(options: Sequence[FieldOption], target: str) -> FieldOption | None:
    lowered = target.strip().lower()
    for option in options:
        if option.text.strip().lower() == lowered or option.value.strip().lower() == lowered:
            return option
    return None


def _match_substring(options: Sequence[FieldOption], target: str) -> FieldOption | None:
    lowered = target.strip().lower()
    if not lowered:
        return None
    for option in options:
        text = option.text.strip().lower()
        if lowered in text or text in lowered:
            return option
    return None


def match_option(
    options: Sequence[FieldOption],
    target: str,
    aliases: Mapping[str, Sequence[str]] | None = None,
) -> str | None:
    """The value of the option that best answers ``target``, else ``None``."""
    candidates = [o for o in options if _selectable(o)]
    if not candidates or not target.strip():
        return None
    table = DEFAULT_OPTION_ALIASES if aliases is None else aliases
    for rule in (
        lambda: _match_alias(candidates, target, table),
        lambda: _match_exact(candidates, target),
        lambda: _match_substring(candidates, target),
    ):
        found = rule()
        if found is not None:
            return found.value
    return None


def best_text_match(texts: Sequence[str], target: str) -> int | None:
    """Index of the revealed option text answering ``target``: exact, then token overlap."""
    lowered = target.strip().lower()
    for index, text in enumerate(texts):
        if text.strip().lower() == lowered:
            return index
    target_tokens = set(normalize_tokens(target))
    if not target_tokens:
        return None
    best_index: int | None = None
    best_overlap = 0
    for index, text in enumerate(texts):
        overlap = len(target_tokens & set(normalize_tokens(text)))
        if overlap > best_overlap:
            best_index, best_overlap = index, overlap
    return best_index


# -- templates ---------------------------------------------------------------


def render_template(template: str, profile: CandidateProfile, job: JobPostingRef | None) -> str:
    education = profile.education[0] if profile.education else {}
    languages = list(profile.skills.get("languages") or ())
    values = {
        "company": job.company_name if job else "",
        "role": job.job_title if job else "",
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "school": str(education.get("school", "")),
        "degree": str(education.get("degree", "")),
        "field": str(education.get("field", "")),
        "skills": ", ".join(languages[:3]),
    }
    rendered = template
    for name in TEMPLATE_PLACEHOLDERS:
        rendered = rendered.replace("{" + name + "}", values[name])
    return rendered


def truncate_answer(text: str, max_length: int | None) -> str:
    if max_length and len(text) > max_length:
        return text[: max_length - 3] + "..."
    return text
