from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_WHITESPACE = re.compile(r"\s+")
_NTH_SUFFIX = re.compile(r"^(?P<base>.+?)\s*>>\s*nth=(?P<index>\d+)$")
_TRACKING_PARAMS = frozenset({"utm_source", "utm_medium", "utm_campaign", "ref", "source"})


def collapse_whitespace(text: str | None) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def truncate_for_display(value: str, limit: int = 50) -> str:
    if len(value) > limit:
        return value[: limit - 3] + "..."
    return value


def positional_selector(base: str, index: int) -> str:
    """Address the ``index``-th match of ``base`` (0-based)."""
    return f"{base} >> nth={index}"


def split_positional(selector: str) -> tuple[str, int | None]:
    """Inverse of :func:`positional_selector`; plain selectors give ``None``."""
    match = _NTH_SUFFIX.match(selector.strip())
    if match is None:
        return selector, None
    return match.group("base"), int(match.group("index"))


def css_string(value: str) -> str:
    """Quote ``value`` for use inside a CSS attribute selector."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def id_selector(element_id: str) -> str:
    if re.fullmatch(r"[A-Za-z_][A-Za-z0-9_-]*", element_id):
        return f"#{element_id}"
    return f"[id={css_string(element_id)}]"


def normalize_job_url(url: str) -> str:
    """History key for a job URL: tracking params and fragment dropped, lowercased."""
    parts = urlsplit(url.strip())
    query = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k.lower() not in _TRACKING_PARAMS
    ]
    path = parts.path.rstrip("/") or "/"
    normalized = urlunsplit((parts.scheme, parts.netloc, path, urlencode(query), ""))
    return normalized.lower()
