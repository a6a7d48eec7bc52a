"""Turning oracle text into one action, and carrying that action out.

Parsing is a fixed chain of total functions, each returning ``None`` on a
miss. The first hit wins; when every step misses the result is a
``need_help`` action.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from domain.models import AgentAction, AgentActionType, Button, Field, FormSnapshot
from domain.ports import BrowserPagePort, ElementHandle, LoggerPort
from domain.services.fill_executor import FillExecutor
from domain.utils import collapse_whitespace, id_selector

UNPARSABLE_REASON = "Could not parse AI response"
SCROLL_STEP_PX = 300
WAIT_STEP_MS = 1000
AGENT_MODULE = "agent"

_JSON_FENCE = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[a-zA-Z]*\s*(.*?)```", re.DOTALL)
_CLICKABLE_BY_TEXT = 'button, a, [role="button"], [role="option"], [role="tab"], label, li'


# -- parse chain --------------------------------------------------------------


def _action_from_object(data: Any) -> AgentAction | None:
    if not isinstance(data, dict):
        return None
    raw_type = data.get("type")
    if not isinstance(raw_type, str):
        return None
    try:
        action_type = AgentActionType(raw_type.strip().lower())
    except ValueError:
        return None
    target = data.get("target")
    value = data.get("value")
    return AgentAction(
        type=action_type,
        target=None if target is None else str(target),
        value=None if value is None else _as_text(value),
        reason=str(data.get("reason") or ""),
    )


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _loads(text: str) -> Any:
    try:
        return json.loads(text.strip())
    except ValueError:
        return None


def _from_json_fence(text: str) -> AgentAction | None:
    match = _JSON_FENCE.search(text)
    return _action_from_object(_loads(match.group(1))) if match else None


def _from_any_fence(text: str) -> AgentAction | None:
    for match in _ANY_FENCE.finditer(text):
        action = _action_from_object(_loads(match.group(1)))
        if action is not None:
            return action
    return None


def _from_embedded_object(text: str) -> AgentAction | None:
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            data, _ = decoder.raw_decode(text, start)
        except ValueError:
            data = None
        action = _action_from_object(data)
        if action is not None:
            return action
        start = text.find("{", start + 1)
    return None


def _from_whole_text(text: str) -> AgentAction | None:
    return _action_from_object(_loads(text))


def _from_keywords(text: str) -> AgentAction | None:
    lowered = text.lower()
    if any(word in lowered for word in ("help", "cannot", "can't")):
        return AgentAction(type=AgentActionType.NEED_HELP, reason="AI needs assistance")
    if "click" in lowered and "add" in lowered:
        return AgentAction(
            type=AgentActionType.CLICK_BUTTON,
            target="Add",
            reason="Detected need to click Add button",
        )
    if "click" in lowered and ("next" in lowered or "continue" in lowered):
        return AgentAction(
            type=AgentActionType.CLICK_BUTTON,
            target="Next",
            reason="Detected need to click Next",
        )
    if any(word in lowered for word in ("complete", "done", "filled")):
        return AgentAction(type=AgentActionType.DONE, reason="AI indicated completion")
    return None


PARSE_CHAIN: tuple[Callable[[str], AgentAction | None], ...] = (
    _from_json_fence,
    _from_any_fence,
    _from_embedded_object,
    _from_whole_text,
    _from_keywords,
)


def parse_agent_action(text: str) -> AgentAction:
    for step in PARSE_CHAIN:
        action = step(text or "")
        if action is not None:
            return action
    return AgentAction(type=AgentActionType.NEED_HELP, reason=UNPARSABLE_REASON)


# -- button matching ------------------------------------------------------------


def match_button(target: str, buttons: Sequence[Button]) -> Button | None:
    """Exact text, then case-insensitive equality, then substring either way."""
    wanted = collapse_whitespace(target)
    if not wanted:
        return None
    for button in buttons:
        if button.text == wanted:
            return button
    lowered = wanted.lower()
    for button in buttons:
        if button.text.lower() == lowered:
            return button
    for button in buttons:
        text = button.text.lower()
        if lowered in text or text in lowered:
            return button
    return None


# -- execution --------------------------------------------------------------------


@dataclass(frozen=True)
class ActionOutcome:
    success: bool
    message: str


class ActionRunner:
    """Executes one :class:`AgentAction` against the page it was observed on."""

    def __init__(
        self,
        *,
        page: BrowserPagePort,
        executor: FillExecutor,
        logger: LoggerPort,
        action_timeout_s: float = 10.0,
    ) -> None:
        self._page = page
        self._executor = executor
        self._logger = logger
        self._timeout = action_timeout_s

    async def run(self, action: AgentAction, snapshot: FormSnapshot) -> ActionOutcome:
        handlers = {
            AgentActionType.FILL_FIELD: self._fill,
            AgentActionType.SELECT_OPTION: self._fill,
            AgentActionType.CLICK_BUTTON: self._click_button,
            AgentActionType.CLICK_ELEMENT: self._click_element,
            AgentActionType.SCROLL: self._scroll,
            AgentActionType.WAIT: self._wait,
        }
        handler = handlers.get(action.type)
        if handler is None:
            return ActionOutcome(True, f"{action.type.value} needs no page action")
        try:
            return await handler(action, snapshot)
        except asyncio.TimeoutError:
            return ActionOutcome(False, f"Timed out after {self._timeout:g}s")
        except Exception as exc:
            self._logger.warning(
                "agent_action_error",
                action=action.type.value,
                target=action.target,
                error=str(exc),
            )
            return ActionOutcome(False, f"{type(exc).__name__}: {exc}")

    async def _fill(self, action: AgentAction, snapshot: FormSnapshot) -> ActionOutcome:
        if not action.target:
            return ActionOutcome(False, "Missing target")
        if action.value is None:
            return ActionOutcome(False, "Missing value")
        field = await self.resolve_field(action.target, snapshot)
        if field is None:
            return ActionOutcome(False, f"Field not found: {action.target}")
        if self._executor.tracker.is_filled(field.selector):
            return ActionOutcome(True, f"{field.label} already filled")
        if await self._executor.fill(field, action.value, AGENT_MODULE):
            return ActionOutcome(True, f"Filled {field.label}")
        failures = [r for r in self._executor.tracker.records if r.selector == field.selector]
        reason = failures[-1].reason if failures else "fill failed"
        return ActionOutcome(False, f"Could not fill {field.label}: {reason}")

    async def _click_button(self, action: AgentAction, snapshot: FormSnapshot) -> ActionOutcome:
        button = match_button(action.target or "", snapshot.buttons)
        if button is None:
            self._logger.warning("button_not_available", target=action.target)
            return ActionOutcome(False, f"Button not available: {action.target}")
        handles = await self._page.query_all(button.selector)
        if not handles:
            return ActionOutcome(False, f"Button disappeared: {button.text}")
        await asyncio.wait_for(self._page.click(handles[0]), timeout=self._timeout)
        return ActionOutcome(True, f"Clicked {button.text}")

    async def _click_element(self, action: AgentAction, snapshot: FormSnapshot) -> ActionOutcome:
        if not action.target:
            return ActionOutcome(False, "Missing target")
        handle = await self._visible_element(action.target)
        if handle is None:
            return ActionOutcome(False, f"Element not found or not visible: {action.target}")
        await asyncio.wait_for(self._page.click(handle), timeout=self._timeout)
        return ActionOutcome(True, f"Clicked {action.target}")

    async def _scroll(self, action: AgentAction, snapshot: FormSnapshot) -> ActionOutcome:
        direction = (action.value or action.target or "down").lower()
        delta = -SCROLL_STEP_PX if "up" in direction else SCROLL_STEP_PX
        await self._page.scroll_by(delta)
        return ActionOutcome(True, f"Scrolled {delta}px")

    async def _wait(self, action: AgentAction, snapshot: FormSnapshot) -> ActionOutcome:
        await self._page.wait(WAIT_STEP_MS)
        return ActionOutcome(True, "Waited")

    # -- target resolution ----------------------------------------------------

    async def resolve_field(self, target: str, snapshot: FormSnapshot) -> Field | None:
        """Selector first, then label text, then a ``label[for]`` association."""
        known = snapshot.field_by_selector(target)
        if known is not None:
            return known
        if await self._safe_query(target):
            return await self._executor.describe(target)

        wanted = collapse_whitespace(target).lower()
        for item in snapshot.fields:
            if item.label.lower() == wanted:
                return item
        for item in snapshot.fields:
            label = item.label.lower()
            if label and (wanted in label or label in wanted):
                return item

        for label in await self._page.query_all("label"):
            text = collapse_whitespace(await self._page.text(label)).lower()
            if not text or wanted not in text:
                continue
            for_id = await self._page.attribute(label, "for")
            if not for_id:
                continue
            selector = id_selector(for_id)
            return snapshot.field_by_selector(selector) or await self._executor.describe(selector)
        return None

    async def _safe_query(self, selector: str) -> list[ElementHandle]:
        """Matches for ``selector``, empty when it is not valid CSS."""
        try:
            return await self._page.query_all(selector)
        except Exception:
            return []

    async def _visible_element(self, target: str) -> ElementHandle | None:
        for handle in await self._safe_query(target):
            if await self._page.computed_visible(handle):
                return handle
        wanted = collapse_whitespace(target).lower()
        for handle in await self._page.query_all(_CLICKABLE_BY_TEXT):
            if collapse_whitespace(await self._page.text(handle)).lower() != wanted:
                continue
            if await self._page.computed_visible(handle):
                return handle
        return None
