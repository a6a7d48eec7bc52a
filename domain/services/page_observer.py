from __future__ import annotations

from typing import Awaitable, Callable

from domain.models import Button, ButtonKind, FormSnapshot, ObservationMode
from domain.ports import DomInspectorPort, ElementHandle, LoggerPort
from domain.services.field_extractor import OWN_UI_ROOT, FieldExtractor, element_selector
from domain.utils import collapse_whitespace

BUTTON_SELECTORS: tuple[str, ...] = (
    "button",
    'a[role="button"]',
    '[role="button"]',
    'input[type="submit"]',
    'input[type="button"]',
    '[class*="btn"]',
)
ERROR_SELECTORS: tuple[str, ...] = (
    '[class*="error"]',
    '[class*="invalid"]',
    '[role="alert"]',
    ".validation-message",
)
SECTION_SELECTORS: tuple[str, ...] = ("h1", "h2", "legend", '[class*="section-title"]')

MAX_OTHER_BUTTON_TEXT = 30
MAX_ERROR_TEXT = 200
PAGE_TEXT_LIMIT = 2000

_ADD_WORDS = ("add",)
_NEXT_WORDS = ("next", "continue")
_SUBMIT_WORDS = ("submit", "apply")


def classify_button(text: str) -> ButtonKind:
    lowered = text.lower()
    if any(word in lowered for word in _ADD_WORDS):
        return ButtonKind.ADD
    if any(word in lowered for word in _NEXT_WORDS):
        return ButtonKind.NEXT
    if any(word in lowered for word in _SUBMIT_WORDS):
        return ButtonKind.SUBMIT
    return ButtonKind.OTHER


class PageObserver:
    """Builds a :class:`FormSnapshot`: fields, clickable buttons, errors and section."""

    def __init__(
        self,
        *,
        extractor: FieldExtractor,
        logger: LoggerPort,
        own_ui_root: str = OWN_UI_ROOT,
    ) -> None:
        self._extractor = extractor
        self._logger = logger
        self._own_ui_root = own_ui_root

    async def observe(
        self,
        inspector: DomInspectorPort,
        mode: ObservationMode = ObservationMode.AGENT_FULL,
    ) -> FormSnapshot:
        fields = await self._extractor.extract(inspector, mode)
        body = await self._page_value(inspector.body_text, "body_text")
        return FormSnapshot(
            url=await self._page_value(inspector.url, "url"),
            title=await self._page_value(inspector.title, "title"),
            fields=tuple(fields),
            buttons=tuple(await self.buttons(inspector)),
            errors=tuple(await self.errors(inspector)),
            current_section=await self.current_section(inspector),
            page_text=collapse_whitespace(body)[:PAGE_TEXT_LIMIT],
        )

    async def buttons(self, inspector: DomInspectorPort) -> list[Button]:
        found: list[Button] = []
        seen: set[tuple[str, str]] = set()
        for family in BUTTON_SELECTORS:
            try:
                handles = await inspector.query_all(family)
            except Exception as exc:
                self._logger.warning("button_scan_failed", selector=family, error=str(exc))
                continue
            for index, handle in enumerate(handles):
                try:
                    button = await self._button(inspector, handle, family, index)
                except Exception as exc:
                    self._logger.warning(
                        "button_scan_failed", selector=family, index=index, error=str(exc),
                    )
                    continue
                if button is None:
                    continue
                key = (button.text, button.selector)
                if key in seen:
                    continue
                seen.add(key)
                found.append(button)
        return _drop_duplicate_elements(found)

    async def errors(self, inspector: DomInspectorPort) -> list[str]:
        messages: list[str] = []
        for selector in ERROR_SELECTORS:
            try:
                texts = await self._visible_texts(inspector, selector)
            except Exception as exc:
                self._logger.warning("error_scan_failed", selector=selector, error=str(exc))
                continue
            for text in texts:
                if len(text) < MAX_ERROR_TEXT and text not in messages:
                    messages.append(text)
        return messages

    async def current_section(self, inspector: DomInspectorPort) -> str | None:
        for selector in SECTION_SELECTORS:
            try:
                texts = await self._visible_texts(inspector, selector)
            except Exception as exc:
                self._logger.warning("section_scan_failed", selector=selector, error=str(exc))
                continue
            if texts:
                return texts[0]
        return None

    async def _visible_texts(self, inspector: DomInspectorPort, selector: str) -> list[str]:
        texts: list[str] = []
        for handle in await inspector.query_all(selector):
            if not await inspector.computed_visible(handle):
                continue
            text = collapse_whitespace(await inspector.text(handle))
            if text:
                texts.append(text)
        return texts

    async def _page_value(self, read: Callable[[], Awaitable[str]], name: str) -> str:
        try:
            return await read()
        except Exception as exc:
            self._logger.warning("page_read_failed", value=name, error=str(exc))
            return ""

    async def _button(
        self,
        inspector: DomInspectorPort,
        handle: ElementHandle,
        family: str,
        index: int,
    ) -> Button | None:
        if not await self._clickable(inspector, handle):
            return None
        text = await _button_text(inspector, handle)
        if not text:
            return None
        kind = classify_button(text)
        if kind is ButtonKind.OTHER and len(text) >= MAX_OTHER_BUTTON_TEXT:
            return None
        selector = await element_selector(inspector, handle, family, index)
        return Button(selector=selector, text=text, kind=kind)

    async def _clickable(self, inspector: DomInspectorPort, handle: ElementHandle) -> bool:
        if await inspector.closest(handle, self._own_ui_root) is not None:
            return False
        if not await inspector.computed_visible(handle):
            return False
        if await inspector.attribute(handle, "disabled") is not None:
            return False
        if (await inspector.attribute(handle, "aria-disabled") or "").lower() == "true":
            return False
        classes = (await inspector.attribute(handle, "class") or "").split()
        if "disabled" in classes:
            return False
        if (await inspector.style(handle, "pointer-events")) == "none":
            return False
        if (await inspector.style(handle, "opacity")).strip() in ("0", "0.0"):
            return False
        return True


async def _button_text(inspector: DomInspectorPort, handle: ElementHandle) -> str:
    text = collapse_whitespace(await inspector.text(handle))
    if text:
        return text
    for attr in ("value", "aria-label", "title"):
        raw = await inspector.attribute(handle, attr)
        if raw and raw.strip():
            return collapse_whitespace(raw)
    return ""


def _drop_duplicate_elements(buttons: list[Button]) -> list[Button]:
    """A ``<button class="btn">`` is matched by several families; keep one per text."""
    kept: list[Button] = []
    texts: dict[str, Button] = {}
    for button in buttons:
        earlier = texts.get(button.text)
        if earlier is not None and ">> nth=" in button.selector:
            continue
        texts.setdefault(button.text, button)
        kept.append(button)
    return kept
