"""Playwright-backed implementation of BrowserPagePort.

Element handles are Playwright ``ElementHandle`` objects. Selectors ending
in ``>> nth=<i>`` are resolved here by indexing the matches of the part
before the suffix, so the domain never needs Playwright's locator engine.
"""

from __future__ import annotations

from typing import Any

from domain.ports import ElementHandle
from domain.utils import split_positional

DEFAULT_ACTION_TIMEOUT_MS = 10_000
TYPE_DELAY_MS = 30

_TAG_NAME_JS = "el => el.tagName.toLowerCase()"
_STYLE_JS = "(el, prop) => getComputedStyle(el).getPropertyValue(prop)"
_CLOSEST_JS = "(el, selector) => el.closest(selector)"
_VALUE_JS = "el => (el.value === undefined ? '' : String(el.value))"


class PlaywrightPage:
    """Adapts one Playwright ``Page`` to the inspector and actions ports."""

    def __init__(self, page: Any, *, action_timeout_ms: int = DEFAULT_ACTION_TIMEOUT_MS) -> None:
        self._page = page
        self._timeout = action_timeout_ms

    @property
    def raw(self) -> Any:
        return self._page

    # -- inspection ---------------------------------------------------------

    async def query_all(
        self,
        selector: str,
        root: ElementHandle | None = None,
    ) -> list[ElementHandle]:
        base, index = split_positional(selector)
        scope = root if root is not None else self._page
        handles = await scope.query_selector_all(base)
        if index is None:
            return list(handles)
        return [handles[index]] if index < len(handles) else []

    async def computed_visible(self, handle: ElementHandle) -> bool:
        return await handle.is_visible()

    async def text(self, handle: ElementHandle) -> str:
        return (await handle.text_content()) or ""

    async def attribute(self, handle: ElementHandle, name: str) -> str | None:
        return await handle.get_attribute(name)

    async def tag_name(self, handle: ElementHandle) -> str:
        return await handle.evaluate(_TAG_NAME_JS)

    async def input_value(self, handle: ElementHandle) -> str:
        return await handle.evaluate(_VALUE_JS)

    async def is_checked(self, handle: ElementHandle) -> bool:
        return await handle.is_checked()

    async def style(self, handle: ElementHandle, prop: str) -> str:
        return await handle.evaluate(_STYLE_JS, prop)

    async def closest(self, handle: ElementHandle, selector: str) -> ElementHandle | None:
        found = await handle.evaluate_handle(_CLOSEST_JS, selector)
        return found.as_element()

    async def url(self) -> str:
        return self._page.url

    async def title(self) -> str:
        return await self._page.title()

    async def body_text(self) -> str:
        return await self._page.inner_text("body", timeout=self._timeout)

    # -- actions ------------------------------------------------------------

    async def click(self, handle: ElementHandle) -> None:
        await handle.click(timeout=self._timeout)

    async def fill(self, handle: ElementHandle, value: str) -> None:
        await handle.fill(value, timeout=self._timeout)

    async def type_text(self, handle: ElementHandle, text: str) -> None:
        await handle.focus()
        await self._page.keyboard.type(text, delay=TYPE_DELAY_MS)

    async def select_option(
        self,
        handle: ElementHandle,
        *,
        label: str | None = None,
        value: str | None = None,
    ) -> bool:
        from playwright.async_api import Error as PlaywrightError

        try:
            if label is not None:
                selected = await handle.select_option(label=label, timeout=self._timeout)
            else:
                selected = await handle.select_option(value=value, timeout=self._timeout)
        except PlaywrightError:
            return False
        return bool(selected)

    async def press(self, key: str) -> None:
        await self._page.keyboard.press(key)

    async def set_input_files(self, handle: ElementHandle, path: str) -> None:
        await handle.set_input_files(path, timeout=self._timeout)

    async def scroll_by(self, dy: int) -> None:
        await self._page.evaluate(f"window.scrollBy(0, {int(dy)})")

    async def wait(self, ms: int) -> None:
        await self._page.wait_for_timeout(ms)

    async def screenshot(self) -> bytes:
        return await self._page.screenshot(full_page=True)
