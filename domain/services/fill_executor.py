"""Per-kind fill strategies with at-most-once semantics per selector.

Every attempt ends as exactly one tracker record. Page errors and
timeouts are turned into failure records; nothing here raises for an
ordinary interaction problem.
"""

from __future__ import annotations

import asyncio
import os
from typing import Mapping, Sequence

from domain.models import Field, FieldKind, FieldOption, TEXT_LIKE_KINDS
from domain.ports import BrowserPagePort, ElementHandle, LoggerPort
from domain.services.field_extractor import canonical_selector, member_label, resolve_label
from domain.services.form_tracker import FormTracker
from domain.services.matching import best_text_match, match_option
from domain.utils import collapse_whitespace, id_selector, truncate_for_display

TRUTHY_VALUES = frozenset({"check", "checked", "yes", "true", "on", "1"})
TYPEAHEAD_MAX_CHARS = 20
TYPEAHEAD_SETTLE_MS = 500
DROPDOWN_SETTLE_MS = 300
REVEALED_OPTION_SELECTORS = '[role="option"], [class*="option"]'

_INPUT_TYPE_KINDS = {
    "email": FieldKind.EMAIL,
    "tel": FieldKind.TEL,
    "number": FieldKind.NUMBER,
    "date": FieldKind.DATE,
    "checkbox": FieldKind.CHECKBOX,
    "radio": FieldKind.RADIO,
    "file": FieldKind.FILE,
}


class FillExecutor:
    """Fills one field at a time and reports every attempt to the tracker."""

    def __init__(
        self,
        *,
        page: BrowserPagePort,
        tracker: FormTracker,
        logger: LoggerPort,
        action_timeout_s: float = 10.0,
    ) -> None:
        self._page = page
        self._tracker = tracker
        self._logger = logger
        self._timeout = action_timeout_s
        self._panel_open = False

    @property
    def tracker(self) -> FormTracker:
        return self._tracker

    async def fill(
        self,
        field: Field,
        value: str,
        module: str,
        *,
        aliases: Mapping[str, Sequence[str]] | None = None,
    ) -> bool:
        """Fill ``field`` with ``value``; ``False`` on failure or when already filled."""
        if self._tracker.is_filled(field.selector):
            return False
        self._tracker.mark_attempted(field.selector)
        self._panel_open = False

        try:
            reason = await asyncio.wait_for(
                self._attempt(field, value, aliases),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            reason = f"Timed out after {self._timeout:g}s"
        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"
        if reason is not None and self._panel_open:
            await self._dismiss_panel()

        if reason is None:
            self._tracker.record_fill(field.selector, field.label, value, module)
            self._logger.info(
                "field_filled",
                selector=field.selector,
                label=field.label,
                value=truncate_for_display(value),
                module=module,
            )
            return True

        self._tracker.record_failure(field.selector, field.label, value, module, reason)
        self._logger.warning(
            "fill_failed",
            selector=field.selector,
            label=field.label,
            module=module,
            reason=reason,
        )
        return False

    async def fill_selector(
        self,
        selector: str,
        value: str,
        module: str,
        *,
        label: str | None = None,
        aliases: Mapping[str, Sequence[str]] | None = None,
    ) -> bool:
        """Fill a control known only by selector (platform table entries)."""
        if self._tracker.is_filled(selector):
            return False
        field = await self.describe(selector, label=label)
        if field is None:
            self._tracker.record_failure(selector, label or selector, value, module, "Element not found")
            self._logger.warning(
                "fill_failed",
                selector=selector,
                label=label or selector,
                module=module,
                reason="Element not found",
            )
            return False
        return await self.fill(field, value, module, aliases=aliases)

    async def upload(self, selector: str, path: str, module: str = "resume") -> bool:
        if self._tracker.is_filled(selector):
            return False
        if not os.path.isfile(path):
            self._tracker.mark_attempted(selector)
            self._tracker.record_failure(selector, "Resume", path, module, f"File not found: {path}")
            self._logger.warning("upload_failed", selector=selector, path=path, reason="file not found")
            return False
        field = await self.describe(selector, label="Resume")
        if field is None or field.kind is not FieldKind.FILE:
            self._tracker.record_failure(selector, "Resume", path, module, "Element not found")
            self._logger.warning("upload_failed", selector=selector, path=path, reason="element not found")
            return False
        return await self.fill(field, path, module)

    async def describe(self, selector: str, *, label: str | None = None) -> Field | None:
        """Build a ``Field`` for the first control matching ``selector``."""
        page = self._page
        matches = await page.query_all(selector)
        if not matches:
            return None
        handle = matches[0]
        selector = await canonical_selector(page, handle, selector)
        tag = await page.tag_name(handle)
        input_type = (await page.attribute(handle, "type") or "text").lower()
        caption = label or await resolve_label(page, handle) or selector

        if tag == "select":
            return Field(
                selector=selector,
                kind=FieldKind.SELECT,
                label=caption,
                current_value=await page.input_value(handle),
                options=tuple(await self._native_options(handle)),
            )
        if tag == "textarea":
            return Field(
                selector=selector,
                kind=FieldKind.TEXTAREA,
                label=caption,
                current_value=await page.input_value(handle),
            )
        if tag != "input" and (await page.attribute(handle, "role")) == "combobox":
            return Field(selector=selector, kind=FieldKind.SELECT, label=caption)

        kind = _INPUT_TYPE_KINDS.get(input_type, FieldKind.TEXT)
        if kind is FieldKind.CHECKBOX:
            checked = await page.is_checked(handle)
            return Field(
                selector=selector,
                kind=kind,
                label=caption,
                current_value="checked" if checked else "unchecked",
            )
        if kind is FieldKind.RADIO:
            name = await page.attribute(handle, "name")
            return Field(selector=selector, kind=kind, label=caption, group_name=name, name=name or "")
        return Field(
            selector=selector,
            kind=kind,
            label=caption,
            current_value="" if kind is FieldKind.FILE else await page.input_value(handle),
        )

    # -- dispatch -----------------------------------------------------------

    async def _attempt(
        self,
        field: Field,
        value: str,
        aliases: Mapping[str, Sequence[str]] | None,
    ) -> str | None:
        """``None`` on success, otherwise the failure reason."""
        page = self._page
        matches = await page.query_all(field.selector)
        if not matches:
            return "Element not found"

        if field.kind is FieldKind.RADIO:
            return await self._fill_radio(matches, value, aliases)

        handle = matches[0]
        if field.kind is not FieldKind.FILE and not await page.computed_visible(handle):
            return "Element not visible"

        if field.kind is FieldKind.FILE:
            await page.set_input_files(handle, value)
            return None
        if field.kind is FieldKind.CHECKBOX:
            return await self._fill_checkbox(handle, value)
        if field.kind is FieldKind.SELECT:
            if await page.tag_name(handle) == "select":
                return await self._fill_native_select(handle, field, value, aliases)
            return await self._fill_custom_select(handle, value, aliases)
        if field.kind in TEXT_LIKE_KINDS or field.kind is FieldKind.TEXTAREA:
            return await self._fill_text(handle, value)
        return f"Unsupported field kind: {field.kind.value}"

    # -- strategies ---------------------------------------------------------

    async def _fill_text(self, handle: ElementHandle, value: str) -> str | None:
        page = self._page
        if await self._is_typeahead(handle):
            return await self._fill_typeahead(handle, value)

        await page.click(handle)
        if (await page.attribute(handle, "aria-expanded")) == "true":
            return await self._fill_typeahead(handle, value)

        before = await page.input_value(handle)
        await page.fill(handle, "")
        await page.fill(handle, value)
        after = await page.input_value(handle)
        if after != value and after == before:
            return "Value unchanged after assignment"
        return None

    async def _is_typeahead(self, handle: ElementHandle) -> bool:
        page = self._page
        autocomplete = (await page.attribute(handle, "aria-autocomplete") or "").lower()
        if autocomplete in ("list", "both"):
            return True
        return (await page.attribute(handle, "role")) == "combobox"

    async def _fill_typeahead(self, handle: ElementHandle, value: str) -> str | None:
        page = self._page
        await page.fill(handle, "")
        await page.type_text(handle, value[:TYPEAHEAD_MAX_CHARS])
        await page.wait(TYPEAHEAD_SETTLE_MS)

        options = await self._revealed_options(handle)
        texts = [collapse_whitespace(await page.text(option)) for option in options]
        index = best_text_match(texts, value)
        if index is not None:
            await page.click(options[index])
            return None

        await page.press("ArrowDown")
        await page.press("Enter")
        return None

    async def _fill_native_select(
        self,
        handle: ElementHandle,
        field: Field,
        value: str,
        aliases: Mapping[str, Sequence[str]] | None,
    ) -> str | None:
        page = self._page
        if await page.select_option(handle, label=value):
            return None
        if await page.select_option(handle, value=value):
            return None
        options = field.options or tuple(await self._native_options(handle))
        chosen = match_option(options, value, aliases)
        if chosen is not None and await page.select_option(handle, value=chosen):
            return None
        return f"No option matching '{truncate_for_display(value)}'"

    async def _fill_custom_select(
        self,
        handle: ElementHandle,
        value: str,
        aliases: Mapping[str, Sequence[str]] | None,
    ) -> str | None:
        page = self._page
        await page.click(handle)
        self._panel_open = True
        await page.wait(DROPDOWN_SETTLE_MS)

        options = await self._revealed_options(handle)
        texts = [collapse_whitespace(await page.text(option)) for option in options]
        index = best_text_match(texts, value)
        if index is None:
            chosen = match_option([FieldOption(value=t, text=t) for t in texts], value, aliases)
            if chosen is not None:
                index = texts.index(chosen)
        if index is not None:
            await page.click(options[index])
            self._panel_open = False
            return None

        await self._dismiss_panel()
        return f"No option matching '{truncate_for_display(value)}'"

    async def _dismiss_panel(self) -> None:
        self._panel_open = False
        try:
            await asyncio.wait_for(self._page.press("Escape"), timeout=self._timeout)
        except Exception as exc:
            self._logger.warning("dropdown_dismiss_failed", error=str(exc))

    async def _fill_radio(
        self,
        members: Sequence[ElementHandle],
        value: str,
        aliases: Mapping[str, Sequence[str]] | None,
    ) -> str | None:
        page = self._page
        described: list[tuple[ElementHandle, str, str]] = []
        any_visible = False
        for member in members:
            text = await member_label(page, member)
            member_value = await page.attribute(member, "value") or text
            described.append((member, member_value, text))
            if await page.computed_visible(member):
                any_visible = True
        if not any_visible:
            return "Element not visible"

        target = value.strip().lower()
        chosen: ElementHandle | None = None
        for member, member_value, text in described:
            if target in (member_value.strip().lower(), text.strip().lower()):
                chosen = member
                break
        if chosen is None and target:
            for member, member_value, text in described:
                candidates = [c.strip().lower() for c in (member_value, text) if c.strip()]
                if any(target in c or c in target for c in candidates):
                    chosen = member
                    break
        if chosen is None:
            options = [FieldOption(value=str(i), text=t or v) for i, (_, v, t) in enumerate(described)]
            picked = match_option(options, value, aliases)
            if picked is not None:
                chosen = described[int(picked)][0]
        if chosen is None:
            return f"No radio option matching '{truncate_for_display(value)}'"

        if not await page.is_checked(chosen):
            await page.click(chosen)
        return None

    async def _fill_checkbox(self, handle: ElementHandle, value: str) -> str | None:
        page = self._page
        desired = value.strip().lower() in TRUTHY_VALUES
        if await page.is_checked(handle) == desired:
            return None
        await page.click(handle)
        if await page.is_checked(handle) != desired:
            return "Checkbox state unchanged after click"
        return None

    # -- option discovery ---------------------------------------------------

    async def _native_options(self, handle: ElementHandle) -> list[FieldOption]:
        page = self._page
        options = []
        for option in await page.query_all("option", root=handle):
            text = collapse_whitespace(await page.text(option))
            raw = await page.attribute(option, "value")
            options.append(FieldOption(value=text if raw is None else raw, text=text))
        return options

    async def _revealed_options(self, handle: ElementHandle) -> list[ElementHandle]:
        """Visible options of the panel ``handle`` opened, linked or page-wide."""
        page = self._page
        roots: list[ElementHandle] = []
        for attr in ("aria-controls", "aria-owns"):
            for ref in (await page.attribute(handle, attr) or "").split():
                for box in await page.query_all(id_selector(ref)):
                    roots.append(box)

        candidates: list[ElementHandle] = []
        if roots:
            for root in roots:
                candidates.extend(await page.query_all(REVEALED_OPTION_SELECTORS, root=root))
        else:
            candidates = await page.query_all(REVEALED_OPTION_SELECTORS)

        visible = []
        for candidate in candidates:
            if await page.computed_visible(candidate):
                visible.append(candidate)
        return visible
