"""Field extraction: every fillable control on the page as a canonical ``Field``.

Each control family is scanned independently and the results are
concatenated, then de-duplicated by selector. A failing scan is logged and
contributes nothing; the other families are still returned.

In ``ObservationMode.RULE_VISIBLE`` only visible controls are returned. In
``ObservationMode.AGENT_FULL`` hidden controls are kept with
``is_visible=False`` so the agent can act to reveal them. Controls inside
the tool's own UI root are never returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from domain.models import Field, FieldKind, FieldOption, ObservationMode
from domain.ports import DomInspectorPort, ElementHandle, LoggerPort
from domain.utils import collapse_whitespace, css_string, id_selector, positional_selector

OWN_UI_ROOT = "#job-agent-overlay"

TEXT_INPUT_SELECTOR = (
    "input"
    ':not([type="hidden"]):not([type="checkbox"]):not([type="radio"])'
    ':not([type="file"]):not([type="submit"]):not([type="button"])'
    ':not([type="reset"]):not([type="image"])'
)
TEXTAREA_SELECTOR = "textarea"
NATIVE_SELECT_SELECTOR = "select"
RADIO_SELECTOR = 'input[type="radio"]'
CHECKBOX_SELECTOR = 'input[type="checkbox"]'
FILE_SELECTOR = 'input[type="file"]'

CUSTOM_DROPDOWN_PATTERNS: tuple[str, ...] = (
    '[class*="react-select"]',
    '[class*="Select__control"]',
    '[role="combobox"][aria-haspopup="listbox"]',
    '[data-testid*="select"]',
)
MAX_CONTAINERS_PER_PATTERN = 10
MAX_CUSTOM_OPTIONS = 20
MAX_PROMPT_OPTIONS = 10

_CONTAINER_SELECTORS: tuple[str, ...] = (
    "fieldset",
    '[class*="field"]',
    '[class*="question"]',
    ".form-group",
    '[class*="form-row"]',
)
_CONTAINER_LABELS = 'legend, label, [class*="label"]'
_INPUT_KINDS = {
    "email": FieldKind.EMAIL,
    "tel": FieldKind.TEL,
    "number": FieldKind.NUMBER,
    "date": FieldKind.DATE,
}


@dataclass
class _ScanContext:
    inspector: DomInspectorPort
    mode: ObservationMode
    own_ui_root: str
    counter: int = 0

    def next_position(self) -> int:
        self.counter += 1
        return self.counter


class FieldExtractor:
    """Scans a document through ``DomInspectorPort`` and returns canonical fields."""

    def __init__(self, *, logger: LoggerPort, own_ui_root: str = OWN_UI_ROOT) -> None:
        self._logger = logger
        self._own_ui_root = own_ui_root

    async def extract(
        self,
        inspector: DomInspectorPort,
        mode: ObservationMode = ObservationMode.RULE_VISIBLE,
    ) -> list[Field]:
        ctx = _ScanContext(inspector=inspector, mode=mode, own_ui_root=self._own_ui_root)
        scans: tuple[tuple[str, Callable[[_ScanContext], Awaitable[list[Field]]]], ...] = (
            ("text_inputs", self._scan_text_inputs),
            ("textareas", self._scan_textareas),
            ("native_selects", self._scan_native_selects),
            ("custom_dropdowns", self._scan_custom_dropdowns),
            ("radio_groups", self._scan_radio_groups),
            ("checkboxes", self._scan_checkboxes),
            ("file_inputs", self._scan_file_inputs),
        )
        fields: list[Field] = []
        for name, scan in scans:
            try:
                fields.extend(await scan(ctx))
            except Exception as exc:
                self._logger.warning("scan_failed", scan=name, error=str(exc))
        return dedupe_fields(fields)

    # -- control families ---------------------------------------------------

    async def _scan_text_inputs(self, ctx: _ScanContext) -> list[Field]:
        inspector = ctx.inspector
        fields: list[Field] = []
        for index, handle in enumerate(await inspector.query_all(TEXT_INPUT_SELECTOR)):
            visible = await self._keep(ctx, handle)
            if visible is None:
                continue
            input_type = (await inspector.attribute(handle, "type") or "text").lower()
            fields.append(
                await self._build_field(
                    ctx,
                    handle,
                    kind=_INPUT_KINDS.get(input_type, FieldKind.TEXT),
                    family=TEXT_INPUT_SELECTOR,
                    index=index,
                    visible=visible,
                )
            )
        return fields

    async def _scan_textareas(self, ctx: _ScanContext) -> list[Field]:
        fields: list[Field] = []
        for index, handle in enumerate(await ctx.inspector.query_all(TEXTAREA_SELECTOR)):
            visible = await self._keep(ctx, handle)
            if visible is None:
                continue
            fields.append(
                await self._build_field(
                    ctx,
                    handle,
                    kind=FieldKind.TEXTAREA,
                    family=TEXTAREA_SELECTOR,
                    index=index,
                    visible=visible,
                )
            )
        return fields

    async def _scan_native_selects(self, ctx: _ScanContext) -> list[Field]:
        inspector = ctx.inspector
        fields: list[Field] = []
        for index, handle in enumerate(await inspector.query_all(NATIVE_SELECT_SELECTOR)):
            visible = await self._keep(ctx, handle)
            if visible is None:
                continue
            options: list[FieldOption] = []
            for option in await inspector.query_all("option", root=handle):
                text = collapse_whitespace(await inspector.text(option))
                value = await inspector.attribute(option, "value")
                options.append(FieldOption(value=text if value is None else value, text=text))
            fields.append(
                await self._build_field(
                    ctx,
                    handle,
                    kind=FieldKind.SELECT,
                    family=NATIVE_SELECT_SELECTOR,
                    index=index,
                    visible=visible,
                    options=tuple(options),
                )
            )
        return fields

    async def _scan_custom_dropdowns(self, ctx: _ScanContext) -> list[Field]:
        inspector = ctx.inspector
        fields: list[Field] = []
        for pattern in CUSTOM_DROPDOWN_PATTERNS:
            containers = (await inspector.query_all(pattern))[:MAX_CONTAINERS_PER_PATTERN]
            for index, container in enumerate(containers):
                control = await _custom_control(inspector, container)
                if control is None:
                    continue
                visible = await self._keep(ctx, container)
                if visible is None:
                    continue
                selector = await _custom_selector(inspector, control, container, pattern, index)
                label = await resolve_label(inspector, control)
                if not label and control is not container:
                    label = await resolve_label(inspector, container)
                fields.append(
                    Field(
                        selector=selector,
                        kind=FieldKind.SELECT,
                        label=_strip_required_marker(label) or f"Field {ctx.next_position()}",
                        required=await _is_required(inspector, control, label),
                        current_value=await _custom_current_value(inspector, container, control),
                        options=tuple(await discover_custom_options(inspector, container, control)),
                        is_visible=visible,
                        name=await inspector.attribute(control, "name") or "",
                        placeholder=await inspector.attribute(control, "placeholder") or "",
                    )
                )
        return fields

    async def _scan_radio_groups(self, ctx: _ScanContext) -> list[Field]:
        inspector = ctx.inspector
        groups: dict[str, list[ElementHandle]] = {}
        for handle in await inspector.query_all(RADIO_SELECTOR):
            name = await inspector.attribute(handle, "name")
            if not name:
                continue
            groups.setdefault(name, []).append(handle)

        fields: list[Field] = []
        for name, members in groups.items():
            visibilities = []
            for member in members:
                visibilities.append(await self._keep(ctx, member))
            kept = [v for v in visibilities if v is not None]
            if not kept:
                continue
            visible = any(kept)

            options: list[FieldOption] = []
            current = ""
            required = False
            for member in members:
                text = await member_label(inspector, member)
                value = await inspector.attribute(member, "value") or text
                options.append(FieldOption(value=value, text=text or value))
                if await inspector.is_checked(member):
                    current = value
                if await inspector.attribute(member, "required") is not None:
                    required = True

            label = await _radio_group_label(inspector, members[0], {o.text for o in options})
            fields.append(
                Field(
                    selector=f'input[type="radio"][name={css_string(name)}]',
                    kind=FieldKind.RADIO,
                    label=_strip_required_marker(label) or name,
                    required=required or label.endswith("*"),
                    current_value=current,
                    options=tuple(options),
                    group_name=name,
                    is_visible=visible,
                    name=name,
                )
            )
        return fields

    async def _scan_checkboxes(self, ctx: _ScanContext) -> list[Field]:
        inspector = ctx.inspector
        fields: list[Field] = []
        for index, handle in enumerate(await inspector.query_all(CHECKBOX_SELECTOR)):
            visible = await self._keep(ctx, handle)
            if visible is None:
                continue
            label = await resolve_label(inspector, handle)
            if not label:
                continue
            fields.append(
                Field(
                    selector=await checkbox_selector(inspector, handle, index),
                    kind=FieldKind.CHECKBOX,
                    label=_strip_required_marker(label),
                    required=await _is_required(inspector, handle, label),
                    current_value="checked" if await inspector.is_checked(handle) else "unchecked",
                    is_visible=visible,
                    name=await inspector.attribute(handle, "name") or "",
                )
            )
        return fields

    async def _scan_file_inputs(self, ctx: _ScanContext) -> list[Field]:
        fields: list[Field] = []
        for index, handle in enumerate(await ctx.inspector.query_all(FILE_SELECTOR)):
            visible = await self._keep(ctx, handle)
            if visible is None:
                continue
            fields.append(
                await self._build_field(
                    ctx,
                    handle,
                    kind=FieldKind.FILE,
                    family=FILE_SELECTOR,
                    index=index,
                    visible=visible,
                )
            )
        return fields

    # -- helpers ------------------------------------------------------------

    async def _keep(self, ctx: _ScanContext, handle: ElementHandle) -> bool | None:
        """Visibility flag for a kept control, ``None`` when it must be dropped."""
        if await ctx.inspector.closest(handle, ctx.own_ui_root) is not None:
            return None
        visible = await ctx.inspector.computed_visible(handle)
        if not visible and ctx.mode is ObservationMode.RULE_VISIBLE:
            return None
        return visible

    async def _build_field(
        self,
        ctx: _ScanContext,
        handle: ElementHandle,
        *,
        kind: FieldKind,
        family: str,
        index: int,
        visible: bool,
        options: tuple[FieldOption, ...] | None = None,
    ) -> Field:
        inspector = ctx.inspector
        label = await resolve_label(inspector, handle)
        return Field(
            selector=await element_selector(inspector, handle, family, index),
            kind=kind,
            label=_strip_required_marker(label) or f"Field {ctx.next_position()}",
            required=await _is_required(inspector, handle, label),
            current_value=await inspector.input_value(handle),
            options=options,
            is_visible=visible,
            name=await inspector.attribute(handle, "name") or "",
            placeholder=await inspector.attribute(handle, "placeholder") or "",
        )


# -- label and selector resolution -------------------------------------------


async def resolve_label(inspector: DomInspectorPort, handle: ElementHandle) -> str:
    """Best caption for a control, or ``""`` when only a positional name is left.

    Priority: ARIA, explicit label association, placeholder, nearest labeled
    container, raw name/id.
    """
    aria = await inspector.attribute(handle, "aria-label")
    if aria and aria.strip():
        return collapse_whitespace(aria)
    labelledby = await inspector.attribute(handle, "aria-labelledby")
    if labelledby:
        parts = []
        for ref in labelledby.split():
            for node in await inspector.query_all(id_selector(ref)):
                parts.append(await inspector.text(node))
        text = collapse_whitespace(" ".join(parts))
        if text:
            return text

    associated = await _associated_label(inspector, handle)
    if associated:
        return associated

    placeholder = await inspector.attribute(handle, "placeholder")
    if placeholder and placeholder.strip():
        return collapse_whitespace(placeholder)

    for container_selector in _CONTAINER_SELECTORS:
        container = await inspector.closest(handle, container_selector)
        if container is None or container is handle:
            continue
        for node in await inspector.query_all(_CONTAINER_LABELS, root=container):
            text = collapse_whitespace(await inspector.text(node))
            if text:
                return text

    for attr in ("name", "id"):
        raw = await inspector.attribute(handle, attr)
        if raw and raw.strip():
            return raw.strip()
    return ""


async def member_label(inspector: DomInspectorPort, handle: ElementHandle) -> str:
    """Caption of one radio/checkbox member: ``label[for]`` then enclosing label."""
    return await _associated_label(inspector, handle)


async def _associated_label(inspector: DomInspectorPort, handle: ElementHandle) -> str:
    element_id = await inspector.attribute(handle, "id")
    if element_id:
        for node in await inspector.query_all(f"label[for={css_string(element_id)}]"):
            text = collapse_whitespace(await inspector.text(node))
            if text:
                return text
    enclosing = await inspector.closest(handle, "label")
    if enclosing is not None:
        return collapse_whitespace(await inspector.text(enclosing))
    return ""


async def element_selector(
    inspector: DomInspectorPort,
    handle: ElementHandle,
    family: str,
    index: int,
) -> str:
    """``#id``, else a unique ``[name=...]``, else the control's position in its family."""
    element_id = await inspector.attribute(handle, "id")
    if element_id:
        return id_selector(element_id)
    name = await inspector.attribute(handle, "name")
    if name:
        by_name = f"[name={css_string(name)}]"
        if len(await inspector.query_all(by_name)) == 1:
            return by_name
    return positional_selector(family, index)


async def canonical_selector(
    inspector: DomInspectorPort,
    handle: ElementHandle,
    fallback: str,
) -> str:
    """The selector extraction would give ``handle``, else ``fallback``.

    Lets fills addressed through platform selectors share tracker entries
    with fields found by extraction.
    """
    input_type = (await inspector.attribute(handle, "type") or "").lower()
    name = await inspector.attribute(handle, "name")
    if input_type == "radio" and name:
        return f'input[type="radio"][name={css_string(name)}]'
    element_id = await inspector.attribute(handle, "id")
    if element_id:
        return id_selector(element_id)
    if name:
        by_name = f"[name={css_string(name)}]"
        if len(await inspector.query_all(by_name)) == 1:
            return by_name
    return fallback


async def checkbox_selector(
    inspector: DomInspectorPort,
    handle: ElementHandle,
    index: int,
) -> str:
    element_id = await inspector.attribute(handle, "id")
    if element_id:
        return id_selector(element_id)
    name = await inspector.attribute(handle, "name")
    value = await inspector.attribute(handle, "value")
    if name and value:
        candidate = f"{CHECKBOX_SELECTOR}[name={css_string(name)}][value={css_string(value)}]"
        if len(await inspector.query_all(candidate)) == 1:
            return candidate
    return await element_selector(inspector, handle, CHECKBOX_SELECTOR, index)


async def _radio_group_label(
    inspector: DomInspectorPort,
    first_member: ElementHandle,
    option_texts: set[str],
) -> str:
    group = await inspector.closest(first_member, '[role="radiogroup"]')
    if group is not None:
        aria = await resolve_label(inspector, group)
        if aria:
            return aria
    for container_selector in _CONTAINER_SELECTORS:
        container = await inspector.closest(first_member, container_selector)
        if container is None:
            continue
        for node in await inspector.query_all(_CONTAINER_LABELS, root=container):
            text = collapse_whitespace(await inspector.text(node))
            if text and text not in option_texts:
                return text
    return ""


async def _is_required(inspector: DomInspectorPort, handle: ElementHandle, label: str) -> bool:
    if await inspector.attribute(handle, "required") is not None:
        return True
    if (await inspector.attribute(handle, "aria-required") or "").lower() == "true":
        return True
    return label.rstrip().endswith("*")


def _strip_required_marker(label: str) -> str:
    return label.rstrip(" *").strip() if label else label


# -- custom dropdowns ------------------------------------------------------------


async def _custom_control(
    inspector: DomInspectorPort,
    container: ElementHandle,
) -> ElementHandle | None:
    tag = await inspector.tag_name(container)
    if tag in ("select", "option"):
        return None
    if tag == "input":
        return container
    role = await inspector.attribute(container, "role")
    if role in ("listbox", "option"):
        return None
    if role == "combobox" or await inspector.attribute(container, "aria-haspopup"):
        return container
    inner = await inspector.query_all(
        'input:not([type="hidden"]), [role="combobox"]',
        root=container,
    )
    return inner[0] if inner else None


async def _custom_selector(
    inspector: DomInspectorPort,
    control: ElementHandle,
    container: ElementHandle,
    pattern: str,
    index: int,
) -> str:
    for handle in (control, container):
        element_id = await inspector.attribute(handle, "id")
        if element_id:
            return id_selector(element_id)
    test_id = await inspector.attribute(container, "data-testid")
    if test_id:
        return f"[data-testid={css_string(test_id)}]"
    return positional_selector(pattern, index)


async def _custom_current_value(
    inspector: DomInspectorPort,
    container: ElementHandle,
    control: ElementHandle,
) -> str:
    shown = await inspector.query_all(
        '[class*="singleValue"], [class*="single-value"]',
        root=container,
    )
    if shown:
        return collapse_whitespace(await inspector.text(shown[0]))
    if await inspector.tag_name(control) == "input":
        return await inspector.input_value(control)
    return ""


async def discover_custom_options(
    inspector: DomInspectorPort,
    container: ElementHandle,
    control: ElementHandle,
) -> list[FieldOption]:
    """Options of a custom dropdown: ARIA-linked listbox first, then descendants."""
    for handle in (control, container):
        for attr in ("aria-controls", "aria-owns"):
            ref = await inspector.attribute(handle, attr)
            if not ref:
                continue
            for listbox_id in ref.split():
                boxes = await inspector.query_all(id_selector(listbox_id))
                if not boxes:
                    continue
                options = await _collect_options(
                    inspector, boxes[0], '[role="option"], option, li',
                )
                if options:
                    return options
    return await _collect_options(inspector, container, '[role="option"], [class*="option"]')


async def _collect_options(
    inspector: DomInspectorPort,
    root: ElementHandle,
    selector: str,
) -> list[FieldOption]:
    options: list[FieldOption] = []
    seen: set[str] = set()
    for node in await inspector.query_all(selector, root=root):
        text = collapse_whitespace(await inspector.text(node))
        if not text or text in seen:
            continue
        seen.add(text)
        value = await inspector.attribute(node, "data-value") or await inspector.attribute(node, "value")
        options.append(FieldOption(value=value or text, text=text))
        if len(options) >= MAX_CUSTOM_OPTIONS:
            break
    return options


# -- post-processing ---------------------------------------------------------


def _richness(item: Field) -> int:
    if item.options:
        return 2
    if item.kind is FieldKind.SELECT:
        return 1
    return 0


def dedupe_fields(fields: Sequence[Field]) -> list[Field]:
    """One record per selector, in first-seen order.

    A later record replaces an earlier one only when it is strictly richer
    (has options, or is a select where the earlier one is not).
    """
    order: list[str] = []
    by_selector: dict[str, Field] = {}
    for item in fields:
        existing = by_selector.get(item.selector)
        if existing is None:
            order.append(item.selector)
            by_selector[item.selector] = item
        elif _richness(item) > _richness(existing):
            by_selector[item.selector] = item
    return [by_selector[s] for s in order]


def format_fields_for_prompt(fields: Sequence[Field]) -> str:
    """Numbered, 1-based listing of fields for an oracle prompt."""
    lines: list[str] = []
    for number, item in enumerate(fields, start=1):
        flags = []
        if item.required:
            flags.append("required")
        if not item.is_visible:
            flags.append("hidden")
        suffix = f" ({', '.join(flags)})" if flags else ""
        line = f"{number}. [{item.kind.value}] {item.label}{suffix} selector={item.selector}"
        if item.current_value and item.current_value != "unchecked":
            line += f' current="{item.current_value}"'
        lines.append(line)
        if item.options:
            texts = [o.text for o in item.options if o.text][:MAX_PROMPT_OPTIONS]
            more = len(item.options) - len(texts)
            listing = ", ".join(texts)
            if more > 0:
                listing += f" (+{more} more)"
            lines.append(f"   options: {listing}")
    return "\n".join(lines)
