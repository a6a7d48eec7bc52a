from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import Any, Protocol, Sequence, runtime_checkable

from domain.models import ApplicationOutcome, RunContext


# Element handles are opaque to the domain: a Playwright ElementHandle in
# production, an in-memory node in tests.
ElementHandle = Any


@runtime_checkable
class DomInspectorPort(Protocol):
    """
    Read-only view over the live document.

    Selectors are CSS; a selector may end in ``" >> nth=<i>"`` to address
    the i-th match of the part before it. Every method is a suspension
    point and may raise on timeout.
    """

    @abstractmethod
    async def query_all(
        self,
        selector: str,
        root: ElementHandle | None = None,
    ) -> list[ElementHandle]:
        ...

    @abstractmethod
    async def computed_visible(self, handle: ElementHandle) -> bool:
        ...

    @abstractmethod
    async def text(self, handle: ElementHandle) -> str:
        ...

    @abstractmethod
    async def attribute(self, handle: ElementHandle, name: str) -> str | None:
        ...

    @abstractmethod
    async def tag_name(self, handle: ElementHandle) -> str:
        ...

    @abstractmethod
    async def input_value(self, handle: ElementHandle) -> str:
        ...

    @abstractmethod
    async def is_checked(self, handle: ElementHandle) -> bool:
        ...

    @abstractmethod
    async def style(self, handle: ElementHandle, prop: str) -> str:
        ...

    @abstractmethod
    async def closest(
        self,
        handle: ElementHandle,
        selector: str,
    ) -> ElementHandle | None:
        ...

    @abstractmethod
    async def url(self) -> str:
        ...

    @abstractmethod
    async def title(self) -> str:
        ...

    @abstractmethod
    async def body_text(self) -> str:
        ...


@runtime_checkable
class PageActionsPort(Protocol):
    """Mutating interactions with the live page."""

    @abstractmethod
    async def click(self, handle: ElementHandle) -> None:
        ...

    @abstractmethod
    async def fill(self, handle: ElementHandle, value: str) -> None:
        ...

    @abstractmethod
    async def type_text(self, handle: ElementHandle, text: str) -> None:
        ...

    @abstractmethod
    async def select_option(
        self,
        handle: ElementHandle,
        *,
        label: str | None = None,
        value: str | None = None,
    ) -> bool:
        """Return ``True`` when an option was selected."""

    @abstractmethod
    async def press(self, key: str) -> None:
        ...

    @abstractmethod
    async def set_input_files(self, handle: ElementHandle, path: str) -> None:
        ...

    @abstractmethod
    async def scroll_by(self, dy: int) -> None:
        ...

    @abstractmethod
    async def wait(self, ms: int) -> None:
        ...

    @abstractmethod
    async def screenshot(self) -> bytes:
        ...


@runtime_checkable
class BrowserPagePort(DomInspectorPort, PageActionsPort, Protocol):
    """A page that can be both inspected and acted upon."""


@runtime_checkable
class LLMClientPort(Protocol):
    """Thin abstraction over an LLM text completion API."""

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        ...


@runtime_checkable
class ApplicationHistoryPort(Protocol):
    """Records application outcomes keyed by normalized job URL."""

    @abstractmethod
    def record(self, outcome: ApplicationOutcome) -> None:
        ...

    @abstractmethod
    def get(self, url_key: str) -> ApplicationOutcome | None:
        ...

    @abstractmethod
    def list_all(self) -> Sequence[ApplicationOutcome]:
        ...


@runtime_checkable
class DebugArtifactStorePort(Protocol):
    """Where per-step screenshots and run metadata of debug runs go."""

    def ensure_run_directory(self, run_context: RunContext) -> str:
        ...

    def save_screenshot(
        self,
        run_context: RunContext,
        step_name: str,
        image_bytes: bytes,
    ) -> str:
        ...

    def save_run_metadata(
        self,
        run_context: RunContext,
        metadata: dict[str, object],
    ) -> str:
        ...


@runtime_checkable
class UserInteractionPort(Protocol):
    """Human checkpoint channel (console in the CLI)."""

    async def send_info(self, message: str) -> None:
        ...

    async def wait_for_human(self, prompt: str) -> None:
        ...


@runtime_checkable
class ClockPort(Protocol):
    """Time source for deterministic and easily testable code."""

    def now(self) -> datetime:
        ...


@runtime_checkable
class IdGeneratorPort(Protocol):
    """Generation of stable identifiers for runs and records."""

    def new_run_id(self) -> str:
        ...

    def new_correlation_id(self) -> str:
        ...


@runtime_checkable
class LoggerPort(Protocol):
    """Structured, testable logging abstraction."""

    def info(self, message: str, **fields: Any) -> None:
        ...

    def warning(self, message: str, **fields: Any) -> None:
        ...

    def error(self, message: str, **fields: Any) -> None:
        ...


__all__ = [
    "ElementHandle",
    "DomInspectorPort",
    "PageActionsPort",
    "BrowserPagePort",
    "LLMClientPort",
    "ApplicationHistoryPort",
    "DebugArtifactStorePort",
    "UserInteractionPort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
