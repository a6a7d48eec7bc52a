from __future__ import annotations

from domain.models import RunContext
from domain.ports import DebugArtifactStorePort, LoggerPort, PageActionsPort


class DebugRunManager:
    """Per-stage screenshots and run metadata for debug runs."""

    def __init__(self, artifact_store: DebugArtifactStorePort, logger: LoggerPort) -> None:
        self._artifact_store = artifact_store
        self._logger = logger

    def start(self, run_context: RunContext) -> str | None:
        if not run_context.is_debug:
            return None
        return self._artifact_store.ensure_run_directory(run_context)

    async def capture_step(
        self,
        run_context: RunContext,
        page: PageActionsPort,
        step_name: str,
    ) -> str | None:
        if not run_context.is_debug:
            return None
        try:
            screenshot = await page.screenshot()
        except Exception as exc:
            self._logger.warning("debug_screenshot_failed", step=step_name, error=str(exc))
            return None
        return self._artifact_store.save_screenshot(run_context, step_name, screenshot)

    def finish(self, run_context: RunContext, metadata: dict[str, object]) -> str | None:
        if not run_context.is_debug:
            return None
        return self._artifact_store.save_run_metadata(run_context, metadata)
