from __future__ import annotations

import json
import re
from pathlib import Path

from domain.models import RunContext

METADATA_FILE = "run.json"


class FileSystemDebugArtifactStore:
    """Stores per-stage screenshots and the run summary under ``<base>/run_<id>/``.

    Screenshots are numbered in capture order. The metadata file lists them
    next to the fill records handed in by the pipeline.
    """

    def __init__(self, base_dir: str = "logs") -> None:
        self._base_dir = Path(base_dir)
        self._screenshots: dict[str, list[str]] = {}

    def ensure_run_directory(self, run_context: RunContext) -> str:
        run_dir = self._run_dir(run_context)
        run_dir.mkdir(parents=True, exist_ok=True)
        return str(run_dir)

    def save_screenshot(
        self,
        run_context: RunContext,
        step_name: str,
        image_bytes: bytes,
    ) -> str:
        run_dir = Path(self.ensure_run_directory(run_context))
        taken = self._screenshots.setdefault(run_context.run_id, [])
        path = run_dir / f"step_{len(taken) + 1:02d}_{self._safe(step_name)}.png"
        path.write_bytes(image_bytes)
        taken.append(path.name)
        return str(path)

    def save_run_metadata(
        self,
        run_context: RunContext,
        metadata: dict[str, object],
    ) -> str:
        run_dir = Path(self.ensure_run_directory(run_context))
        document = {
            "run_id": run_context.run_id,
            "screenshots": list(self._screenshots.get(run_context.run_id, ())),
            **metadata,
        }
        path = run_dir / METADATA_FILE
        path.write_text(json.dumps(document, indent=2, default=str), encoding="utf-8")
        return str(path)

    def _run_dir(self, run_context: RunContext) -> Path:
        if run_context.log_directory:
            return Path(run_context.log_directory)
        return self._base_dir / f"run_{run_context.run_id}"

    @staticmethod
    def _safe(step_name: str) -> str:
        cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", step_name).strip("_")
        return cleaned or "step"
