from __future__ import annotations

import json
from pathlib import Path

from domain.models import RunContext
from domain.ports import DebugArtifactStorePort
from infra.logs import FileSystemDebugArtifactStore


def test_conforms_to_port(tmp_path: Path) -> None:
    assert isinstance(FileSystemDebugArtifactStore(base_dir=str(tmp_path)), DebugArtifactStorePort)


def test_numbers_screenshots_in_capture_order(tmp_path: Path) -> None:
    store = FileSystemDebugArtifactStore(base_dir=str(tmp_path / "logs"))
    run = RunContext(run_id="run-123", is_debug=True)
    run_dir = store.ensure_run_directory(run)
    first = store.save_screenshot(run, "page_loaded", b"a")
    second = store.save_screenshot(run, "rules filled!", b"b")

    assert run_dir.endswith("run_run-123")
    assert first.endswith("step_01_page_loaded.png")
    assert second.endswith("step_02_rules_filled.png")
    assert Path(second).read_bytes() == b"b"


def test_explicit_log_directory_wins(tmp_path: Path) -> None:
    store = FileSystemDebugArtifactStore(base_dir=str(tmp_path / "logs"))
    run = RunContext(run_id="r1", is_debug=True, log_directory=str(tmp_path / "custom"))
    assert store.ensure_run_directory(run) == str(tmp_path / "custom")


def test_metadata_lists_screenshots(tmp_path: Path) -> None:
    store = FileSystemDebugArtifactStore(base_dir=str(tmp_path / "logs"))
    run = RunContext(run_id="run-meta-1", is_debug=True)
    store.save_screenshot(run, "navigated", b"png")
    path = store.save_run_metadata(run, {"status": "completed", "records": [{"selector": "#email"}]})

    assert path.endswith("run.json")
    loaded = json.loads(Path(path).read_text())
    assert loaded["run_id"] == "run-meta-1"
    assert loaded["status"] == "completed"
    assert loaded["screenshots"] == ["step_01_navigated.png"]
    assert loaded["records"][0]["selector"] == "#email"
