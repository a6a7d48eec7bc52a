from __future__ import annotations

import uuid

from domain.ports import ClockPort
from infra.runtime.system_clock import SystemClock


class UuidIdGenerator:
    """Run ids lead with their start time so debug directories sort chronologically."""

    def __init__(self, clock: ClockPort | None = None) -> None:
        self._clock = clock or SystemClock()

    def new_run_id(self) -> str:
        started = self._clock.now().strftime("%Y%m%d-%H%M%S")
        return f"run-{started}-{uuid.uuid4().hex[:6]}"

    def new_correlation_id(self) -> str:
        return uuid.uuid4().hex[:12]
