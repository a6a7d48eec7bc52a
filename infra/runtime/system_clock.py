from __future__ import annotations

from datetime import datetime, timezone


class SystemClock:
    """UTC wall clock behind history timestamps, run ids and the agent budget."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
