from __future__ import annotations

from domain.models import FillRecord
from domain.ports import ClockPort
from domain.utils import truncate_for_display


class FormTracker:
    """
    Idempotency ledger for one application attempt.

    Every fill pass of an attempt shares the same tracker instance. A
    selector is successfully filled at most once; call :meth:`reset` before
    starting on a new form. Not safe for concurrent passes.
    """

    def __init__(self, *, clock: ClockPort) -> None:
        self._clock = clock
        self._filled: dict[str, FillRecord] = {}
        self._attempted: set[str] = set()
        self._records: list[FillRecord] = []

    def is_filled(self, selector: str) -> bool:
        return selector in self._filled

    def was_attempted(self, selector: str) -> bool:
        return selector in self._attempted

    def mark_attempted(self, selector: str) -> None:
        self._attempted.add(selector)

    def record_fill(self, selector: str, label: str, value: str, module: str) -> None:
        if selector in self._filled:
            return
        record = FillRecord(
            selector=selector,
            label=label,
            value=truncate_for_display(value),
            success=True,
            module=module,
            timestamp=self._clock.now(),
        )
        self._attempted.add(selector)
        self._filled[selector] = record
        self._records.append(record)

    def record_failure(
        self,
        selector: str,
        label: str,
        value: str,
        module: str,
        reason: str,
    ) -> None:
        self._attempted.add(selector)
        self._records.append(
            FillRecord(
                selector=selector,
                label=label,
                value=truncate_for_display(value),
                success=False,
                module=module,
                timestamp=self._clock.now(),
                reason=reason,
            )
        )

    def reset(self) -> None:
        self._filled.clear()
        self._attempted.clear()
        self._records.clear()

    @property
    def records(self) -> tuple[FillRecord, ...]:
        return tuple(self._records)

    @property
    def filled_count(self) -> int:
        return len(self._filled)

    @property
    def failed_count(self) -> int:
        return len(self.failed_fields())

    def filled_fields(self) -> list[FillRecord]:
        return list(self._filled.values())

    def failed_fields(self) -> list[FillRecord]:
        """Failures for selectors that never succeeded afterwards."""
        latest: dict[str, FillRecord] = {}
        for record in self._records:
            if not record.success and record.selector not in self._filled:
                latest[record.selector] = record
        return list(latest.values())

    def summary_lines(self) -> list[str]:
        lines = [
            f"Filled {self.filled_count} field(s), {self.failed_count} failed",
        ]
        for record in self.filled_fields():
            lines.append(f"  [ok]   {record.label or record.selector}: {record.value} ({record.module})")
        for record in self.failed_fields():
            lines.append(
                f"  [fail] {record.label or record.selector}: {record.reason} ({record.module})"
            )
        return lines
