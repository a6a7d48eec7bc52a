from __future__ import annotations

from domain import ApplicationHistoryPort
from domain.models import ApplicationOutcome


class InMemoryApplicationHistory:
    def __init__(self) -> None:
        self._outcomes: dict[str, ApplicationOutcome] = {}
        self.recorded: list[ApplicationOutcome] = []

    def record(self, outcome: ApplicationOutcome) -> None:
        self._outcomes[outcome.url_key] = outcome
        self.recorded.append(outcome)

    def get(self, url_key: str) -> ApplicationOutcome | None:
        return self._outcomes.get(url_key)

    def list_all(self) -> list[ApplicationOutcome]:
        return list(self._outcomes.values())


_history_protocol_check: ApplicationHistoryPort
_history_protocol_check = InMemoryApplicationHistory()
