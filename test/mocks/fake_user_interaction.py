from __future__ import annotations

from typing import Callable


class FakeUserInteraction:
    """
    Test double for ``UserInteractionPort``.

    ``on_wait`` runs when a human checkpoint is raised, standing in for the
    person who fixes the page (solves the CAPTCHA, logs in, ...).
    """

    def __init__(self, on_wait: Callable[[], None] | None = None) -> None:
        self.info_messages: list[str] = []
        self.wait_prompts: list[str] = []
        self._on_wait = on_wait

    async def send_info(self, message: str) -> None:
        self.info_messages.append(message)

    async def wait_for_human(self, prompt: str) -> None:
        self.wait_prompts.append(prompt)
        if self._on_wait is not None:
            self._on_wait()
