from __future__ import annotations

import asyncio
from typing import TextIO


class ConsoleUserInteraction:
    """stdin/stdout implementation of UserInteractionPort for human checkpoints."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    async def send_info(self, message: str) -> None:
        print(message, file=self._stream)

    async def wait_for_human(self, prompt: str) -> None:
        print(prompt, file=self._stream)
        await asyncio.to_thread(input, "Press Enter when done > ")
