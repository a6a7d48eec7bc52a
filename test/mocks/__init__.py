"""Test doubles for the form engine ports and a static DOM for page fixtures."""

from .fake_application_history import InMemoryApplicationHistory
from .fake_dom import FakeDocument
from .fake_runtime import (
    FixedClock,
    InMemoryDebugArtifactStore,
    InMemoryLogger,
    SequentialIdGenerator,
)
from .fake_user_interaction import FakeUserInteraction
from .scripted_llm_client import ScriptedLLMClient

__all__ = [
    "FakeDocument",
    "FakeUserInteraction",
    "InMemoryApplicationHistory",
    "FixedClock",
    "SequentialIdGenerator",
    "InMemoryLogger",
    "InMemoryDebugArtifactStore",
    "ScriptedLLMClient",
]
