"""Concrete adapters for the form engine ports: browser, oracle, config, history and runtime."""

from .browser import PlaywrightBrowserSession, PlaywrightPage
from .config import FileSystemConfigProvider
from .interaction import ConsoleUserInteraction
from .llm import OpenAIChatClient
from .logs import FileSystemDebugArtifactStore
from .persistence import SQLiteApplicationHistory
from .runtime import StructuredLogger, SystemClock, UuidIdGenerator

__all__ = [
    "PlaywrightBrowserSession",
    "PlaywrightPage",
    "FileSystemConfigProvider",
    "ConsoleUserInteraction",
    "OpenAIChatClient",
    "FileSystemDebugArtifactStore",
    "SQLiteApplicationHistory",
    "SystemClock",
    "UuidIdGenerator",
    "StructuredLogger",
]
