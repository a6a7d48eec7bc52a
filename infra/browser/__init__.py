from .playwright_page import PlaywrightPage
from .playwright_session import PlaywrightBrowserSession

__all__ = [
    "PlaywrightPage",
    "PlaywrightBrowserSession",
]
