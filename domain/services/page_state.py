from __future__ import annotations

from typing import Sequence

from domain.models import PageState, PageStateReport
from domain.ports import DomInspectorPort

LISTING_MARKERS: tuple[str, ...] = (
    'input[placeholder*="Search by Keyword" i]',
    'input[placeholder*="Search by Location" i]',
    'input[placeholder*="Search jobs" i]',
    'input[aria-label*="Search jobs" i]',
    'select[aria-label*="Job Function" i]',
    ".job-filters",
    '[class*="job-search"]',
    '[class*="search-results"]',
)

APPLICATION_MARKERS: tuple[str, ...] = (
    'input[name*="first_name" i]',
    'input[name*="firstName" i]',
    'input[name*="last_name" i]',
    'input[name*="lastName" i]',
    'input[type="email"]',
    'input[type="file"]',
    "#application-form",
    "#application_form",
    ".posting-application",
    'input[name*="school" i]',
    'select[name*="degree" i]',
)

_NAME_FIELDS: tuple[str, ...] = (
    'input[name*="name" i]',
    'input[autocomplete="name"]',
    'input[autocomplete="given-name"]',
)
_EMAIL_FIELDS: tuple[str, ...] = ('input[type="email"]', 'input[name*="email" i]')

ACCOUNT_CREATION_PHRASES: tuple[str, ...] = (
    "create an account",
    "create account",
    "sign up to apply",
    "register to apply",
    "new user? register",
    "already have an account?",
    "create your profile",
    "set up your profile",
)

CONFIRM_PASSWORD_FIELDS: tuple[str, ...] = (
    'input[type="password"][name*="confirm" i]',
    'input[type="password"][id*="confirm" i]',
    'input[type="password"][name*="verify" i]',
    'input[type="password"][autocomplete="new-password"]',
)


class PageStateClassifier:
    """Decides what kind of page the inspector is currently looking at.

    Stateless: every call reads only the current document.
    """

    async def classify(self, inspector: DomInspectorPort) -> PageState:
        return (await self.inspect(inspector)).state

    async def inspect(self, inspector: DomInspectorPort) -> PageStateReport:
        listing = await count_visible(inspector, LISTING_MARKERS)
        application = await count_visible(inspector, APPLICATION_MARKERS)
        account_creation = await self._looks_like_account_creation(inspector)

        if listing > 2 and application < 3:
            state = PageState.LISTING
        elif application >= 2 or await self._has_name_and_email(inspector):
            state = PageState.APPLICATION_FORM
        elif await self._url_looks_like_listing(inspector):
            state = PageState.LISTING
        elif account_creation:
            state = PageState.ACCOUNT_CREATION
        else:
            state = PageState.UNKNOWN

        return PageStateReport(
            state=state,
            listing_markers=listing,
            application_markers=application,
            account_creation=account_creation,
        )

    async def _has_name_and_email(self, inspector: DomInspectorPort) -> bool:
        return (
            await count_visible(inspector, _NAME_FIELDS) > 0
            and await count_visible(inspector, _EMAIL_FIELDS) > 0
        )

    @staticmethod
    async def _url_looks_like_listing(inspector: DomInspectorPort) -> bool:
        url = (await inspector.url()).lower()
        return "/job/" in url and "/apply" not in url

    @staticmethod
    async def _looks_like_account_creation(inspector: DomInspectorPort) -> bool:
        body = (await inspector.body_text()).lower()
        if any(phrase in body for phrase in ACCOUNT_CREATION_PHRASES):
            return True
        return await count_visible(inspector, CONFIRM_PASSWORD_FIELDS) > 0


async def count_visible(inspector: DomInspectorPort, selectors: Sequence[str]) -> int:
    """Sum of visible matches over ``selectors``, one selector at a time."""
    total = 0
    for selector in selectors:
        for handle in await inspector.query_all(selector):
            if await inspector.computed_visible(handle):
                total += 1
    return total
