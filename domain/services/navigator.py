from __future__ import annotations

from domain.models import PageState, PageStateReport
from domain.ports import BrowserPagePort, ElementHandle, LoggerPort
from domain.services.page_state import PageStateClassifier
from domain.utils import collapse_whitespace

APPLY_TEXTS: tuple[str, ...] = (
    "apply",
    "apply now",
    "apply for this job",
    "apply for job",
    "apply to this job",
    "apply for this position",
)
APPLY_SELECTORS: tuple[str, ...] = (
    '[data-qa="btn-apply"]',
    '[data-testid="apply-button"]',
    '[data-automation="apply-button"]',
    '[class*="apply-button"]',
    '[class*="applyButton"]',
    '[class*="apply_button"]',
    "#apply-button",
    "#applyButton",
    'button[aria-label*="Apply"]',
    'a[aria-label*="Apply"]',
    ".apply-link",
    ".applyLink",
)
_TEXT_CANDIDATES = 'button, a, [role="button"], input[type="submit"]'
MAX_NAVIGATION_ATTEMPTS = 3
NAVIGATION_SETTLE_MS = 2000


class ApplicationNavigator:
    """Gets from a job listing page to the application form."""

    def __init__(
        self,
        *,
        classifier: PageStateClassifier,
        logger: LoggerPort,
        max_attempts: int = MAX_NAVIGATION_ATTEMPTS,
    ) -> None:
        self._classifier = classifier
        self._logger = logger
        self._max_attempts = max_attempts

    async def ensure_application_form(self, page: BrowserPagePort) -> PageStateReport:
        """Report for the page reached; ``APPLICATION_FORM`` on success."""
        report = await self._classifier.inspect(page)
        attempts = 0
        while report.state is not PageState.APPLICATION_FORM and attempts < self._max_attempts:
            if report.state is PageState.ACCOUNT_CREATION:
                break
            button = await self.find_apply_control(page)
            if button is None:
                self._logger.warning(
                    "apply_button_not_found",
                    url=await page.url(),
                    state=report.state.value,
                )
                break
            attempts += 1
            await page.click(button)
            await page.wait(NAVIGATION_SETTLE_MS)
            report = await self._classifier.inspect(page)
            self._logger.info("apply_button_clicked", attempt=attempts, state=report.state.value)
        return report

    async def find_apply_control(self, page: BrowserPagePort) -> ElementHandle | None:
        for handle in await page.query_all(_TEXT_CANDIDATES):
            text = collapse_whitespace(await page.text(handle) or await page.attribute(handle, "value"))
            if text.lower() in APPLY_TEXTS and await page.computed_visible(handle):
                return handle
        for selector in APPLY_SELECTORS:
            for handle in await page.query_all(selector):
                if await page.computed_visible(handle):
                    return handle
        return None
