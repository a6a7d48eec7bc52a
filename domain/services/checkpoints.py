from __future__ import annotations

from typing import Sequence

from domain.models import CheckpointKind, PlatformTable
from domain.platforms import DEFAULT_PLATFORM_TABLE
from domain.ports import DomInspectorPort
from domain.services.page_state import count_visible

_TEXT_PREFIX = "text="


class CheckpointDetector:
    """Detects pages that need a human: login, CAPTCHA, email verification.

    Indicators are CSS selectors, or ``text="..."`` phrases matched
    case-insensitively against the body text. Detection never tries to get
    past the checkpoint.
    """

    def __init__(self, platforms: PlatformTable = DEFAULT_PLATFORM_TABLE) -> None:
        self._platforms = platforms

    async def detect(self, inspector: DomInspectorPort) -> CheckpointKind | None:
        table = self._platforms
        checks = (
            (CheckpointKind.LOGIN, table.login_indicators),
            (CheckpointKind.CAPTCHA, table.captcha_indicators),
            (CheckpointKind.EMAIL_VERIFICATION, table.email_verification_indicators),
        )
        body = (await inspector.body_text()).lower()
        for kind, indicators in checks:
            if await _any_indicator(inspector, indicators, body):
                return kind
        return None

    async def is_success_page(self, inspector: DomInspectorPort) -> bool:
        body = (await inspector.body_text()).lower()
        return await _any_indicator(inspector, self._platforms.success_indicators, body)


async def _any_indicator(
    inspector: DomInspectorPort,
    indicators: Sequence[str],
    body: str,
) -> bool:
    selectors = []
    for indicator in indicators:
        if indicator.startswith(_TEXT_PREFIX):
            phrase = indicator[len(_TEXT_PREFIX):].strip("'\"").lower()
            if phrase and phrase in body:
                return True
        else:
            selectors.append(indicator)
    return await count_visible(inspector, selectors) > 0


def checkpoint_message(kind: CheckpointKind) -> str:
    messages = {
        CheckpointKind.LOGIN: "Login required. Please sign in in the browser window.",
        CheckpointKind.CAPTCHA: "CAPTCHA detected. Please solve it in the browser window.",
        CheckpointKind.EMAIL_VERIFICATION: "Email verification required. Enter the code from your inbox.",
        CheckpointKind.ACCOUNT_CREATION: "Account creation required before applying.",
    }
    return messages[kind]
