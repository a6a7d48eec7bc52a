from __future__ import annotations

import asyncio

from domain.models import CheckpointKind
from domain.services import CheckpointDetector
from domain.services.checkpoints import checkpoint_message
from test.fixtures import GREENHOUSE_URL, load_html
from test.mocks import FakeDocument


def _detect(html: str) -> CheckpointKind | None:
    return asyncio.run(CheckpointDetector().detect(FakeDocument(html)))


def test_login_form() -> None:
    assert _detect(load_html("login.html")) is CheckpointKind.LOGIN


def test_captcha_widget() -> None:
    assert _detect(load_html("captcha.html")) is CheckpointKind.CAPTCHA


def test_captcha_text_phrase_is_case_insensitive() -> None:
    html = "<html><body><p>PLEASE COMPLETE THE SECURITY CHECK</p></body></html>"
    assert _detect(html) is CheckpointKind.CAPTCHA


def test_email_verification() -> None:
    html = """
    <html><body>
      <p>We sent a code. Check your email and enter it below.</p>
      <input name="otp_code" type="text">
    </body></html>
    """
    assert _detect(html) is CheckpointKind.EMAIL_VERIFICATION


def test_plain_application_form_has_no_checkpoint() -> None:
    page = FakeDocument(load_html("application_form.html"), url=GREENHOUSE_URL)
    assert asyncio.run(CheckpointDetector().detect(page)) is None


def test_hidden_indicators_do_not_count() -> None:
    html = '<html><body><div id="captcha" hidden></div><form id="login-form" style="display:none"></form></body></html>'
    assert _detect(html) is None


def test_success_page() -> None:
    detector = CheckpointDetector()
    done = FakeDocument('<html><body><div class="thank-you">Thanks for applying!</div></body></html>')
    form = FakeDocument(load_html("application_form.html"))
    assert asyncio.run(detector.is_success_page(done))
    assert not asyncio.run(detector.is_success_page(form))


def test_every_checkpoint_has_a_message() -> None:
    for kind in CheckpointKind:
        assert checkpoint_message(kind)
    assert checkpoint_message(CheckpointKind.CAPTCHA).startswith("CAPTCHA detected")
