"""Step definitions for the human checkpoint scenarios."""
from __future__ import annotations

from pytest_bdd import given, scenarios, then

from test.mocks import FakeUserInteraction

from .conftest import ApplyContext

scenarios("../features/checkpoints.feature")


@given("the run pauses at checkpoints until someone solves the CAPTCHA")
def given_pause(ctx: ApplyContext) -> None:
    def solve() -> None:
        assert ctx.page is not None
        ctx.page.find(".h-captcha").decompose()
        ctx.page.find("p").decompose()

    ctx.pause_on_checkpoint = True
    ctx.ui = FakeUserInteraction(on_wait=solve)


@then("the user was asked to solve the CAPTCHA")
def then_asked(ctx: ApplyContext) -> None:
    assert len(ctx.ui.wait_prompts) == 1
    assert ctx.ui.wait_prompts[0].startswith("CAPTCHA detected")
