"""Shared context and steps for BDD step definitions."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from domain.models import ApplicationMode, ApplicationOutcome, JobPostingRef, RunContext
from domain.services import ApplicationPipeline, PipelineSettings
from test.fixtures import load_html, mock_resume_path, sample_profile
from test.mocks import (
    FakeDocument,
    FakeUserInteraction,
    FixedClock,
    InMemoryApplicationHistory,
    InMemoryLogger,
    ScriptedLLMClient,
    SequentialIdGenerator,
)

REWRITE_ACTIONS = ("fill", "select", "type")


@dataclass
class ApplyContext:
    """Holds mutable state shared across BDD steps."""

    page: FakeDocument | None = None
    job: JobPostingRef | None = None
    script: list[Any] | None = field(default_factory=list)
    ai_fill_enabled: bool = True
    pause_on_checkpoint: bool = False
    ui: FakeUserInteraction = field(default_factory=FakeUserInteraction)
    history: InMemoryApplicationHistory = field(default_factory=InMemoryApplicationHistory)
    logger: InMemoryLogger = field(default_factory=InMemoryLogger)
    ids: SequentialIdGenerator = field(default_factory=SequentialIdGenerator)
    outcome: ApplicationOutcome | None = None
    interactions_before: list[tuple[str, str, str]] = field(default_factory=list)


@pytest.fixture()
def ctx() -> ApplyContext:
    return ApplyContext()


def run_apply(ctx: ApplyContext, mode: ApplicationMode) -> None:
    """Run the application pipeline synchronously for tests."""
    assert ctx.page is not None and ctx.job is not None
    pipeline = ApplicationPipeline(
        history=ctx.history,
        clock=FixedClock(datetime(2025, 6, 1, tzinfo=timezone.utc)),
        logger=ctx.logger,
        llm=ScriptedLLMClient(ctx.script) if ctx.script is not None else None,
        settings=PipelineSettings(
            ai_fill_enabled=ctx.ai_fill_enabled,
            pause_on_checkpoint=ctx.pause_on_checkpoint,
        ),
        ui=ctx.ui,
    )
    ctx.outcome = asyncio.run(
        pipeline.apply(
            ctx.page,
            ctx.job,
            sample_profile(),
            mode,
            RunContext(run_id=ctx.ids.new_run_id()),
            resume_path=mock_resume_path(),
        )
    )


# -- Given ------------------------------------------------------------------


@given(parsers.parse('the "{name}" page at "{url}"'))
def given_page(ctx: ApplyContext, name: str, url: str) -> None:
    ctx.page = FakeDocument(load_html(name), url=url)
    ctx.job = JobPostingRef(company_name="Acme", job_title="Backend Engineer", job_url=url)


@given("no decision oracle")
def given_no_oracle(ctx: ApplyContext) -> None:
    ctx.script = None


@given("AI filling is disabled")
def given_ai_fill_disabled(ctx: ApplyContext) -> None:
    ctx.ai_fill_enabled = False


# -- When -------------------------------------------------------------------


@when(parsers.parse('I apply in "{mode}" mode'))
def when_apply(ctx: ApplyContext, mode: str) -> None:
    run_apply(ctx, ApplicationMode(mode))


# -- Then -------------------------------------------------------------------


@then(parsers.parse('the outcome is "{status}"'))
def then_outcome(ctx: ApplyContext, status: str) -> None:
    assert ctx.outcome is not None
    assert ctx.outcome.status.value == status


@then(parsers.parse('the reason is "{reason}"'))
def then_reason(ctx: ApplyContext, reason: str) -> None:
    assert ctx.outcome is not None
    assert ctx.outcome.reason == reason


@then(parsers.parse('the reason starts with "{prefix}"'))
def then_reason_prefix(ctx: ApplyContext, prefix: str) -> None:
    assert ctx.outcome is not None and ctx.outcome.reason is not None
    assert ctx.outcome.reason.startswith(prefix)


@then(parsers.parse('the field "{selector}" has value "{value}"'))
def then_field_value(ctx: ApplyContext, selector: str, value: str) -> None:
    assert ctx.page is not None
    assert ctx.page.value_of(selector) == value


@then("no field was filled")
def then_nothing_filled(ctx: ApplyContext) -> None:
    assert ctx.page is not None
    assert not [i for i in ctx.page.interactions if i[0] in REWRITE_ACTIONS]
    assert ctx.outcome is not None and ctx.outcome.filled_count == 0
