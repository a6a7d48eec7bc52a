"""Observe-decide-act loop that drives a multi-step form with the oracle.

The agent repeatedly:
1. Observes the page (fields, enabled buttons, errors).
2. Asks the oracle for exactly one next action.
3. Checks the action against the repetition window.
4. Executes it through :class:`ActionRunner`.
5. Stops on ``done``, ``need_help``, a detected loop, the failure budget,
   the step limit or the optional wall-clock budget.

Only oracle transport failures escape ``run``; a failed observation counts
toward the failure budget like a failed action.
"""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime

from domain.errors import OracleTimeoutError
from domain.models import (
    AgentAction,
    AgentActionType,
    AgentRunResult,
    AgentState,
    JobPostingRef,
    ObservationMode,
)
from domain.ports import ClockPort, DomInspectorPort, LLMClientPort, LoggerPort
from domain.prompts import build_agent_prompt
from domain.services.agent_decisions import ActionRunner, parse_agent_action
from domain.services.form_tracker import FormTracker
from domain.services.page_observer import PageObserver

DEFAULT_MAX_STEPS = 50
SECTION_MAX_STEPS = 30
LOOP_WINDOW = 5
LOOP_THRESHOLD = 3
FAILURE_BUDGET = 5.0
CLICK_BUTTON_FAILURE_WEIGHT = 0.5
ORACLE_MAX_TOKENS = 500
ORACLE_TEMPERATURE = 0.2


class FormAgent:
    """Implements the autonomous agent loop over one page."""

    def __init__(
        self,
        *,
        llm: LLMClientPort,
        observer: PageObserver,
        runner: ActionRunner,
        tracker: FormTracker,
        clock: ClockPort,
        logger: LoggerPort,
        max_steps: int = DEFAULT_MAX_STEPS,
        oracle_timeout_s: float = 60.0,
        time_budget_s: float | None = None,
    ) -> None:
        self._llm = llm
        self._observer = observer
        self._runner = runner
        self._tracker = tracker
        self._clock = clock
        self._logger = logger
        self._max_steps = max_steps
        self._oracle_timeout = oracle_timeout_s
        self._time_budget = time_budget_s
        self.state = AgentState.OBSERVING

    async def run_section(
        self,
        inspector: DomInspectorPort,
        *,
        profile_summary: str,
        job: JobPostingRef | None = None,
    ) -> AgentRunResult:
        return await self.run(
            inspector,
            profile_summary=profile_summary,
            job=job,
            max_steps=SECTION_MAX_STEPS,
        )

    async def run(
        self,
        inspector: DomInspectorPort,
        *,
        profile_summary: str,
        job: JobPostingRef | None = None,
        max_steps: int | None = None,
    ) -> AgentRunResult:
        limit = max_steps or self._max_steps
        history: list[str] = []
        window: deque[tuple[str, str]] = deque(maxlen=LOOP_WINDOW)
        failures = 0.0
        started = self._clock.now()

        for step in range(1, limit + 1):
            if self._over_time_budget(started):
                self._logger.warning("agent_time_budget_exceeded", steps=step - 1)
                return self._finish(
                    False,
                    step - 1,
                    f"Agent exceeded time budget ({self._time_budget:g}s)",
                    AgentState.FAILED,
                    history,
                )

            self.state = AgentState.OBSERVING
            try:
                snapshot = await self._observer.observe(inspector, ObservationMode.AGENT_FULL)
            except Exception as exc:
                failures += 1
                history.append(f"Step {step}: observation failed")
                self._logger.warning(
                    "agent_observe_failed", step=step, error=str(exc), failures=failures,
                )
                if failures >= FAILURE_BUDGET:
                    return self._finish(
                        False, step, f"Too many consecutive failures ({exc})",
                        AgentState.FAILED, history,
                    )
                continue
            filled = frozenset(
                item.selector for item in snapshot.fields if self._tracker.is_filled(item.selector)
            )
            prompt = build_agent_prompt(
                snapshot=snapshot,
                profile_summary=profile_summary,
                job=job,
                history=history,
                filled_selectors=filled,
            )

            self.state = AgentState.DECIDING
            try:
                text = await asyncio.wait_for(
                    self._llm.complete(
                        prompt,
                        max_tokens=ORACLE_MAX_TOKENS,
                        temperature=ORACLE_TEMPERATURE,
                    ),
                    timeout=self._oracle_timeout,
                )
            except (asyncio.TimeoutError, OracleTimeoutError):
                failures += 1
                history.append(f"Step {step}: oracle timeout")
                self._logger.warning("agent_oracle_timeout", step=step, failures=failures)
                if failures >= FAILURE_BUDGET:
                    return self._finish(
                        False, step, "Too many consecutive failures (oracle timeout)",
                        AgentState.FAILED, history,
                    )
                continue

            action = parse_agent_action(text)
            history.append(_history_entry(step, action))
            self._logger.info(
                "agent_step",
                step=step,
                action=action.type.value,
                target=action.target,
                reason=action.reason,
            )

            if action.type is AgentActionType.DONE:
                return self._finish(
                    True, step, action.reason or "Agent reported completion",
                    AgentState.DONE, history,
                )
            if action.type is AgentActionType.NEED_HELP:
                return self._finish(
                    False, step, action.reason or "Agent needs help",
                    AgentState.NEEDS_HELP, history,
                )

            window.append(action.key)
            if window.count(action.key) >= LOOP_THRESHOLD:
                reason = f"Action loop detected: {action.type.value} {action.target or ''}".rstrip()
                self._logger.warning(
                    "agent_loop_detected",
                    step=step,
                    action=action.type.value,
                    target=action.target,
                )
                return self._finish(False, step, reason, AgentState.FAILED, history)

            self.state = AgentState.ACTING
            outcome = await self._runner.run(action, snapshot)
            if outcome.success:
                failures = 0.0
                continue

            weight = (
                CLICK_BUTTON_FAILURE_WEIGHT
                if action.type is AgentActionType.CLICK_BUTTON
                else 1.0
            )
            failures += weight
            self._logger.warning(
                "agent_action_failed",
                step=step,
                action=action.type.value,
                target=action.target,
                reason=outcome.message,
                failures=failures,
            )
            if failures >= FAILURE_BUDGET:
                return self._finish(
                    False, step, f"Too many consecutive failures ({outcome.message})",
                    AgentState.FAILED, history,
                )

        self._logger.warning("agent_max_steps_exceeded", max_steps=limit)
        return self._finish(
            False, limit, f"Agent exceeded maximum steps ({limit})", AgentState.FAILED, history,
        )

    def _over_time_budget(self, started: datetime) -> bool:
        if self._time_budget is None:
            return False
        elapsed = (self._clock.now() - started).total_seconds()
        return elapsed >= self._time_budget

    def _finish(
        self,
        success: bool,
        steps: int,
        reason: str,
        state: AgentState,
        history: list[str],
    ) -> AgentRunResult:
        self.state = state
        self._logger.info("agent_finished", success=success, steps=steps, reason=reason, state=state.value)
        return AgentRunResult(
            success=success,
            steps_taken=steps,
            reason=reason,
            state=state,
            history=tuple(history),
        )


def _history_entry(step: int, action: AgentAction) -> str:
    return f"Step {step}: {action.type.value} - {action.target or ''} - {action.reason}"
