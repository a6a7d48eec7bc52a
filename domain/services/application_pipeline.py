from __future__ import annotations

from dataclasses import dataclass

from domain.errors import OracleTransportError
from domain.models import (
    AgentRunResult,
    AgentState,
    ApplicationMode,
    ApplicationOutcome,
    ApplicationStatus,
    CandidateProfile,
    CheckpointKind,
    JobPostingRef,
    ObservationMode,
    PageState,
    PageStateReport,
    PlatformProfile,
    PlatformTable,
    QuestionBank,
    RunContext,
)
from domain.platforms import DEFAULT_PLATFORM_TABLE, detect_platform
from domain.ports import (
    ApplicationHistoryPort,
    BrowserPagePort,
    ClockPort,
    LLMClientPort,
    LoggerPort,
    UserInteractionPort,
)
from domain.prompts import summarize_profile
from domain.questions import DEFAULT_QUESTION_BANK
from domain.services.agent_decisions import ActionRunner
from domain.services.ai_filler import AIFormFiller
from domain.services.checkpoints import CheckpointDetector, checkpoint_message
from domain.services.debug import DebugRunManager
from domain.services.field_extractor import FieldExtractor
from domain.services.fill_executor import FillExecutor
from domain.services.form_agent import FormAgent
from domain.services.form_tracker import FormTracker
from domain.services.navigator import ApplicationNavigator
from domain.services.page_observer import PageObserver
from domain.services.page_state import PageStateClassifier
from domain.services.rule_filler import RuleBasedFiller, has_answer
from domain.utils import normalize_job_url


@dataclass(frozen=True)
class PipelineSettings:
    ai_fill_enabled: bool = True
    agent_max_steps: int = 50
    action_timeout_s: float = 10.0
    oracle_timeout_s: float = 60.0
    agent_time_budget_s: float | None = None
    pause_on_checkpoint: bool = False


@dataclass
class _Progress:
    agent_steps: int = 0
    needs_review: bool = False


class ApplicationPipeline:
    """Orchestrates one complete application attempt on an open page.

    The outcome is always recorded in the history, keyed by the normalized
    job URL. Any error escaping a stage ends the attempt as ``failed``.
    """

    def __init__(
        self,
        *,
        history: ApplicationHistoryPort,
        clock: ClockPort,
        logger: LoggerPort,
        llm: LLMClientPort | None = None,
        platforms: PlatformTable = DEFAULT_PLATFORM_TABLE,
        questions: QuestionBank = DEFAULT_QUESTION_BANK,
        settings: PipelineSettings = PipelineSettings(),
        debug_manager: DebugRunManager | None = None,
        ui: UserInteractionPort | None = None,
    ) -> None:
        self._history = history
        self._clock = clock
        self._logger = logger
        self._llm = llm
        self._platforms = platforms
        self._questions = questions
        self._settings = settings
        self._debug_manager = debug_manager
        self._ui = ui
        self._tracker = FormTracker(clock=clock)
        self._classifier = PageStateClassifier()
        self._checkpoints = CheckpointDetector(platforms)

    @property
    def tracker(self) -> FormTracker:
        return self._tracker

    async def apply(
        self,
        page: BrowserPagePort,
        job: JobPostingRef,
        profile: CandidateProfile,
        mode: ApplicationMode,
        run_context: RunContext,
        *,
        resume_path: str | None = None,
        resume_text: str | None = None,
    ) -> ApplicationOutcome:
        self._tracker.reset()
        platform = detect_platform(job.job_url, self._platforms)
        if self._debug_manager is not None:
            self._debug_manager.start(run_context)
        self._logger.info(
            "application_started",
            job_url=job.job_url,
            company_name=job.company_name,
            platform=platform.key,
            mode=mode.value,
        )

        extractor = FieldExtractor(logger=self._logger)
        executor = FillExecutor(
            page=page,
            tracker=self._tracker,
            logger=self._logger,
            action_timeout_s=self._settings.action_timeout_s,
        )
        progress = _Progress()

        try:
            status, reason = await self._run_stages(
                page, job, platform, profile, mode, run_context, executor, extractor, progress,
                resume_path=resume_path, resume_text=resume_text,
            )
        except OracleTransportError as exc:
            self._logger.error("application_failed", job_url=job.job_url, error=str(exc), stage="oracle")
            status, reason = ApplicationStatus.FAILED, f"Oracle unavailable: {exc}"
        except Exception as exc:
            self._logger.error(
                "application_failed",
                job_url=job.job_url,
                company_name=job.company_name,
                error=str(exc),
            )
            status, reason = ApplicationStatus.FAILED, str(exc)

        return await self._finish(
            job, platform.key, run_context, status, reason,
            agent_steps=progress.agent_steps,
            needs_review=status is not ApplicationStatus.FAILED and progress.needs_review,
        )

    # -- stages -------------------------------------------------------------

    async def _run_stages(
        self,
        page: BrowserPagePort,
        job: JobPostingRef,
        platform: PlatformProfile,
        profile: CandidateProfile,
        mode: ApplicationMode,
        run_context: RunContext,
        executor: FillExecutor,
        extractor: FieldExtractor,
        progress: _Progress,
        *,
        resume_path: str | None,
        resume_text: str | None,
    ) -> tuple[ApplicationStatus, str]:
        await self._capture(run_context, page, "page_loaded")
        navigator = ApplicationNavigator(classifier=self._classifier, logger=self._logger)
        report = await navigator.ensure_application_form(page)
        await self._capture(run_context, page, "navigated")

        blocked = await self._blocking_checkpoint(page, report)
        if blocked is not None:
            return ApplicationStatus.NEEDS_HELP, checkpoint_message(blocked)
        if report.state is not PageState.APPLICATION_FORM and mode is ApplicationMode.RULES:
            return (
                ApplicationStatus.NEEDS_HELP,
                f"Application form not found (page looks like {report.state.value})",
            )

        rules = RuleBasedFiller(
            executor=executor,
            extractor=extractor,
            logger=self._logger,
            platforms=self._platforms,
            questions=self._questions,
        )
        rule_report = await rules.fill_all(page, profile, job, platform, resume_path=resume_path)
        progress.needs_review = bool(rule_report.needs_review)
        await self._capture(run_context, page, "rules_filled")

        llm = self._llm
        if llm is not None and self._settings.ai_fill_enabled:
            ai = AIFormFiller(
                llm=llm,
                executor=executor,
                extractor=extractor,
                logger=self._logger,
                oracle_timeout_s=self._settings.oracle_timeout_s,
            )
            await ai.fill(page, profile, job, resume_text)
            await self._capture(run_context, page, "ai_filled")

        open_required = await self._open_required_fields(page, extractor)
        agent_result: AgentRunResult | None = None
        if llm is not None and (mode is ApplicationMode.AGENT or open_required):
            agent_result = await self._run_agent(llm, page, executor, extractor, profile, job, resume_text)
            progress.agent_steps = agent_result.steps_taken
            await self._capture(run_context, page, "agent_finished")
            open_required = await self._open_required_fields(page, extractor)

        return self._decide(agent_result, open_required)

    async def _blocking_checkpoint(
        self,
        page: BrowserPagePort,
        report: PageStateReport,
    ) -> CheckpointKind | None:
        kind = await self._detect_checkpoint(page, report)
        if kind is None or not self._settings.pause_on_checkpoint or self._ui is None:
            return kind
        await self._ui.wait_for_human(checkpoint_message(kind))
        report = await self._classifier.inspect(page)
        return await self._detect_checkpoint(page, report)

    async def _detect_checkpoint(
        self,
        page: BrowserPagePort,
        report: PageStateReport,
    ) -> CheckpointKind | None:
        kind = await self._checkpoints.detect(page)
        if kind is CheckpointKind.LOGIN and report.state is PageState.APPLICATION_FORM:
            kind = None
        if kind is None and report.requires_human:
            kind = CheckpointKind.ACCOUNT_CREATION
        if kind is not None:
            self._logger.warning("checkpoint_detected", kind=kind.value, url=await page.url())
        return kind

    async def _open_required_fields(self, page: BrowserPagePort, extractor: FieldExtractor) -> list[str]:
        fields = await extractor.extract(page, ObservationMode.RULE_VISIBLE)
        return [
            f.label
            for f in fields
            if f.required and not self._tracker.is_filled(f.selector) and not has_answer(f)
        ]

    async def _run_agent(
        self,
        llm: LLMClientPort,
        page: BrowserPagePort,
        executor: FillExecutor,
        extractor: FieldExtractor,
        profile: CandidateProfile,
        job: JobPostingRef,
        resume_text: str | None,
    ) -> AgentRunResult:
        agent = FormAgent(
            llm=llm,
            observer=PageObserver(extractor=extractor, logger=self._logger),
            runner=ActionRunner(
                page=page,
                executor=executor,
                logger=self._logger,
                action_timeout_s=self._settings.action_timeout_s,
            ),
            tracker=self._tracker,
            clock=self._clock,
            logger=self._logger,
            max_steps=self._settings.agent_max_steps,
            oracle_timeout_s=self._settings.oracle_timeout_s,
            time_budget_s=self._settings.agent_time_budget_s,
        )
        return await agent.run(
            page,
            profile_summary=summarize_profile(profile, resume_text),
            job=job,
        )

    @staticmethod
    def _decide(
        agent_result: AgentRunResult | None,
        open_required: list[str],
    ) -> tuple[ApplicationStatus, str]:
        if agent_result is not None:
            if agent_result.success:
                return ApplicationStatus.COMPLETED, agent_result.reason
            if agent_result.state is AgentState.NEEDS_HELP:
                return ApplicationStatus.NEEDS_HELP, agent_result.reason
            return ApplicationStatus.NEEDS_HELP, f"Agent stopped: {agent_result.reason}"
        if open_required:
            shown = ", ".join(open_required[:5])
            return ApplicationStatus.NEEDS_HELP, f"{len(open_required)} required field(s) still empty: {shown}"
        return ApplicationStatus.COMPLETED, "Form filled; ready for review and submit"

    async def _finish(
        self,
        job: JobPostingRef,
        platform_key: str,
        run_context: RunContext,
        status: ApplicationStatus,
        reason: str,
        *,
        agent_steps: int = 0,
        needs_review: bool = False,
    ) -> ApplicationOutcome:
        outcome = ApplicationOutcome(
            url_key=normalize_job_url(job.job_url),
            job_url=job.job_url,
            company_name=job.company_name,
            job_title=job.job_title,
            status=status,
            platform=platform_key,
            reason=reason,
            filled_count=self._tracker.filled_count,
            failed_count=self._tracker.failed_count,
            agent_steps=agent_steps,
            needs_review=needs_review,
            recorded_at=self._clock.now(),
            debug_run_id=run_context.run_id if run_context.is_debug else None,
        )
        self._history.record(outcome)
        for line in self._tracker.summary_lines():
            self._logger.info("fill_summary", line=line)
        self._logger.info(
            "application_finished",
            url_key=outcome.url_key,
            status=status.value,
            reason=reason,
        )
        if self._debug_manager is not None:
            self._debug_manager.finish(
                run_context,
                {
                    "url_key": outcome.url_key,
                    "status": status.value,
                    "reason": reason,
                    "records": [
                        {
                            "selector": r.selector,
                            "label": r.label,
                            "value": r.value,
                            "success": r.success,
                            "module": r.module,
                            "reason": r.reason,
                        }
                        for r in self._tracker.records
                    ],
                },
            )
        if self._ui is not None:
            await self._ui.send_info(
                f"{job.company_name} - {job.job_title}: {status.value} ({reason})",
            )
        return outcome

    async def _capture(self, run_context: RunContext, page: BrowserPagePort, step: str) -> None:
        if self._debug_manager is None:
            return
        await self._debug_manager.capture_step(run_context, page, step)
