from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
from datetime import timezone
from typing import Sequence

from domain.models import ApplicationMode, ApplicationStatus, JobPostingRef, ObservationMode, RunContext
from domain.platforms import detect_platform
from domain.services import (
    ApplicationPipeline,
    DebugRunManager,
    FieldExtractor,
    PageStateClassifier,
    PipelineSettings,
)
from domain.services.field_extractor import format_fields_for_prompt
from infra.browser import PlaywrightBrowserSession
from infra.config import FileSystemConfigProvider
from infra.interaction import ConsoleUserInteraction
from infra.llm import OpenAIChatClient
from infra.logs import FileSystemDebugArtifactStore
from infra.persistence import SQLiteApplicationHistory
from infra.runtime import StructuredLogger, SystemClock, UuidIdGenerator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="form-engine")
    parser.add_argument("--db-path", default="application_history.db")
    sub = parser.add_subparsers(dest="command", required=True)

    apply_p = sub.add_parser("apply-url", help="Fill the application form behind a job URL")
    apply_p.add_argument("job_url")
    apply_p.add_argument("--company", required=True)
    apply_p.add_argument("--title", required=True)
    apply_p.add_argument("--config-dir", default="./config")
    apply_p.add_argument("--mode", choices=[m.value for m in ApplicationMode], default="rules")
    apply_p.add_argument("--debug", action="store_true")
    apply_p.add_argument("--debug-artifacts-dir", default="logs")
    apply_p.add_argument("--no-oracle", action="store_true", help="Run without the decision oracle")
    apply_p.add_argument("--headless", action="store_true", default=None)
    apply_p.add_argument("--no-headless", dest="headless", action="store_false")

    inspect_p = sub.add_parser("inspect", help="Classify a page and list its fields")
    inspect_p.add_argument("url")
    inspect_p.add_argument("--config-dir", default="./config")
    inspect_p.add_argument("--all", action="store_true", help="Include hidden fields")

    sub.add_parser("history", help="List recorded application outcomes")

    validate_p = sub.add_parser("validate-config")
    validate_p.add_argument("--config-dir", default="./config")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "history":
        history = SQLiteApplicationHistory(db_path=args.db_path)
        for outcome in history.list_all():
            recorded = outcome.recorded_at.astimezone(timezone.utc).isoformat() if outcome.recorded_at else "-"
            print(
                f"{outcome.company_name} | {recorded} | {outcome.url_key} | "
                f"{outcome.status.value} | {outcome.reason or '-'}"
            )
        history.close()
        return 0

    config_provider = FileSystemConfigProvider(args.config_dir)
    errors = config_provider.validate()
    if errors:
        print("Config validation failed:")
        for err in errors:
            print(f"  - {err}")
        return 1

    if args.command == "validate-config":
        profile = config_provider.get_profile()
        print(f"Config OK. Profile: {profile.full_name} ({profile.email})")
        return 0

    if args.command == "inspect":
        return asyncio.run(_inspect(args, config_provider))

    if args.command == "apply-url":
        return asyncio.run(_apply(args, config_provider))

    raise SystemExit(f"Unsupported command: {args.command}")


async def _inspect(args: argparse.Namespace, config_provider: FileSystemConfigProvider) -> int:
    cfg = config_provider.get_config()
    logger = StructuredLogger(level=cfg.log_level)
    async with PlaywrightBrowserSession(cfg.browser, action_timeout_ms=cfg.action_timeout_ms) as session:
        page = await session.goto(args.url)
        report = await PageStateClassifier().inspect(page)
        platform = detect_platform(args.url, config_provider.get_platform_table())
        mode = ObservationMode.AGENT_FULL if args.all else ObservationMode.RULE_VISIBLE
        fields = await FieldExtractor(logger=logger).extract(page, mode)
        print(f"platform={platform.key} state={report.state.value}")
        print(format_fields_for_prompt(fields))
    return 0


async def _apply(args: argparse.Namespace, config_provider: FileSystemConfigProvider) -> int:
    cfg = config_provider.get_config()
    logger = StructuredLogger(level=cfg.log_level)
    clock = SystemClock()
    ids = UuidIdGenerator()
    ui = ConsoleUserInteraction()
    history = SQLiteApplicationHistory(db_path=args.db_path)

    debug = args.debug or cfg.debug_mode
    run_context = RunContext(run_id=ids.new_run_id(), is_debug=debug)
    debug_manager = (
        DebugRunManager(FileSystemDebugArtifactStore(base_dir=args.debug_artifacts_dir), logger)
        if debug
        else None
    )
    llm = None
    if not args.no_oracle:
        llm = OpenAIChatClient(
            api_key=cfg.openai_key,
            base_url=cfg.openai_base_url,
            model=cfg.openai_model,
            timeout=cfg.oracle_timeout_seconds,
        )

    pipeline = ApplicationPipeline(
        history=history,
        clock=clock,
        logger=logger,
        llm=llm,
        platforms=config_provider.get_platform_table(),
        questions=config_provider.get_question_bank(),
        settings=PipelineSettings(
            ai_fill_enabled=cfg.ai_fill_enabled,
            agent_max_steps=cfg.agent_max_steps,
            action_timeout_s=cfg.action_timeout_ms / 1000,
            oracle_timeout_s=cfg.oracle_timeout_seconds,
            agent_time_budget_s=cfg.agent_time_budget_seconds,
            pause_on_checkpoint=cfg.pause_on_checkpoint,
        ),
        debug_manager=debug_manager,
        ui=ui,
    )

    browser_settings = cfg.browser
    if args.headless is not None:
        browser_settings = replace(browser_settings, headless=args.headless)

    try:
        async with PlaywrightBrowserSession(browser_settings, action_timeout_ms=cfg.action_timeout_ms) as session:
            page = await session.goto(args.job_url)
            outcome = await pipeline.apply(
                page,
                JobPostingRef(company_name=args.company, job_title=args.title, job_url=args.job_url),
                config_provider.get_profile(),
                ApplicationMode(args.mode),
                run_context,
                resume_path=config_provider.resume_path(),
                resume_text=config_provider.resume_text(),
            )
    finally:
        history.close()

    print(f"result={outcome.status.value} reason={outcome.reason or '-'}")
    return 2 if outcome.status is ApplicationStatus.FAILED else 0


if __name__ == "__main__":
    raise SystemExit(main())
