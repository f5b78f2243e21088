#!/usr/bin/env python3
"""
formtasker CLI - discover form fields and run repeated submissions

Usage:
    formtasker discover <url> [--output run.yaml] [--json]
    formtasker validate <run.yaml>
    formtasker run <run.yaml> [--count N] [--log] [--headful]
"""

import argparse
import asyncio
import json
import signal
import sys
from typing import List, Optional

from ..config import config
from ..diagnostics import get_logger, set_level
from ..error_handler import format_error_for_logging
from ..exceptions import FormTaskerError, ValidationError
from ..mapping import discover
from ..orchestration import RunState, SubmissionOrchestrator, validate_run
from ..run_config import load_run_config, template_for
from ..run_logger import RunLogger

logger = get_logger(__name__)

RUN_CONFIG_HELP = "Path to YAML run configuration"


def _configure_diagnostics(args):
    if getattr(args, "verbose", False):
        set_level("DEBUG")
    elif getattr(args, "quiet", False):
        set_level("ERROR")


def _print_progress(state: RunState):
    eta = state.estimated_time_remaining
    eta_text = f", ~{eta:.0f}s left" if eta else ""
    print(f"[{state.current_index}/{state.planned}] completed={state.completed} failed={state.failed}{eta_text}")


async def _discover(url: str, headless: bool):
    from ..adapters import PlaywrightDocumentAdapter, open_page

    async with open_page(url, headless=headless) as page:
        adapter = PlaywrightDocumentAdapter(page)
        return discover(await adapter.snapshot())


def cmd_discover(args):
    """Discover fields and print a run configuration template"""
    _configure_diagnostics(args)
    try:
        fields = asyncio.run(_discover(args.url, not args.headful))
    except Exception as e:
        logger.error(format_error_for_logging(e, "discover"))
        return 1

    logger.info(f"Found {len(fields)} field(s)")
    if args.json:
        output = json.dumps([f.to_dict() for f in fields], indent=2, ensure_ascii=False)
    else:
        output = template_for(args.url, fields).to_yaml()

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(output)
        logger.info(f"Template written to: {args.output}")
    else:
        print(output)
    return 0


def cmd_validate(args):
    """Validate a run configuration"""
    _configure_diagnostics(args)
    try:
        run_config = load_run_config(args.config)
    except (OSError, FormTaskerError) as e:
        print(f"✗ Invalid run configuration: {args.config}")
        for line in getattr(e, "errors", [str(e)]):
            print(f"  - {line}")
        return 1

    problems = validate_run(run_config.plan, run_config.fields)
    if problems.errors:
        print(f"✗ Run configuration validation failed: {args.config}")
        for line in problems.errors:
            print(f"  - {line}")
        return 1

    random_count = sum(1 for f in run_config.fields if f.is_random)
    print(f"✓ Run configuration is valid: {args.config}")
    print(f"  {run_config.plan.count} submission(s), {len(run_config.fields)} field(s), {random_count} randomized")
    return 0


async def _run(run_config, headless: bool, run_logger: Optional[RunLogger]) -> RunState:
    from ..adapters import PlaywrightDocumentAdapter, open_page

    async with open_page(run_config.url, headless=headless) as page:
        orchestrator = SubmissionOrchestrator(PlaywrightDocumentAdapter(page), run_logger=run_logger)
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, orchestrator.stop)
        except NotImplementedError:
            pass
        return await orchestrator.start(run_config.plan, run_config.fields, on_progress=_print_progress)


def cmd_run(args):
    """Execute a run configuration"""
    _configure_diagnostics(args)
    try:
        run_config = load_run_config(args.config)
    except (OSError, FormTaskerError) as e:
        logger.error(format_error_for_logging(e, "load"))
        return 1

    if args.count is not None:
        run_config.plan.count = args.count
    if not run_config.url:
        logger.error("Run configuration has no url")
        return 1

    run_logger = None
    if args.log or config.run_log_enabled:
        run_logger = RunLogger(
            url=run_config.url,
            plan=run_config.plan,
            command_line=" ".join(sys.argv),
            log_dir=str(config.log_dir),
        )

    try:
        state = asyncio.run(_run(run_config, not args.headful, run_logger))
    except ValidationError as e:
        logger.error(format_error_for_logging(e, "run"))
        for line in e.errors:
            logger.error(f"  - {line}")
        return 1
    except Exception as e:
        logger.error(format_error_for_logging(e, "run"))
        return 1

    print(f"Run {state.status.value}: {state.completed}/{state.planned} completed, {state.failed} failed")
    for error in state.errors:
        print(f"  - iteration {error.iteration_index}: {error.message}")
    if run_logger:
        logger.info(f"Run log: {run_logger.log_path}")
    return 0 if state.status.value == "completed" else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formtasker",
        description="formtasker - repeated form submissions with randomized answers",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    discover_parser = subparsers.add_parser('discover', help='Discover form fields')
    discover_parser.add_argument('url', help='Form URL')
    discover_parser.add_argument('--output', '-o', help='Write the template to a file')
    discover_parser.add_argument('--json', action='store_true', help='Print discovered fields as JSON')
    discover_parser.add_argument('--headful', action='store_true', help='Show the browser window')
    discover_parser.add_argument('--verbose', action='store_true', help='Verbose output')
    discover_parser.set_defaults(func=cmd_discover)

    validate_parser = subparsers.add_parser('validate', help='Validate a run configuration')
    validate_parser.add_argument('config', help=RUN_CONFIG_HELP)
    validate_parser.add_argument('--verbose', action='store_true', help='Verbose output')
    validate_parser.set_defaults(func=cmd_validate)

    run_parser = subparsers.add_parser('run', help='Run repeated submissions')
    run_parser.add_argument('config', help=RUN_CONFIG_HELP)
    run_parser.add_argument('--count', '-n', type=int, help='Override plan.count')
    run_parser.add_argument('--log', action='store_true', help='Write a Markdown run log')
    run_parser.add_argument('--headful', action='store_true', help='Show the browser window')
    run_parser.add_argument('--verbose', action='store_true', help='Verbose output')
    run_parser.add_argument('--quiet', '-q', action='store_true', help='Quiet mode')
    run_parser.set_defaults(func=cmd_run)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
