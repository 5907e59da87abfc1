"""
Command-line interface for selenese.

Provides commands for running and validating YAML scripts and for browsing
the command catalog.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import structlog

from selenese import __version__
from selenese.catalog import DEFAULT_CATALOG, CommandFamily
from selenese.config import load_settings
from selenese.log import LogLevel, configure_logging
from selenese.runner import ScriptRunner, ScriptRunResult, StepStatus
from selenese.script import Script, ScriptParseError, ScriptParser

logger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(LogLevel.DEBUG if args.verbose else LogLevel.WARN)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        logger.error("Command failed", error=str(e))
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="selenese",
        description="Run Selenese command scripts against a remote browser",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"selenese {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run scripts")
    run_parser.add_argument(
        "paths",
        nargs="+",
        help="Path(s) to script files or directories",
    )
    run_parser.add_argument(
        "--config", "-c",
        help="Path to a YAML settings file",
    )
    run_parser.add_argument(
        "--base-url",
        help="Remote endpoint address (overrides config and environment)",
    )
    run_parser.add_argument(
        "--browser",
        help="Browser launcher string, e.g. *firefox",
    )
    run_parser.add_argument(
        "--var",
        action="append",
        default=[],
        dest="variables",
        metavar="KEY=VALUE",
        help="Set variable (can be repeated)",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    run_parser.set_defaults(func=cmd_run)

    validate_parser = subparsers.add_parser("validate", help="Validate scripts without running them")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        help="Path(s) to script files or directories",
    )
    validate_parser.set_defaults(func=cmd_validate)

    commands_parser = subparsers.add_parser("commands", help="List known commands")
    commands_parser.add_argument(
        "--family",
        choices=[f.value for f in CommandFamily],
        help="Only list commands of this family",
    )
    commands_parser.add_argument(
        "--filter",
        dest="text",
        help="Only list commands whose name contains TEXT (case-insensitive)",
    )
    commands_parser.set_defaults(func=cmd_commands)

    return parser


def _load_scripts(parser: ScriptParser, paths: list[str]) -> list[Script]:
    scripts: list[Script] = []
    for path_str in paths:
        path = Path(path_str)
        if path.is_dir():
            scripts.extend(parser.parse_directory(path))
        elif path.is_file():
            scripts.append(parser.parse_file(path))
        else:
            print(f"Warning: Path not found: {path}", file=sys.stderr)
    return scripts


def _parse_variables(pairs: list[str]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        key, value = pair.split("=", 1)
        variables[key] = value
    return variables


def cmd_run(args: argparse.Namespace) -> int:
    """Run scripts."""
    from dotenv import load_dotenv

    # Load SELENESE_* settings from a .env file
    load_dotenv()

    scripts = _load_scripts(ScriptParser(), args.paths)
    if not scripts:
        print("No scripts found", file=sys.stderr)
        return 1

    settings = load_settings(args.config, base_url=args.base_url, browser=args.browser)
    if not args.verbose:
        configure_logging(settings.log_level)
    variables = _parse_variables(args.variables)

    logger.info("Running scripts", count=len(scripts), base_url=settings.base_url)
    runner = ScriptRunner(settings=settings, capture_traceback=args.verbose)
    results = [runner.run(script, variables=variables) for script in scripts]

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2, default=str))
    else:
        for result in results:
            print(format_result(result))

    passed = sum(1 for r in results if r.status == StepStatus.PASSED)
    failed = len(results) - passed
    print(f"\nSummary: {passed} passed, {failed} failed, {len(results)} total")

    return 0 if failed == 0 else 1


def format_result(result: ScriptRunResult) -> str:
    """Render one script result as plain text."""
    lines = [f"{result.status.upper()}  {result.script_name} ({result.duration_ms}ms)"]
    for step in result.step_results:
        args = ", ".join(repr(a) for a in step.args)
        lines.append(f"  [{step.status}] {step.step_index + 1}. {step.command}({args})")
        if step.error:
            lines.append(f"      {step.error}")
    for failure in result.verification_failures:
        lines.append(f"  verification failed: {failure}")
    if result.error and not any(s.error == result.error for s in result.step_results):
        lines.append(f"  error: {result.error}")
    return "\n".join(lines)


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate scripts."""
    parser = ScriptParser()
    errors = 0

    for path_str in args.paths:
        path = Path(path_str)

        if not path.exists():
            print(f"Error: Path not found: {path}", file=sys.stderr)
            errors += 1
            continue

        try:
            if path.is_dir():
                scripts = parser.parse_directory(path)
                print(f"Valid: {path} ({len(scripts)} files)")
            else:
                script = parser.parse_file(path)
                print(f"Valid: {path} ({script.name}, {len(script.steps)} steps)")
        except ScriptParseError as e:
            print(f"Invalid: {path}", file=sys.stderr)
            print(f"  {e}", file=sys.stderr)
            errors += 1

    if errors:
        print(f"\n{errors} file(s) with errors", file=sys.stderr)
        return 1

    print("\nAll files valid")
    return 0


def cmd_commands(args: argparse.Namespace) -> int:
    """List catalog commands with their argument names."""
    family = CommandFamily(args.family) if args.family else None
    needle = (args.text or "").lower()
    shown = 0
    for name in DEFAULT_CATALOG.names(family):
        if needle and needle not in name.lower():
            continue
        entry = DEFAULT_CATALOG.lookup(name)
        print(f"{name}({', '.join(entry.argument_names)})  [{entry.family}]")
        shown += 1
    if shown == 0:
        print("No matching commands", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
