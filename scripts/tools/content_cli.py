"""
CLI tool for validating and inspecting motion content tables.

Usage examples:
    # Lint every table in the content directory
    python -m scripts.tools.content_cli lint

    # Lint a different directory, as JSON
    python -m scripts.tools.content_cli lint --content-dir ./tables --json

    # Delta rule coverage report
    python -m scripts.tools.content_cli coverage --bottom 5

    # Write a version manifest and report changed tables
    python -m scripts.tools.content_cli manifest --output manifest.json

    # Score one motion with modifier selections
    python -m scripts.tools.content_cli compute PRESS_FLAT \\
        --select grips=PRONATED --select gripWidths=WIDE

    # Base-vs-final comparison per muscle
    python -m scripts.tools.content_cli trace PRESS_FLAT --select grips=PRONATED
"""
import argparse
import json
import sys
from pathlib import Path

from motionlab.config.settings import get_settings
from motionlab.content.manifest import VersionManifest, changed_tables, generate_manifest
from motionlab.content.models import ModifierSelection
from motionlab.content.provider import ContentError, JsonDirectoryProvider
from motionlab.core.exceptions import DomainError
from motionlab.core.logging import add_log_context, clear_log_context, configure_logging
from motionlab.linter import (
    build_coverage_report,
    count_by_severity,
    format_coverage_report,
    format_lint_results,
    has_errors,
    Severity,
)
from motionlab.scoring.exceptions import ScoringException
from motionlab.services import ScoringService


def _content_dir(args) -> Path:
    return Path(args.content_dir) if args.content_dir else get_settings().content_dir


def _load_service(args) -> ScoringService:
    provider = JsonDirectoryProvider(_content_dir(args))
    return ScoringService.from_provider(provider)


def _parse_selection(raw: str) -> ModifierSelection:
    table_key, sep, row_id = raw.partition("=")
    if not sep or not table_key or not row_id:
        raise argparse.ArgumentTypeError(f"Expected TABLE=ROW, got '{raw}'")
    return ModifierSelection(table_key=table_key, row_id=row_id)


def _policy_overrides(args) -> dict:
    overrides = {}
    if args.output_mode:
        overrides["output_mode"] = args.output_mode
    if args.missing_key_behavior:
        overrides["missing_key_behavior"] = args.missing_key_behavior
    return overrides


def lint_command(args):
    """Handle lint command."""
    service = _load_service(args)
    issues = service.lint()

    if args.json:
        print(json.dumps([issue.to_dict() for issue in issues], indent=2))
    else:
        print(format_lint_results(issues))

    if has_errors(issues):
        counts = count_by_severity(issues)
        print(f"\n❌ Lint failed with {counts[Severity.ERROR]} error(s)", file=sys.stderr)
        sys.exit(1)


def coverage_command(args):
    """Handle coverage command."""
    snapshot = _load_service(args).snapshot
    report = build_coverage_report(
        snapshot.motions.values(),
        snapshot.modifier_tables,
        top_motion_count=args.top,
    )

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_coverage_report(report, bottom=args.bottom))


def manifest_command(args):
    """Handle manifest command."""
    manifest = generate_manifest(_content_dir(args))

    if args.previous:
        previous = VersionManifest.from_dict(
            json.loads(Path(args.previous).read_text(encoding="utf-8"))
        )
        changed = changed_tables(manifest, previous)
        if changed:
            print(f"Changed tables ({len(changed)}): {', '.join(changed)}")
        else:
            print("No table changes since previous manifest")

    payload = json.dumps(manifest.to_dict(), indent=2)
    if args.output:
        Path(args.output).write_text(payload + "\n", encoding="utf-8")
        print(f"✓ Manifest written to {args.output} (version {manifest.version})")
    else:
        print(payload)


def compute_command(args):
    """Handle compute command."""
    service = _load_service(args)
    outcome = service.compute(args.motion, args.select, _policy_overrides(args))
    print(json.dumps(outcome.to_dict(), indent=2))


def trace_command(args):
    """Handle trace command."""
    service = _load_service(args)
    trace = service.trace(args.motion, args.select, _policy_overrides(args))

    if args.json:
        print(json.dumps(trace.to_dict(), indent=2))
        return

    outcome = trace.outcome
    print(f"\n=== Trace: {outcome.motion_id} ===")
    if outcome.effective_motion_id != outcome.motion_id:
        print(f"Switched to proxy motion: {outcome.effective_motion_id}")
    for muscle_id, muscle in trace.muscles.items():
        print(f"  {muscle_id}: {muscle.base:.3f} -> {muscle.final:.3f} ({muscle.delta:+.3f})")
    for rule in outcome.combo.rules_fired:
        print(f"  rule {rule.rule_id} [{rule.action_type}]: {rule.winner_reason}")
    print(f"Advisory: {outcome.advisory.level}")
    for reason in outcome.advisory.reasons:
        print(f"  - {reason}")


def _add_scoring_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("motion", help="Motion ID")
    parser.add_argument(
        "--select", "-s",
        action="append",
        default=[],
        type=_parse_selection,
        metavar="TABLE=ROW",
        help="Modifier selection (repeatable)",
    )
    parser.add_argument(
        "--output-mode",
        choices=["raw", "normalized", "both"],
        help="Override the policy output mode",
    )
    parser.add_argument(
        "--missing-key-behavior",
        choices=["skip", "zero", "error"],
        help="Override the policy missing-key behavior",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Motion Content CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Lint content (exit code 1 on errors)
  python -m scripts.tools.content_cli lint

  # Coverage report
  python -m scripts.tools.content_cli coverage

  # Compare against a previous manifest
  python -m scripts.tools.content_cli manifest --previous manifest.json

  # Score a motion
  python -m scripts.tools.content_cli compute PRESS_FLAT --select grips=PRONATED
        """
    )
    parser.add_argument(
        "--content-dir", "-d",
        help="Directory of table JSON files (defaults to MOTIONLAB_CONTENT_DIR)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # lint command
    lint_parser = subparsers.add_parser("lint", help="Check content integrity")
    lint_parser.add_argument("--json", action="store_true", help="Emit JSON")
    lint_parser.set_defaults(func=lint_command)

    # coverage command
    coverage_parser = subparsers.add_parser("coverage", help="Delta rule coverage report")
    coverage_parser.add_argument("--json", action="store_true", help="Emit JSON")
    coverage_parser.add_argument(
        "--top", type=int, default=15, help="Leading motions checked for high-impact gaps"
    )
    coverage_parser.add_argument(
        "--bottom", type=int, default=10, help="Number of worst-covered motions listed"
    )
    coverage_parser.set_defaults(func=coverage_command)

    # manifest command
    manifest_parser = subparsers.add_parser("manifest", help="Generate a version manifest")
    manifest_parser.add_argument("--output", "-o", help="Write manifest to this file")
    manifest_parser.add_argument("--previous", "-p", help="Previous manifest to diff against")
    manifest_parser.set_defaults(func=manifest_command)

    # compute command
    compute_parser = subparsers.add_parser("compute", help="Compute activation scores")
    _add_scoring_arguments(compute_parser)
    compute_parser.set_defaults(func=compute_command)

    # trace command
    trace_parser = subparsers.add_parser("trace", help="Trace base vs final scores")
    _add_scoring_arguments(trace_parser)
    trace_parser.add_argument("--json", action="store_true", help="Emit JSON")
    trace_parser.set_defaults(func=trace_command)

    return parser


def main():
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging()
    add_log_context(command=args.command)

    try:
        args.func(args)
    except (ContentError, DomainError, ScoringException) as e:
        print(f"\n❌ {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        clear_log_context()


if __name__ == "__main__":
    main()
