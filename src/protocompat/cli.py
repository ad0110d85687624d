"""protocompat CLI: lock-based backward-compatibility checks."""

import argparse
import json
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional, Tuple

from protocompat.kernel.errors import LoadError

logger = logging.getLogger("protocompat.cli")

EXIT_COMPATIBLE = 0
EXIT_INCOMPATIBLE = 1
EXIT_LOAD_ERROR = 2

SCENARIO_LOCK_NAME = "proto.lock"
SCENARIO_EXPECT_NAME = "expect.json"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    try:
        protocompat_version = get_version("protocompat")
    except PackageNotFoundError:
        protocompat_version = "dev"

    parser = argparse.ArgumentParser(
        prog="protocompat",
        description="protocompat: backward-compatibility gate for protocol-buffer schemas"
    )
    parser.add_argument("--version", action="version", version=f"protocompat {protocompat_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug details to stderr."
    )
    parent_parser.add_argument(
        "--no-validate",
        dest="validate",
        action="store_false",
        help="Skip load-time structural validation of the schemas."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check a candidate lock against the baseline lock",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "--lock",
        type=Path,
        required=True,
        help="Path to the baseline (locked) schema document"
    )
    check_parser.add_argument(
        "--candidate",
        type=Path,
        required=True,
        help="Path to the candidate schema document"
    )
    check_parser.add_argument(
        "--proto-path",
        default=None,
        help="Only compare this logical proto path (e.g. default/default.proto)"
    )
    check_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Report format printed to stdout"
    )
    check_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Write compat_report.md and compat_report.json here instead of printing"
    )
    check_parser.add_argument(
        "--update-lock",
        action="store_true",
        help="Overwrite the lock with the candidate when the check passes (not with --proto-path)"
    )

    # scenarios command
    scenarios_parser = subparsers.add_parser(
        "scenarios",
        help="Run every scenario directory (baseline/ + candidate/) under a root",
        parents=[parent_parser]
    )
    scenarios_parser.add_argument(
        "root",
        type=Path,
        help="Directory whose children are scenario directories"
    )

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a schema document without comparing it",
        parents=[parent_parser]
    )
    validate_parser.add_argument(
        "lock_path",
        type=Path,
        help="Path to the schema document"
    )
    return parser


def _run_check(args) -> int:
    from .api import check
    from .report import render_json, render_markdown, write_reports
    from ._internal.io.lock import read_lock_json, write_lock

    result = check(args.lock, args.candidate, proto_path=args.proto_path, validate=args.validate)

    if args.output_dir is not None:
        md_path, json_path = write_reports(result, args.output_dir)
        if not args.quiet:
            print("[OK] Compatibility check complete")
            print(f"  Markdown: {md_path}")
            print(f"  JSON: {json_path}")
    elif not args.quiet:
        print(render_json(result) if args.format == "json" else render_markdown(result))

    if not result.compatible:
        if args.quiet:
            print(f"INCOMPATIBLE: {len(result.findings)} finding(s)", file=sys.stderr)
        return EXIT_INCOMPATIBLE

    if args.update_lock:
        write_lock(args.lock, read_lock_json(args.candidate))
        if not args.quiet:
            print(f"[OK] Lock updated: {args.lock}")
    return EXIT_COMPATIBLE


def _scenario_expectation(scenario_dir: Path) -> bool:
    expect_path = scenario_dir / SCENARIO_EXPECT_NAME
    if not expect_path.is_file():
        return True
    with open(expect_path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return bool(data.get("compatible", True))


def _run_scenario(scenario_dir: Path, validate: bool) -> Tuple[Optional[bool], List[str]]:
    """Returns (compatible, detail lines). compatible is None on a load error."""
    from .api import check

    try:
        result = check(
            scenario_dir / "baseline" / SCENARIO_LOCK_NAME,
            scenario_dir / "candidate" / SCENARIO_LOCK_NAME,
            validate=validate,
        )
    except LoadError as e:
        return None, [str(e)]
    details = [
        f"{f.kind.value} {f.source}:{f.type_path}{'.' + f.name if f.name else ''}: {f.message}"
        for f in result.findings
    ]
    return result.compatible, details


def _run_scenarios(args) -> int:
    root: Path = args.root
    if not root.is_dir():
        raise FileNotFoundError(f"Scenario root not found: {root}")

    scenario_dirs = sorted(p for p in root.iterdir() if p.is_dir())
    failures = 0
    for scenario_dir in scenario_dirs:
        expected = _scenario_expectation(scenario_dir)
        compatible, details = _run_scenario(scenario_dir, args.validate)
        if compatible is None:
            failures += 1
            print(f"[ERROR] {scenario_dir.name}: load error")
        elif compatible == expected:
            if not args.quiet:
                print(f"[PASS] {scenario_dir.name}: {'compatible' if compatible else 'incompatible'}")
            continue
        else:
            failures += 1
            got = "compatible" if compatible else "incompatible"
            want = "compatible" if expected else "incompatible"
            print(f"[FAIL] {scenario_dir.name}: {got} (expected {want})")
        if not args.quiet:
            for line in details:
                print(f"    {line}")

    if not args.quiet:
        print(f"Scenarios: {len(scenario_dirs) - failures}/{len(scenario_dirs)} passed")
    return EXIT_INCOMPATIBLE if failures else EXIT_COMPATIBLE


def _run_validate(args) -> int:
    from .api import validate

    result = validate(args.lock_path)
    print(f"Status: {'OK' if result.ok else 'FAILED'}")
    print(f"Errors: {len(result.errors)}")
    for issue in result.errors:
        print(f"  {issue.code.value}: {issue.message}")
    return EXIT_COMPATIBLE if result.ok else EXIT_INCOMPATIBLE


def main():
    """Main CLI entry point for protocompat commands."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "check" and args.update_lock and args.proto_path is not None:
        # The lock is replaced as a whole, so every file must have been checked.
        parser.error("--update-lock cannot be combined with --proto-path")

    _configure_logging(args.verbose)
    handlers = {
        "check": _run_check,
        "scenarios": _run_scenarios,
        "validate": _run_validate,
    }
    try:
        exit_code = handlers[args.command](args)
    except LoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_LOAD_ERROR)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_LOAD_ERROR)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(EXIT_LOAD_ERROR)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
