"""CLI for plan compilation.

Usage:
    # Compile a plan, write the manifest and report
    plancompose compile plan.txt --user u-123 \
        --output manifest.json --report report.json

    # Custom floors / policy table
    plancompose compile plan.txt --user u-123 --output manifest.yaml \
        --config compiler.yaml --policies policies.yaml

    # Draft only (no timing, no jobs)
    plancompose compile plan.txt --user u-123 --draft
"""

import argparse
import json
import sys
from pathlib import Path

from .common import thaw
from .compiler import build_draft, compile_plan, dump_manifest
from .config import load_config
from .errors import CyclicDependencyError, MalformedPlanError
from .logging_utils import setup_logging
from .policy import load_policy_table


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Compile a production plan into a manifest.",
    )
    parser.add_argument("plan", help="Path to the plan text file ('-' for stdin)")
    parser.add_argument("--user", required=True, help="Requesting user id")
    parser.add_argument(
        "--output", default=None,
        help="Manifest output path (.json or .yaml). Prints JSON when omitted.",
    )
    parser.add_argument("--report", default=None, help="Validation report output path")
    parser.add_argument("--config", default=None, help="Compiler config YAML")
    parser.add_argument("--policies", default=None, help="Platform policy table YAML")
    parser.add_argument(
        "--draft", action="store_true",
        help="Stop after the scene builder (no timing, no jobs, no report)",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    parsed = parser.parse_args(args)

    setup_logging(parsed.log_level)

    config = load_config(parsed.config)
    policy_table = load_policy_table(parsed.policies)

    if parsed.plan == "-":
        text = sys.stdin.read()
    else:
        text = Path(parsed.plan).read_text(encoding="utf-8")

    try:
        if parsed.draft:
            manifest = build_draft(
                text, parsed.user, policy_table=policy_table, config=config,
            )
            report = None
        else:
            manifest, report = compile_plan(
                text, parsed.user, policy_table=policy_table, config=config,
            )
    except (MalformedPlanError, CyclicDependencyError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if parsed.output:
        dump_manifest(manifest, parsed.output)
        print(f"Manifest: {parsed.output}")
    else:
        print(json.dumps(thaw(manifest), indent=2))

    if report is None:
        return

    if parsed.report:
        dump_manifest(report, parsed.report)
        print(f"Report: {parsed.report}")

    # Keep stdout pure JSON when the manifest itself went to stdout.
    summary_stream = sys.stdout if parsed.output else sys.stderr
    status = "valid" if report["isValid"] else "INVALID"
    print(
        f"{len(manifest['scenes'])} scene(s), {len(manifest['jobs'])} job(s), "
        f"{manifest['metadata']['durationSeconds']}s: {status}",
        file=summary_stream,
    )
    for message in report["errors"]:
        print(f"  error: {message}", file=sys.stderr)
    for message in report["warnings"]:
        print(f"  warning: {message}", file=sys.stderr)
    for message in report["optimizations"]:
        print(f"  suggestion: {message}", file=sys.stderr)

    if not report["isValid"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
