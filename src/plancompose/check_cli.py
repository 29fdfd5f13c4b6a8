"""CLI for validating an existing manifest file.

Usage:
    plancompose check manifest.json
    plancompose check manifest.yaml --policies policies.yaml --report report.json

Exits 1 when the manifest has a structural violation.
"""

import argparse
import sys

from .compiler import dump_manifest, load_manifest
from .config import load_config
from .logging_utils import setup_logging
from .policy import load_policy_table
from .validator import validate_manifest


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Validate a manifest against the platform policy table.",
    )
    parser.add_argument("manifest", help="Path to a manifest (.json or .yaml)")
    parser.add_argument("--config", default=None, help="Compiler config YAML")
    parser.add_argument("--policies", default=None, help="Platform policy table YAML")
    parser.add_argument("--report", default=None, help="Write the report here")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    parsed = parser.parse_args(args)

    setup_logging(parsed.log_level)

    manifest = load_manifest(parsed.manifest)
    report = validate_manifest(
        manifest, load_policy_table(parsed.policies), load_config(parsed.config),
    )

    if parsed.report:
        dump_manifest(report, parsed.report)

    print(f"{parsed.manifest}: {'valid' if report['isValid'] else 'INVALID'}")
    for message in report["errors"]:
        print(f"  error: {message}")
    for message in report["warnings"]:
        print(f"  warning: {message}")
    for message in report["optimizations"]:
        print(f"  suggestion: {message}")

    if not report["isValid"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
