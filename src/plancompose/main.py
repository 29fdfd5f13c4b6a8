"""Subcommand dispatcher for plancompose.

Usage:
    plancompose compile  plan.txt --user u-123 --output manifest.json
    plancompose check    manifest.json --report report.json
    plancompose policies --platform tiktok
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="plancompose",
        description="Compile production plans into validated render manifests.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Each subcommand delegates to its own module's main().
    subparsers.add_parser("compile", help="Compile a plan into a manifest and report")
    subparsers.add_parser("check", help="Validate an existing manifest")
    subparsers.add_parser("policies", help="List the platform policy table")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compile":
        from .compile_cli import main as compile_main
        compile_main(remaining)
    elif parsed.command == "check":
        from .check_cli import main as check_main
        check_main(remaining)
    elif parsed.command == "policies":
        from .policies_cli import main as policies_main
        policies_main(remaining)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
