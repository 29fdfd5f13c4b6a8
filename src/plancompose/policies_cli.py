"""CLI for inspecting the platform policy table.

Usage:
    plancompose policies
    plancompose policies --policies custom.yaml --platform tiktok
"""

import argparse

from .policy import load_policy_table


def main(args=None):
    parser = argparse.ArgumentParser(
        description="List platform policies (default transition, aspect, effects).",
    )
    parser.add_argument("--policies", default=None, help="Platform policy table YAML")
    parser.add_argument("--platform", default=None, help="Show a single platform")
    parsed = parser.parse_args(args)

    table = load_policy_table(parsed.policies)

    names = table.names()
    if parsed.platform:
        name = parsed.platform.strip().lower()
        if name not in table:
            parser.error(f"Unknown platform '{name}'. Valid: {names}")
        names = [name]

    print(f"Policy table version {table.version}")
    for name in names:
        policy = table.resolve(name)
        print(f"\n{name}")
        print(f"  aspect:     {policy.recommended_aspect_ratio}")
        print(f"  transition: {policy.default_transition}")
        print(f"  effects:    {', '.join(sorted(policy.allowed_effects))}")


if __name__ == "__main__":
    main()
