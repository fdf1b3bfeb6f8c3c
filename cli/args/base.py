from __future__ import annotations

import argparse


def add_base_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI flags that are shared across modes.

    This includes:
    - mode selection
    - Maven session inputs (pom, -D, -P, settings, toolchains)
    - execution knobs
    """

    parser.add_argument(
        "--mode",
        choices=["scan", "properties", "build"],
        help=(
            "scan = resolve properties and run sonar-scanner, "
            "properties = print the resolved properties, "
            "build = run Maven goals (from --goals or a YAML --plan)"
        ),
    )

    # Maven session
    parser.add_argument(
        "-f",
        "--file",
        dest="pom",
        help="Root pom.xml (or its directory). Default: ./pom.xml",
    )
    parser.add_argument(
        "-D",
        "--define",
        dest="defines",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="User property, e.g. -Dsonar.projectKey=my:key (repeatable)",
    )
    parser.add_argument(
        "-P",
        "--activate-profiles",
        dest="profiles",
        action="append",
        default=[],
        help="Comma-separated Maven profiles to activate (repeatable)",
    )
    parser.add_argument("--settings", help="Maven settings.xml (default: ~/.m2/settings.xml)")
    parser.add_argument("--toolchains", help="Maven toolchains.xml (default: ~/.m2/toolchains.xml)")

    # Execution knobs
    parser.add_argument(
        "-X",
        "--debug",
        action="store_true",
        help="Debug logging (also passes sonar.verbose=true to the scanner)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve and write the scanner properties, but do not run anything",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout_seconds",
        type=int,
        default=0,
        help="Timeout in seconds for child processes (0 = none)",
    )
    parser.add_argument(
        "--sonar-scanner",
        dest="sonar_bin",
        help="Path to the sonar-scanner executable (default: found on PATH)",
    )
    parser.add_argument(
        "--output",
        help="(properties mode) Write the properties to this file instead of stdout",
    )
