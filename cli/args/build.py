from __future__ import annotations

import argparse


def add_build_args(parser: argparse.ArgumentParser) -> None:
    """Register flags for build mode."""

    parser.add_argument(
        "--plan",
        help="(build mode) YAML build plan listing Maven builds to run in order",
    )
    parser.add_argument(
        "--goals",
        help="(build mode) Comma-separated goals for the pom given with --file, e.g. 'clean install'",
    )
    parser.add_argument(
        "--maven-home",
        help="(build mode) Maven installation to use (default: MAVEN_HOME, then mvn on PATH)",
    )
    parser.add_argument(
        "--log-dir",
        help="(build mode) Directory for per-goal Maven logs",
    )
