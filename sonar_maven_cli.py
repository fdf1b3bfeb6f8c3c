#!/usr/bin/env python3
"""
CLI for deriving sonar-scanner properties from a Maven reactor.

Modes:
  1) scan       - resolve properties and run sonar-scanner
  2) properties - print the resolved properties (nothing is run)
  3) build      - run Maven goals, from --goals or a YAML build plan

Usage:
  python sonar_maven_cli.py
  python sonar_maven_cli.py --mode scan -f path/to/pom.xml -Dsonar.host.url=http://localhost:9000
  python sonar_maven_cli.py --mode properties -f path/to/project -Dsonar.projectKey=my:key
  python sonar_maven_cli.py --mode build --plan builds.yaml
"""

from __future__ import annotations

import argparse
from pathlib import Path

from dotenv import load_dotenv

from sonar_maven.log_format import configure_logging

from cli.args.base import add_base_args
from cli.args.build import add_build_args
from cli.dispatch import dispatch
from tools.core_root import ENV_PATH


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Derive sonar-scanner properties from a Maven project.")
    add_base_args(parser)
    add_build_args(parser)
    return parser.parse_args(argv)


def main(argv=None) -> None:
    # Load .env from repo root and from the working directory; real env vars win
    load_dotenv(ENV_PATH)
    load_dotenv(Path.cwd() / ".env")

    args = parse_args(argv)
    configure_logging(verbose=bool(args.debug))
    raise SystemExit(dispatch(args))


if __name__ == "__main__":
    main()
