from __future__ import annotations

import argparse

from cli.commands.build import run_build
from cli.commands.properties import run_properties
from cli.commands.scan import run_scan
from cli.ui import choose_from_menu


def dispatch(args: argparse.Namespace) -> int:
    mode = args.mode
    if mode is None:
        if args.plan or args.goals:
            mode = "build"
        elif args.pom or args.defines:
            mode = "scan"
        else:
            mode = choose_from_menu(
                "Choose an action:",
                {
                    "scan": "Analyze the Maven project with sonar-scanner",
                    "properties": "Print the resolved scanner properties",
                    "build": "Run Maven goals (optional YAML plan)",
                },
            )

    if mode == "build":
        return int(run_build(args))
    if mode == "properties":
        return int(run_properties(args))
    return int(run_scan(args))
