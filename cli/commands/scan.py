from __future__ import annotations

import os
from typing import Dict

from sonar_maven.errors import ScannerError
from sonar_maven.property_dump import dump_properties

from cli.wiring import build_bootstrapper
from tools.sonar import runner

_DUMP_VARS = ("DUMP_SENSOR_PROPERTIES", "DUMP_ENV_PROPERTIES", "DUMP_SYSTEM_PROPERTIES")


def run_scan(args) -> int:
    """Resolve the reactor properties and run sonar-scanner on them."""

    def analyze(props: Dict[str, str]) -> int:
        if any(os.environ.get(v) for v in _DUMP_VARS):
            dump_properties(runner.work_dir_of(props), props)
        return runner.execute(
            props,
            verbose=bool(args.debug),
            dry_run=bool(args.dry_run),
            timeout_seconds=int(args.timeout_seconds or 0),
            sonar_bin=args.sonar_bin,
        )

    print("\n🚀 Running analysis")
    try:
        bootstrapper = build_bootstrapper(args, analyze=analyze, check_server=not args.dry_run)
        print(f"  Project : {bootstrapper.reactor.root}")
        print(f"  Modules : {len(bootstrapper.reactor.projects)}")
        props = bootstrapper.execute()
    except ScannerError as e:
        print(f"\n❌ {e}")
        return 1

    if not props:
        print("\n⏭️ Analysis skipped.")
        return 0
    print("\n✅ Analysis completed.")
    return 0
