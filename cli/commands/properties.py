from __future__ import annotations

import sys
from pathlib import Path

from sonar_maven.errors import ScannerError
from sonar_maven.io.properties import format_properties, write_properties

from cli.wiring import build_bootstrapper


def run_properties(args) -> int:
    """Print (or write) the resolved scanner properties without analyzing."""
    try:
        props = build_bootstrapper(args, check_server=False).resolve()
    except ScannerError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.output:
        out = Path(args.output).expanduser().resolve()
        write_properties(out, props)
        print(f"📝 Wrote {len(props)} properties to {out}")
    else:
        sys.stdout.write(format_properties(props))
    return 0
