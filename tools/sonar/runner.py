"""tools/sonar/runner.py

sonar-scanner invocation.

  resolved properties -> <work dir>/sonar-scanner.properties -> sonar-scanner -> log + run metadata

Why this exists
---------------
Passing hundreds of module properties as ``-D`` flags hits command-line
length limits on large reactors, and values with spaces or commas are easy to
mangle. Instead the resolved map is written as a Java properties file and the
scanner is pointed at it with ``-Dproject.settings=<file>``.

The token is never written to disk: it is passed through the ``SONAR_TOKEN``
environment variable, which the scanner reads natively.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from sonar_maven.io.properties import write_properties

from tools.core_cmd import CmdResult, run_cmd, which_or_raise
from tools.io import write_json


SONAR_SCANNER_FALLBACKS = ["/opt/homebrew/bin/sonar-scanner", "/usr/local/bin/sonar-scanner"]
PROPERTIES_FILE_NAME = "sonar-scanner.properties"
LOG_FILE_NAME = "sonar-scanner.log"
METADATA_FILE_NAME = "scanner-run.json"

# Keys that must not end up in a file on disk.
_SECRET_KEYS = ("sonar.token", "sonar.login", "sonar.password")


def work_dir_of(props: Mapping[str, str]) -> Path:
    """Where the scanner artifacts of this run go (``<build dir>/sonar`` by default)."""
    work = props.get("sonar.working.directory")
    if work:
        return Path(work)
    return Path(props.get("sonar.projectBaseDir") or ".") / "target" / "sonar"


def _scanner_version(sonar_bin: Optional[str]) -> str:
    """Best-effort sonar-scanner version string."""
    if not sonar_bin:
        return "unknown"
    try:
        res = run_cmd([sonar_bin, "-v"], print_stderr=False, print_stdout=False)
        out = (res.stdout or res.stderr).strip()
        return out.splitlines()[-1] if out else "unknown"
    except FileNotFoundError:
        return "unknown"


def build_command(sonar_bin: str, properties_file: Path, *, verbose: bool = False) -> List[str]:
    cmd = [sonar_bin, f"-Dproject.settings={properties_file}"]
    if verbose:
        cmd.append("-X")
    return cmd


def write_scanner_properties(props: Mapping[str, str], work_dir: Path) -> Path:
    safe = {k: v for k, v in props.items() if k not in _SECRET_KEYS}
    path = work_dir / PROPERTIES_FILE_NAME
    write_properties(path, safe, header=f"Generated {datetime.now().isoformat()}")
    return path


def _scanner_env(props: Mapping[str, str]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for key in _SECRET_KEYS[:2]:
        if props.get(key):
            env["SONAR_TOKEN"] = props[key]
            break
    return env


def execute(
    props: Mapping[str, str],
    *,
    verbose: bool = False,
    dry_run: bool = False,
    timeout_seconds: int = 0,
    sonar_bin: Optional[str] = None,
) -> int:
    """Run sonar-scanner on ``props`` and return its exit code.

    This is safe to import and call from tests and from the CLI.
    """
    work_dir = work_dir_of(props)
    properties_file = write_scanner_properties(props, work_dir)
    print(f"📝 Scanner properties: {properties_file}")

    if dry_run:
        print("⏭️ Skipping sonar-scanner run (dry-run).")
        return 0

    sonar_bin = sonar_bin or which_or_raise("sonar-scanner", fallbacks=SONAR_SCANNER_FALLBACKS)
    cmd = build_command(sonar_bin, properties_file, verbose=verbose)
    log_path = work_dir / LOG_FILE_NAME

    print("🚀 Running sonar-scanner")
    print(f"  Command : {' '.join(cmd)}")
    res: CmdResult = run_cmd(
        cmd,
        cwd=Path(props.get("sonar.projectBaseDir") or os.getcwd()),
        timeout_seconds=timeout_seconds,
        env=_scanner_env(props),
        log_path=log_path,
    )

    metadata: Dict[str, Any] = {
        "scanner": "sonar-scanner-cli",
        "scanner_version": _scanner_version(sonar_bin),
        "command": res.command_str,
        "exit_code": res.exit_code,
        "timed_out": res.timed_out,
        "scan_time_seconds": round(res.elapsed_seconds, 3),
        "project_key": props.get("sonar.projectKey"),
        "host": props.get("sonar.host.url"),
        "properties_file": str(properties_file),
        "log_path": str(log_path),
        "generated_at": datetime.now().isoformat(),
    }
    write_json(work_dir / METADATA_FILE_NAME, metadata)

    if res.exit_code != 0:
        print(f"⚠️ sonar-scanner failed ({res.exit_code}). See log: {log_path}")
    else:
        print(f"✅ sonar-scanner finished in {res.elapsed_seconds:.2f}s. Log: {log_path}")
    return res.exit_code
