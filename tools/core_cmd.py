"""tools/core_cmd.py

Command-execution helpers shared by the scanner and Maven wrappers.

This module deliberately avoids tool-specific knowledge. It provides:

* :func:`which_or_raise` - resolve executables reliably across environments.
* :func:`run_cmd` - run subprocesses (no shell=True), capture or log output,
  and map timeouts to exit code 124 (like coreutils ``timeout``).
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str

    @property
    def timed_out(self) -> bool:
        return self.exit_code == TIMEOUT_EXIT_CODE


def which_or_raise(bin_name: str, fallbacks: Optional[List[str]] = None) -> str:
    """Locate an executable and return its absolute path.

    Why this exists:
    - prevents "FileNotFoundError: sonar-scanner/mvn not found" deep in a run
    - avoids PATH surprises across conda/CI/brew/sdkman
    """
    found = shutil.which(bin_name)
    if found:
        return found

    for candidate in fallbacks or []:
        p = Path(candidate)
        if p.exists() and os.access(str(p), os.X_OK):
            return str(p)

    raise FileNotFoundError(
        f"Executable '{bin_name}' not found on PATH.\n"
        f"Install it and ensure it's available to this Python process.\n"
        f"Tried fallbacks: {fallbacks or []}"
    )


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run_cmd(
    cmd: List[str],
    *,
    cwd: Optional[Path] = None,
    timeout_seconds: int = 0,
    env: Optional[Dict[str, str]] = None,
    log_path: Optional[Path] = None,
    print_stderr: bool = True,
    print_stdout: bool = False,
) -> CmdResult:
    """Run a subprocess (no ``shell=True``).

    With ``log_path`` set, stdout and stderr are interleaved into that file
    and the returned ``stdout`` holds the log content.

    Never raises on non-zero exit codes; only raises on execution errors
    (e.g. binary not found).
    """
    t0 = time.time()

    # If env is provided, merge it onto the current process environment.
    env2 = None
    if env is not None:
        env2 = os.environ.copy()
        env2.update(env)

    timeout = timeout_seconds if timeout_seconds and timeout_seconds > 0 else None

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("w", encoding="utf-8") as log_file:
            try:
                proc = subprocess.run(
                    cmd,
                    cwd=str(cwd) if cwd else None,
                    stdout=log_file,
                    stderr=subprocess.STDOUT,
                    text=True,
                    timeout=timeout,
                    env=env2,
                )
                exit_code = proc.returncode
            except subprocess.TimeoutExpired:
                exit_code = TIMEOUT_EXIT_CODE
        return CmdResult(
            exit_code=exit_code,
            elapsed_seconds=time.time() - t0,
            command_str=" ".join(cmd),
            stdout=log_path.read_text(encoding="utf-8", errors="replace"),
            stderr="",
        )

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
            timeout=timeout,
            env=env2,
        )
    except subprocess.TimeoutExpired as e:
        return CmdResult(
            exit_code=TIMEOUT_EXIT_CODE,
            elapsed_seconds=time.time() - t0,
            command_str=" ".join(cmd),
            stdout=_as_text(e.stdout),
            stderr=_as_text(e.stderr),
        )
    elapsed = time.time() - t0

    # Many tools write progress to stderr even on success.
    if print_stderr and proc.stderr:
        print(proc.stderr, file=sys.stderr)
    if print_stdout and proc.stdout:
        print(proc.stdout)

    return CmdResult(
        exit_code=proc.returncode,
        elapsed_seconds=elapsed,
        command_str=" ".join(cmd),
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
