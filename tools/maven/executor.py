"""tools/maven/executor.py

Run Maven goals as child processes.

Each goal of a :class:`MavenBuild` is one ``mvn`` invocation::

    <maven home>/bin/mvn <goal words> -B -e [-f <pom>] [-X] <arguments> -Dk=v ...

A goal string may hold several words ("clean install") so they run in the
same Maven process. ``M2_HOME`` is forced to the selected Maven home so a
stale value in the caller's environment cannot pick another installation.

The executor never raises on a failed build: the exit status of every goal
is recorded in the :class:`BuildResult` and callers decide what to do.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from tools.core_cmd import CmdResult, run_cmd, which_or_raise

logger = logging.getLogger(__name__)

MAVEN_FALLBACKS = ["/opt/homebrew/bin/mvn", "/usr/local/bin/mvn", "/usr/bin/mvn"]


@dataclass
class MavenBuild:
    """One Maven build: goals run in order against the same pom."""

    goals: List[str]
    pom: Optional[Path] = None
    properties: Dict[str, str] = field(default_factory=dict)
    environment_variables: Dict[str, str] = field(default_factory=dict)
    arguments: List[str] = field(default_factory=list)
    timeout_seconds: int = 0
    debug_logs: bool = False
    execution_dir: Optional[Path] = None


@dataclass
class GoalResult:
    goal: str
    exit_code: int
    elapsed_seconds: float
    command_str: str


@dataclass
class BuildResult:
    goals: List[GoalResult] = field(default_factory=list)
    logs: str = ""

    @property
    def status(self) -> Optional[int]:
        """Exit status of the last goal (``None`` if nothing ran)."""
        return self.goals[-1].exit_code if self.goals else None

    @property
    def is_success(self) -> bool:
        return bool(self.goals) and all(g.exit_code == 0 for g in self.goals)


def mvn_path(maven_home: Optional[Path]) -> str:
    program = "mvn.bat" if sys.platform.startswith("win") else "mvn"
    if maven_home is not None:
        return str((Path(maven_home) / "bin" / program).resolve())
    return which_or_raise(program, fallbacks=MAVEN_FALLBACKS)


class MavenBuildExecutor:
    def __init__(self, maven_home: Optional[Path] = None, *, log_dir: Optional[Path] = None) -> None:
        if maven_home is None and os.environ.get("MAVEN_HOME"):
            maven_home = Path(os.environ["MAVEN_HOME"])
        self.maven_home = maven_home
        self.log_dir = log_dir

    def command_for(self, build: MavenBuild, goal: str) -> List[str]:
        cmd = [mvn_path(self.maven_home)]
        # allow "clean install" in the same process
        cmd.extend(goal.split())
        cmd.extend(["-B", "-e"])
        if build.pom is not None:
            pom = Path(build.pom).resolve()
            if not pom.exists():
                raise ValueError(f"Maven pom does not exist: {build.pom}")
            cmd.extend(["-f", str(pom)])
        if build.debug_logs:
            cmd.append("-X")
        cmd.extend(build.arguments)
        for key, value in build.properties.items():
            cmd.append(f"-D{key}={value}")
        return cmd

    def _env_for(self, build: MavenBuild) -> Dict[str, str]:
        env = dict(build.environment_variables)
        if self.maven_home is not None:
            env["M2_HOME"] = str(Path(self.maven_home).resolve())
        return env

    def execute(self, build: MavenBuild) -> BuildResult:
        result = BuildResult()
        logs: List[str] = []
        for index, goal in enumerate(build.goals, start=1):
            cmd = self.command_for(build, goal)
            logger.info("Execute: %s", " ".join(cmd))
            log_path = self.log_dir / f"maven-goal-{index}.log" if self.log_dir else None
            res: CmdResult = run_cmd(
                cmd,
                cwd=build.execution_dir,
                timeout_seconds=build.timeout_seconds,
                env=self._env_for(build),
                log_path=log_path,
                print_stderr=False,
            )
            logs.append(res.stdout)
            if res.stderr:
                logs.append(res.stderr)
            result.goals.append(
                GoalResult(
                    goal=goal,
                    exit_code=res.exit_code,
                    elapsed_seconds=res.elapsed_seconds,
                    command_str=res.command_str,
                )
            )
            if res.timed_out:
                logger.warning("Goal '%s' timed out after %ss", goal, build.timeout_seconds)
        result.logs = "".join(logs)
        return result
