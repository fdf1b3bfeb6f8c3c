"""tools/maven/build_plan.py

Optional YAML plan format for "build mode" runs.

A plan lists Maven builds to run in order, for example to compile fixture
projects before analyzing them::

    builds:
      - name: java-sample
        pom: tests/projects/shared/java-sample/pom.xml
        goals: ["clean install"]
        properties:
          skipTests: "true"
        env:
          MAVEN_OPTS: -Xmx512m
        timeout_seconds: 600

Design goals
------------
- Tolerate missing optional fields.
- Allow ``goals`` as a list or a single comma-separated string.
- Relative poms are resolved against the plan file's directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from tools.maven.executor import MavenBuild


@dataclass(frozen=True)
class PlannedBuild:
    """One build entry in a plan."""

    name: str
    goals: List[str]
    pom: Optional[str] = None
    properties: Dict[str, str] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)
    arguments: List[str] = field(default_factory=list)
    timeout_seconds: int = 0
    debug_logs: bool = False
    execution_dir: Optional[str] = None

    def to_maven_build(self, base_dir: Path) -> MavenBuild:
        def resolve(p: Optional[str]) -> Optional[Path]:
            if not p:
                return None
            path = Path(p).expanduser()
            return path if path.is_absolute() else (base_dir / path)

        return MavenBuild(
            goals=list(self.goals),
            pom=resolve(self.pom),
            properties=dict(self.properties),
            environment_variables=dict(self.env),
            arguments=list(self.arguments),
            timeout_seconds=self.timeout_seconds,
            debug_logs=self.debug_logs,
            execution_dir=resolve(self.execution_dir),
        )


@dataclass(frozen=True)
class BuildPlan:
    """A complete build plan."""

    builds: List[PlannedBuild] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "builds": [
                {
                    "name": b.name,
                    "pom": b.pom,
                    "goals": list(b.goals),
                    "properties": dict(b.properties),
                    "env": dict(b.env),
                    "arguments": list(b.arguments),
                    "timeout_seconds": int(b.timeout_seconds),
                    "debug_logs": bool(b.debug_logs),
                    "execution_dir": b.execution_dir,
                }
                for b in self.builds
            ]
        }

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "BuildPlan":
        raw = raw or {}
        builds: List[PlannedBuild] = []
        for i, b_raw in enumerate(raw.get("builds") or [], start=1):
            if not isinstance(b_raw, dict):
                continue

            goals = b_raw.get("goals") or []
            if isinstance(goals, str):
                goals = [g.strip() for g in goals.split(",") if g.strip()]
            if not goals:
                raise ValueError(f"Build #{i} has no goals")

            props = b_raw.get("properties") or {}
            env = b_raw.get("env") or {}
            args = b_raw.get("arguments") or []
            if isinstance(args, str):
                args = args.split()

            builds.append(
                PlannedBuild(
                    name=str(b_raw.get("name") or f"build-{i}"),
                    goals=[str(g) for g in goals],
                    pom=b_raw.get("pom"),
                    properties={str(k): str(v) for k, v in props.items()} if isinstance(props, dict) else {},
                    env={str(k): str(v) for k, v in env.items()} if isinstance(env, dict) else {},
                    arguments=[str(a) for a in args],
                    timeout_seconds=int(b_raw.get("timeout_seconds") or 0),
                    debug_logs=bool(b_raw.get("debug_logs", False)),
                    execution_dir=b_raw.get("execution_dir"),
                )
            )
        return BuildPlan(builds=builds)


def load_build_plan(path: str | Path) -> BuildPlan:
    """Load a build plan from YAML."""
    import yaml
    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"Build plan not found: {p}")
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Build plan YAML must be a mapping/object at top level: {p}")
    return BuildPlan.from_dict(raw)


def dump_build_plan(path: str | Path, plan: BuildPlan) -> Path:
    """Write a build plan YAML to the given path."""
    import yaml
    p = Path(path).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    text = yaml.safe_dump(
        plan.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        width=120,
    )
    p.write_text(text, encoding="utf-8")
    return p
