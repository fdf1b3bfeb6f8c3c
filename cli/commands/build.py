from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

from cli.common import parse_csv, parse_defines, resolve_pom_arg
from tools.maven.build_plan import load_build_plan
from tools.maven.executor import MavenBuild, MavenBuildExecutor


def _builds_from_args(args) -> List[Tuple[str, MavenBuild]]:
    if args.plan:
        plan_path = Path(args.plan).expanduser().resolve()
        plan = load_build_plan(plan_path)
        return [(b.name, b.to_maven_build(plan_path.parent)) for b in plan.builds]

    goals = parse_csv(args.goals)
    if not goals:
        raise SystemExit("Build mode needs --plan <file.yaml> or --goals <goals>.")
    pom = resolve_pom_arg(args.pom)
    build = MavenBuild(
        goals=goals,
        pom=pom,
        properties=parse_defines(args.defines),
        timeout_seconds=int(args.timeout_seconds or 0),
        debug_logs=bool(args.debug),
        execution_dir=pom.parent,
    )
    return [(pom.parent.name, build)]


def run_build(args) -> int:
    builds = _builds_from_args(args)
    if not builds:
        raise SystemExit("Build plan has no builds.")

    maven_home = Path(args.maven_home).expanduser() if args.maven_home else None
    log_dir = Path(args.log_dir).expanduser().resolve() if args.log_dir else None
    executor = MavenBuildExecutor(maven_home, log_dir=log_dir)

    print("\n🚀 Running Maven builds")
    overall = 0
    for name, build in builds:
        print("\n----------------------------------------")
        print(f"▶ {name}")
        if args.dry_run:
            for goal in build.goals:
                print("  Command :", " ".join(executor.command_for(build, goal)))
            print("  (dry-run: not executing)")
            continue

        result = executor.execute(build)
        for goal in result.goals:
            marker = "✅" if goal.exit_code == 0 else "⚠️"
            print(f"  {marker} {goal.goal} -> exit {goal.exit_code} ({goal.elapsed_seconds:.1f}s)")
        if not result.is_success:
            overall = result.status or 1

    if overall == 0:
        print("\n✅ Builds completed.")
    else:
        print(f"\n⚠️ Builds completed with non-zero exit code: {overall}")
    return overall
