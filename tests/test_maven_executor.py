from __future__ import annotations

from pathlib import Path
from unittest import mock

import pytest

from tools.core_cmd import CmdResult
from tools.maven.executor import BuildResult, GoalResult, MavenBuild, MavenBuildExecutor


def _maven_home(tmp_path: Path) -> Path:
    home = tmp_path / "maven"
    (home / "bin").mkdir(parents=True)
    (home / "bin" / "mvn").write_text("#!/bin/sh\n", encoding="utf-8")
    return home


def test_command_for_orders_flags(tmp_path: Path) -> None:
    home = _maven_home(tmp_path)
    pom = tmp_path / "pom.xml"
    pom.write_text("<project/>", encoding="utf-8")
    build = MavenBuild(
        goals=["clean install"],
        pom=pom,
        properties={"skipTests": "true"},
        arguments=["-pl", "core"],
        debug_logs=True,
    )

    cmd = MavenBuildExecutor(home).command_for(build, "clean install")

    assert cmd == [
        str((home / "bin" / "mvn").resolve()),
        "clean",
        "install",
        "-B",
        "-e",
        "-f",
        str(pom.resolve()),
        "-X",
        "-pl",
        "core",
        "-DskipTests=true",
    ]


def test_missing_pom_is_rejected(tmp_path: Path) -> None:
    build = MavenBuild(goals=["verify"], pom=tmp_path / "missing" / "pom.xml")
    with pytest.raises(ValueError, match="Maven pom does not exist"):
        MavenBuildExecutor(_maven_home(tmp_path)).command_for(build, "verify")


def test_maven_home_falls_back_to_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAVEN_HOME", str(tmp_path))
    assert MavenBuildExecutor().maven_home == tmp_path


def test_execute_runs_each_goal_with_m2_home(tmp_path: Path) -> None:
    home = _maven_home(tmp_path)
    calls = []

    def fake_run_cmd(cmd, **kwargs):
        calls.append((cmd, kwargs))
        code = 0 if "compile" in cmd else 1
        return CmdResult(code, 0.5, " ".join(cmd), f"ran {cmd[1]}\n", "")

    build = MavenBuild(goals=["compile", "verify"], environment_variables={"MAVEN_OPTS": "-Xmx1g"})
    with mock.patch("tools.maven.executor.run_cmd", side_effect=fake_run_cmd):
        result = MavenBuildExecutor(home, log_dir=tmp_path / "logs").execute(build)

    assert [g.goal for g in result.goals] == ["compile", "verify"]
    assert result.status == 1
    assert not result.is_success
    assert result.logs == "ran compile\nran verify\n"
    _, kwargs = calls[0]
    assert kwargs["env"] == {"MAVEN_OPTS": "-Xmx1g", "M2_HOME": str(home.resolve())}
    assert kwargs["log_path"] == tmp_path / "logs" / "maven-goal-1.log"
    assert calls[1][1]["log_path"] == tmp_path / "logs" / "maven-goal-2.log"


def test_build_result_status() -> None:
    assert BuildResult().status is None
    assert not BuildResult().is_success
    ok = BuildResult(goals=[GoalResult("verify", 0, 1.0, "mvn verify")])
    assert ok.status == 0
    assert ok.is_success
