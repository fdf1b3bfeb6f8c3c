from __future__ import annotations

import sys
from pathlib import Path

from sonar_maven.io.properties import read_properties
from tools.io import read_json
from tools.sonar import runner


def _props(tmp_path: Path) -> dict:
    return {
        "sonar.projectKey": "g:a",
        "sonar.projectBaseDir": str(tmp_path),
        "sonar.working.directory": str(tmp_path / "target" / "sonar"),
        "sonar.host.url": "http://localhost:9000",
        "sonar.token": "secret-token",
    }


def test_work_dir_defaults_under_base_dir(tmp_path: Path) -> None:
    assert runner.work_dir_of({"sonar.projectBaseDir": str(tmp_path)}) == tmp_path / "target" / "sonar"
    assert runner.work_dir_of({"sonar.working.directory": "/w"}) == Path("/w")


def test_dry_run_writes_properties_without_secrets(tmp_path: Path) -> None:
    props = _props(tmp_path)
    assert runner.execute(props, dry_run=True) == 0

    written = read_properties(tmp_path / "target" / "sonar" / runner.PROPERTIES_FILE_NAME)
    assert written["sonar.projectKey"] == "g:a"
    assert "sonar.token" not in written
    assert not (tmp_path / "target" / "sonar" / runner.METADATA_FILE_NAME).exists()


def test_build_command() -> None:
    cmd = runner.build_command("/bin/sonar-scanner", Path("/w/sonar-scanner.properties"), verbose=True)
    assert cmd == ["/bin/sonar-scanner", "-Dproject.settings=/w/sonar-scanner.properties", "-X"]


def test_execute_runs_scanner_and_records_metadata(tmp_path: Path) -> None:
    # A stand-in scanner: checks the token arrives via the environment.
    fake = tmp_path / "fake_scanner.py"
    fake.write_text(
        "import os, sys\n"
        "print('settings:', sys.argv[1])\n"
        "sys.exit(0 if os.environ.get('SONAR_TOKEN') == 'secret-token' else 7)\n",
        encoding="utf-8",
    )
    launcher = tmp_path / "sonar-scanner"
    launcher.write_text(f"#!/bin/sh\nexec '{sys.executable}' '{fake}' \"$@\"\n", encoding="utf-8")
    launcher.chmod(0o755)

    props = _props(tmp_path)
    code = runner.execute(props, sonar_bin=str(launcher))

    work = tmp_path / "target" / "sonar"
    assert code == 0
    meta = read_json(work / runner.METADATA_FILE_NAME)
    assert meta["exit_code"] == 0
    assert meta["project_key"] == "g:a"
    assert meta["timed_out"] is False
    assert "-Dproject.settings=" in (work / runner.LOG_FILE_NAME).read_text(encoding="utf-8")
