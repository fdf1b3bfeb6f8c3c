from __future__ import annotations

from pathlib import Path

from sonar_maven.sources import SourceCollector


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("x", encoding="utf-8")
    return path


def test_collects_files_nobody_else_covers(tmp_path: Path) -> None:
    base = tmp_path.resolve()
    readme = _touch(base / "README.md")
    script = _touch(base / "scripts" / "run.sh")
    _touch(base / "src" / "main" / "java" / "A.java")
    _touch(base / "target" / "classes" / "A.class")
    _touch(base / ".git" / "config")
    _touch(base / ".hidden.properties")
    _touch(base / "lib" / "dep.jar")
    _touch(base / "app.log")
    _touch(base / "Other.kt")

    collector = SourceCollector(existing_sources={base / "src" / "main" / "java"})
    collected = collector.collect(base)

    assert collected == sorted([readme, script])
    assert set(collected) == collector.collected_sources


def test_jvm_sources_can_be_collected(tmp_path: Path) -> None:
    base = tmp_path.resolve()
    kt = _touch(base / "tools" / "Gen.kt")
    java = _touch(base / "tools" / "Gen.java")

    collected = SourceCollector(existing_sources=set(), collect_java_and_kotlin_sources=True).collect(base)
    assert collected == sorted([java, kt])


def test_ignored_directories_and_excluded_files(tmp_path: Path) -> None:
    base = tmp_path.resolve()
    _touch(base / "skipped-module" / "notes.txt")
    report = _touch(base / "reports" / "jacoco.xml")
    kept = _touch(base / "reports" / "summary.txt")

    collected = SourceCollector(
        existing_sources=set(),
        directories_to_ignore={base / "skipped-module"},
        excluded_files={report},
    ).collect(base)
    assert collected == [kept]


def test_build_directories_are_skipped_case_insensitively(tmp_path: Path) -> None:
    base = tmp_path.resolve()
    _touch(base / "Build" / "out.txt")
    _touch(base / "dist" / "bundle.js")
    kept = _touch(base / "docs" / "index.md")

    assert SourceCollector(existing_sources=set()).collect(base) == [kept]
