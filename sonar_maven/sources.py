"""sonar_maven.sources

Collect files outside the Maven source roots for ``sonar.maven.scanAll``.

When enabled, the scanner also analyzes files Maven does not know about
(scripts, config files, docs...). Build outputs, IDE files, archives, hidden
paths and JVM sources already covered by language analyzers are skipped.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import AbstractSet, List, Set

EXCLUDED_DIRECTORIES = frozenset(
    {
        "bin",
        "build",
        "dist",
        "nbbuild",
        "nbdist",
        "out",
        "target",
        "tmp",
    }
)

EXCLUDED_EXTENSIONS = (
    "jar",
    "war",
    "class",
    "ear",
    "nar",
    # archives
    "DS_Store",
    "zip",
    "7z",
    "rar",
    "gz",
    "tar",
    "xz",
    # logs and temp files
    "log",
    "bak",
    "tmp",
    "swp",
    # ide files
    "iml",
    "ipr",
    "iws",
    "nib",
)

JVM_SOURCE_EXTENSIONS = ("java", "jav", "kt", "scala")


class SourceCollector:
    """Walk a base directory and keep the files nobody else covers."""

    def __init__(
        self,
        existing_sources: AbstractSet[Path],
        directories_to_ignore: AbstractSet[Path] = frozenset(),
        excluded_files: AbstractSet[Path] = frozenset(),
        collect_java_and_kotlin_sources: bool = False,
    ) -> None:
        self.existing_sources = {Path(os.path.normpath(str(p))) for p in existing_sources}
        self.directories_to_ignore = {Path(os.path.normpath(str(p))) for p in directories_to_ignore}
        self.excluded_files = {Path(os.path.normpath(str(p))) for p in excluded_files}
        extensions = EXCLUDED_EXTENSIONS
        if not collect_java_and_kotlin_sources:
            extensions = extensions + JVM_SOURCE_EXTENSIONS
        self._excluded_suffixes = tuple(f".{ext}" for ext in extensions)
        self.collected_sources: Set[Path] = set()

    def _skip_directory(self, path: Path) -> bool:
        return (
            path.name.startswith(".")
            or path.name.lower() in EXCLUDED_DIRECTORIES
            or path in self.directories_to_ignore
            or path in self.existing_sources
        )

    def _keep_file(self, path: Path) -> bool:
        if path.name.startswith("."):
            return False
        if path.name.endswith(self._excluded_suffixes):
            return False
        return path not in self.existing_sources and path not in self.excluded_files

    def collect(self, basedir: Path) -> List[Path]:
        root = Path(os.path.normpath(str(Path(basedir).absolute())))
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            dirnames[:] = sorted(d for d in dirnames if not self._skip_directory(current / d))
            for name in filenames:
                path = current / name
                if self._keep_file(path):
                    self.collected_sources.add(path)
        return sorted(self.collected_sources)
