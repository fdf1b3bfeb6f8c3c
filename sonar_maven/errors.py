"""sonar_maven.errors

Exception types raised by the scanner integration.

Readers and resolvers let low-level errors (``FileNotFoundError``,
``json.JSONDecodeError``...) propagate unless they can attach Maven context.
The CLI is the only place that turns these into exit codes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ScannerError(Exception):
    """Base class for every error raised by :mod:`sonar_maven`."""


class ScannerExecutionError(ScannerError):
    """The analysis cannot start because its configuration is wrong."""


class ScannerFailureError(ScannerError):
    """The scanner ran but reported a failure."""


class ProjectStructureError(ScannerError):
    """The reactor does not form a single tree of modules."""


class UnsupportedServerError(ScannerError):
    """The target server is too old for this scanner integration."""


class PomReadError(ScannerError):
    """A ``pom.xml`` (or another Maven XML file) could not be parsed."""

    def __init__(self, path: Path, reason: str, *, line: Optional[int] = None) -> None:
        self.path = path
        self.reason = reason
        self.line = line
        where = f"{path}:{line}" if line else str(path)
        super().__init__(f"Failed to read {where}: {reason}")
