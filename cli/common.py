from __future__ import annotations

"""cli.common

Small shared helpers for CLI command modules.

The CLI is split by "mode" (scan/properties/build). Parsing of the Maven-style
flags is shared so ``-Dsonar.projectKey=x`` means the same thing everywhere.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence


def parse_csv(raw: Optional[str]) -> list[str]:
    """Parse a comma-separated list value into a list of non-empty strings."""
    if not raw:
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]


def parse_defines(raw: Optional[Sequence[str]]) -> Dict[str, str]:
    """Turn ``-D`` values into a property map.

    ``-Dkey=value`` sets ``value``; a bare ``-Dkey`` sets ``"true"`` like Maven.
    Later definitions of the same key win.
    """
    out: Dict[str, str] = {}
    for item in raw or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not key:
            raise SystemExit(f"Invalid property definition: -D{item}")
        out[key] = value if sep else "true"
    return out


def parse_profiles(raw: Optional[Sequence[str]]) -> List[str]:
    """``-P a,b -P c`` -> ``["a", "b", "c"]``."""
    out: List[str] = []
    for item in raw or []:
        out.extend(p for p in parse_csv(item) if p not in out)
    return out


def resolve_pom_arg(raw: Optional[str]) -> Path:
    """``--file`` may name a pom or a directory; default is ``./pom.xml``."""
    p = Path(raw).expanduser() if raw else Path.cwd()
    p = p.resolve()
    if p.is_dir():
        p = p / "pom.xml"
    if not p.is_file():
        raise SystemExit(f"Maven pom not found: {p}")
    return p
