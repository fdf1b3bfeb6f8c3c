"""sonar_maven.io.toolchains

Read ``~/.m2/toolchains.xml`` and match JDK toolchains against requirements.

A requirement map looks like ``{"version": "[11,)", "vendor": "temurin"}``.
``version`` accepts a Maven version range; every other key must match the
``<provides>`` entry exactly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from packaging.version import InvalidVersion, Version

from sonar_maven.io.maven_xml import parse_xml, text_of

logger = logging.getLogger(__name__)

_RANGE = re.compile(r"^\s*([\[(])\s*([^,]*?)\s*(?:,\s*([^\])]*?)\s*)?([\])])\s*$")


@dataclass(frozen=True)
class Toolchain:
    type: str
    provides: Dict[str, str] = field(default_factory=dict)
    jdk_home: Optional[str] = None

    def find_tool(self, name: str) -> Optional[str]:
        if not self.jdk_home:
            return None
        return str(Path(self.jdk_home) / "bin" / name)


def default_toolchains_path() -> Path:
    return Path.home() / ".m2" / "toolchains.xml"


def read_toolchains(path: Optional[Path] = None) -> List[Toolchain]:
    """Return the toolchains declared in ``path`` (empty if the file is absent)."""
    path = path or default_toolchains_path()
    if not path.exists():
        return []
    root = parse_xml(path)
    out: List[Toolchain] = []
    for tc in root.findall("toolchain"):
        provides: Dict[str, str] = {}
        provides_el = tc.find("provides")
        if provides_el is not None:
            for child in provides_el:
                provides[str(child.tag)] = (child.text or "").strip()
        out.append(
            Toolchain(
                type=text_of(tc, "type") or "",
                provides=provides,
                jdk_home=text_of(tc, "configuration/jdkHome"),
            )
        )
    logger.debug("Read %d toolchain(s) from %s", len(out), path)
    return out


def _as_version(value: str) -> Optional[Version]:
    try:
        return Version(value)
    except InvalidVersion:
        return None


def version_matches(requirement: str, provided: str) -> bool:
    """Match a Maven version requirement (plain version or range)."""
    m = _RANGE.match(requirement)
    if not m:
        if requirement == provided:
            return True
        req, got = _as_version(requirement), _as_version(provided)
        return req is not None and got is not None and req == got

    low_bracket, low, high, high_bracket = m.groups()
    got = _as_version(provided)
    if got is None:
        return False
    if high is None:
        # "[11]" pins an exact version
        exact = _as_version(low)
        return exact is not None and got == exact
    if low:
        lv = _as_version(low)
        if lv is None or (got < lv if low_bracket == "[" else got <= lv):
            return False
    if high:
        hv = _as_version(high)
        if hv is None or (got > hv if high_bracket == "]" else got >= hv):
            return False
    return True


def matching_toolchains(
    toolchains: List[Toolchain],
    requirements: Mapping[str, Optional[str]],
    *,
    type: str = "jdk",
) -> List[Toolchain]:
    out: List[Toolchain] = []
    for tc in toolchains:
        if tc.type != type:
            continue
        ok = True
        for key, wanted in requirements.items():
            if wanted is None:
                continue
            provided = tc.provides.get(key)
            if provided is None:
                ok = False
            elif key == "version":
                ok = version_matches(wanted, provided)
            else:
                ok = provided == wanted
            if not ok:
                break
        if ok:
            out.append(tc)
    return out
