"""sonar_maven.io.maven_xml

ElementTree helpers shared by the Maven XML readers.

Maven files are usually written with the ``http://maven.apache.org/POM/4.0.0``
(or SETTINGS / TOOLCHAINS) default namespace, but hand-written fixtures often
omit it. Tags are stripped down to their local name right after parsing so
the readers can use plain ``find("build/plugins")`` paths either way.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, List, Optional

from sonar_maven.errors import PomReadError

Interp = Callable[[Optional[str]], Optional[str]]


def parse_xml(path: Path) -> ET.Element:
    """Parse ``path`` and return its root element with namespaces stripped."""
    if not path.is_file():
        raise FileNotFoundError(f"Maven file not found: {path}")
    try:
        tree = ET.parse(str(path))
    except ET.ParseError as e:
        line = e.position[0] if getattr(e, "position", None) else None
        raise PomReadError(path, str(e), line=line) from e
    root = tree.getroot()
    for el in root.iter():
        if isinstance(el.tag, str) and "}" in el.tag:
            el.tag = el.tag.split("}", 1)[1]
    return root


def text_of(el: Optional[ET.Element], path: str, interp: Optional[Interp] = None) -> Optional[str]:
    """Trimmed text of ``el/path`` (``None`` when missing or blank)."""
    if el is None:
        return None
    child = el.find(path)
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    if not value:
        return None
    return interp(value) if interp else value


def texts_of(el: Optional[ET.Element], path: str, interp: Optional[Interp] = None) -> List[str]:
    if el is None:
        return []
    out: List[str] = []
    for child in el.findall(path):
        if child.text and child.text.strip():
            value = child.text.strip()
            out.append((interp(value) if interp else value) or value)
    return out


def bool_of(el: Optional[ET.Element], path: str, default: bool = False) -> bool:
    value = text_of(el, path)
    if value is None:
        return default
    return value.lower() == "true"
