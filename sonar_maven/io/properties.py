"""sonar_maven.io.properties

Read and write Java ``.properties`` files.

The scanner CLI reads ``project.settings`` with Java's ``Properties.load``,
which expects ISO-8859-1 with ``\\uXXXX`` escapes. Writing through
:func:`format_properties` keeps every value intact whatever its characters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

_SPECIAL = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t", "\f": "\\f"}


def _escape(text: str, *, is_key: bool) -> str:
    out: List[str] = []
    for i, ch in enumerate(text):
        if ch in _SPECIAL:
            out.append(_SPECIAL[ch])
        elif ch in "=:#!":
            out.append("\\" + ch)
        elif ch == " " and (is_key or i == 0):
            out.append("\\ ")
        elif ord(ch) < 0x20 or ord(ch) > 0x7E:
            code = ord(ch)
            if code > 0xFFFF:
                # Java strings are UTF-16: write the surrogate pair.
                code -= 0x10000
                out.append("\\u%04x\\u%04x" % (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)))
            else:
                out.append("\\u%04x" % code)
        else:
            out.append(ch)
    return "".join(out)


def format_properties(props: Mapping[str, str], *, header: Optional[str] = None) -> str:
    lines: List[str] = []
    if header:
        lines.append(f"#{header}")
    for key in sorted(props):
        lines.append(f"{_escape(key, is_key=True)}={_escape(props[key], is_key=False)}")
    return "\n".join(lines) + "\n"


def write_properties(path: Path, props: Mapping[str, str], *, header: Optional[str] = None) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_properties(props, header=header), encoding="latin-1")


def _logical_lines(text: str) -> Iterable[str]:
    buf = ""
    for raw in text.splitlines():
        line = raw.lstrip()
        if not buf and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            buf += line[:-1]
            continue
        yield buf + line
        buf = ""
    if buf:
        yield buf


def _unescape(text: str) -> str:
    out: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u" and i + 6 <= len(text):
            out.append(chr(int(text[i + 2:i + 6], 16)))
            i += 6
            continue
        out.append({"n": "\n", "r": "\r", "t": "\t", "f": "\f"}.get(nxt, nxt))
        i += 2
    joined = "".join(out)
    # Recombine surrogate pairs written by format_properties.
    return joined.encode("utf-16", "surrogatepass").decode("utf-16")


def parse_properties(text: str) -> Dict[str, str]:
    props: Dict[str, str] = {}
    for line in _logical_lines(text):
        key_end = len(line)
        i = 0
        while i < len(line):
            ch = line[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "=: \t":
                key_end = i
                break
            i += 1
        key = line[:key_end]
        rest = line[key_end:].lstrip(" \t")
        if rest[:1] in ("=", ":"):
            rest = rest[1:].lstrip(" \t")
        props[_unescape(key)] = _unescape(rest)
    return props


def read_properties(path: Path) -> Dict[str, str]:
    return parse_properties(path.read_text(encoding="latin-1"))
