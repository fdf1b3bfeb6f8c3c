"""sonar_maven.utils

Small, pure helpers shared by the converter and the bootstrapper.

Notes
-----
* Scanner list properties are comma separated. Values that contain a comma
  (a jar path like ``artifact-123,456.jar``) are wrapped in double quotes, the
  way a CSV writer would.
* Values stored in Maven's encrypted form (``{...}``) must never reach the
  scanner unless they belong to a ``sonar.*`` / ``env.*`` key.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional

__all__ = [
    "GROUP_ID_APACHE_MAVEN",
    "GROUP_ID_CODEHAUS_MOJO",
    "join_as_csv",
    "split_as_csv",
    "put_relevant",
    "is_encrypted",
]

GROUP_ID_APACHE_MAVEN = "org.apache.maven.plugins"
GROUP_ID_CODEHAUS_MOJO = "org.codehaus.mojo"

# Maven settings-security wraps encrypted values in braces: {COQLCE6DU6GtcS5P=}
_ENCRYPTED = re.compile(r"^\{.*\}.*$", re.DOTALL)


def join_as_csv(values: Iterable[str]) -> str:
    """Join values with commas, quoting the ones that contain a comma.

    Examples
    --------
    ["/home/me/artifact-123,456.jar", "/opt/lib"] -> '"/home/me/artifact-123,456.jar",/opt/lib'
    """
    return ",".join(f'"{v}"' if "," in v else v for v in values)


def split_as_csv(joined: Optional[str]) -> List[str]:
    """Inverse of :func:`join_as_csv`.

    A value wrapped in double quotes may contain commas. Anything else is split
    on every comma.
    """
    if not joined:
        return []
    if '"' not in joined:
        return joined.split(",")

    collected: List[str] = []
    start = 0
    n = len(joined)
    while start < n:
        if joined[start] == '"':
            end = joined.find('"', start + 1)
            if end == -1:
                collected.append(joined[start + 1:])
                break
            collected.append(joined[start + 1:end])
            next_comma = joined.find(",", end)
            if next_comma == -1:
                break
            start = next_comma + 1
        else:
            next_comma = joined.find(",", start)
            if next_comma == -1:
                collected.append(joined[start:])
                break
            collected.append(joined[start:next_comma])
            start = next_comma + 1
    return collected


def is_encrypted(value: Optional[str]) -> bool:
    return bool(value) and bool(_ENCRYPTED.match(value or ""))


def put_relevant(src: Mapping[str, Optional[str]], dest: Dict[str, str]) -> Dict[str, str]:
    """Copy ``src`` into ``dest``, dropping values that look encrypted.

    ``sonar.*`` and ``env.*`` keys are always copied. ``None`` values are
    never copied.
    """
    for key, value in src.items():
        if value is None:
            continue
        if key.startswith("sonar.") or key.startswith("env.") or not is_encrypted(value):
            dest[key] = value
    return dest
