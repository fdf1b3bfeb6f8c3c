"""sonar_maven.property_dump

Dump selected properties to ``<work dir>/dumpSensor.system.properties``.

Integration tests use this to check which values actually reached the
analysis. The keys to dump are comma-separated lists in three environment
variables:

* ``DUMP_SENSOR_PROPERTIES``: keys of the resolved scanner properties
* ``DUMP_ENV_PROPERTIES``: environment variable names
* ``DUMP_SYSTEM_PROPERTIES``: keys of the system properties

A requested key that is unknown is written with an empty value.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from pathlib import Path
from typing import Dict, Mapping, Optional

from sonar_maven.io.properties import write_properties

logger = logging.getLogger(__name__)

DUMP_FILE_NAME = "dumpSensor.system.properties"


def _keys(raw: Optional[str]):
    return [k for k in (raw or "").split(",") if k]


def default_system_properties(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = os.environ if environ is None else environ
    props = {
        "os.name": platform.system(),
        "os.version": platform.release(),
        "os.arch": platform.machine(),
        "user.dir": os.getcwd(),
        "user.home": str(Path.home()),
        "python.version": platform.python_version(),
        "python.executable": sys.executable or "",
    }
    if env.get("JAVA_HOME"):
        props["java.home"] = env["JAVA_HOME"]
    return props


def dump_properties(
    work_dir: Path,
    sensor_properties: Mapping[str, str],
    *,
    environ: Optional[Mapping[str, str]] = None,
    system_properties: Optional[Mapping[str, str]] = None,
) -> Path:
    env = os.environ if environ is None else environ
    system = default_system_properties(env) if system_properties is None else system_properties

    dumped: Dict[str, str] = {}
    for key in _keys(env.get("DUMP_SENSOR_PROPERTIES")):
        dumped[key] = sensor_properties.get(key, "")
    for key in _keys(env.get("DUMP_ENV_PROPERTIES")):
        dumped[key] = env.get(key, "")
    for key in _keys(env.get("DUMP_SYSTEM_PROPERTIES")):
        dumped[key] = system.get(key, "")

    path = Path(work_dir) / DUMP_FILE_NAME
    logger.info("Dumping system properties to %s", path)
    for key in sorted(system):
        if key.startswith("java."):
            logger.info("%s=%s", key, system[key])
    write_properties(path, dumped)
    return path
