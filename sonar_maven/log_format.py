"""sonar_maven.log_format

Logging setup for the CLI.

Every line is prefixed with ``HH:MM:SS.mmm`` so scanner output and our own
messages can be lined up in a captured build log.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Optional, TextIO

LOGGER_NAMES = ("sonar_maven", "tools")


class TimestampFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL message``"""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        ct = time.localtime(record.created)
        return "%s.%03d" % (time.strftime("%H:%M:%S", ct), int(record.msecs))


def configure_logging(verbose: bool = False, stream: Optional[TextIO] = None) -> None:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(TimestampFormatter())
    for name in LOGGER_NAMES:
        log = logging.getLogger(name)
        log.handlers[:] = [handler]
        log.setLevel(logging.DEBUG if verbose else logging.INFO)
        log.propagate = False
