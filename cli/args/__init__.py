"""CLI argument builder modules.

The top-level :mod:`sonar_maven_cli` is kept thin. Groups of flags are
registered via small "arg builder" functions housed here:

- :func:`cli.args.base.add_base_args`
- :func:`cli.args.build.add_build_args`
"""

from __future__ import annotations

__all__ = [
    "base",
    "build",
]
