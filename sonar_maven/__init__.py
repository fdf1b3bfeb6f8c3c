"""sonar_maven

Core package for deriving scanner properties from a Maven project.

Why this exists
---------------
The scanner CLI only understands a flat ``key=value`` property set. A Maven
reactor, on the other hand, spreads the same facts over many places: POM
properties, build plugins, reporting plugins, plugin management, user ``-D``
flags and the ``SONARQUBE_SCANNER_PARAMS`` environment variable.

This package owns:

* the Maven model as plain dataclasses (:mod:`sonar_maven.domain`)
* readers for ``pom.xml`` / ``settings.xml`` / ``toolchains.xml``
  (:mod:`sonar_maven.io`)
* the precedence rules that merge configuration fragments
  (:mod:`sonar_maven.precedence`)
* the conversion from a reactor to scanner properties
  (:mod:`sonar_maven.converter`, :mod:`sonar_maven.bootstrap`)

The CLI (:mod:`sonar_maven_cli`) and the process wrappers under ``tools/`` are
thin composition roots around these components.
"""

from __future__ import annotations

__version__ = "0.4.0"
