"""sonar_maven.io

Readers for the Maven XML files (``pom.xml``, ``settings.xml``,
``toolchains.xml``) and for Java ``.properties`` files.
"""

from __future__ import annotations
