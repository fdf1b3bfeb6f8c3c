"""sonar_maven.domain

Plain data types for the parts of the Maven model the scanner needs.
"""

from __future__ import annotations
