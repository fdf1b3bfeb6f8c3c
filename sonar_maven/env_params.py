"""sonar_maven.env_params

Properties passed through the ``SONARQUBE_SCANNER_PARAMS`` environment variable.

CI integrations (Jenkins, Azure DevOps...) export a JSON object such as
``{"sonar.host.url": "https://sonar.example.com", "sonar.branch.name": "main"}``
that must reach every module of the analysis.
"""

from __future__ import annotations

import json
import os
from typing import Dict, Mapping, Optional

from sonar_maven.errors import ScannerExecutionError

SONARQUBE_SCANNER_PARAMS = "SONARQUBE_SCANNER_PARAMS"


def load_env_properties(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Parse ``SONARQUBE_SCANNER_PARAMS``; every value must be a JSON string."""
    env = os.environ if environ is None else environ
    raw = env.get(SONARQUBE_SCANNER_PARAMS)
    if not raw:
        return {}
    error = f"Failed to parse JSON in {SONARQUBE_SCANNER_PARAMS} environment variable"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ScannerExecutionError(error) from e
    if not isinstance(data, dict):
        raise ScannerExecutionError(error)
    for key, value in data.items():
        if not isinstance(value, str):
            raise ScannerExecutionError(error)
    return dict(data)
