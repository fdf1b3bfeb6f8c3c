from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class SonarConfig:
    """Connection settings for server API calls."""
    host: str
    token: Optional[str] = None
    proxies: Dict[str, str] = field(default_factory=dict)
    timeout_seconds: int = 10
