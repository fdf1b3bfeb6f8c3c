"""tools/sonar/api.py

All server HTTP calls live here.

Design goals:
  - Keep network I/O separated from property resolution.
  - Be best-effort: a server that cannot be reached is reported, not fatal.
    The scanner itself will fail loudly later if the host is really wrong.
"""

from __future__ import annotations

from typing import Dict, Optional

import requests

from .types import SonarConfig


def _auth_headers(cfg: SonarConfig) -> Dict[str, str]:
    if not cfg.token:
        return {}
    return {"Authorization": f"Bearer {cfg.token}"}


def fetch_server_version(cfg: SonarConfig, *, session: Optional[requests.Session] = None) -> Optional[str]:
    """Return the server version string (e.g. ``"10.4.1.88267"``) or ``None``."""
    http = session or requests
    url = f"{cfg.host.rstrip('/')}/api/server/version"
    try:
        resp = http.get(
            url,
            headers=_auth_headers(cfg),
            proxies=cfg.proxies or None,
            timeout=cfg.timeout_seconds,
        )
    except requests.RequestException as e:
        print(f"⚠️ Server version request error for {cfg.host}: {e}")
        return None

    if not resp.ok:
        print(f"⚠️ Server version fetch failed: HTTP {resp.status_code} {resp.text[:120]}")
        return None

    version = resp.text.strip()
    return version or None
