"""sonar_maven.io.settings

Read the parts of Maven's ``settings.xml`` the scanner cares about.

* ``<localRepository>``: where dependency jars live (classpath properties)
* active ``<profiles>``: their ``<properties>`` are injected into every project
* the first active ``<proxy>``: forwarded to the scanner as
  ``http.proxyHost`` / ``http.proxyPort`` / ``http.proxyUser`` ...

Encrypted passwords (``{...}``) are kept as-is and filtered out later by
:func:`sonar_maven.utils.put_relevant`.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional
from urllib.parse import quote

from sonar_maven.io.maven_xml import bool_of, parse_xml, text_of, texts_of

_EXPR = re.compile(r"\$\{([^}]+)\}")


@dataclass(frozen=True)
class ProxySettings:
    id: Optional[str]
    host: str
    port: int = 8080
    protocol: str = "http"
    username: Optional[str] = None
    password: Optional[str] = None
    non_proxy_hosts: Optional[str] = None
    active: bool = True

    def as_properties(self) -> Dict[str, str]:
        """Java system properties understood by the scanner's HTTP client."""
        prefix = "https" if self.protocol == "https" else "http"
        props = {
            f"{prefix}.proxyHost": self.host,
            f"{prefix}.proxyPort": str(self.port),
        }
        if self.username:
            props[f"{prefix}.proxyUser"] = self.username
        if self.password:
            props[f"{prefix}.proxyPassword"] = self.password
        if self.non_proxy_hosts:
            props["http.nonProxyHosts"] = self.non_proxy_hosts
        return props

    @property
    def url(self) -> str:
        """Proxy URL in the form ``requests`` expects, credentials included."""
        auth = ""
        if self.username:
            auth = quote(self.username, safe="")
            if self.password:
                auth += ":" + quote(self.password, safe="")
            auth += "@"
        return f"http://{auth}{self.host}:{self.port}"


@dataclass
class MavenSettings:
    local_repository: Path
    active_profiles: List[str] = field(default_factory=list)
    profile_properties: Dict[str, str] = field(default_factory=dict)
    proxies: List[ProxySettings] = field(default_factory=list)

    def active_proxy(self, protocol: Optional[str] = None) -> Optional[ProxySettings]:
        for proxy in self.proxies:
            if proxy.active and (protocol is None or proxy.protocol == protocol):
                return proxy
        return None


def default_settings_path() -> Path:
    return Path.home() / ".m2" / "settings.xml"


def default_local_repository() -> Path:
    return Path.home() / ".m2" / "repository"


def _interp(value: Optional[str], env: Mapping[str, str]) -> Optional[str]:
    if value is None:
        return None

    def repl(m: "re.Match[str]") -> str:
        key = m.group(1)
        if key == "user.home":
            return str(Path.home())
        if key.startswith("env.") and key[4:] in env:
            return env[key[4:]]
        return m.group(0)

    return _EXPR.sub(repl, value)


def read_settings(
    path: Optional[Path] = None,
    *,
    extra_profiles: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MavenSettings:
    """Read ``path`` (default ``~/.m2/settings.xml``).

    A missing file yields default settings.
    """
    env = os.environ if environ is None else environ
    path = path or default_settings_path()
    if not path.exists():
        return MavenSettings(local_repository=default_local_repository(), active_profiles=list(extra_profiles or []))

    root = parse_xml(path)

    def interp(v: Optional[str]) -> Optional[str]:
        return _interp(v, env)

    local_repo = text_of(root, "localRepository", interp)
    active_ids = texts_of(root, "activeProfiles/activeProfile") + list(extra_profiles or [])

    profile_properties: Dict[str, str] = {}
    for profile in root.findall("profiles/profile"):
        pid = text_of(profile, "id") or ""
        if pid in active_ids or bool_of(profile, "activation/activeByDefault"):
            if pid not in active_ids:
                active_ids.append(pid)
            props_el = profile.find("properties")
            if props_el is not None:
                for child in props_el:
                    profile_properties[str(child.tag)] = interp((child.text or "").strip()) or ""

    proxies: List[ProxySettings] = []
    for p in root.findall("proxies/proxy"):
        host = text_of(p, "host", interp)
        if not host:
            continue
        port_raw = text_of(p, "port") or "8080"
        proxies.append(
            ProxySettings(
                id=text_of(p, "id"),
                host=host,
                port=int(port_raw) if port_raw.isdigit() else 8080,
                protocol=(text_of(p, "protocol") or "http").lower(),
                username=text_of(p, "username", interp),
                password=text_of(p, "password", interp),
                non_proxy_hosts=text_of(p, "nonProxyHosts"),
                active=bool_of(p, "active", default=True),
            )
        )

    return MavenSettings(
        local_repository=Path(local_repo) if local_repo else default_local_repository(),
        active_profiles=active_ids,
        profile_properties=profile_properties,
        proxies=proxies,
    )
