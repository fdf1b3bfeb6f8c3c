"""cli.wiring

Composition root: assemble a :class:`~sonar_maven.bootstrap.ScannerBootstrapper`
from CLI arguments and the process environment.

The core package never talks to the network or spawns processes itself.
This module plugs :mod:`tools.sonar.api` (server version check) and
:mod:`tools.sonar.runner` (sonar-scanner run) into it.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

from sonar_maven.bootstrap import ScannerBootstrapper
from sonar_maven.compiler import MavenCompilerResolver
from sonar_maven.converter import MavenProjectConverter
from sonar_maven.dependencies import DependencyCollector
from sonar_maven.env_params import load_env_properties
from sonar_maven.io.reactor import load_reactor
from sonar_maven.io.settings import MavenSettings, read_settings
from sonar_maven.io.toolchains import read_toolchains

from cli.common import parse_defines, parse_profiles, resolve_pom_arg
from tools.sonar.api import fetch_server_version
from tools.sonar.types import SonarConfig


def _optional_path(raw: Optional[str]) -> Optional[Path]:
    return Path(raw).expanduser().resolve() if raw else None


def server_version_fetcher(
    settings: Optional[MavenSettings],
    environ: Mapping[str, str],
) -> Callable[[str], Optional[str]]:
    """Build the ``server_version`` callable for the bootstrapper."""

    def fetch(host_url: str) -> Optional[str]:
        proxies: Dict[str, str] = {}
        if settings is not None:
            for protocol in ("http", "https"):
                proxy = settings.active_proxy(protocol) or settings.active_proxy()
                if proxy is not None:
                    proxies[protocol] = proxy.url
        cfg = SonarConfig(host=host_url, token=environ.get("SONAR_TOKEN"), proxies=proxies)
        return fetch_server_version(cfg)

    return fetch


def build_bootstrapper(
    args: argparse.Namespace,
    *,
    analyze: Optional[Callable[[Dict[str, str]], int]] = None,
    check_server: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> ScannerBootstrapper:
    env = os.environ if environ is None else environ
    user_properties = parse_defines(getattr(args, "defines", None))
    profiles = parse_profiles(getattr(args, "profiles", None))

    settings = read_settings(_optional_path(getattr(args, "settings", None)), extra_profiles=profiles, environ=env)
    reactor = load_reactor(
        resolve_pom_arg(getattr(args, "pom", None)),
        user_properties=user_properties,
        settings=settings,
        active_profiles=profiles,
        environ=env,
    )
    toolchains = read_toolchains(_optional_path(getattr(args, "toolchains", None)))
    env_properties = load_env_properties(env)

    converter = MavenProjectConverter(
        DependencyCollector(settings.local_repository, reactor.projects),
        MavenCompilerResolver(toolchains, environ=env, user_properties=user_properties),
        env_properties,
    )
    return ScannerBootstrapper(
        reactor,
        converter,
        settings=settings,
        env_properties=env_properties,
        debug=bool(getattr(args, "debug", False)),
        environ=env,
        server_version=server_version_fetcher(settings, env) if check_server else None,
        analyze=analyze,
    )
