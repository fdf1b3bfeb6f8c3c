"""sonar_maven.bootstrap

Collect the final property set and hand it to the scanner.

Why this exists
---------------
:class:`~sonar_maven.converter.MavenProjectConverter` knows about Maven;
the scanner process knows about properties. The bootstrapper sits in between
and owns the run-level concerns:

* find the execution-root project of the reactor
* filter out values that still look encrypted
* ``sonar.maven.scanAll``: add files outside the Maven source roots
* check the server version before analyzing
* layer global properties: user > system > environment > project

Network calls and the scanner process are injected as callables
(``server_version`` and ``analyze``) so this module stays free of I/O
policy; the CLI wires in :mod:`tools.sonar.api` and :mod:`tools.sonar.runner`.
"""

from __future__ import annotations

import logging
import os
import platform
import re
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Set

from packaging.version import InvalidVersion, Version

from sonar_maven.converter import (
    JAVA_MAIN_BINARY_DIRS,
    JAVA_MAIN_LIBRARIES,
    PROJECT_BASEDIR,
    SOURCE_DIRS,
    TEST_DIRS,
    MavenProjectConverter,
)
from sonar_maven.errors import ScannerExecutionError, ScannerFailureError, UnsupportedServerError
from sonar_maven.io.reactor import Reactor
from sonar_maven.io.settings import MavenSettings
from sonar_maven.precedence import PrecedenceResolver
from sonar_maven.sources import SourceCollector
from sonar_maven.utils import join_as_csv, put_relevant, split_as_csv

logger = logging.getLogger(__name__)

UNSUPPORTED_BELOW_SONARQUBE_56_MESSAGE = "With SonarQube server prior to 5.6, use sonar-maven-plugin <= 3.3"
REPORT_PROPERTY_PATTERN = re.compile(r"^sonar\..*[rR]eportPaths?$")
PROJECT_SCAN_ALL_SOURCES = "sonar.maven.scanAll"
HOST_URL = "sonar.host.url"
DEFAULT_HOST_URL = "http://localhost:9000"

# Environment variables the scanner itself understands, as properties.
_SYSTEM_ENV_KEYS = {
    "SONAR_HOST_URL": HOST_URL,
    "SONAR_TOKEN": "sonar.token",
    "SONAR_USER_HOME": "sonar.userHome",
}


def _version_key(value: str):
    try:
        return Version(value)
    except InvalidVersion:
        return Version(".".join(re.findall(r"\d+", value)) or "0")


def is_sonarcloud(host_url: Optional[str]) -> bool:
    return bool(host_url) and "sonarcloud.io" in (host_url or "")


class ScannerBootstrapper:
    def __init__(
        self,
        reactor: Reactor,
        converter: MavenProjectConverter,
        *,
        settings: Optional[MavenSettings] = None,
        env_properties: Optional[Mapping[str, str]] = None,
        debug: bool = False,
        environ: Optional[Mapping[str, str]] = None,
        server_version: Optional[Callable[[str], Optional[str]]] = None,
        analyze: Optional[Callable[[Dict[str, str]], int]] = None,
    ) -> None:
        self.reactor = reactor
        self.converter = converter
        self.settings = settings
        self.env_properties = dict(env_properties or {})
        self.debug = debug
        self.environ = os.environ if environ is None else environ
        self._server_version = server_version
        self._analyze = analyze
        self.server_version: Optional[str] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def user_properties(self) -> Dict[str, str]:
        return put_relevant(self.reactor.user_properties, {})

    def collect_properties(self) -> Dict[str, str]:
        """Module properties of the whole reactor, filtered and expanded."""
        top_level = self.reactor.root
        if top_level is None:
            raise ScannerExecutionError("Maven session does not declare a top level project")

        user_props = self.user_properties()
        props: Dict[str, str] = {}
        put_relevant(self.converter.configure(self.reactor.projects, top_level, user_props), props)

        if user_props.get(PROJECT_SCAN_ALL_SOURCES, "").lower() == "true":
            logger.info(
                "Parameter %s is enabled. The scanner will attempt to collect additional sources.",
                PROJECT_SCAN_ALL_SOURCES,
            )
            if self.converter.source_dirs_overridden:
                logger.warning(self._not_collecting_because_of(SOURCE_DIRS))
            elif self.converter.test_dirs_overridden:
                logger.warning(self._not_collecting_because_of(TEST_DIRS))
            else:
                collect_jvm = JAVA_MAIN_LIBRARIES in user_props and JAVA_MAIN_BINARY_DIRS in user_props
                self.collect_all_sources(props, collect_jvm)
        return props

    @staticmethod
    def _not_collecting_because_of(key: str) -> str:
        return (
            f"Parameter {PROJECT_SCAN_ALL_SOURCES} is enabled but the scanner will not collect "
            f"additional sources because {key} has been overridden."
        )

    @staticmethod
    def excluded_report_files(props: Mapping[str, str]) -> Set[Path]:
        out: Set[Path] = set()
        for key, value in props.items():
            if REPORT_PROPERTY_PATTERN.match(key):
                for item in split_as_csv(value):
                    if item:
                        out.add(Path(os.path.normpath(os.path.abspath(item))))
        return out

    def collect_all_sources(self, props: Dict[str, str], collect_java_and_kotlin_sources: bool) -> None:
        basedir = props.get(PROJECT_BASEDIR)
        if not basedir:
            return
        covered: List[str] = []
        for key, value in props.items():
            if (key.endswith(SOURCE_DIRS) or key.endswith(TEST_DIRS)) and value:
                covered.extend(split_as_csv(value))
        collector = SourceCollector(
            existing_sources={Path(p) for p in covered},
            directories_to_ignore=self.converter.skipped_base_dirs,
            excluded_files=self.excluded_report_files(props),
            collect_java_and_kotlin_sources=collect_java_and_kotlin_sources,
        )
        try:
            collected = collector.collect(Path(basedir))
        except OSError as e:
            logger.warning("Failed to collect additional sources: %s", e)
            return
        merged = split_as_csv(props.get(SOURCE_DIRS)) + [str(p) for p in collected]
        props[SOURCE_DIRS] = join_as_csv(merged)

    def system_properties(self) -> Dict[str, str]:
        props: Dict[str, str] = {}
        for env_key, prop in _SYSTEM_ENV_KEYS.items():
            if self.environ.get(env_key):
                props[prop] = self.environ[env_key]
        if self.settings is not None:
            proxy = self.settings.active_proxy()
            if proxy is not None:
                props.update(proxy.as_properties())
        if self.debug:
            props["sonar.verbose"] = "true"
        return props

    def global_properties(self, project_properties: Mapping[str, str]) -> Dict[str, str]:
        resolved = (
            PrecedenceResolver()
            .add("user", self.user_properties())
            .add("system", self.system_properties())
            .add("env", self.env_properties)
            .add("project", project_properties)
            .resolve()
        ).as_dict()
        # Empty values the converter writes on purpose (sonar.links.*) still reach the scanner.
        for key, value in project_properties.items():
            resolved.setdefault(key, value)
        return resolved

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    def is_version_prior_to(self, version: str) -> bool:
        if self.server_version is None:
            return True
        return _version_key(self.server_version) < _version_key(version)

    def check_server_version(self, host_url: str) -> None:
        if is_sonarcloud(host_url) or self._server_version is None:
            return
        self.server_version = self._server_version(host_url)
        if self.server_version is None:
            logger.warning("Unable to determine the version of %s; skipping version check", host_url)
            return
        logger.info("Server version %s", self.server_version)
        if self.is_version_prior_to("5.6"):
            raise UnsupportedServerError(UNSUPPORTED_BELOW_SONARQUBE_56_MESSAGE)

    def log_environment_information(self) -> None:
        logger.info("Python %s %s (%s)", platform.python_version(), platform.python_implementation(), platform.machine())
        logger.info("%s %s (%s)", platform.system(), platform.release(), platform.machine())
        maven_opts = self.environ.get("MAVEN_OPTS")
        if maven_opts is not None:
            logger.info("MAVEN_OPTS=%s", maven_opts)
        java_home = self.environ.get("JAVA_HOME")
        if java_home:
            logger.info("JAVA_HOME=%s", java_home)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def resolve(self) -> Dict[str, str]:
        """Everything the scanner needs, without contacting the server."""
        return self.global_properties(self.collect_properties())

    def execute(self) -> Dict[str, str]:
        self.log_environment_information()
        if self.user_properties().get("sonar.skip", "").lower() == "true":
            logger.info("sonar.skip = true: Skipping analysis")
            return {}
        props = self.resolve()
        self.check_server_version(props.get(HOST_URL) or DEFAULT_HOST_URL)
        if self._analyze is None:
            return props
        exit_code = self._analyze(props)
        if exit_code != 0:
            raise ScannerFailureError("The scanner analysis has failed! See the logs for more details.")
        return props
