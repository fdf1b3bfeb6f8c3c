"""sonar_maven.converter

Convert a Maven reactor into the flat scanner property set.

For every module that is not skipped (POM property ``sonar.skip=true``) the
converter builds four fragments and resolves them, highest priority first:

1. ``user``: ``-D`` properties given on the command line
2. ``env``: the ``SONARQUBE_SCANNER_PARAMS`` JSON object
3. ``pom``: the module's ``<properties>`` (settings profiles included)
4. ``derived``: keys computed from the Maven model (key, name, version,
   links, directories, binaries, libraries, compiler levels...)

``sonar.sources`` and ``sonar.tests`` are then recomputed from the Maven
source roots unless one of the first three fragments defines them.

Finally the per-module maps are folded into one map: module ``m`` of the root
contributes its keys as ``<groupId:artifactId>.<key>`` and the parent lists its
children in ``sonar.modules``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set

from sonar_maven.compiler import MavenCompilerResolver
from sonar_maven.dependencies import DependencyCollector
from sonar_maven.domain.project import MavenProject
from sonar_maven.errors import ProjectStructureError, ScannerExecutionError
from sonar_maven.io.reactor import pom_path
from sonar_maven.plugins import get_plugin_setting
from sonar_maven.precedence import ConfigurationFragment, PrecedenceResolver
from sonar_maven.utils import GROUP_ID_APACHE_MAVEN, GROUP_ID_CODEHAUS_MOJO, join_as_csv

logger = logging.getLogger(__name__)

UNABLE_TO_DETERMINE_PROJECT_STRUCTURE = (
    "Unable to determine structure of project. "
    "Probably you use Maven Advanced Reactor Options with a broken tree of modules."
)

PROJECT_KEY = "sonar.projectKey"
MODULE_KEY = "sonar.moduleKey"
PROJECT_NAME = "sonar.projectName"
PROJECT_VERSION = "sonar.projectVersion"
PROJECT_DESCRIPTION = "sonar.projectDescription"
PROJECT_BASEDIR = "sonar.projectBaseDir"
PROJECT_BUILDDIR = "sonar.projectBuildDir"
WORK_DIR = "sonar.working.directory"
SOURCE_ENCODING = "sonar.sourceEncoding"
SOURCE_DIRS = "sonar.sources"
TEST_DIRS = "sonar.tests"
MODULES = "sonar.modules"

JAVA_SOURCE = "sonar.java.source"
JAVA_TARGET = "sonar.java.target"
JAVA_RELEASE = "sonar.java.release"
JAVA_JDK_HOME = "sonar.java.jdkHome"
JAVA_ENABLE_PREVIEW = "sonar.java.enablePreview"

LINKS_HOME_PAGE = "sonar.links.homepage"
LINKS_SOURCES = "sonar.links.scm"
LINKS_SOURCES_DEV = "sonar.links.scm_dev"
LINKS_CI = "sonar.links.ci"
LINKS_ISSUE_TRACKER = "sonar.links.issue"
LINK_KEYS = (LINKS_HOME_PAGE, LINKS_SOURCES, LINKS_SOURCES_DEV, LINKS_CI, LINKS_ISSUE_TRACKER)

PROJECT_BINARY_DIRS = "sonar.binaries"
JAVA_MAIN_BINARY_DIRS = "sonar.java.binaries"
GROOVY_MAIN_BINARY_DIRS = "sonar.groovy.binaries"
JAVA_TEST_BINARY_DIRS = "sonar.java.test.binaries"
PROJECT_LIBRARIES = "sonar.libraries"
JAVA_MAIN_LIBRARIES = "sonar.java.libraries"
JAVA_TEST_LIBRARIES = "sonar.java.test.libraries"
SUREFIRE_REPORTS_PATH = "sonar.junit.reportsPath"
JUNIT_REPORT_PATHS = "sonar.junit.reportPaths"
FINDBUGS_EXCLUDE_FILTERS = "sonar.findbugs.excludeFilters"
PROJECT_DEPENDENCIES = "sonar.maven.projectDependencies"

MAVEN_PACKAGING_POM = "pom"
MAVEN_PACKAGING_WAR = "war"
ARTIFACTID_MAVEN_WAR_PLUGIN = "maven-war-plugin"
ARTIFACTID_MAVEN_SUREFIRE_PLUGIN = "maven-surefire-plugin"
ARTIFACTID_FINDBUGS_MAVEN_PLUGIN = "findbugs-maven-plugin"


def _resolve_path(value: Optional[str], basedir: Path) -> Optional[Path]:
    if not value:
        return None
    p = Path(value)
    if not p.is_absolute():
        p = basedir / p
    return Path(os.path.normpath(str(p)))


def is_strict_child(maybe_child: Path, possible_parent: Path) -> bool:
    if maybe_child == possible_parent:
        return False
    return maybe_child.parts[: len(possible_parent.parts)] == possible_parent.parts


def remove_nested(paths: Sequence[Path]) -> List[Path]:
    return [p for p in paths if not any(is_strict_child(p, other) for other in paths)]


class MavenProjectConverter:
    def __init__(
        self,
        dependency_collector: DependencyCollector,
        compiler_resolver: MavenCompilerResolver,
        env_properties: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.dependency_collector = dependency_collector
        self.compiler_resolver = compiler_resolver
        self.env_properties: Dict[str, str] = dict(env_properties or {})
        self.user_properties: Dict[str, str] = {}
        self.analyze_resources = False
        self.source_dirs_overridden = False
        self.test_dirs_overridden = False
        self.skipped_base_dirs: Set[Path] = set()

    # ------------------------------------------------------------------
    # Reactor level
    # ------------------------------------------------------------------

    def configure(
        self,
        projects: Sequence[MavenProject],
        root: MavenProject,
        user_properties: Mapping[str, str],
        analyze_resources: bool = False,
    ) -> Dict[str, str]:
        self.user_properties = dict(user_properties)
        self.analyze_resources = analyze_resources

        props_by_module: Dict[Path, Dict[str, str]] = {}
        modules: Dict[Path, MavenProject] = {}
        for pom in projects:
            if pom.properties.get("sonar.skip") == "true":
                logger.info("Module %s skipped by property 'sonar.skip'", pom)
                self.skipped_base_dirs.add(pom.basedir)
                continue
            props_by_module[pom.pom_file] = self.merge(pom)
            modules[pom.pom_file] = pom

        props: Dict[str, str] = {PROJECT_KEY: root.key}
        self._rebuild_module_hierarchy(props, props_by_module, modules, root, "")
        if props_by_module:
            orphan = modules[next(iter(props_by_module))]
            raise ProjectStructureError(f'{UNABLE_TO_DETERMINE_PROJECT_STRUCTURE} "{orphan.display_name}" is orphan')
        return props

    def _rebuild_module_hierarchy(
        self,
        props: Dict[str, str],
        props_by_module: Dict[Path, Dict[str, str]],
        modules: Dict[Path, MavenProject],
        current: MavenProject,
        prefix: str,
    ) -> None:
        current_props = props_by_module.pop(current.pom_file, None)
        if current_props is None:
            raise ProjectStructureError(UNABLE_TO_DETERMINE_PROJECT_STRUCTURE)
        for key, value in current_props.items():
            props[prefix + key] = value

        module_ids: List[str] = []
        for module_path in current.modules:
            module_pom = pom_path(current.basedir / module_path)
            if module_pom not in props_by_module:
                continue
            module = modules[module_pom]
            module_id = module.key
            self._rebuild_module_hierarchy(props, props_by_module, modules, module, f"{prefix}{module_id}.")
            module_ids.append(module_id)
        if module_ids:
            props[prefix + MODULES] = ",".join(module_ids)

    # ------------------------------------------------------------------
    # Module level
    # ------------------------------------------------------------------

    def merge(self, pom: MavenProject) -> Dict[str, str]:
        resolved = (
            PrecedenceResolver()
            .add("user", self.user_properties)
            .add("env", self.env_properties)
            .add("pom", pom.properties)
            .add_fragment(self.derived_fragment(pom))
            .resolve()
        )
        props = resolved.as_dict()
        # Link keys are always sent, empty when the POM declares nothing.
        for key in LINK_KEYS:
            props.setdefault(key, "")
        for key in sorted(props):
            logger.debug("%s: %s = %s (from %s)", pom.key, key, props[key], resolved.source_of(key))

        props[SOURCE_DIRS] = join_as_csv(str(p) for p in self._main_sources(pom))
        test_dirs = self._test_sources(pom)
        if test_dirs:
            props[TEST_DIRS] = join_as_csv(str(p) for p in test_dirs)
        else:
            props.pop(TEST_DIRS, None)
        return props

    def derived_fragment(self, pom: MavenProject) -> ConfigurationFragment:
        """Properties computed from the Maven model (lowest priority)."""
        values: Dict[str, Optional[str]] = {}
        values[MODULE_KEY] = pom.properties.get(PROJECT_KEY) or pom.key
        values[PROJECT_VERSION] = pom.version
        values[PROJECT_NAME] = pom.display_name
        values[PROJECT_DESCRIPTION] = pom.description

        self._guess_java_version(pom, values)
        values[SOURCE_ENCODING] = pom.properties.get("project.build.sourceEncoding")
        self._links(pom, values)
        values[PROJECT_DEPENDENCIES] = self.dependency_collector.to_json(pom)

        values[PROJECT_BASEDIR] = str(pom.basedir)
        build_dir = Path(pom.build.directory)
        values[PROJECT_BUILDDIR] = str(build_dir)
        values[WORK_DIR] = str(build_dir / "sonar")

        self._binaries(pom, values)
        self._libraries(pom, values, test=False)
        self._libraries(pom, values, test=True)
        self._surefire_reports(pom, values)
        self._findbugs_exclude_filters(pom, values)
        return ConfigurationFragment(name="derived", values=values)

    def _guess_java_version(self, pom: MavenProject, values: Dict[str, Optional[str]]) -> None:
        config = self.compiler_resolver.extract_configuration(pom)
        if config is None:
            return
        values[JAVA_SOURCE] = config.source
        values[JAVA_TARGET] = config.target
        values[JAVA_RELEASE] = config.release
        values[JAVA_JDK_HOME] = config.jdk_home
        values[JAVA_ENABLE_PREVIEW] = config.enable_preview
        if self.compiler_resolver.declarations_agree(pom) is False:
            logger.debug(
                "%s: maven-compiler-plugin configuration differs between <plugins> and <pluginManagement>",
                pom.key,
            )

    @staticmethod
    def _links(pom: MavenProject, values: Dict[str, Optional[str]]) -> None:
        scm = pom.scm
        values[LINKS_HOME_PAGE] = pom.url
        values[LINKS_SOURCES] = scm.url if scm else None
        values[LINKS_SOURCES_DEV] = scm.developer_connection if scm else None
        values[LINKS_CI] = pom.ci_url
        values[LINKS_ISSUE_TRACKER] = pom.issue_url

    @staticmethod
    def _binaries(pom: MavenProject, values: Dict[str, Optional[str]]) -> None:
        main_dir = _resolve_path(pom.build.output_directory, pom.basedir)
        if main_dir is not None and main_dir.exists():
            # Deprecated and current keys are both populated.
            values[PROJECT_BINARY_DIRS] = str(main_dir)
            values[JAVA_MAIN_BINARY_DIRS] = str(main_dir)
            values[GROOVY_MAIN_BINARY_DIRS] = str(main_dir)
        test_dir = _resolve_path(pom.build.test_output_directory, pom.basedir)
        if test_dir is not None and test_dir.exists():
            values[JAVA_TEST_BINARY_DIRS] = str(test_dir)

    def _libraries(self, pom: MavenProject, values: Dict[str, Optional[str]], *, test: bool) -> None:
        if test:
            elements = self.dependency_collector.test_classpath_elements(pom)
            output_dir = pom.build.test_output_directory
        else:
            elements = self.dependency_collector.compile_classpath_elements(pom)
            output_dir = pom.build.output_directory

        libraries: List[str] = []
        for element in elements:
            if element == output_dir:
                continue
            path = _resolve_path(element, pom.basedir)
            if path is not None and path.exists():
                libraries.append(str(path))
        if not libraries:
            return
        joined = join_as_csv(libraries)
        if test:
            values[JAVA_TEST_LIBRARIES] = joined
        else:
            values[PROJECT_LIBRARIES] = joined
            values[JAVA_MAIN_LIBRARIES] = joined

    @staticmethod
    def _surefire_reports(pom: MavenProject, values: Dict[str, Optional[str]]) -> None:
        default = str(Path(pom.build.directory) / "surefire-reports")
        reports = get_plugin_setting(
            pom, GROUP_ID_APACHE_MAVEN, ARTIFACTID_MAVEN_SUREFIRE_PLUGIN, "reportsDirectory", default
        )
        path = _resolve_path(reports, pom.basedir)
        if path is not None and path.exists():
            values[SUREFIRE_REPORTS_PATH] = str(path)
            values[JUNIT_REPORT_PATHS] = str(path)

    @staticmethod
    def _findbugs_exclude_filters(pom: MavenProject, values: Dict[str, Optional[str]]) -> None:
        exclude = get_plugin_setting(
            pom, GROUP_ID_CODEHAUS_MOJO, ARTIFACTID_FINDBUGS_MAVEN_PLUGIN, "excludeFilterFile", None
        )
        path = _resolve_path(exclude, pom.basedir)
        if path is not None and path.exists():
            values[FINDBUGS_EXCLUDE_FILTERS] = str(path)

    # ------------------------------------------------------------------
    # sonar.sources / sonar.tests
    # ------------------------------------------------------------------

    def _main_sources(self, pom: MavenProject) -> List[Path]:
        sources: Dict[str, None] = {}
        if pom.packaging == MAVEN_PACKAGING_WAR:
            war_dir = get_plugin_setting(
                pom, GROUP_ID_APACHE_MAVEN, ARTIFACTID_MAVEN_WAR_PLUGIN, "warSourceDirectory", "src/main/webapp"
            )
            sources[war_dir or "src/main/webapp"] = None
        sources[str(pom.pom_file)] = None
        if pom.packaging != MAVEN_PACKAGING_POM:
            for root in pom.compile_source_roots:
                sources[root] = None
            if self.analyze_resources:
                for resource in pom.build.resources:
                    sources[resource.directory] = None
        return self._source_paths(pom, SOURCE_DIRS, list(sources))

    def _test_sources(self, pom: MavenProject) -> List[Path]:
        return self._source_paths(pom, TEST_DIRS, list(pom.test_compile_source_roots))

    def _user_defined(self, pom: MavenProject, key: str) -> Optional[str]:
        return (
            PrecedenceResolver()
            .add("user", self.user_properties)
            .add("env", self.env_properties)
            .add("pom", pom.properties)
            .resolve_one(key)
        )

    def _source_paths(self, pom: MavenProject, key: str, maven_paths: List[str]) -> List[Path]:
        prop = self._user_defined(pom, key)
        if prop is not None:
            if key == SOURCE_DIRS:
                self.source_dirs_overridden = True
            else:
                self.test_dirs_overridden = True
            paths = [p for p in prop.split(",") if p]
            resolved = [_resolve_path(p, pom.basedir) for p in paths]
            files = [p for p in resolved if p is not None]
            if pom.packaging != MAVEN_PACKAGING_POM:
                return self._existing_or_fail(files, pom, key)
        else:
            kept = self._remove_target(pom, maven_paths)
            files = [p for p in (_resolve_path(x, pom.basedir) for x in kept) if p is not None]
        # Maven lists directories that may not exist; pom modules may declare
        # sonar.sources only for their children to inherit.
        return remove_nested([f for f in files if f.exists()])

    @staticmethod
    def _existing_or_fail(paths: List[Path], pom: MavenProject, key: str) -> List[Path]:
        for p in paths:
            if not p.exists():
                raise ScannerExecutionError(
                    f"The directory '{p}' does not exist for Maven module {pom.id}. Please check the property {key}"
                )
        return paths

    @staticmethod
    def _remove_target(pom: MavenProject, paths: List[str]) -> List[str]:
        target = Path(os.path.normpath(pom.build.directory))
        kept: List[str] = []
        for value in paths:
            p = _resolve_path(value, pom.basedir)
            if p is not None and (p == target or is_strict_child(p, target)):
                continue
            kept.append(value)
        return kept
