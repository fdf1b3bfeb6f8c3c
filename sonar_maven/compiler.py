"""sonar_maven.compiler

Extract and compare ``maven-compiler-plugin`` configurations.

Why this exists
---------------
The Java analyzer needs to know which JDK and language level the code is
compiled with (``sonar.java.jdkHome``, ``sonar.java.release``,
``sonar.java.source``...). Maven can compile a module several times
(``default-compile``, ``default-testCompile``, extra executions), each with its
own configuration, so the resolver:

1. collects every ``compile`` / ``testCompile`` execution of the compiler
   plugin, ``default-compile`` first;
2. extracts a :class:`CompilerConfiguration` per execution;
3. warns when they are not all :func:`same`, and keeps the first one.

Comparison is verbatim: ``"1.8"`` and ``"8"`` are different values.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from sonar_maven.domain.project import ConfigNode, MavenProject, Plugin, PluginExecution, merge_configuration
from sonar_maven.io.toolchains import Toolchain, matching_toolchains
from sonar_maven.plugins import find_plugin, get_plugin
from sonar_maven.utils import GROUP_ID_APACHE_MAVEN

logger = logging.getLogger(__name__)

MAVEN_COMPILER_PLUGIN = "maven-compiler-plugin"
MAVEN_TOOLCHAINS_PLUGIN = "maven-toolchains-plugin"
DEFAULT_COMPILE_EXECUTION_ID = "default-compile"
DEFAULT_TEST_COMPILE_EXECUTION_ID = "default-testCompile"
COMPILE_GOAL = "compile"
TEST_COMPILE_GOAL = "testCompile"

# Parameters whose default comes from a user/model property.
_PROPERTY_DEFAULTS: Dict[str, str] = {
    "release": "maven.compiler.release",
    "source": "maven.compiler.source",
    "target": "maven.compiler.target",
    "enablePreview": "maven.compiler.enablePreview",
    "executable": "maven.compiler.executable",
}


@dataclass(frozen=True)
class CompilerConfiguration:
    """Effective compiler settings of one execution.

    ``None`` means the setting is not configured. ``execution_id`` only says
    where the values came from and is ignored by :func:`same`.
    """

    jdk_home: Optional[str] = None
    release: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    enable_preview: Optional[str] = None
    execution_id: Optional[str] = field(default=None, compare=False)


def same(one: CompilerConfiguration, two: CompilerConfiguration) -> bool:
    """True when all five settings are both unset or both the same string."""
    return (
        one.jdk_home == two.jdk_home
        and one.release == two.release
        and one.source == two.source
        and one.target == two.target
        and one.enable_preview == two.enable_preview
    )


def jdk_home_from_javac(javac_executable: str) -> Optional[str]:
    """``/jdk/bin/javac`` -> ``/jdk``; ``None`` when the layout is not ``<jdk>/bin/<tool>``."""
    bin_dir = Path(os.path.abspath(javac_executable)).parent
    if bin_dir.name == "bin":
        return str(bin_dir.parent)
    return None


def runtime_javac(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Best-effort javac of the runtime JDK: ``$JAVA_HOME/bin/javac``, then PATH."""
    env = os.environ if environ is None else environ
    javac = "javac.exe" if sys.platform.startswith("win") else "javac"
    java_home = env.get("JAVA_HOME")
    if java_home and Path(java_home).is_dir():
        candidate = Path(java_home) / "bin" / javac
        if candidate.is_file():
            return str(candidate)
    found = shutil.which(javac)
    if found:
        return os.path.realpath(found)
    return None


def _execution_order_key(ex: PluginExecution):
    # default-compile first, then by goal (compile < testCompile)
    goal = ex.goals[0] if ex.goals else ""
    return (0 if ex.id == DEFAULT_COMPILE_EXECUTION_ID else 1, goal)


class MavenCompilerResolver:
    """Resolve the compiler configuration of a project.

    ``toolchains`` are the entries of ``toolchains.xml``; ``environ`` is only
    consulted for the runtime-JDK fallback.
    """

    def __init__(
        self,
        toolchains: Optional[List[Toolchain]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        user_properties: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.toolchains = list(toolchains or [])
        self.environ = os.environ if environ is None else environ
        self.user_properties = dict(user_properties or {})

    # ------------------------------------------------------------------
    # Executions
    # ------------------------------------------------------------------

    def compiler_executions(self, project: MavenProject) -> List[PluginExecution]:
        """``compile`` / ``testCompile`` executions with their effective configuration."""
        plugin = get_plugin(project, GROUP_ID_APACHE_MAVEN, MAVEN_COMPILER_PLUGIN)
        plugin_config = plugin.configuration if plugin is not None else None

        executions: List[PluginExecution] = []
        if project.packaging != "pom":
            executions.append(PluginExecution(id=DEFAULT_COMPILE_EXECUTION_ID, goals=[COMPILE_GOAL]))
            executions.append(PluginExecution(id=DEFAULT_TEST_COMPILE_EXECUTION_ID, goals=[TEST_COMPILE_GOAL]))

        for declared in (plugin.executions if plugin is not None else []):
            for goal in declared.goals:
                if goal not in (COMPILE_GOAL, TEST_COMPILE_GOAL):
                    continue
                existing = next((e for e in executions if e.id == declared.id and goal in e.goals), None)
                if existing is not None:
                    existing.configuration = declared.configuration
                else:
                    executions.append(
                        PluginExecution(
                            id=declared.id,
                            phase=declared.phase,
                            goals=[goal],
                            configuration=declared.configuration,
                        )
                    )

        effective = [
            PluginExecution(
                id=ex.id,
                phase=ex.phase,
                goals=ex.goals,
                configuration=merge_configuration(ex.configuration, plugin_config),
            )
            for ex in executions
        ]
        return sorted(effective, key=_execution_order_key)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _parameter(self, project: MavenProject, config: Optional[ConfigNode], name: str) -> Optional[str]:
        if config is not None and config.child(name) is not None:
            return config.child(name).value
        prop = _PROPERTY_DEFAULTS.get(name)
        if prop is None:
            return None
        if prop in self.user_properties:
            return self.user_properties[prop]
        return project.properties.get(prop)

    def _global_jdk_toolchain(self, project: MavenProject) -> Optional[Toolchain]:
        """The JDK selected for the whole build by ``maven-toolchains-plugin``."""
        plugin = get_plugin(project, GROUP_ID_APACHE_MAVEN, MAVEN_TOOLCHAINS_PLUGIN)
        if plugin is None:
            return None
        configs = [plugin.configuration] + [e.configuration for e in plugin.executions]
        for config in configs:
            jdk = config.find("toolchains/jdk") if config is not None else None
            if jdk is None:
                continue
            matches = matching_toolchains(self.toolchains, jdk.as_map())
            if matches:
                return matches[0]
        return None

    def _jdk_home(self, project: MavenProject, config: Optional[ConfigNode]) -> Optional[str]:
        executable = self._parameter(project, config, "executable")
        if executable:
            return jdk_home_from_javac(executable)

        tc: Optional[Toolchain] = None
        requirement = config.child("jdkToolchain") if config is not None else None
        if requirement is not None and requirement.children:
            matches = matching_toolchains(self.toolchains, requirement.as_map())
            if matches:
                tc = matches[0]
        if tc is None:
            tc = self._global_jdk_toolchain(project)
        if tc is not None:
            javac = tc.find_tool("javac")
            if javac:
                return jdk_home_from_javac(javac)

        # Like the compiler plugin, the last fallback is the runtime JDK.
        javac = runtime_javac(self.environ)
        if javac:
            return jdk_home_from_javac(javac)
        return None

    def configuration_of(self, project: MavenProject, execution: PluginExecution) -> CompilerConfiguration:
        config = execution.configuration
        return CompilerConfiguration(
            jdk_home=self._jdk_home(project, config),
            release=self._parameter(project, config, "release"),
            source=self._parameter(project, config, "source"),
            target=self._parameter(project, config, "target"),
            enable_preview=self._parameter(project, config, "enablePreview"),
            execution_id=execution.id,
        )

    def extract_configuration(self, project: MavenProject) -> Optional[CompilerConfiguration]:
        """First compiler configuration of ``project`` (``None`` if it does not compile)."""
        try:
            executions = self.compiler_executions(project)
            if not executions:
                return None
            configurations = [self.configuration_of(project, ex) for ex in executions]
            first = configurations[0]
            if not all(same(c, first) for c in configurations):
                logger.warning(
                    "Heterogeneous compiler configuration has been detected. "
                    "Using compiler configuration from execution: '%s'",
                    first.execution_id,
                )
            return first
        except Exception:
            logger.warning("Failed to collect configuration from the maven-compiler-plugin", exc_info=True)
            return None

    def declarations_agree(self, project: MavenProject) -> Optional[bool]:
        """Compare the ``<build>`` and ``<pluginManagement>`` declarations.

        ``None`` when the plugin is not declared in both places.
        """
        declared = find_plugin(project.build.plugins, GROUP_ID_APACHE_MAVEN, MAVEN_COMPILER_PLUGIN)
        managed = find_plugin(project.build.plugin_management, GROUP_ID_APACHE_MAVEN, MAVEN_COMPILER_PLUGIN)
        if declared is None or managed is None:
            return None
        return same(self._declared(declared), self._declared(managed))

    @staticmethod
    def _declared(plugin: Plugin) -> CompilerConfiguration:
        config = plugin.configuration

        def value(name: str) -> Optional[str]:
            return config.parameter(name) if config is not None else None

        executable = value("executable")
        return CompilerConfiguration(
            jdk_home=jdk_home_from_javac(executable) if executable else None,
            release=value("release"),
            source=value("source"),
            target=value("target"),
            enable_preview=value("enablePreview"),
        )
