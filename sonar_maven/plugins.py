"""sonar_maven.plugins

Look up Maven plugin declarations and their parameters.

A plugin can be declared in three places of a POM, and each place is exposed
here as a :class:`~sonar_maven.precedence.ConfigurationFragment`:

* ``<build><plugins>`` ("build")
* ``<reporting><plugins>`` ("reporting")
* ``<build><pluginManagement><plugins>`` ("management")

:func:`get_plugin_setting` resolves a parameter with the order
*explicit override > build > reporting > management > default*.

Parameter keys accept a ``/`` path and an index suffix, e.g.
``excludes/exclude[1]`` is the second ``<exclude>`` under ``<excludes>``.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sonar_maven.domain.project import MavenProject, Plugin
from sonar_maven.io.pom import merge_plugin
from sonar_maven.precedence import ConfigurationFragment, resolve_first

__all__ = [
    "find_plugin",
    "get_plugin",
    "plugin_fragments",
    "get_plugin_setting",
]


def find_plugin(plugins: Iterable[Plugin], group_id: Optional[str], artifact_id: str) -> Optional[Plugin]:
    for plugin in plugins:
        if plugin.matches(group_id, artifact_id):
            return plugin
    return None


def get_plugin(project: Optional[MavenProject], group_id: Optional[str], artifact_id: str) -> Optional[Plugin]:
    """Effective build declaration of a plugin.

    The ``<build>`` declaration is merged over the ``<pluginManagement>`` one.
    When the plugin is only managed, the managed declaration is returned.
    """
    if project is None:
        return None
    declared = find_plugin(project.build.plugins, group_id, artifact_id)
    managed = find_plugin(project.build.plugin_management, group_id, artifact_id)
    if declared is None:
        return managed
    if managed is None:
        return declared
    return merge_plugin(declared, managed)


def plugin_fragments(
    project: MavenProject,
    group_id: Optional[str],
    artifact_id: str,
    key: str,
    *,
    override: Optional[str] = None,
) -> List[ConfigurationFragment]:
    """The ordered fragments that can contribute ``key`` (highest first)."""

    def fragment(name: str, plugin: Optional[Plugin]) -> ConfigurationFragment:
        value = plugin.parameter(key) if plugin is not None else None
        return ConfigurationFragment(name=name, values={key: value})

    return [
        ConfigurationFragment(name="override", values={key: override}),
        fragment("build", find_plugin(project.build.plugins, group_id, artifact_id)),
        fragment("reporting", find_plugin(project.reporting_plugins, group_id, artifact_id)),
        fragment("management", find_plugin(project.build.plugin_management, group_id, artifact_id)),
    ]


def get_plugin_setting(
    project: MavenProject,
    group_id: Optional[str],
    artifact_id: str,
    key: str,
    default: Optional[str] = None,
    *,
    override: Optional[str] = None,
) -> Optional[str]:
    """Resolve a plugin parameter, falling back to ``default`` when unset or empty."""
    fragments = plugin_fragments(project, group_id, artifact_id, key, override=override)
    return resolve_first(key, *fragments, default=default)
