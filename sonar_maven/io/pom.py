"""sonar_maven.io.pom

Read one ``pom.xml`` into a :class:`~sonar_maven.domain.project.MavenProject`.

What is (and is not) modelled
-----------------------------
This is not a full Maven model builder. It covers what the scanner needs:

* coordinates, packaging, name, description, links (url / scm / ci / issues)
* ``<properties>``, with ``${...}`` interpolation against project builtins,
  user properties, model properties and ``env.*``
* build directories (aligned to absolute paths), resources, plugins, plugin
  management, reporting plugins, dependencies and dependency management
* POM profiles activated by id, by ``activeByDefault`` or by a property
* inheritance from an already-read parent project

Transitive dependency resolution, remote repositories and the super-POM's
default plugin bindings are out of scope.
"""

from __future__ import annotations

import logging
import os
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from sonar_maven.domain.project import (
    Build,
    ConfigNode,
    Dependency,
    MavenProject,
    ParentRef,
    Plugin,
    PluginExecution,
    Resource,
    Scm,
    merge_configuration,
)
from sonar_maven.errors import PomReadError
from sonar_maven.io.maven_xml import bool_of, parse_xml, text_of, texts_of

logger = logging.getLogger(__name__)

_EXPR = re.compile(r"\$\{([^}]+)\}")


class Interpolator:
    """Expand ``${...}`` expressions using a lookup function.

    Unknown expressions are left untouched, like Maven does. Self references
    stop expanding instead of recursing forever.
    """

    def __init__(self, lookup: Callable[[str], Optional[str]]) -> None:
        self._lookup = lookup

    def __call__(self, text: Optional[str]) -> Optional[str]:
        if text is None:
            return None
        return self._expand(text, frozenset())

    def _expand(self, text: str, seen: frozenset) -> str:
        def repl(m: "re.Match[str]") -> str:
            key = m.group(1).strip()
            if key in seen:
                return m.group(0)
            value = self._lookup(key)
            if value is None:
                return m.group(0)
            return self._expand(value, seen | {key})

        return _EXPR.sub(repl, text)


def _aligned(path_value: str, basedir: Path) -> str:
    p = Path(path_value)
    if not p.is_absolute():
        p = basedir / p
    return os.path.normpath(str(p))


def _config(el: Optional[ET.Element], interp: Callable[[Optional[str]], Optional[str]]) -> Optional[ConfigNode]:
    if el is None:
        return None
    children = [c for c in (_config(child, interp) for child in el) if c is not None]
    value = None
    if el.text is not None and el.text.strip():
        value = interp(el.text.strip())
    return ConfigNode(name=str(el.tag), value=value, children=children)


def _dependency(el: ET.Element, interp) -> Optional[Dependency]:
    group_id = text_of(el, "groupId", interp)
    artifact_id = text_of(el, "artifactId", interp)
    if not group_id or not artifact_id:
        return None
    return Dependency(
        group_id=group_id,
        artifact_id=artifact_id,
        version=text_of(el, "version", interp),
        scope=text_of(el, "scope", interp),
        type=text_of(el, "type", interp) or "jar",
        classifier=text_of(el, "classifier", interp),
        system_path=text_of(el, "systemPath", interp),
        optional=bool_of(el, "optional"),
    )


def _dependencies(el: Optional[ET.Element], interp) -> List[Dependency]:
    if el is None:
        return []
    out: List[Dependency] = []
    for dep_el in el.findall("dependency"):
        dep = _dependency(dep_el, interp)
        if dep is not None:
            out.append(dep)
    return out


def _plugin(el: ET.Element, interp) -> Optional[Plugin]:
    artifact_id = text_of(el, "artifactId", interp)
    if not artifact_id:
        return None
    executions: List[PluginExecution] = []
    for ex in el.findall("executions/execution"):
        executions.append(
            PluginExecution(
                id=text_of(ex, "id", interp) or "default",
                phase=text_of(ex, "phase", interp),
                goals=texts_of(ex, "goals/goal", interp),
                configuration=_config(ex.find("configuration"), interp),
            )
        )
    return Plugin(
        artifact_id=artifact_id,
        group_id=text_of(el, "groupId", interp),
        version=text_of(el, "version", interp),
        configuration=_config(el.find("configuration"), interp),
        executions=executions,
        dependencies=_dependencies(el.find("dependencies"), interp),
    )


def _plugins(el: Optional[ET.Element], interp) -> List[Plugin]:
    if el is None:
        return []
    out: List[Plugin] = []
    for p_el in el.findall("plugin"):
        plugin = _plugin(p_el, interp)
        if plugin is not None:
            out.append(plugin)
    return out


def _resources(el: Optional[ET.Element], tag: str, interp, basedir: Path, default: str) -> List[Resource]:
    if el is None or el.find(f"{tag}s") is None:
        return [Resource(directory=_aligned(default, basedir))]
    out: List[Resource] = []
    for r in el.findall(f"{tag}s/{tag}"):
        directory = text_of(r, "directory", interp)
        if directory:
            out.append(Resource(directory=_aligned(directory, basedir)))
    return out


def _properties(el: Optional[ET.Element]) -> Dict[str, str]:
    props: Dict[str, str] = {}
    if el is None:
        return props
    for child in el:
        props[str(child.tag)] = (child.text or "").strip()
    return props


def _profile_is_active(
    profile: ET.Element,
    *,
    active_profiles: Set[str],
    user_properties: Mapping[str, str],
) -> bool:
    profile_id = text_of(profile, "id") or ""
    if f"!{profile_id}" in active_profiles:
        return False
    if profile_id in active_profiles:
        return True
    prop = profile.find("activation/property")
    if prop is not None:
        name = text_of(prop, "name") or ""
        expected = text_of(prop, "value")
        negated = name.startswith("!")
        name = name.lstrip("!")
        actual = user_properties.get(name)
        if expected is None:
            matched = actual is not None
        elif expected.startswith("!"):
            matched = actual != expected[1:]
        else:
            matched = actual == expected
        return matched != negated
    return False


def _active_profiles(
    root: ET.Element,
    *,
    active_profiles: Set[str],
    user_properties: Mapping[str, str],
) -> List[ET.Element]:
    profiles = root.findall("profiles/profile")
    active = [
        p for p in profiles
        if _profile_is_active(p, active_profiles=active_profiles, user_properties=user_properties)
    ]
    if active:
        return active
    # activeByDefault only applies when no other profile of this POM is active.
    return [p for p in profiles if bool_of(p, "activation/activeByDefault")]


def _merge_plugins(own: Sequence[Plugin], inherited: Sequence[Plugin]) -> List[Plugin]:
    """Inherit plugin declarations; ``own`` wins on configuration."""
    result: List[Plugin] = []
    own_keys = {p.key for p in own}
    for parent_plugin in inherited:
        if parent_plugin.key not in own_keys:
            result.append(parent_plugin)
    for plugin in own:
        parent_plugin = next((p for p in inherited if p.key == plugin.key), None)
        if parent_plugin is None:
            result.append(plugin)
            continue
        result.append(merge_plugin(plugin, parent_plugin))
    return result


def merge_plugin(dominant: Plugin, recessive: Plugin) -> Plugin:
    """Merge two declarations of the same plugin (dominant first)."""
    executions: List[PluginExecution] = []
    own_ids = {e.id for e in dominant.executions}
    for ex in recessive.executions:
        if ex.id not in own_ids:
            executions.append(ex)
    for ex in dominant.executions:
        match = next((r for r in recessive.executions if r.id == ex.id), None)
        if match is None:
            executions.append(ex)
        else:
            executions.append(
                PluginExecution(
                    id=ex.id,
                    phase=ex.phase or match.phase,
                    goals=list(dict.fromkeys(match.goals + ex.goals)),
                    configuration=merge_configuration(ex.configuration, match.configuration),
                )
            )
    return Plugin(
        artifact_id=dominant.artifact_id,
        group_id=dominant.group_id if dominant.group_id is not None else recessive.group_id,
        version=dominant.version or recessive.version,
        configuration=merge_configuration(dominant.configuration, recessive.configuration),
        executions=executions,
        dependencies=dominant.dependencies or recessive.dependencies,
    )


def _merge_dependencies(own: Sequence[Dependency], inherited: Sequence[Dependency]) -> List[Dependency]:
    own_keys = {d.key for d in own}
    return [d for d in inherited if d.key not in own_keys] + list(own)


def _child_url(parent_url: Optional[str], artifact_id: str) -> Optional[str]:
    if not parent_url:
        return None
    return parent_url.rstrip("/") + "/" + artifact_id


def read_pom(
    pom_file: Path,
    *,
    parent: Optional[MavenProject] = None,
    user_properties: Optional[Mapping[str, str]] = None,
    profile_properties: Optional[Mapping[str, str]] = None,
    active_profiles: Iterable[str] = (),
    environ: Optional[Mapping[str, str]] = None,
) -> MavenProject:
    """Parse ``pom_file`` and return the interpolated project.

    ``parent`` must already be read (with its own inheritance applied).
    ``profile_properties`` are the properties of the active ``settings.xml``
    profiles; they override the POM's own properties, as in Maven.
    """
    pom_file = Path(pom_file).resolve()
    root = parse_xml(pom_file)
    if root.tag != "project":
        raise PomReadError(pom_file, f"root element is <{root.tag}>, expected <project>")

    user_props = dict(user_properties or {})
    env = os.environ if environ is None else environ
    basedir = pom_file.parent

    parent_ref: Optional[ParentRef] = None
    parent_el = root.find("parent")
    if parent_el is not None:
        parent_ref = ParentRef(
            group_id=text_of(parent_el, "groupId") or "",
            artifact_id=text_of(parent_el, "artifactId") or "",
            version=text_of(parent_el, "version"),
            relative_path=text_of(parent_el, "relativePath") or "../pom.xml",
        )

    artifact_id = text_of(root, "artifactId")
    if not artifact_id:
        raise PomReadError(pom_file, "missing <artifactId>")
    group_id = text_of(root, "groupId") or (parent_ref.group_id if parent_ref else None)
    version = text_of(root, "version") or (parent_ref.version if parent_ref else None)
    if not group_id:
        raise PomReadError(pom_file, "missing <groupId>")

    profiles = _active_profiles(root, active_profiles=set(active_profiles), user_properties=user_props)

    properties: Dict[str, str] = dict(parent.properties) if parent else {}
    properties.update(_properties(root.find("properties")))
    for profile in profiles:
        properties.update(_properties(profile.find("properties")))
    properties.update(profile_properties or {})

    builtins: Dict[str, str] = {
        "project.groupId": group_id,
        "project.artifactId": artifact_id,
        "project.version": version or "",
        "project.packaging": text_of(root, "packaging") or "jar",
        "project.basedir": str(basedir),
        "basedir": str(basedir),
        "project.baseUri": basedir.as_uri(),
        "project.file": str(pom_file),
    }
    if parent_ref is not None:
        builtins["project.parent.groupId"] = parent_ref.group_id
        builtins["project.parent.artifactId"] = parent_ref.artifact_id
        builtins["project.parent.version"] = parent_ref.version or ""

    def lookup(key: str) -> Optional[str]:
        if key.startswith("pom."):
            key = "project." + key[len("pom."):]
        if key in builtins:
            return builtins[key]
        if key in user_props:
            return user_props[key]
        if key in properties:
            return properties[key]
        if key.startswith("env."):
            return env.get(key[len("env."):])
        return None

    interp = Interpolator(lookup)

    name = text_of(root, "name", interp)
    if name:
        builtins["project.name"] = name

    build_el = root.find("build")

    def build_dir(tag: str, default: str) -> str:
        value = text_of(build_el, tag, interp) or interp(default) or default
        return _aligned(value, basedir)

    directory = build_dir("directory", "target")
    builtins["project.build.directory"] = directory
    final_name = text_of(build_el, "finalName", interp) or f"{artifact_id}-{version or ''}".rstrip("-")
    builtins["project.build.finalName"] = final_name
    output_directory = build_dir("outputDirectory", "${project.build.directory}/classes")
    builtins["project.build.outputDirectory"] = output_directory
    test_output_directory = build_dir("testOutputDirectory", "${project.build.directory}/test-classes")
    builtins["project.build.testOutputDirectory"] = test_output_directory
    source_directory = build_dir("sourceDirectory", "src/main/java")
    builtins["project.build.sourceDirectory"] = source_directory
    test_source_directory = build_dir("testSourceDirectory", "src/test/java")
    builtins["project.build.testSourceDirectory"] = test_source_directory

    # Model properties are interpolated once every builtin is known.
    properties = {k: interp(v) or "" for k, v in properties.items()}

    plugins = _plugins(build_el.find("plugins") if build_el is not None else None, interp)
    for profile in profiles:
        plugins = _merge_plugins(_plugins(profile.find("build/plugins"), interp), plugins)
    plugin_management = _plugins(
        build_el.find("pluginManagement/plugins") if build_el is not None else None, interp
    )
    reporting_plugins = _plugins(root.find("reporting/plugins"), interp)
    dependencies = _dependencies(root.find("dependencies"), interp)
    for profile in profiles:
        dependencies = _merge_dependencies(_dependencies(profile.find("dependencies"), interp), dependencies)
    dependency_management = _dependencies(root.find("dependencyManagement/dependencies"), interp)

    modules = texts_of(root, "modules/module", interp)
    for profile in profiles:
        for module in texts_of(profile, "modules/module", interp):
            if module not in modules:
                modules.append(module)

    scm_el = root.find("scm")
    scm = None
    if scm_el is not None:
        scm = Scm(
            url=text_of(scm_el, "url", interp),
            connection=text_of(scm_el, "connection", interp),
            developer_connection=text_of(scm_el, "developerConnection", interp),
        )

    url = text_of(root, "url", interp)
    ci_url = text_of(root, "ciManagement/url", interp)
    issue_url = text_of(root, "issueManagement/url", interp)

    if parent is not None:
        plugins = _merge_plugins(plugins, parent.build.plugins)
        plugin_management = _merge_plugins(plugin_management, parent.build.plugin_management)
        reporting_plugins = _merge_plugins(reporting_plugins, parent.reporting_plugins)
        dependencies = _merge_dependencies(dependencies, parent.dependencies)
        dependency_management = _merge_dependencies(dependency_management, parent.dependency_management)
        url = url or _child_url(parent.url, artifact_id)
        if scm is None and parent.scm is not None:
            scm = Scm(
                url=_child_url(parent.scm.url, artifact_id),
                connection=_child_url(parent.scm.connection, artifact_id),
                developer_connection=_child_url(parent.scm.developer_connection, artifact_id),
            )
        ci_url = ci_url or parent.ci_url
        issue_url = issue_url or parent.issue_url

    managed = {d.key: d for d in dependency_management}
    for dep in dependencies:
        m = managed.get(dep.key)
        if m is not None:
            if dep.version is None:
                dep.version = m.version
            if dep.scope is None:
                dep.scope = m.scope

    build = Build(
        directory=directory,
        output_directory=output_directory,
        test_output_directory=test_output_directory,
        source_directory=source_directory,
        test_source_directory=test_source_directory,
        final_name=final_name,
        resources=_resources(build_el, "resource", interp, basedir, "src/main/resources"),
        test_resources=_resources(build_el, "testResource", interp, basedir, "src/test/resources"),
        plugins=plugins,
        plugin_management=plugin_management,
    )

    project = MavenProject(
        pom_file=pom_file,
        group_id=group_id,
        artifact_id=artifact_id,
        version=interp(version) or "",
        build=build,
        packaging=builtins["project.packaging"],
        name=name,
        description=text_of(root, "description", interp),
        url=url,
        scm=scm,
        ci_url=ci_url,
        issue_url=issue_url,
        parent=parent_ref,
        properties=properties,
        modules=modules,
        dependencies=dependencies,
        dependency_management=dependency_management,
        reporting_plugins=reporting_plugins,
    )
    logger.debug("Read %s (%d module(s), %d plugin(s))", project.key, len(modules), len(plugins))
    return project
