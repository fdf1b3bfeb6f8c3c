"""sonar_maven.domain.project

The Maven project model, reduced to what the scanner integration reads.

These records are produced by :mod:`sonar_maven.io.pom` (already interpolated
and with parent inheritance applied) and are treated as read-only afterwards.
Paths stored here are absolute strings, the way Maven exposes them after path
alignment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from sonar_maven.utils import GROUP_ID_APACHE_MAVEN, GROUP_ID_CODEHAUS_MOJO

_INDEXED = re.compile(r"^(?P<name>[^\[]+)\[(?P<index>\d+)\]$")


@dataclass
class ConfigNode:
    """A plugin ``<configuration>`` element (Maven's Xpp3Dom)."""

    name: str
    value: Optional[str] = None
    children: List["ConfigNode"] = field(default_factory=list)

    def children_named(self, name: str) -> List["ConfigNode"]:
        return [c for c in self.children if c.name == name]

    def child(self, name: str) -> Optional["ConfigNode"]:
        for c in self.children:
            if c.name == name:
                return c
        return None

    def find(self, key: str) -> Optional["ConfigNode"]:
        """Walk a ``parent/child[1]`` style key.

        A part without an index selects the first matching child.
        """
        node: Optional[ConfigNode] = self
        for part in key.split("/"):
            name, index = part, 0
            m = _INDEXED.match(part)
            if m:
                name, index = m.group("name"), int(m.group("index"))
            matches = node.children_named(name) if node else []
            if len(matches) <= index:
                return None
            node = matches[index]
        return node

    def parameter(self, key: str) -> Optional[str]:
        node = self.find(key)
        return node.value if node is not None else None

    def as_map(self) -> Dict[str, Optional[str]]:
        """Direct children as ``name -> text`` (used for ``jdkToolchain``)."""
        return {c.name: c.value for c in self.children}

    def merged_over(self, recessive: Optional["ConfigNode"]) -> "ConfigNode":
        """Return a copy of ``self`` with ``recessive`` filling the gaps.

        Same rules as Maven's ``Xpp3Dom.mergeXpp3Dom``: the dominant value wins,
        children with the same name are merged pairwise, recessive-only
        children are appended.
        """
        if recessive is None:
            return self.copy()
        value = self.value if self.value is not None else recessive.value
        children = [c.copy() for c in self.children]
        for rc in recessive.children:
            dominant = [c for c in children if c.name == rc.name]
            if not dominant:
                children.append(rc.copy())
            elif len(dominant) == 1 and len(recessive.children_named(rc.name)) == 1:
                idx = children.index(dominant[0])
                children[idx] = dominant[0].merged_over(rc)
        return ConfigNode(name=self.name, value=value, children=children)

    def copy(self) -> "ConfigNode":
        return ConfigNode(name=self.name, value=self.value, children=[c.copy() for c in self.children])


def merge_configuration(dominant: Optional[ConfigNode], recessive: Optional[ConfigNode]) -> Optional[ConfigNode]:
    if dominant is None:
        return recessive.copy() if recessive is not None else None
    return dominant.merged_over(recessive)


@dataclass
class PluginExecution:
    id: str = "default"
    phase: Optional[str] = None
    goals: List[str] = field(default_factory=list)
    configuration: Optional[ConfigNode] = None


@dataclass
class Plugin:
    """A ``<plugin>`` declaration.

    ``group_id`` is ``None`` when the POM omits it; Maven then assumes one of
    the two well-known plugin groups.
    """

    artifact_id: str
    group_id: Optional[str] = None
    version: Optional[str] = None
    configuration: Optional[ConfigNode] = None
    executions: List[PluginExecution] = field(default_factory=list)
    dependencies: List["Dependency"] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.group_id or GROUP_ID_APACHE_MAVEN}:{self.artifact_id}"

    def matches(self, group_id: Optional[str], artifact_id: str) -> bool:
        if self.artifact_id != artifact_id:
            return False
        if self.group_id is None:
            return group_id is None or group_id in (GROUP_ID_APACHE_MAVEN, GROUP_ID_CODEHAUS_MOJO)
        return self.group_id == group_id

    def parameter(self, key: str) -> Optional[str]:
        if self.configuration is None:
            return None
        return self.configuration.parameter(key)


@dataclass
class Dependency:
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    scope: Optional[str] = None
    type: str = "jar"
    classifier: Optional[str] = None
    system_path: Optional[str] = None
    optional: bool = False

    @property
    def key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def effective_scope(self) -> str:
        return self.scope or "compile"


@dataclass
class Resource:
    directory: str


@dataclass
class Scm:
    url: Optional[str] = None
    connection: Optional[str] = None
    developer_connection: Optional[str] = None


@dataclass
class ParentRef:
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    relative_path: str = "../pom.xml"


@dataclass
class Build:
    directory: str
    output_directory: str
    test_output_directory: str
    source_directory: str
    test_source_directory: str
    final_name: Optional[str] = None
    resources: List[Resource] = field(default_factory=list)
    test_resources: List[Resource] = field(default_factory=list)
    plugins: List[Plugin] = field(default_factory=list)
    plugin_management: List[Plugin] = field(default_factory=list)


@dataclass
class MavenProject:
    pom_file: Path
    group_id: str
    artifact_id: str
    version: str
    build: Build
    packaging: str = "jar"
    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    scm: Optional[Scm] = None
    ci_url: Optional[str] = None
    issue_url: Optional[str] = None
    parent: Optional[ParentRef] = None
    properties: Dict[str, str] = field(default_factory=dict)
    modules: List[str] = field(default_factory=list)
    dependencies: List[Dependency] = field(default_factory=list)
    dependency_management: List[Dependency] = field(default_factory=list)
    reporting_plugins: List[Plugin] = field(default_factory=list)
    execution_root: bool = False

    @property
    def basedir(self) -> Path:
        return self.pom_file.parent

    @property
    def key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def id(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.packaging}:{self.version}"

    @property
    def display_name(self) -> str:
        return self.name or self.artifact_id

    @property
    def compile_source_roots(self) -> List[str]:
        return [self.build.source_directory]

    @property
    def test_compile_source_roots(self) -> List[str]:
        return [self.build.test_source_directory]

    def __str__(self) -> str:
        return f"MavenProject: {self.key}:{self.version} @ {self.pom_file}"
