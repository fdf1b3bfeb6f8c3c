"""sonar_maven.io.reactor

Load a multi-module build the way ``mvn -f <pom>`` sees it.

The reactor is the execution-root project plus every ``<module>`` reachable
from it, ordered parents first. Parent POMs referenced through
``<parent><relativePath>`` are read for inheritance even when they are not
reactor members.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from sonar_maven.domain.project import MavenProject
from sonar_maven.errors import ProjectStructureError
from sonar_maven.io.maven_xml import parse_xml, text_of
from sonar_maven.io.pom import read_pom
from sonar_maven.io.settings import MavenSettings

logger = logging.getLogger(__name__)


@dataclass
class Reactor:
    projects: List[MavenProject]
    user_properties: Dict[str, str] = field(default_factory=dict)

    @property
    def root(self) -> Optional[MavenProject]:
        for p in self.projects:
            if p.execution_root:
                return p
        return None

    def find(self, pom_file: Path) -> Optional[MavenProject]:
        wanted = pom_path(pom_file)
        for p in self.projects:
            if p.pom_file == wanted:
                return p
        return None


def pom_path(path: Path) -> Path:
    """Canonical pom file for a module path (a directory means ``<dir>/pom.xml``)."""
    p = Path(os.path.realpath(str(path)))
    if p.is_dir():
        p = p / "pom.xml"
    return p


class ReactorLoader:
    """Read projects once and apply parent inheritance."""

    def __init__(
        self,
        *,
        user_properties: Optional[Mapping[str, str]] = None,
        settings: Optional[MavenSettings] = None,
        active_profiles: Iterable[str] = (),
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.user_properties = dict(user_properties or {})
        self.settings = settings
        self.active_profiles = list(active_profiles)
        if settings is not None:
            self.active_profiles += [p for p in settings.active_profiles if p not in self.active_profiles]
        self.environ = environ
        self._cache: Dict[Path, MavenProject] = {}

    def _parent_of(self, pom_file: Path) -> Optional[MavenProject]:
        root = parse_xml(pom_file)
        parent_el = root.find("parent")
        if parent_el is None:
            return None
        relative = text_of(parent_el, "relativePath")
        if relative is None and parent_el.find("relativePath") is not None:
            # <relativePath/> means "look the parent up in a repository"
            return None
        candidate = pom_path(pom_file.parent / (relative or "../pom.xml"))
        if not candidate.is_file():
            logger.debug("Parent of %s not found at %s; not inherited", pom_file, candidate)
            return None
        parent = self.load(candidate)
        if (parent.group_id, parent.artifact_id) != (
            text_of(parent_el, "groupId"),
            text_of(parent_el, "artifactId"),
        ):
            logger.debug("%s is not the declared parent of %s; not inherited", candidate, pom_file)
            return None
        return parent

    def load(self, pom_file: Path) -> MavenProject:
        pom_file = pom_path(pom_file)
        cached = self._cache.get(pom_file)
        if cached is not None:
            return cached
        parent = self._parent_of(pom_file)
        project = read_pom(
            pom_file,
            parent=parent,
            user_properties=self.user_properties,
            profile_properties=self.settings.profile_properties if self.settings else None,
            active_profiles=self.active_profiles,
            environ=self.environ,
        )
        self._cache[pom_file] = project
        return project

    def load_reactor(self, root_pom: Path) -> Reactor:
        root = self.load(root_pom)
        root.execution_root = True
        ordered: List[MavenProject] = []
        self._collect(root, ordered, seen=set())
        return Reactor(projects=ordered, user_properties=dict(self.user_properties))

    def _collect(self, project: MavenProject, ordered: List[MavenProject], seen: set) -> None:
        if project.pom_file in seen:
            return
        seen.add(project.pom_file)
        ordered.append(project)
        for module in project.modules:
            module_pom = pom_path(project.basedir / module)
            if not module_pom.is_file():
                raise ProjectStructureError(
                    f"Child module {module_pom} of {project.pom_file} does not exist"
                )
            self._collect(self.load(module_pom), ordered, seen)


def load_reactor(
    root_pom: Path,
    *,
    user_properties: Optional[Mapping[str, str]] = None,
    settings: Optional[MavenSettings] = None,
    active_profiles: Iterable[str] = (),
    environ: Optional[Mapping[str, str]] = None,
) -> Reactor:
    loader = ReactorLoader(
        user_properties=user_properties,
        settings=settings,
        active_profiles=active_profiles,
        environ=environ,
    )
    return loader.load_reactor(Path(root_pom))
