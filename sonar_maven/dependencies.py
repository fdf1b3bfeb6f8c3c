"""sonar_maven.dependencies

Turn declared dependencies into classpath entries and the
``sonar.maven.projectDependencies`` JSON payload.

Only direct dependencies are listed; their ``d`` (children) array is always
empty because transitive resolution needs a repository client. Jars are looked
up in the local repository, and reactor modules resolve to their output
directories, as Maven does during a reactor build.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from sonar_maven.domain.project import Dependency, MavenProject

_COMPILE_SCOPES = ("compile", "provided", "system")
_TEST_SCOPES = ("compile", "provided", "system", "runtime", "test")

# Artifact type -> (extension, implied classifier)
_TYPE_HANDLERS = {
    "jar": ("jar", None),
    "test-jar": ("jar", "tests"),
    "bundle": ("jar", None),
    "maven-plugin": ("jar", None),
    "ejb": ("jar", None),
    "ejb-client": ("jar", "client"),
    "java-source": ("jar", "sources"),
    "javadoc": ("jar", "javadoc"),
    "war": ("war", None),
    "ear": ("ear", None),
    "rar": ("rar", None),
}


class DependencyCollector:
    def __init__(self, local_repository: Path, reactor_projects: Iterable[MavenProject] = ()) -> None:
        self.local_repository = Path(local_repository)
        self._modules: Dict[str, MavenProject] = {p.key: p for p in reactor_projects}

    def artifact_path(self, dep: Dependency) -> Optional[str]:
        if dep.effective_scope == "system":
            return dep.system_path
        module = self._modules.get(dep.key)
        if module is not None and dep.type in ("jar", "bundle", "ejb"):
            return module.build.output_directory
        if module is not None and dep.type == "test-jar":
            return module.build.test_output_directory
        if not dep.version:
            return None
        ext, implied = _TYPE_HANDLERS.get(dep.type, (dep.type, None))
        classifier = dep.classifier or implied
        file_name = f"{dep.artifact_id}-{dep.version}"
        if classifier:
            file_name += f"-{classifier}"
        return str(
            self.local_repository.joinpath(*dep.group_id.split("."), dep.artifact_id, dep.version, f"{file_name}.{ext}")
        )

    def _elements(self, project: MavenProject, scopes: Iterable[str]) -> List[str]:
        out: List[str] = []
        for dep in project.dependencies:
            if dep.type == "pom" or dep.effective_scope not in scopes:
                continue
            path = self.artifact_path(dep)
            if path and path not in out:
                out.append(path)
        return out

    def compile_classpath_elements(self, project: MavenProject) -> List[str]:
        return [project.build.output_directory] + self._elements(project, _COMPILE_SCOPES)

    def test_classpath_elements(self, project: MavenProject) -> List[str]:
        return [
            project.build.test_output_directory,
            project.build.output_directory,
        ] + self._elements(project, _TEST_SCOPES)

    def to_json(self, project: MavenProject) -> str:
        deps = [
            {"k": d.key, "v": d.version, "s": d.effective_scope, "d": []}
            for d in project.dependencies
            if d.effective_scope != "import"
        ]
        return json.dumps(deps, separators=(",", ":"))
