from __future__ import annotations

import unittest
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from sonar_maven.bootstrap import ScannerBootstrapper, is_sonarcloud
from sonar_maven.compiler import MavenCompilerResolver
from sonar_maven.converter import MavenProjectConverter
from sonar_maven.dependencies import DependencyCollector
from sonar_maven.errors import ScannerExecutionError, ScannerFailureError, UnsupportedServerError
from sonar_maven.io.reactor import Reactor, load_reactor
from sonar_maven.io.settings import MavenSettings, ProxySettings

from support.projects import locate_project_dir, locate_project_pom


def _bootstrapper(
    tmp_path: Path,
    *,
    name: str = "shared/java-sample",
    user_properties: Optional[Dict[str, str]] = None,
    env_properties: Optional[Dict[str, str]] = None,
    environ: Optional[Dict[str, str]] = None,
    settings: Optional[MavenSettings] = None,
    debug: bool = False,
    server_version=None,
    analyze=None,
    pom: Optional[Path] = None,
) -> ScannerBootstrapper:
    jdk = tmp_path / "jdk"
    (jdk / "bin").mkdir(parents=True, exist_ok=True)
    (jdk / "bin" / "javac").write_text("", encoding="utf-8")
    env = {"JAVA_HOME": str(jdk)}
    env.update(environ or {})

    reactor = load_reactor(pom or locate_project_pom(name), user_properties=user_properties, environ=env)
    converter = MavenProjectConverter(
        DependencyCollector(tmp_path / "repo", reactor.projects),
        MavenCompilerResolver(environ=env),
        env_properties,
    )
    return ScannerBootstrapper(
        reactor,
        converter,
        settings=settings,
        env_properties=env_properties,
        debug=debug,
        environ=env,
        server_version=server_version,
        analyze=analyze,
    )


def test_resolve_without_server_or_scanner(tmp_path: Path) -> None:
    props = _bootstrapper(tmp_path).resolve()
    assert props["sonar.projectKey"] == "org.example:java-sample"
    assert props["sonar.projectBaseDir"] == str(locate_project_dir("shared/java-sample"))


def test_global_layering_user_system_env_project(tmp_path: Path) -> None:
    b = _bootstrapper(
        tmp_path,
        user_properties={"sonar.host.url": "http://user"},
        environ={"SONAR_HOST_URL": "http://system", "SONAR_TOKEN": "tkn"},
        env_properties={"sonar.host.url": "http://env", "sonar.branch.name": "main"},
    )
    props = b.resolve()
    assert props["sonar.host.url"] == "http://user"
    assert props["sonar.token"] == "tkn"
    assert props["sonar.branch.name"] == "main"

    b = _bootstrapper(tmp_path, environ={"SONAR_HOST_URL": "http://system"}, env_properties={"sonar.host.url": "http://env"})
    assert b.resolve()["sonar.host.url"] == "http://system"


def test_system_properties_include_proxy_and_verbose(tmp_path: Path) -> None:
    settings = MavenSettings(
        local_repository=tmp_path / "repo",
        proxies=[ProxySettings(id="p", host="proxy.local", port=3128, username="scott", password="tiger")],
    )
    system = _bootstrapper(tmp_path, settings=settings, debug=True).system_properties()
    assert system["http.proxyHost"] == "proxy.local"
    assert system["http.proxyPort"] == "3128"
    assert system["http.proxyUser"] == "scott"
    assert system["sonar.verbose"] == "true"


def test_encrypted_user_values_are_filtered(tmp_path: Path) -> None:
    b = _bootstrapper(tmp_path, user_properties={"db.password": "{abc=}", "sonar.password": "{abc=}"})
    assert b.user_properties() == {"sonar.password": "{abc=}"}
    props = b.resolve()
    assert "db.password" not in props
    assert props["sonar.password"] == "{abc=}"


def test_skip_returns_without_analyzing(tmp_path: Path) -> None:
    calls: List[Dict[str, str]] = []
    b = _bootstrapper(tmp_path, user_properties={"sonar.skip": "true"}, analyze=lambda p: calls.append(p) or 0)
    assert b.execute() == {}
    assert calls == []


def test_execute_runs_analysis_with_resolved_properties(tmp_path: Path) -> None:
    seen: List[Dict[str, str]] = []

    def analyze(props: Dict[str, str]) -> int:
        seen.append(props)
        return 0

    b = _bootstrapper(tmp_path, server_version=lambda host: "10.4.1.88267", analyze=analyze)
    props = b.execute()
    assert seen == [props]
    assert b.server_version == "10.4.1.88267"


def test_failed_analysis_raises(tmp_path: Path) -> None:
    b = _bootstrapper(tmp_path, analyze=lambda props: 2)
    with pytest.raises(ScannerFailureError, match="The scanner analysis has failed!"):
        b.execute()


def test_old_server_is_rejected(tmp_path: Path) -> None:
    hosts: List[str] = []

    def version(host: str) -> str:
        hosts.append(host)
        return "5.5"

    b = _bootstrapper(tmp_path, server_version=version, analyze=lambda p: 0)
    with pytest.raises(UnsupportedServerError, match="prior to 5.6"):
        b.execute()
    assert hosts == ["http://localhost:9000"]


def test_sonarcloud_skips_version_check(tmp_path: Path) -> None:
    def version(host: str) -> str:
        raise AssertionError("must not be called")

    b = _bootstrapper(
        tmp_path,
        user_properties={"sonar.host.url": "https://sonarcloud.io"},
        server_version=version,
        analyze=lambda p: 0,
    )
    assert b.execute()["sonar.host.url"] == "https://sonarcloud.io"
    assert is_sonarcloud("https://sonarcloud.io")
    assert not is_sonarcloud(None)


def test_unknown_server_version_is_not_fatal(tmp_path: Path) -> None:
    b = _bootstrapper(tmp_path, server_version=lambda host: None, analyze=lambda p: 0)
    b.execute()
    assert b.is_version_prior_to("5.6")


def test_missing_top_level_project_raises(tmp_path: Path) -> None:
    b = _bootstrapper(tmp_path)
    b.reactor = Reactor(projects=[])
    with pytest.raises(ScannerExecutionError, match="does not declare a top level project"):
        b.collect_properties()


def test_excluded_report_files() -> None:
    excluded = ScannerBootstrapper.excluded_report_files(
        {
            "sonar.coverage.jacoco.xmlReportPaths": "/r/jacoco.xml,/r/other.xml",
            "sonar.junit.reportPaths": "/r/junit",
            "sonar.sources": "/src",
        }
    )
    assert {p.name for p in excluded} == {"jacoco.xml", "other.xml", "junit"}


class TestScanAll(unittest.TestCase):
    def test_scan_all_collects_extra_files(self) -> None:
        import tempfile

        with tempfile.TemporaryDirectory() as td:
            root = Path(td).resolve()
            proj = root / "proj"
            (proj / "src" / "main" / "java").mkdir(parents=True)
            (proj / "src" / "main" / "java" / "Main.java").write_text("class Main {}", encoding="utf-8")
            (proj / "scripts").mkdir()
            (proj / "scripts" / "deploy.sh").write_text("echo hi\n", encoding="utf-8")
            (proj / "README.md").write_text("# readme\n", encoding="utf-8")
            (proj / "coverage.xml").write_text("<x/>", encoding="utf-8")
            (proj / "pom.xml").write_text(
                "<project><groupId>g</groupId><artifactId>a</artifactId><version>1</version></project>",
                encoding="utf-8",
            )

            b = _bootstrapper(
                root,
                pom=proj / "pom.xml",
                user_properties={
                    "sonar.maven.scanAll": "true",
                    "sonar.coverage.jacoco.xmlReportPaths": str(proj / "coverage.xml"),
                },
            )
            sources = b.resolve()["sonar.sources"].split(",")

        self.assertIn(str(proj / "scripts" / "deploy.sh"), sources)
        self.assertIn(str(proj / "README.md"), sources)
        self.assertIn(str(proj / "src" / "main" / "java"), sources)
        self.assertNotIn(str(proj / "coverage.xml"), sources)
        self.assertEqual(1, sources.count(str(proj / "pom.xml")))

    def test_scan_all_is_ignored_when_sources_are_overridden(self) -> None:
        import tempfile

        with tempfile.TemporaryDirectory() as td:
            root = Path(td).resolve()
            with self.assertLogs("sonar_maven.bootstrap", level="WARNING") as logs:
                props = _bootstrapper(
                    root,
                    user_properties={"sonar.maven.scanAll": "true", "sonar.sources": "src/main/java"},
                ).resolve()

        basedir = locate_project_dir("shared/java-sample")
        self.assertEqual(str(basedir / "src" / "main" / "java"), props["sonar.sources"])
        self.assertIn("sonar.sources has been overridden", "\n".join(logs.output))


if __name__ == "__main__":
    unittest.main()


def test_empty_links_survive_global_layering(tmp_path: Path) -> None:
    props = _bootstrapper(tmp_path, name="shared/skipped-module").resolve()

    assert props["sonar.links.homepage"] == ""
    assert props["org.example.skip:kept.sonar.links.ci"] == ""


def test_empty_user_value_does_not_mask_environment(tmp_path: Path) -> None:
    b = _bootstrapper(
        tmp_path,
        user_properties={"sonar.branch.name": ""},
        env_properties={"sonar.branch.name": "from-env"},
    )
    assert b.resolve()["sonar.branch.name"] == "from-env"
