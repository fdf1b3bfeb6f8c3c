import tempfile
import unittest
from pathlib import Path

from tools.maven.build_plan import BuildPlan, PlannedBuild, dump_build_plan, load_build_plan


class TestBuildPlan(unittest.TestCase):
    def test_load_tolerates_optional_fields(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "plan.yaml"
            p.write_text(
                "builds:\n"
                "  - pom: sample/pom.xml\n"
                "    goals: clean, install\n"
                "    properties:\n"
                "      skipTests: true\n"
                "    arguments: -pl core -am\n"
                "  - name: second\n"
                "    goals: [verify]\n",
                encoding="utf-8",
            )
            plan = load_build_plan(p)

        first, second = plan.builds
        self.assertEqual("build-1", first.name)
        self.assertEqual(["clean", "install"], first.goals)
        self.assertEqual({"skipTests": "True"}, first.properties)
        self.assertEqual(["-pl", "core", "-am"], first.arguments)
        self.assertEqual("second", second.name)
        self.assertEqual(0, second.timeout_seconds)

    def test_missing_goals_is_an_error(self) -> None:
        with self.assertRaisesRegex(ValueError, "Build #2 has no goals"):
            BuildPlan.from_dict({"builds": [{"goals": ["verify"]}, {"name": "empty"}]})

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_build_plan("/definitely/not/here/plan.yaml")

    def test_top_level_must_be_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "plan.yaml"
            p.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_build_plan(p)

    def test_dump_then_load_keeps_builds(self) -> None:
        plan = BuildPlan(
            builds=[PlannedBuild(name="app", goals=["package"], pom="app/pom.xml", env={"MAVEN_OPTS": "-Xmx1g"})]
        )
        with tempfile.TemporaryDirectory() as td:
            out = dump_build_plan(Path(td) / "nested" / "plan.yaml", plan)
            self.assertTrue(out.exists())
            self.assertEqual(plan, load_build_plan(out))

    def test_relative_paths_resolve_against_base_dir(self) -> None:
        planned = PlannedBuild(name="x", goals=["verify"], pom="app/pom.xml", execution_dir="/abs/dir")
        build = planned.to_maven_build(Path("/plans"))
        self.assertEqual(Path("/plans/app/pom.xml"), build.pom)
        self.assertEqual(Path("/abs/dir"), build.execution_dir)
        self.assertEqual(["verify"], build.goals)


if __name__ == "__main__":
    unittest.main()
