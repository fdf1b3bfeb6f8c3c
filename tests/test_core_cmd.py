import sys
import tempfile
import unittest
from pathlib import Path

from tools.core_cmd import TIMEOUT_EXIT_CODE, run_cmd, which_or_raise


class TestRunCmd(unittest.TestCase):
    def test_captures_output_and_exit_code(self) -> None:
        res = run_cmd(
            [sys.executable, "-c", "import sys; print('out'); sys.stderr.write('err'); sys.exit(3)"],
            print_stderr=False,
        )
        self.assertEqual(3, res.exit_code)
        self.assertEqual("out", res.stdout.strip())
        self.assertEqual("err", res.stderr)
        self.assertFalse(res.timed_out)

    def test_env_is_merged_over_process_environment(self) -> None:
        res = run_cmd(
            [sys.executable, "-c", "import os; print(os.environ['FIXTURE_VAR'], bool(os.environ.get('PATH')))"],
            env={"FIXTURE_VAR": "merged"},
            print_stderr=False,
        )
        self.assertEqual("merged True", res.stdout.strip())

    def test_timeout_maps_to_124(self) -> None:
        res = run_cmd([sys.executable, "-c", "import time; time.sleep(5)"], timeout_seconds=1, print_stderr=False)
        self.assertEqual(TIMEOUT_EXIT_CODE, res.exit_code)
        self.assertTrue(res.timed_out)

    def test_log_path_collects_both_streams(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log = Path(td) / "logs" / "run.log"
            res = run_cmd(
                [sys.executable, "-c", "import sys; print('to-out', flush=True); sys.stderr.write('to-err')"],
                log_path=log,
            )
            content = log.read_text(encoding="utf-8")
        self.assertEqual(0, res.exit_code)
        self.assertIn("to-out", content)
        self.assertIn("to-err", content)
        self.assertEqual(content, res.stdout)

    def test_cwd_is_honoured(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            res = run_cmd([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=Path(td), print_stderr=False)
            self.assertEqual(str(Path(td).resolve()), str(Path(res.stdout.strip()).resolve()))


class TestWhichOrRaise(unittest.TestCase):
    def test_missing_binary_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            which_or_raise("definitely-not-a-real-binary-xyz", fallbacks=["/nope/bin/tool"])

    def test_fallback_is_used(self) -> None:
        self.assertEqual(sys.executable, which_or_raise("definitely-not-a-real-binary-xyz", fallbacks=[sys.executable]))


if __name__ == "__main__":
    unittest.main()
