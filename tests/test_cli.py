import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from callchain.cli import main

from tests.javafiles import auth_sources, user_sources, write_project


class TestMain(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        write_project(self.root, {**auth_sources(), **user_sources()})

    def tearDown(self):
        self._tmp.cleanup()

    def run_main(self, *argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            main([str(a) for a in argv])
        return out.getvalue()

    def test_text_output(self):
        output = self.run_main(self.root, "mapper", "UserMapper")
        self.assertIn("UserController#list#()", output)
        self.assertIn("URL: /api/list", output)

    def test_json_output_with_javalang(self):
        output = self.run_main(self.root, "2", "ANONYMOUS", "--format", "json", "--parser", "javalang")
        data = json.loads(output)
        self.assertEqual(data["urls"], ["/auth/login"])

    def test_no_chains(self):
        output = self.run_main(self.root, "method", "Nobody#calls")
        self.assertIn("No call chains found", output)

    def test_bad_mode_is_usage_error(self):
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            main([str(self.root), "table", "UserMapper"])
        self.assertEqual(ctx.exception.code, 2)

    def test_missing_arguments(self):
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            main([str(self.root)])
        self.assertEqual(ctx.exception.code, 2)

    def test_bad_workers(self):
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as ctx:
            main([str(self.root), "mapper", "UserMapper", "--workers", "0"])
        self.assertEqual(ctx.exception.code, 2)

    def test_missing_root_exits_1(self):
        with self.assertLogs("callchain.cli", level="ERROR"), self.assertRaises(SystemExit) as ctx:
            main([str(self.root / "missing"), "mapper", "UserMapper"])
        self.assertEqual(ctx.exception.code, 1)

    def test_missing_config_exits_1(self):
        with self.assertLogs("callchain.cli", level="ERROR"), self.assertRaises(SystemExit) as ctx:
            main([str(self.root), "mapper", "UserMapper", "--config", str(self.root / "none.toml")])
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
