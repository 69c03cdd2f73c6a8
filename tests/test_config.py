import tempfile
import unittest
from pathlib import Path

from callchain.config import CONFIG_FILE_NAME, AnalyzerConfig, load_config
from callchain.errors import ConfigError


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, text, name=CONFIG_FILE_NAME):
        path = self.root / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults_without_file(self):
        self.assertEqual(load_config(self.root), AnalyzerConfig())

    def test_reads_table(self):
        self.write(
            '[callchain]\n'
            'constant_holder_suffix = "Keys"\n'
            'mapping_annotations = ["GetMapping", "Route"]\n'
            'workers = 3\n'
        )
        config = load_config(self.root)
        self.assertEqual(config.constant_holder_suffix, "Keys")
        self.assertEqual(config.mapping_annotations, ("GetMapping", "Route"))
        self.assertEqual(config.workers, 3)
        self.assertEqual(config.parser, "tree-sitter")

    def test_unknown_keys_are_ignored(self):
        self.write('[callchain]\ncolour = "blue"\n')
        with self.assertLogs("callchain.config", level="WARNING"):
            self.assertEqual(load_config(self.root), AnalyzerConfig())

    def test_bad_value(self):
        self.write("[callchain]\nworkers = 0\n")
        with self.assertRaises(ConfigError):
            load_config(self.root)

    def test_bad_list(self):
        self.write("[callchain]\nexclude = \"target\"\n")
        with self.assertRaises(ConfigError):
            load_config(self.root)

    def test_broken_discovered_file_is_ignored(self):
        self.write("[callchain\n")
        with self.assertLogs("callchain.config", level="WARNING"):
            self.assertEqual(load_config(self.root), AnalyzerConfig())

    def test_broken_explicit_file_raises(self):
        path = self.write("[callchain\n", name="custom.toml")
        with self.assertRaises(ConfigError):
            load_config(self.root, path)

    def test_missing_explicit_file_raises(self):
        with self.assertRaises(ConfigError):
            load_config(self.root, self.root / "missing.toml")

    def test_merged_skips_none(self):
        config = AnalyzerConfig(workers=4).merged(parser="javalang", workers=None)
        self.assertEqual(config.parser, "javalang")
        self.assertEqual(config.workers, 4)


if __name__ == "__main__":
    unittest.main()
