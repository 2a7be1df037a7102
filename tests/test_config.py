import os
import tempfile
import unittest

from depquery.config import DEFAULTS, load_config


class TestConfig(unittest.TestCase):
    def test_missing_file_gives_defaults(self):
        cfg = load_config("/nonexistent/depquery.yaml")
        self.assertEqual(cfg, DEFAULTS)
        # Копия, а не ссылка на DEFAULTS
        cfg["annotate"]["as_chain"] = False
        self.assertTrue(DEFAULTS["annotate"]["as_chain"])

    def test_sections_are_merged(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "cfg.yaml")
            with open(path, "w", encoding="utf-8") as f:
                f.write("annotate:\n  unique_fill: true\nvalidation_level: lenient\n")
            cfg = load_config(path)

        self.assertTrue(cfg["annotate"]["unique_fill"])
        self.assertTrue(cfg["annotate"]["as_chain"])
        self.assertEqual(cfg["validation_level"], "lenient")
        self.assertEqual(cfg["columns"]["pos_field"], "upos")


if __name__ == '__main__':
    unittest.main()
