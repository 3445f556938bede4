import contextlib
import io
import json
import os
import tempfile
import unittest

from app import cli


BACKLOG = {
    "settings": {},
    "backlogItems": [
        {"id": "A", "title": "Alpha", "complexity": 1, "effort": 0.5, "doubt": 0.5,
         "cod_bv": 5, "cod_tc": 3, "cod_rroe": 2, "customSortIndex": 1},
        {"id": "B", "title": "Beta", "complexity": 1, "effort": 1, "doubt": 1,
         "cod_bv": 2, "cod_tc": 2, "cod_rroe": 1, "customSortIndex": 0},
        {"id": "D", "title": "Draft", "complexity": 3},
    ],
}


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name
        self.backlog_path = os.path.join(self.tmp, "backlog.json")
        with open(self.backlog_path, "w", encoding="utf-8") as f:
            json.dump(BACKLOG, f)

    def tearDown(self):
        self._tmp.cleanup()

    def run_cli(self, *argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            cli.main(list(argv))
        return out.getvalue()

    def test_rank(self):
        output = self.run_cli("rank", self.backlog_path)
        self.assertIn("[rank] Ranked 2 of 3 items.", output)
        self.assertIn("Not ranked (incomplete estimates): Draft", output)

    def test_chart_writes_both_orders(self):
        out_dir = os.path.join(self.tmp, "charts")
        output = self.run_cli("chart", self.backlog_path, "--out-dir", out_dir)
        self.assertTrue(os.path.exists(os.path.join(out_dir, "optimal.svg")))
        self.assertTrue(os.path.exists(os.path.join(out_dir, "current.svg")))
        self.assertIn("Optimal order total delay cost: 10", output)
        self.assertIn("Current order total delay cost: 30 (+200%)", output)

    def test_clusters(self):
        out_dir = os.path.join(self.tmp, "clusters")
        self.run_cli("clusters", self.backlog_path, "--out-dir", out_dir)
        self.assertEqual(len(os.listdir(out_dir)), 6)
        self.assertTrue(os.path.exists(os.path.join(out_dir, "D-size.svg")))

    def test_export_csv(self):
        dest = os.path.join(self.tmp, "export.csv")
        self.run_cli("export-csv", self.backlog_path, dest)
        with open(dest, encoding="utf-8-sig") as f:
            self.assertIn("Alpha;1;0.5;0.5;2;5;3;2;10;5,00", f.read())

    def test_missing_file_exits(self):
        with self.assertRaises(SystemExit):
            self.run_cli("rank", os.path.join(self.tmp, "missing.json"))


if __name__ == "__main__":
    unittest.main()
