import os
import unittest
from unittest import mock

from fastapi.testclient import TestClient

from app.api import app
from wsjf_viz.config import get_config


ALPHA = {"id": "A", "title": "Alpha", "complexity": 1, "effort": 0.5, "doubt": 0.5, "cod_bv": 5, "cod_tc": 3, "cod_rroe": 2}
BETA = {"id": "B", "title": "Beta", "complexity": 1, "effort": 1, "doubt": 1, "cod_bv": 2, "cod_tc": 2, "cod_rroe": 1}


class TestApi(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        with mock.patch.dict(os.environ, {}, clear=True):
            get_config(force_reload=True)
        cls.client = TestClient(app)

    def test_cluster_complete(self):
        resp = self.client.post("/cluster", json={"item": ALPHA, "view": "cod"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["item_id"], "A")
        self.assertTrue(body["complete"])
        self.assertTrue(body["svg"].startswith("<svg"))
        self.assertEqual(body["svg"].count("<circle"), 5)

    def test_cluster_placeholder(self):
        resp = self.client.post("/cluster", json={"item": {"id": "D", "complexity": 2}})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertFalse(body["complete"])
        self.assertIn('data-sweep="120"', body["svg"])

    def test_cluster_rejects_unknown_view(self):
        resp = self.client.post("/cluster", json={"item": ALPHA, "view": "wsjf"})
        self.assertEqual(resp.status_code, 422)

    def test_cost_chart(self):
        resp = self.client.post("/cost_chart", json={"items": [ALPHA, BETA], "locked_order": ["B", "A"]})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["optimal"]["total_delay_cost"], 10.0)
        self.assertEqual(body["current"]["total_delay_cost"], 30.0)
        self.assertAlmostEqual(body["percent_above_optimal"], 200.0)
        self.assertFalse(body["is_optimal"])

    def test_cost_chart_without_data(self):
        resp = self.client.post("/cost_chart", json={"items": []})
        body = resp.json()
        self.assertTrue(body["optimal"]["no_data"])
        self.assertIn("No valid data to display.", body["optimal"]["svg"])

    def test_rank(self):
        draft = {"id": "D", "title": "Draft", "complexity": 1}
        resp = self.client.post("/rank", json={"items": [BETA, draft, ALPHA]})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual([(r["id"], r["rank"]) for r in body["ranks"]], [("A", 1), ("B", 2)])
        self.assertAlmostEqual(body["ranks"][0]["wsjf"], 5.0)
        self.assertEqual(body["unranked"], ["D"])


if __name__ == "__main__":
    unittest.main()
