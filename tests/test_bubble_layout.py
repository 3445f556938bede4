import math
import random
import unittest

from wsjf_viz.bubble_layout import (
    DEFAULT_PADDING_PX,
    PAIR_CHOICES,
    ClusterOptions,
    label_font_size,
    layout_cluster,
    recenter_labels,
    resolve_padding,
    select_edge_pair,
    size_scale,
    solve_cluster,
)
from wsjf_viz.host import FrameQueueHost, TextBox
from wsjf_viz.schema import MetricTriple, cod_triple, size_triple
from wsjf_viz.theme import Theme

TOL = 1e-3


def _data_circles(scene):
    return [c for c in scene.circles() if "data-slot" in c.attrs]


class TestSolveCluster(unittest.TestCase):
    def setUp(self):
        self.values = (3.0, 5.0, 1.0)
        pair = select_edge_pair("largest", [size_scale(v) for v in self.values])
        self.layout = solve_cluster(self.values, padding=2.0, edge_pair=pair)

    def test_outer_radius_grows_with_total(self):
        self.assertAlmostEqual(self.layout.outer_radius, 9 * 15 / 2)

    def test_largest_pair_rests_on_the_wall(self):
        self.assertEqual(self.layout.edge_pair, (1, 0))
        for slot in self.layout.edge_pair:
            cx, cy = self.layout.centers[slot]
            reach = math.hypot(cx, cy) + self.layout.radii[slot] + 2.0
            self.assertAlmostEqual(reach, self.layout.outer_radius, delta=TOL)

    def test_radii_follow_values(self):
        r = self.layout.radii
        self.assertGreater(r[1], r[0])
        self.assertGreater(r[0], r[2])
        self.assertAlmostEqual(r[1] / r[0], math.sqrt(5 / 3), places=6)

    def test_bubbles_touch_but_never_overlap(self):
        a, b = self.layout.edge_pair
        c = next(i for i in range(3) if i not in (a, b))
        r = self.layout.radii
        p = self.layout.centers

        def gap(i, j):
            return math.dist(p[i], p[j]) - (r[i] + r[j] + 2.0)

        self.assertAlmostEqual(gap(a, b), 0.0, delta=TOL)
        self.assertAlmostEqual(gap(a, c), 0.0, delta=TOL)
        self.assertAlmostEqual(gap(b, c), 0.0, delta=TOL)

    def test_every_bubble_is_contained(self):
        for (cx, cy), r in zip(self.layout.centers, self.layout.radii):
            self.assertLessEqual(math.hypot(cx, cy) + r, self.layout.outer_radius + TOL)

    def test_equal_values_give_equal_radii(self):
        layout = solve_cluster((2, 2, 2))
        self.assertAlmostEqual(layout.radii[0], layout.radii[1], places=9)
        self.assertAlmostEqual(layout.radii[1], layout.radii[2], places=9)

    def test_fixed_pair_is_respected(self):
        layout = solve_cluster((3, 5, 1), padding=2.0, edge_pair=(0, 2))
        self.assertEqual(layout.edge_pair, (0, 2))
        for slot in (0, 2):
            cx, cy = layout.centers[slot]
            self.assertAlmostEqual(
                math.hypot(cx, cy) + layout.radii[slot] + 2.0, layout.outer_radius, delta=TOL
            )

    def test_tiny_values_keep_order_and_size(self):
        layout = solve_cluster((0.01, 0.02, 0.03), padding=2.0, edge_pair=(2, 1))
        r = layout.radii
        self.assertGreater(r[0], 0.0)
        self.assertGreater(r[1], r[0])
        self.assertGreater(r[2], r[1])

    def test_degenerate_input_collapses_to_origin(self):
        layout = solve_cluster((0, 0, 0))
        self.assertEqual(layout.radii, (0.0, 0.0, 0.0))
        self.assertEqual(layout.centers, ((0.0, 0.0),) * 3)


class TestEdgePairSelection(unittest.TestCase):
    def test_largest_keeps_the_two_biggest(self):
        self.assertEqual(select_edge_pair("largest", [1.0, 3.0, 2.0]), (1, 2))

    def test_ties_resolve_by_slot_order(self):
        self.assertEqual(select_edge_pair("largest", [1.0, 1.0, 1.0]), (0, 1))

    def test_fixed_modes(self):
        self.assertEqual(select_edge_pair("12", [9.0, 1.0, 1.0]), (1, 2))

    def test_random_mode_is_reproducible_with_seeded_rng(self):
        first = select_edge_pair("random", [1, 1, 1], random.Random(7))
        second = select_edge_pair("random", [1, 1, 1], random.Random(7))
        self.assertEqual(first, second)
        self.assertIn(first, PAIR_CHOICES)

    def test_unknown_mode_falls_back_to_largest(self):
        with self.assertLogs("wsjf_viz.bubble_layout", level="WARNING"):
            self.assertEqual(select_edge_pair("biggest", [3.0, 1.0, 2.0]), (0, 2))


class TestPadding(unittest.TestCase):
    def test_explicit_override_wins(self):
        self.assertEqual(resolve_padding(ClusterOptions(padding_px=5), Theme()), 5.0)
        self.assertEqual(resolve_padding(ClusterOptions(padding_px=-1), Theme()), 0.0)

    def test_theme_token_in_px(self):
        theme = Theme.from_mapping({"bubble-gap": "4px"})
        self.assertEqual(resolve_padding(ClusterOptions(), theme), 4.0)

    def test_unparseable_token_uses_default(self):
        theme = Theme.from_mapping({"bubble-gap": "wide"})
        self.assertEqual(resolve_padding(ClusterOptions(), theme), DEFAULT_PADDING_PX)


class TestLayoutCluster(unittest.TestCase):
    def test_emits_five_circles_and_three_labels(self):
        scene = layout_cluster(size_triple(3, 5, 1), item_id="PBI-1")
        self.assertEqual(len(scene.circles()), 5)
        self.assertEqual(len(scene.texts()), 3)
        self.assertEqual({t.content for t in scene.texts()}, {"3", "5", "1"})
        self.assertTrue(all(c.attrs["data-item-id"] == "PBI-1" for c in scene.circles()))

    def test_draw_order_background_stroke_then_largest_first(self):
        scene = layout_cluster(cod_triple(1, 8, 3))
        roles = [c.attrs["data-role"] for c in scene.circles()]
        self.assertEqual(roles, ["background", "outer-stroke", "tc", "rroe", "bv"])

    def test_background_and_stroke_margins(self):
        scene = layout_cluster(size_triple(2, 2, 2))
        background, stroke = scene.circles()[:2]
        self.assertAlmostEqual(background.r, 45.0 + 10.0)
        self.assertAlmostEqual(stroke.r, 45.0 + 5.0)

    def test_all_zero_triple_still_renders(self):
        scene = layout_cluster(MetricTriple((0, 0, 0)))
        self.assertEqual(len(scene.circles()), 5)
        self.assertEqual(len(scene.texts()), 3)
        for circle in _data_circles(scene):
            self.assertEqual(circle.r, 0.0)
            self.assertEqual(circle.opacity, 0.0)
        for text in scene.texts():
            self.assertEqual(text.anchor, (0.0, 0.0))
            self.assertEqual(text.content, "0")
            self.assertEqual(text.opacity, 0.0)

    def test_zero_slot_is_hidden_and_anchored_on_its_center(self):
        scene = layout_cluster(size_triple(4, 0, 2))
        hidden = [c for c in _data_circles(scene) if c.attrs["data-role"] == "effort"][0]
        self.assertEqual(hidden.opacity, 0.0)
        label = scene.find(role="effort-label")[0]
        self.assertEqual(label.anchor, (hidden.cx, hidden.cy))
        self.assertEqual(label.content, "0")

    def test_visible_bubbles_are_opaque(self):
        scene = layout_cluster(size_triple(3, 5, 1))
        self.assertTrue(all(c.opacity == 0.9 for c in _data_circles(scene)))

    def test_rendering_twice_gives_identical_scenes(self):
        first = layout_cluster(size_triple(3, 5, 1), item_id="x").to_svg()
        second = layout_cluster(size_triple(3, 5, 1), item_id="x").to_svg()
        self.assertEqual(first, second)

    def test_label_font_size(self):
        self.assertEqual(label_font_size(10.0, "3"), 12.0)
        self.assertEqual(label_font_size(50.0, "3"), 20.0)
        self.assertEqual(label_font_size(50.0, "13"), 25.0)


class TestDeferredWork(unittest.TestCase):
    @staticmethod
    def fixed_box(text):
        return TextBox(0.0, -10.0, 20.0, 10.0)

    def test_labels_recenter_on_the_next_frame(self):
        host = FrameQueueHost(measure=self.fixed_box)
        scene = layout_cluster(size_triple(3, 5, 1), host=host)
        self.assertEqual(host.pending, 2)
        self.assertEqual(host.equalize_calls, 0)

        host.flush()

        self.assertEqual(host.equalize_calls, 1)
        for text in scene.texts():
            self.assertAlmostEqual(text.x, text.anchor[0] - 10.0)
            self.assertAlmostEqual(text.y, text.anchor[1] + 5.0)

    def test_recentering_is_idempotent(self):
        scene = layout_cluster(size_triple(3, 5, 1))
        recenter_labels(scene, self.fixed_box)
        before = [(t.x, t.y) for t in scene.texts()]
        recenter_labels(scene, self.fixed_box)
        self.assertEqual(before, [(t.x, t.y) for t in scene.texts()])

    def test_recentering_waits_for_fonts(self):
        host = FrameQueueHost(fonts_ready=False, measure=self.fixed_box)
        layout_cluster(size_triple(3, 5, 1), host=host)
        self.assertEqual(host.pending, 1)
        host.fonts_loaded()
        self.assertEqual(host.pending, 2)


if __name__ == "__main__":
    unittest.main()
