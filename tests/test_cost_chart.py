import unittest

from wsjf_viz.cost_chart import render_cost_chart
from wsjf_viz.delay_cost import simulate
from wsjf_viz.prioritization import build_style_map
from wsjf_viz.theme import Theme, UiStrings

from tests.fixtures import make_item, worked_example


def _block_rect(scene, item_id, kind):
    (group,) = scene.find(item_id=item_id, kind=kind)
    return group, group.children[0]


class TestWorkedExampleChart(unittest.TestCase):
    def setUp(self):
        self.a, self.b = worked_example()
        self.items = [self.a, self.b]
        self.styles = build_style_map(self.items)
        self.theme = Theme()
        self.chart = render_cost_chart(
            simulate(self.items, self.styles), self.items, self.styles, theme=self.theme
        )

    def test_total(self):
        self.assertFalse(self.chart.no_data)
        self.assertEqual(self.chart.total_delay_cost, 10.0)

    def test_x_ticks_at_cumulative_job_size(self):
        self.assertEqual([t.label for t in self.chart.x_ticks], ["0", "2", "5"])
        self.assertEqual([t.kind for t in self.chart.x_ticks], ["start", "boundary", "end"])
        self.assertEqual([t.position for t in self.chart.x_ticks], [0.0, 0.4, 1.0])
        self.assertEqual(self.chart.x_ticks[1].tooltip, "Cumulative Job Size: 2")

    def test_y_ticks_skip_zero_and_max_duplicates(self):
        self.assertEqual([t.value for t in self.chart.y_ticks], [0.0, 15.0, 5.0])
        self.assertEqual([t.kind for t in self.chart.y_ticks], ["zero", "max", "boundary"])
        self.assertEqual(self.chart.y_ticks[2].tooltip, "Sum of Waiting Cost of Delay: 5")

    def assertRect(self, rect, x, y, width, height):
        for actual, expected in zip((rect.x, rect.y, rect.width, rect.height), (x, y, width, height)):
            self.assertAlmostEqual(actual, expected, places=6)

    def test_block_geometry(self):
        _, waiting = _block_rect(self.chart.scene, "B", "waiting")
        self.assertRect(waiting, 0.0, 200.0, 240.0, 100.0)

        _, processing = _block_rect(self.chart.scene, "A", "processing")
        self.assertRect(processing, 0.0, 0.0, 240.0, 200.0)

        _, last = _block_rect(self.chart.scene, "B", "processing")
        self.assertRect(last, 240.0, 200.0, 360.0, 100.0)

    def test_block_colors(self):
        _, processing = _block_rect(self.chart.scene, "A", "processing")
        self.assertEqual(processing.fill, self.styles["A"].color)
        _, waiting = _block_rect(self.chart.scene, "B", "waiting")
        self.assertEqual(waiting.fill, self.theme.color("waiting"))

    def test_block_labels(self):
        waiting_labels = [t.content for t in self.chart.scene.find(kind="waiting-label")]
        self.assertEqual(waiting_labels, ["10"])
        rank_labels = [t.content for t in self.chart.scene.find(kind="processing-label")]
        self.assertEqual(rank_labels, ["1", "2"])

    def test_processing_tooltip(self):
        group, _ = _block_rect(self.chart.scene, "A", "processing")
        self.assertEqual(
            group.title,
            '"Alpha"\nProcessing\nItem: A - Job Size: 2 - CoD: 10 - WSJF: 5.00',
        )

    def test_waiting_tooltip(self):
        group, _ = _block_rect(self.chart.scene, "B", "waiting")
        self.assertEqual(
            group.title,
            '"Beta"\nWaiting\nItem: B - Job Size: 3 - CoD: 5\nAccumulated Delay Cost: 10',
        )

    def test_segment_attributes(self):
        segments = self.chart.scene.find(kind="segment")
        self.assertEqual([s.attrs["data-item-id"] for s in segments], ["A", "B"])
        self.assertEqual(segments[0].attrs["data-width-fraction"], "0.4")

    def test_svg_serialization(self):
        svg = self.chart.scene.to_svg()
        self.assertIn('data-kind="waiting"', svg)
        self.assertIn("<title>", svg)

    def test_rendering_twice_gives_identical_scenes(self):
        again = render_cost_chart(
            simulate(self.items, self.styles), self.items, self.styles, theme=self.theme
        )
        self.assertEqual(again.scene.to_svg(), self.chart.scene.to_svg())
        self.assertEqual(again.total_delay_cost, self.chart.total_delay_cost)


class TestLocalizedTooltips(unittest.TestCase):
    def test_decimal_comma(self):
        a, b = worked_example()
        strings = UiStrings(decimal_separator=",", thousands_separator=".")
        chart = render_cost_chart(simulate([a, b]), [a, b], strings=strings)
        (group,) = chart.scene.find(item_id="A", kind="processing")
        self.assertTrue(group.title.endswith("WSJF: 5,00"))

    def test_templates_control_their_own_separators(self):
        a, b = worked_example()
        strings = UiStrings(tooltip_job_size="Job Size {value}", tooltip_separator=" | ")
        chart = render_cost_chart(simulate([a, b]), [a, b], strings=strings)
        (group,) = chart.scene.find(item_id="B", kind="processing")
        self.assertIn("Item: B | Job Size 3 | CoD: 5", group.title)


class TestZeroHeightBlocks(unittest.TestCase):
    def test_items_without_cost_of_delay_draw_no_blocks(self):
        a, b = worked_example()
        free = make_item("C", (1, 0.5, 0.5), (0, 0, 0))
        chart = render_cost_chart(simulate([a, free, b]), [a, free, b])

        self.assertEqual(len(chart.scene.rects()), 4)
        self.assertEqual(chart.scene.find(item_id="C", kind="waiting"), [])
        self.assertEqual(chart.scene.find(item_id="C", kind="processing"), [])
        self.assertEqual(len(chart.scene.find(item_id="C", kind="segment")), 1)


class TestNoData(unittest.TestCase):
    def test_message_and_zero_axes(self):
        chart = render_cost_chart(simulate([]))
        self.assertTrue(chart.no_data)
        self.assertEqual(chart.total_delay_cost, 0.0)
        self.assertEqual(chart.scene.rects(), [])
        self.assertEqual([t.label for t in chart.y_ticks], ["0", "0"])
        self.assertEqual([t.label for t in chart.x_ticks], ["0"])

        (group,) = chart.scene.find(kind="no-data")
        self.assertEqual(group.children[0].content, "No valid data to display.")

    def test_rendering_twice_gives_identical_scenes(self):
        first = render_cost_chart(simulate([])).scene.to_svg()
        self.assertEqual(first, render_cost_chart(simulate([])).scene.to_svg())

    def test_localized_message(self):
        chart = render_cost_chart(simulate([]), strings=UiStrings(chart_no_data="Keine Daten"))
        self.assertIn("Keine Daten", chart.scene.to_svg())


if __name__ == "__main__":
    unittest.main()
