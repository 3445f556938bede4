"""
Stacked cost-of-delay timeline.

Turns a ChartModel into a scene: one group per segment, each holding its
stacked blocks, plus x ticks at every cumulative job size boundary and y
ticks for zero, the axis max and the cost still queued at each boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .delay_cost import PROCESSING, Block, ChartModel, round_half_up
from .host import approximate_text_box
from .prioritization import wsjf_score
from .scene import ATTR_HIGHLIGHTED, ATTR_ITEM_ID, ATTR_KIND, Scene, SceneBuilder
from .schema import ItemStyle, WorkItem, clamp_non_negative
from .theme import Theme, UiStrings, fill_template

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 600.0
DEFAULT_HEIGHT = 300.0
AXIS_MARGIN_LEFT = 48.0
AXIS_MARGIN_BOTTOM = 24.0
MARGIN = 8.0
LABEL_FONT_SIZE = 11.0
TICK_FONT_SIZE = 10.0
TOLERANCE = 1e-9


@dataclass(frozen=True)
class AxisTick:
    value: float
    position: float
    label: str
    tooltip: str
    kind: str = "boundary"


@dataclass
class CostChart:
    scene: Scene
    total_delay_cost: float
    x_ticks: List[AxisTick] = field(default_factory=list)
    y_ticks: List[AxisTick] = field(default_factory=list)
    no_data: bool = False


def block_tooltip(
    block: Block,
    item: Optional[WorkItem],
    style: ItemStyle,
    strings: UiStrings,
) -> str:
    """
    Multi-line tooltip for a block.

    Every line is built by `{value}` substitution into the localized
    templates, so templates control their own separators.
    """
    title = item.title if item is not None else ""
    job_size = clamp_non_negative(item.job_size) if item is not None else 0.0
    cod = clamp_non_negative(item.cod) if item is not None else block.cost_of_delay
    is_processing = block.kind == PROCESSING

    facts = [
        fill_template(strings.tooltip_item, block.item_id),
        fill_template(strings.tooltip_job_size, strings.number(job_size)),
        fill_template(strings.tooltip_cod, strings.number(cod)),
    ]
    if is_processing:
        facts.append(fill_template(strings.tooltip_wsjf, strings.number(wsjf_score(cod, job_size), 2)))

    lines = [
        f'"{title}"',
        strings.tooltip_processing if is_processing else strings.tooltip_waiting,
        strings.tooltip_separator.join(facts),
    ]
    if not is_processing:
        lines.append(
            fill_template(
                strings.tooltip_accumulated_cost,
                strings.number(round_half_up(block.accumulated_cost)),
            )
        )
    return "\n".join(lines)


def _x_ticks(model: ChartModel, strings: UiStrings) -> List[AxisTick]:
    boundaries = model.boundaries
    ticks = []
    for index, value in enumerate(boundaries):
        label = strings.number(value)
        kind = "start" if index == 0 else ("end" if index == len(boundaries) - 1 else "boundary")
        ticks.append(
            AxisTick(
                value=value,
                position=value / model.total_width if model.total_width > 0 else 0.0,
                label=label,
                tooltip=fill_template(strings.tooltip_x_axis, label),
                kind=kind,
            )
        )
    return ticks


def _y_ticks(model: ChartModel, strings: UiStrings) -> List[AxisTick]:
    axis_max = model.axis_max

    def tick(value: float, kind: str) -> AxisTick:
        label = strings.number(value)
        return AxisTick(
            value=value,
            position=value / axis_max if axis_max > 0 else 0.0,
            label=label,
            tooltip=fill_template(strings.tooltip_y_axis, label),
            kind=kind,
        )

    ticks = [tick(0.0, "zero"), tick(axis_max, "max")]
    for segment in model.segments:
        value = segment.waiting_cod
        if value <= TOLERANCE or abs(value - axis_max) <= TOLERANCE:
            continue
        ticks.append(tick(value, "boundary"))
    return ticks


def _centered_label(builder: SceneBuilder, cx: float, cy: float, content: str, **kwargs) -> None:
    text = builder.text(0.0, 0.0, content, anchor=(cx, cy), **kwargs)
    box = approximate_text_box(text)
    text.x = cx - (box.x + box.width / 2.0)
    text.y = cy - (box.y + box.height / 2.0)


def _draw_axes(
    builder: SceneBuilder,
    x_ticks: Sequence[AxisTick],
    y_ticks: Sequence[AxisTick],
    width: float,
    height: float,
    theme: Theme,
) -> None:
    with builder.group({ATTR_KIND: "x-axis"}):
        for t in x_ticks:
            builder.text(
                t.position * width, height + AXIS_MARGIN_BOTTOM / 2.0 + TICK_FONT_SIZE / 2.0, t.label,
                fill=theme.color("chart-muted"),
                font_size=TICK_FONT_SIZE,
                title=t.tooltip,
                attrs={ATTR_KIND: f"x-tick-{t.kind}"},
            )
    with builder.group({ATTR_KIND: "y-axis"}):
        for t in y_ticks:
            builder.text(
                -AXIS_MARGIN_LEFT + 4.0, height - t.position * height + TICK_FONT_SIZE / 2.0, t.label,
                fill=theme.color("chart-muted"),
                font_size=TICK_FONT_SIZE,
                title=t.tooltip,
                attrs={ATTR_KIND: f"y-tick-{t.kind}"},
            )


def render_cost_chart(
    model: ChartModel,
    items: Union[Mapping[str, WorkItem], Sequence[WorkItem]] = (),
    styles: Optional[Mapping[str, ItemStyle]] = None,
    strings: Optional[UiStrings] = None,
    theme: Optional[Theme] = None,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
    highlighted_item_id: Optional[str] = None,
) -> CostChart:
    """
    Render the stacked timeline for `model`.

    Block rects are sized width fraction x height fraction of the chart
    box; zero-height blocks are not drawn. Each block group carries the
    owner's item id and its kind for highlighting; blocks of
    `highlighted_item_id` are also marked data-highlighted="true".
    """
    strings = strings or UiStrings()
    theme = theme or Theme()
    styles = styles or {}
    by_id: Dict[str, WorkItem] = (
        dict(items) if isinstance(items, Mapping) else {item.item_id: item for item in items}
    )

    builder = SceneBuilder(
        width + AXIS_MARGIN_LEFT + MARGIN,
        height + AXIS_MARGIN_BOTTOM + MARGIN,
        (-AXIS_MARGIN_LEFT, -MARGIN, width + AXIS_MARGIN_LEFT + MARGIN, height + AXIS_MARGIN_BOTTOM + MARGIN),
        attrs={ATTR_KIND: "cost-chart"},
    )

    if model.no_data:
        logger.debug("Rendering no-data cost chart")
        with builder.group({ATTR_KIND: "no-data"}):
            _centered_label(
                builder, width / 2.0, height / 2.0, strings.chart_no_data,
                fill=theme.color("chart-muted"),
                font_size=LABEL_FONT_SIZE,
            )
        zero_tip = fill_template(strings.tooltip_y_axis, "0")
        y_ticks = [
            AxisTick(0.0, 0.0, "0", zero_tip, "zero"),
            AxisTick(0.0, 1.0, "0", zero_tip, "max"),
        ]
        x_ticks = [AxisTick(0.0, 0.0, "0", fill_template(strings.tooltip_x_axis, "0"), "start")]
        _draw_axes(builder, x_ticks, y_ticks, width, height, theme)
        return CostChart(builder.build(), 0.0, x_ticks, y_ticks, no_data=True)

    with builder.group({ATTR_KIND: "plot"}):
        for segment in model.segments:
            x = segment.start / model.total_width * width
            seg_width = segment.width / model.total_width * width
            with builder.group(
                {
                    ATTR_KIND: "segment",
                    ATTR_ITEM_ID: segment.item_id,
                    "data-width-fraction": repr(segment.width / model.total_width),
                }
            ):
                bottom = height
                for block in segment.blocks:
                    block_height = block.height_fraction * height
                    if block_height <= 0.0:
                        continue
                    top = bottom - block_height
                    style = styles.get(block.item_id, ItemStyle(color=theme.default))
                    is_processing = block.kind == PROCESSING
                    block_attrs = {ATTR_ITEM_ID: block.item_id, ATTR_KIND: block.kind}
                    if highlighted_item_id is not None and block.item_id == highlighted_item_id:
                        block_attrs[ATTR_HIGHLIGHTED] = "true"
                    with builder.group(
                        block_attrs,
                        title=block_tooltip(block, by_id.get(block.item_id), style, strings),
                    ):
                        builder.rect(
                            x, top, seg_width, block_height,
                            fill=(style.color or theme.default) if is_processing else theme.color("waiting"),
                        )
                        _centered_label(
                            builder, x + seg_width / 2.0, top + block_height / 2.0, block.label,
                            fill=theme.color("chart-label"),
                            font_size=LABEL_FONT_SIZE,
                            attrs={ATTR_KIND: f"{block.kind}-label"},
                        )
                    bottom = top

    x_ticks = _x_ticks(model, strings)
    y_ticks = _y_ticks(model, strings)
    _draw_axes(builder, x_ticks, y_ticks, width, height, theme)

    return CostChart(builder.build(), model.total_delay_cost, x_ticks, y_ticks)
