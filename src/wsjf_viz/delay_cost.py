"""
Cost-of-delay simulation for a fixed processing order.

A single resource works through the items strictly in the given order.
While item i is served (for job_size_i time units) every item still
queued behind it accrues cod_j * job_size_i of delay cost.

No rendering here: the result is a ChartModel that CostChartRenderer
turns into a scene.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

import numpy as np

from .schema import ItemStyle, WorkItem, clamp_non_negative

logger = logging.getLogger(__name__)

PROCESSING = "processing"
WAITING = "waiting"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Block:
    """
    One layer of a segment's stack.

    height_fraction is the block's cost of delay over the chart-wide
    axis max. segment_cost is what this waiting relationship cost during
    the segment; accumulated_cost is the owner's running total so far.
    """

    item_id: str
    kind: str
    height_fraction: float
    label: str
    cost_of_delay: float
    segment_cost: float = 0.0
    accumulated_cost: float = 0.0


@dataclass
class Segment:
    item_id: str
    width: float
    start: float
    blocks: List[Block] = field(default_factory=list)
    # Cost of delay still queued once this segment's item is served.
    waiting_cod: float = 0.0

    @property
    def end(self) -> float:
        return self.start + self.width


@dataclass
class ChartModel:
    segments: List[Segment]
    total_delay_cost: float
    axis_max: float
    total_width: float
    no_data: bool = False

    @property
    def boundaries(self) -> List[float]:
        """Cumulative job size at 0 and at the end of every segment."""
        widths = np.array([s.width for s in self.segments], dtype=float)
        return [0.0] + np.cumsum(widths).tolist()


def no_data_model() -> ChartModel:
    return ChartModel(segments=[], total_delay_cost=0.0, axis_max=0.0, total_width=0.0, no_data=True)


def total_delay_cost(job_sizes: Sequence[float], cods: Sequence[float]) -> float:
    """
    Closed form of the simulated total:
    sum_i job_size_i * (cod of everything queued after i).
    """
    jobs = np.asarray([clamp_non_negative(v) for v in job_sizes], dtype=float)
    cod = np.asarray([clamp_non_negative(v) for v in cods], dtype=float)
    if jobs.size == 0:
        return 0.0
    cod_after = cod.sum() - np.cumsum(cod)
    return float(np.dot(jobs, cod_after))


def simulate(
    ordered_items: Sequence[WorkItem],
    styles: Optional[Mapping[str, ItemStyle]] = None,
) -> ChartModel:
    """
    Run the FIFO simulation over `ordered_items` in the given order.

    Stack policy per segment, bottom to top: waiting items from the back
    of the queue forward, so the next item to be served sits directly
    under the processing block on top.

    Empty input, zero total job size, or zero total cost of delay yield a
    no-data model with total cost 0.
    """
    styles = styles or {}
    jobs = [clamp_non_negative(item.job_size) for item in ordered_items]
    cods = [clamp_non_negative(item.cod) for item in ordered_items]

    total_width = float(sum(jobs))
    axis_max = float(sum(cods))
    if not ordered_items or total_width <= 0.0 or axis_max <= 0.0:
        logger.debug(
            "No chart data: %d items, total job size %s, total CoD %s",
            len(ordered_items), total_width, axis_max,
        )
        return no_data_model()

    accumulated = [0.0] * len(ordered_items)
    segments: List[Segment] = []
    total_cost = 0.0
    start = 0.0

    for i, item in enumerate(ordered_items):
        duration = jobs[i]
        if duration <= 0.0:
            # Served instantly: leaves the queue without a segment.
            continue

        queued = range(i + 1, len(ordered_items))
        blocks: List[Block] = []
        for j in reversed(queued):
            cost = cods[j] * duration
            accumulated[j] += cost
            total_cost += cost
            blocks.append(
                Block(
                    item_id=ordered_items[j].item_id,
                    kind=WAITING,
                    height_fraction=cods[j] / axis_max,
                    label=str(round_half_up(cost)),
                    cost_of_delay=cods[j],
                    segment_cost=cost,
                    accumulated_cost=accumulated[j],
                )
            )

        style = styles.get(item.item_id, ItemStyle())
        blocks.append(
            Block(
                item_id=item.item_id,
                kind=PROCESSING,
                height_fraction=cods[i] / axis_max,
                label=style.rank_label,
                cost_of_delay=cods[i],
            )
        )

        segments.append(
            Segment(
                item_id=item.item_id,
                width=duration,
                start=start,
                blocks=blocks,
                waiting_cod=float(sum(cods[j] for j in queued)),
            )
        )
        start += duration

    expected = total_delay_cost(jobs, cods)
    if not math.isclose(total_cost, expected, rel_tol=1e-9, abs_tol=1e-9):
        logger.warning("Simulated delay cost %s differs from closed form %s", total_cost, expected)

    return ChartModel(
        segments=segments,
        total_delay_cost=total_cost,
        axis_max=axis_max,
        total_width=total_width,
    )
