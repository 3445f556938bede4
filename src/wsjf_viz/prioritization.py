"""
WSJF scoring and processing orders.

Responsibilities:
- WSJF score and rank per item.
- Rank/color style lookup for the charts.
- The optimal (WSJF) order and the user's current order, driven by an
  explicit BacklogViewState instead of global sort flags.
- Comparison of the delay cost of both orders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .schema import ItemStyle, WorkItem

logger = logging.getLogger(__name__)

FALLBACK_COLOR = "#e0e0e0"
DEFAULT_PALETTE: List[str] = [
    "#DCBCBD",
    "#B6E2B7",
    "#BCD4E6",
    "#F3D9B1",
    "#D7C4E8",
    "#F6C1C7",
    "#C9E4DE",
    "#FAEDCB",
]


def wsjf_score(cod: Optional[float], job_size: Optional[float]) -> float:
    """Cost of delay over job size; 0 when either side is missing or 0."""
    if not cod or not job_size:
        return 0.0
    return float(cod) / float(job_size)


def is_fully_estimated(item: WorkItem) -> bool:
    return item.size.is_complete and item.cost_of_delay.is_complete


def chart_items(items: Sequence[WorkItem]) -> List[WorkItem]:
    """Items that take part in the delay cost charts, in input order."""
    return [item for item in items if is_fully_estimated(item)]


def rank_by_wsjf(items: Sequence[WorkItem]) -> Dict[str, int]:
    """
    Rank 1..N by descending WSJF.

    Items without a positive job size and cost of delay are not ranked.
    Equal scores keep their input order.
    """
    scored = [
        (item.item_id, wsjf_score(item.cod, item.job_size))
        for item in items
        if (item.cod or 0) > 0 and (item.job_size or 0) > 0
    ]
    scored.sort(key=lambda pair: -pair[1])
    return {item_id: index + 1 for index, (item_id, _) in enumerate(scored)}


def optimal_order(items: Sequence[WorkItem]) -> List[WorkItem]:
    """Chart items sorted by descending WSJF (stable)."""
    return sorted(chart_items(items), key=lambda i: -wsjf_score(i.cod, i.job_size))


def build_style_map(
    items: Sequence[WorkItem],
    palette: Optional[Sequence[str]] = None,
    custom_colors: Optional[Mapping[str, str]] = None,
) -> Dict[str, ItemStyle]:
    """
    Rank and color per ranked item.

    Colors cycle through the palette (DEFAULT_PALETTE when None) by rank;
    an item's own color or an entry in custom_colors wins over the palette.
    """
    palette = list(DEFAULT_PALETTE) if palette is None else list(palette)
    if not palette:
        logger.warning("Color palette is empty, using %s", FALLBACK_COLOR)
        palette = [FALLBACK_COLOR]
    custom_colors = custom_colors or {}

    by_id = {item.item_id: item for item in items}
    styles: Dict[str, ItemStyle] = {}
    for item_id, rank in rank_by_wsjf(items).items():
        color = custom_colors.get(item_id) or by_id[item_id].color or palette[(rank - 1) % len(palette)]
        styles[item_id] = ItemStyle(rank=rank, color=color)
    return styles


@dataclass
class BacklogViewState:
    """
    Application-owned view state threaded through render calls.

    sort_criteria: "custom" / "lock" (use locked_order), "wsjf",
        "job_size", "cod", "title" or a slot name such as "effort".
    highlighted_item_id: read by the charts to mark that item's blocks;
        only the application changes it.
    """

    sort_criteria: str = "custom"
    sort_direction: str = "asc"
    locked_order: List[str] = field(default_factory=list)
    highlighted_item_id: Optional[str] = None


def _sort_value(item: WorkItem, criteria: str) -> float:
    if criteria == "wsjf":
        return (item.cod or 0.0) / (item.job_size or 1.0)
    if criteria == "job_size":
        return item.job_size or 0.0
    if criteria == "cod":
        return item.cod or 0.0
    for triple in (item.size, item.cost_of_delay):
        if criteria in triple.names:
            return triple.values[triple.names.index(criteria)]
    return 0.0


def current_order(items: Sequence[WorkItem], state: BacklogViewState) -> List[WorkItem]:
    """
    Chart items in the order the user currently sees them.

    Custom/locked orders follow state.locked_order (unknown ids dropped,
    unlisted items appended). Other criteria sort ascending with the
    lower-cased title as tie breaker. "desc" reverses the result.
    """
    valid = chart_items(items)

    if state.sort_criteria in ("custom", "lock"):
        by_id = {item.item_id: item for item in valid}
        ordered = [by_id[i] for i in state.locked_order if i in by_id]
        listed = set(state.locked_order)
        ordered += [item for item in valid if item.item_id not in listed]
    elif state.sort_criteria == "title":
        ordered = sorted(valid, key=lambda i: i.title.lower())
    else:
        ordered = sorted(
            valid,
            key=lambda i: (_sort_value(i, state.sort_criteria), i.title.lower()),
        )

    if state.sort_direction == "desc":
        ordered.reverse()
    return ordered


@dataclass(frozen=True)
class CostComparison:
    optimal_cost: float
    current_cost: float
    percent_above_optimal: float
    is_optimal: bool

    @property
    def suffix(self) -> str:
        if self.is_optimal:
            return ""
        return f" (+{self.percent_above_optimal:.0f}%)"


def compare_costs(optimal_cost: float, current_cost: float) -> CostComparison:
    if optimal_cost > 0 and current_cost > optimal_cost and abs(current_cost - optimal_cost) >= 0.01:
        percent = (current_cost - optimal_cost) / optimal_cost * 100.0
        return CostComparison(optimal_cost, current_cost, percent, False)
    return CostComparison(optimal_cost, current_cost, 0.0, True)
