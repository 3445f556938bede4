"""
Data schemas for the WSJF visualization system.

Defines:
- MetricTriple: three named sub-estimates (size or cost of delay)
- WorkItem: a single backlog entry carrying both triples
- ItemStyle: per-item rank + color used by the charts
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

SIZE_SLOTS: Tuple[str, str, str] = ("complexity", "effort", "doubt")
COD_SLOTS: Tuple[str, str, str] = ("bv", "tc", "rroe")


def clamp_non_negative(value: Any) -> float:
    """
    Coerce a raw input into a finite, non-negative float.

    None, empty strings, non-numeric values, NaN, infinities and negatives
    all become 0.
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number) or number < 0.0:
        return 0.0
    return number


@dataclass(frozen=True)
class MetricTriple:
    """
    Three named sub-estimates.

    A slot value of 0 means "not yet estimated". The triple is complete
    only when all three slots are strictly positive.
    """

    values: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    names: Tuple[str, str, str] = SIZE_SLOTS

    def __post_init__(self) -> None:
        if len(self.values) != 3 or len(self.names) != 3:
            raise ValueError("MetricTriple needs exactly three values and three names.")
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(
            self, "values", tuple(clamp_non_negative(v) for v in self.values)
        )
        object.__setattr__(self, "names", tuple(str(n) for n in self.names))

    @property
    def is_complete(self) -> bool:
        return all(v > 0.0 for v in self.values)

    @property
    def present_count(self) -> int:
        return sum(1 for v in self.values if v > 0.0)

    @property
    def total(self) -> Optional[float]:
        """Sum of the three slots, or None while the triple is incomplete."""
        if not self.is_complete:
            return None
        return float(sum(self.values))

    def as_dict(self) -> dict:
        return dict(zip(self.names, self.values))


def size_triple(complexity: Any = 0, effort: Any = 0, doubt: Any = 0) -> MetricTriple:
    return MetricTriple((complexity, effort, doubt), SIZE_SLOTS)


def cod_triple(bv: Any = 0, tc: Any = 0, rroe: Any = 0) -> MetricTriple:
    return MetricTriple((bv, tc, rroe), COD_SLOTS)


@dataclass
class WorkItem:
    """
    Represents a single backlog item (PBI).

    Job size and cost of delay are derived from the two triples; both are
    None until the corresponding triple is complete.
    """

    item_id: str
    title: str = ""
    size: MetricTriple = field(default_factory=lambda: MetricTriple(names=SIZE_SLOTS))
    cost_of_delay: MetricTriple = field(
        default_factory=lambda: MetricTriple(names=COD_SLOTS)
    )
    color: Optional[str] = None
    rank: Optional[int] = None

    # Carried through import/export only.
    notes: str = ""
    is_reference: bool = False
    reference_type: Optional[str] = None

    def __post_init__(self) -> None:
        self.item_id = str(self.item_id)
        self.title = "" if self.title is None else str(self.title)

    @property
    def job_size(self) -> Optional[float]:
        return self.size.total

    @property
    def cod(self) -> Optional[float]:
        return self.cost_of_delay.total


@dataclass(frozen=True)
class ItemStyle:
    """Rank number and display color for one item in the charts."""

    rank: Optional[int] = None
    color: str = "#cccccc"

    @property
    def rank_label(self) -> str:
        return "?" if self.rank is None else str(self.rank)
