"""
Pure geometry for the cluster views.

No rendering, no theme lookups. Just:
- Coordinate formatting for path data
- Circle/circle intersection
- Pie-slice arc descriptors for the placeholder cluster
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

Point = Tuple[float, float]

EPS = 1e-6


def format_coord(value: float, digits: int = 4) -> str:
    """
    Render a coordinate compactly: fixed precision, no trailing zeros,
    and never "-0".
    """
    text = f"{value:.{digits}f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def circle_intersections(p1: Point, r1: float, p2: Point, r2: float) -> List[Point]:
    """
    Intersection points of two circles.

    Returns an empty list when the centers coincide, the circles are too
    far apart, or one lies inside the other.
    """
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    d = math.hypot(dx, dy)

    if d < EPS or d > r1 + r2 + EPS or d < abs(r1 - r2) - EPS:
        return []

    a = (r1 * r1 - r2 * r2 + d * d) / (2 * d)
    h = math.sqrt(max(0.0, r1 * r1 - a * a))

    mx = p1[0] + a * dx / d
    my = p1[1] + a * dy / d

    nx = -dy / d
    ny = dx / d

    return [(mx + h * nx, my + h * ny), (mx - h * nx, my - h * ny)]


@dataclass(frozen=True)
class ArcDescriptor:
    """
    A pie slice centered at the origin, starting at 12 o'clock and
    sweeping clockwise (SVG y axis points down).
    """

    start: Point
    end: Point
    radius: float
    large_arc: int
    sweep: int
    angle: float

    def path_data(self) -> str:
        r = format_coord(self.radius)
        return (
            f"M 0,0 L {format_coord(self.start[0])},{format_coord(self.start[1])} "
            f"A {r},{r} 0 {self.large_arc},{self.sweep} "
            f"{format_coord(self.end[0])},{format_coord(self.end[1])} z"
        )


def arc_descriptor(
    count_present: int,
    radius: float,
    slots: int = 3,
) -> Optional[ArcDescriptor]:
    """
    Describe the progress slice for `count_present` estimated slots.

    Sweep angle is count/slots * 360 degrees. Returns None when nothing is
    estimated yet (no slice is drawn at all).
    """
    count = max(0, min(int(count_present), slots))
    if count == 0:
        return None

    angle = count * 360.0 / slots
    radians_end = math.radians(angle - 90.0)
    end = (radius * math.cos(radians_end), radius * math.sin(radians_end))

    return ArcDescriptor(
        start=(0.0, -radius),
        end=end,
        radius=radius,
        large_arc=1 if angle > 180.0 else 0,
        sweep=1,
        angle=angle,
    )
