"""
Progress pie for triples that are not fully estimated yet.

Draws the background disc and outer stroke of a cluster at a fixed size
and, when at least one slot is set, a slice of count/3 of the circle
starting at 12 o'clock.
"""

from __future__ import annotations

import math
from typing import Optional

from .bubble_layout import BACKGROUND_MARGIN, STROKE_MARGIN, UNIT_PX, VIEW_MARGIN
from .geometry import arc_descriptor
from .scene import ATTR_ITEM_ID, ATTR_ROLE, Scene, SceneBuilder
from .schema import MetricTriple
from .theme import Theme

PLACEHOLDER_RADIUS = 3 * UNIT_PX / 2.0


def render_placeholder(
    triple: MetricTriple,
    theme: Optional[Theme] = None,
    item_id: Optional[str] = None,
) -> Scene:
    theme = theme or Theme()
    outer = PLACEHOLDER_RADIUS
    half = outer + VIEW_MARGIN
    size = math.ceil(2.0 * half)
    base_attrs = {ATTR_ITEM_ID: item_id} if item_id is not None else {}

    builder = SceneBuilder(size, size, (-half, -half, 2.0 * half, 2.0 * half), attrs=dict(base_attrs))
    builder.circle(
        0.0, 0.0, outer + BACKGROUND_MARGIN,
        fill=theme.color("total"),
        attrs={**base_attrs, ATTR_ROLE: "background"},
    )

    arc = arc_descriptor(triple.present_count, outer + STROKE_MARGIN)
    if arc is not None:
        builder.arc_path(
            arc.path_data(),
            fill=theme.color("placeholder-arc"),
            attrs={**base_attrs, ATTR_ROLE: "progress", "data-sweep": f"{arc.angle:g}"},
        )

    builder.circle(
        0.0, 0.0, outer + STROKE_MARGIN,
        stroke=theme.color("outer-stroke"),
        stroke_width=2.0,
        attrs={**base_attrs, ATTR_ROLE: "outer-stroke"},
    )
    return builder.build()
