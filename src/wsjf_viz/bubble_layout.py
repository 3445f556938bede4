"""
Three-bubble cluster layout.

Packs the three slots of a MetricTriple into a bounding circle whose
radius grows with the triple's sum:

1. Each slot gets a raw radius sqrt(value), so bubble area tracks value.
2. Two bubbles (the "edge pair") rest against the outer wall at an
   opening angle phi and touch each other across the padding gap.
3. The third bubble is tangent to both, in the valley nearer the center.
4. For every phi in 70..160 degrees a bisection finds the largest shared
   scale factor; the phi with the largest feasible scale wins.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .geometry import Point, circle_intersections, format_coord
from .host import NullHost, RenderHost, TextBox, approximate_text_box
from .scene import ATTR_ITEM_ID, ATTR_ROLE, ATTR_SLOT, Scene, SceneBuilder, Text
from .schema import MetricTriple
from .theme import Theme, UiStrings

logger = logging.getLogger(__name__)

UNIT_PX = 15.0
BACKGROUND_MARGIN = 10.0
STROKE_MARGIN = 5.0
VIEW_MARGIN = 20.0
DEFAULT_PADDING_PX = 2.0
MAX_PADDING_FRACTION = 0.1
VISIBLE_RADIUS = 0.5

PHI_MIN_DEG = 70.0
PHI_MAX_DEG = 160.0
PHI_STEP_DEG = 0.5
BISECT_STEPS = 50

EDGE_PAIRS = {"01": (0, 1), "02": (0, 2), "12": (1, 2)}
PAIR_CHOICES: List[Tuple[int, int]] = [(0, 1), (0, 2), (1, 2)]

LENGTH_ADJUST = {1: 1.0, 2: 1.25, 3: 1.35, 4: 1.45, 5: 1.55, 6: 1.65, 7: 1.75, 8: 1.85}


@dataclass
class ClusterOptions:
    """
    Layout knobs.

    edge_pair: "largest" | "random" | "01" | "02" | "12"
    padding_px: explicit gap override; when None the theme token named by
        padding_token is used, then DEFAULT_PADDING_PX.
    rng: source for the "random" edge pair.
    """

    edge_pair: str = "largest"
    padding_px: Optional[float] = None
    padding_token: str = "bubble-gap"
    rng: Optional[random.Random] = None


@dataclass(frozen=True)
class ClusterLayout:
    outer_radius: float
    scale: float
    radii: Tuple[float, float, float]
    centers: Tuple[Point, Point, Point]
    edge_pair: Tuple[int, int]
    phi: float


def size_scale(value: float) -> float:
    """Raw radius for a slot value: area proportional to the value."""
    return math.sqrt(max(0.0, float(value)))


def outer_radius_for(total: float) -> float:
    return max(0.0, float(total)) * UNIT_PX / 2.0


def resolve_padding(options: ClusterOptions, theme: Theme) -> float:
    if options.padding_px is not None:
        return max(0.0, float(options.padding_px))
    raw = theme.token(options.padding_token) if options.padding_token else None
    if raw:
        try:
            return max(0.0, float(raw.lower().replace("px", "").strip()))
        except ValueError:
            logger.debug("Unparseable padding token %r=%r", options.padding_token, raw)
    return DEFAULT_PADDING_PX


def select_edge_pair(
    mode: str,
    raw_radii: Sequence[float],
    rng: Optional[random.Random] = None,
) -> Tuple[int, int]:
    """
    Pick the two slot indices that rest against the outer wall.

    "largest" keeps the two biggest bubbles (stable on ties); "random"
    picks one of the three pairs uniformly.
    """
    if mode in EDGE_PAIRS:
        return EDGE_PAIRS[mode]
    if mode == "random":
        return (rng or random).choice(PAIR_CHOICES)
    if mode != "largest":
        logger.warning("Unknown edge pair mode %r, using 'largest'", mode)
    order = sorted(range(3), key=lambda i: -raw_radii[i])
    return order[0], order[1]


def _bisect_scales(
    phis: np.ndarray,
    r_a: float,
    r_b: float,
    outer: float,
    padding: float,
) -> np.ndarray:
    """Largest scale per phi at which the edge pair still clears the gap."""
    smallest = min(r for r in (r_a, r_b) if r > 0.0)
    low = np.zeros_like(phis)
    high = np.full_like(phis, (outer - padding) / smallest - 1e-6)
    cos_phi = np.cos(phis)

    for _ in range(BISECT_STEPS):
        mid = (low + high) / 2.0
        a_ext = outer - mid * r_a - padding
        b_ext = outer - mid * r_b - padding
        d_sq = np.maximum(0.0, a_ext * a_ext + b_ext * b_ext - 2.0 * a_ext * b_ext * cos_phi)
        fits = np.sqrt(d_sq) > mid * (r_a + r_b) + padding
        low = np.where(fits, mid, low)
        high = np.where(fits, high, mid)

    return (low + high) / 2.0


def _place(
    phi: float,
    scale: float,
    raw: Tuple[float, float, float],
    outer: float,
    padding: float,
    strict: bool = True,
) -> Optional[Tuple[Tuple[float, float, float], Tuple[Point, Point, Point]]]:
    r_a, r_b, r_c = (scale * r for r in raw)
    a_ext = outer - r_a - padding
    b_ext = outer - r_b - padding
    alpha_a = math.pi / 2.0 - phi / 2.0
    alpha_b = math.pi / 2.0 + phi / 2.0

    c_a = (math.cos(alpha_a) * a_ext, math.sin(alpha_a) * a_ext)
    c_b = (math.cos(alpha_b) * b_ext, math.sin(alpha_b) * b_ext)

    hits = circle_intersections(c_a, r_a + r_c + padding, c_b, r_b + r_c + padding)
    if strict:
        if not hits:
            return None
        c_c = min(hits, key=lambda p: math.hypot(p[0], p[1]))
        if math.hypot(c_c[0], c_c[1]) + r_c + padding > outer + 0.001:
            return None
    else:
        c_c = hits[0] if hits else (0.0, 0.0)

    return (r_a, r_b, r_c), (c_a, c_b, c_c)


def solve_cluster(
    values: Sequence[float],
    padding: float = DEFAULT_PADDING_PX,
    edge_pair: Tuple[int, int] = (0, 1),
) -> ClusterLayout:
    """
    Compute radii and centers for the three slots (indexed like `values`).

    The gap never exceeds MAX_PADDING_FRACTION of the outer radius, so
    tiny positive values still get ordered, non-zero radii. Degenerate
    input (nothing to draw) collapses every bubble to radius 0 at the
    origin instead of failing.
    """
    outer = outer_radius_for(sum(max(0.0, float(v)) for v in values))
    padding = min(max(0.0, float(padding)), outer * MAX_PADDING_FRACTION)
    raw_by_slot = [size_scale(v) for v in values]
    idx_a, idx_b = edge_pair
    idx_c = next(i for i in range(3) if i not in (idx_a, idx_b))
    raw = (raw_by_slot[idx_a], raw_by_slot[idx_b], raw_by_slot[idx_c])

    if outer - padding <= 0.0 or (raw[0] <= 0.0 and raw[1] <= 0.0):
        origin = (0.0, 0.0)
        return ClusterLayout(outer, 0.0, (0.0, 0.0, 0.0), (origin, origin, origin), edge_pair, 0.0)

    phis = np.radians(np.arange(PHI_MIN_DEG, PHI_MAX_DEG + PHI_STEP_DEG / 2.0, PHI_STEP_DEG))
    scales = _bisect_scales(phis, raw[0], raw[1], outer, padding)

    best = None
    for phi, scale in zip(phis.tolist(), scales.tolist()):
        placed = _place(phi, scale, raw, outer, padding)
        if placed is not None and (best is None or scale > best[1]):
            best = (phi, scale, placed)

    if best is None:
        phi = math.radians(120.0)
        scale = float(_bisect_scales(np.array([phi]), raw[0], raw[1], outer, padding)[0]) * 0.95
        logger.debug("No feasible cluster layout, falling back to phi=120deg scale=%s", scale)
        best = (phi, scale, _place(phi, scale, raw, outer, padding, strict=False))

    phi, scale, (radii_abc, centers_abc) = best
    radii = [0.0, 0.0, 0.0]
    centers: List[Point] = [(0.0, 0.0)] * 3
    for slot, r, c in zip((idx_a, idx_b, idx_c), radii_abc, centers_abc):
        radii[slot] = r
        centers[slot] = c

    return ClusterLayout(outer, scale, tuple(radii), tuple(centers), edge_pair, phi)


def value_label(value: float) -> str:
    return format_coord(float(value), digits=3)


def label_font_size(radius: float, label: str) -> float:
    return max(12.0, radius / 2.5) * LENGTH_ADJUST.get(len(label), 1.0)


def recenter_labels(
    scene: Scene,
    measure: Callable[[Text], TextBox] = approximate_text_box,
) -> Scene:
    """
    Center every anchored label on its anchor from measured extents.

    The measured box is relative to the label's own origin, so running
    this again with the same metrics leaves positions unchanged.
    """
    for text in scene.texts():
        if text.anchor is None:
            continue
        box = measure(text)
        text.x = text.anchor[0] - (box.x + box.width / 2.0)
        text.y = text.anchor[1] - (box.y + box.height / 2.0)
    return scene


def layout_cluster(
    triple: MetricTriple,
    theme: Optional[Theme] = None,
    strings: Optional[UiStrings] = None,
    options: Optional[ClusterOptions] = None,
    host: Optional[RenderHost] = None,
    item_id: Optional[str] = None,
) -> Scene:
    """
    Render the full three-bubble cluster for a triple.

    Always emits 5 circles (background, outer stroke, three data bubbles)
    and 3 labels. Label centering is re-run once fonts are ready, and a
    row equalization is requested after the scene exists.
    """
    theme = theme or Theme()
    strings = strings or UiStrings()
    options = options or ClusterOptions()
    host = host or NullHost()

    padding = resolve_padding(options, theme)
    raw = [size_scale(v) for v in triple.values]
    pair = select_edge_pair(options.edge_pair, raw, options.rng)
    layout = solve_cluster(triple.values, padding=padding, edge_pair=pair)

    outer = layout.outer_radius
    half = outer + VIEW_MARGIN
    size = math.ceil(2.0 * half)
    base_attrs = {ATTR_ITEM_ID: item_id} if item_id is not None else {}

    builder = SceneBuilder(size, size, (-half, -half, 2.0 * half, 2.0 * half), attrs=dict(base_attrs))
    builder.circle(
        0.0, 0.0, outer + BACKGROUND_MARGIN,
        fill=theme.color("total"),
        attrs={**base_attrs, ATTR_ROLE: "background"},
    )
    builder.circle(
        0.0, 0.0, outer + STROKE_MARGIN,
        stroke=theme.color("outer-stroke"),
        stroke_width=2.0,
        attrs={**base_attrs, ATTR_ROLE: "outer-stroke"},
    )

    for slot in sorted(range(3), key=lambda i: -layout.radii[i]):
        name = triple.names[slot]
        radius = layout.radii[slot]
        cx, cy = layout.centers[slot]
        visible = radius > VISIBLE_RADIUS

        builder.circle(
            cx, cy, radius,
            fill=theme.color(name),
            stroke=theme.color("data-stroke"),
            stroke_width=2.0,
            opacity=0.9 if visible else 0.0,
            title=strings.legend(name),
            attrs={**base_attrs, ATTR_ROLE: name, ATTR_SLOT: str(slot)},
        )

        label = value_label(triple.values[slot])
        text = builder.text(
            0.0, 0.0, label,
            fill=theme.number_color(name),
            font_size=label_font_size(radius, label),
            font_weight="bold",
            opacity=1.0 if visible else 0.0,
            anchor=(cx, cy),
            attrs={**base_attrs, ATTR_ROLE: f"{name}-label", ATTR_SLOT: str(slot)},
        )
        box = approximate_text_box(text)
        text.x = cx - (box.x + box.width / 2.0)
        text.y = cy - (box.y + box.height / 2.0)

    scene = builder.build()

    host.when_fonts_ready(
        lambda: host.request_paint(lambda: recenter_labels(scene, host.measure_text))
    )
    host.request_paint(host.equalize_rows)
    return scene
