"""
Vector scene primitives shared by every renderer.

A Scene is a plain tree of circles, arc paths, rects, texts and groups.
Interactive primitives carry `data-item-id` and `data-role` / `data-kind`
attributes so the host can wire highlighting without re-deriving geometry.
Scenes serialize to SVG via `Scene.to_svg()`.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .geometry import format_coord

SVG_NS = "http://www.w3.org/2000/svg"

ATTR_ITEM_ID = "data-item-id"
ATTR_ROLE = "data-role"
ATTR_KIND = "data-kind"
ATTR_SLOT = "data-slot"
ATTR_HIGHLIGHTED = "data-highlighted"


@dataclass
class Circle:
    cx: float
    cy: float
    r: float
    fill: str = "none"
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    opacity: Optional[float] = None
    title: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)


@dataclass
class ArcPath:
    d: str
    fill: str = "none"
    title: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)


@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: str = "none"
    title: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)


@dataclass
class Text:
    """
    A text label.

    `anchor` is the point the label should be visually centered on; x/y is
    the current baseline origin and changes when labels are re-centered.
    """

    x: float
    y: float
    content: str
    fill: str = "#000000"
    font_size: float = 12.0
    font_weight: Optional[str] = None
    opacity: Optional[float] = None
    anchor: Optional[Tuple[float, float]] = None
    title: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)


@dataclass
class Group:
    children: List["Primitive"] = field(default_factory=list)
    title: Optional[str] = None
    attrs: Dict[str, str] = field(default_factory=dict)


Primitive = Union[Circle, ArcPath, Rect, Text, Group]


@dataclass
class Scene:
    width: float
    height: float
    view_box: Tuple[float, float, float, float]
    children: List[Primitive] = field(default_factory=list)
    attrs: Dict[str, str] = field(default_factory=dict)

    # --- Traversal --------------------------------------------------------

    def walk(self) -> Iterator[Primitive]:
        """Depth-first iteration over every primitive, groups included."""
        stack: List[Primitive] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Group):
                stack.extend(reversed(node.children))

    def circles(self) -> List[Circle]:
        return [p for p in self.walk() if isinstance(p, Circle)]

    def texts(self) -> List[Text]:
        return [p for p in self.walk() if isinstance(p, Text)]

    def paths(self) -> List[ArcPath]:
        return [p for p in self.walk() if isinstance(p, ArcPath)]

    def rects(self) -> List[Rect]:
        return [p for p in self.walk() if isinstance(p, Rect)]

    def groups(self) -> List[Group]:
        return [p for p in self.walk() if isinstance(p, Group)]

    def find(self, **attrs: str) -> List[Primitive]:
        """
        Primitives whose data attributes match all of `attrs`.

        Keyword names use underscores: find(item_id="A", kind="waiting").
        """
        wanted = {f"data-{k.replace('_', '-')}": str(v) for k, v in attrs.items()}
        return [
            p
            for p in self.walk()
            if all(p.attrs.get(k) == v for k, v in wanted.items())
        ]

    # --- Serialization ----------------------------------------------------

    def to_element(self) -> ET.Element:
        root = ET.Element(
            "svg",
            {
                "xmlns": SVG_NS,
                "width": format_coord(self.width),
                "height": format_coord(self.height),
                "viewBox": " ".join(format_coord(v) for v in self.view_box),
            },
        )
        for key, value in self.attrs.items():
            root.set(key, value)
        for child in self.children:
            _append_element(root, child)
        return root

    def to_svg(self) -> str:
        return ET.tostring(self.to_element(), encoding="unicode")


def _set_optional(el: ET.Element, name: str, value) -> None:
    if value is None:
        return
    el.set(name, format_coord(value) if isinstance(value, (int, float)) else str(value))


def _append_element(parent: ET.Element, node: Primitive) -> None:
    if isinstance(node, Circle):
        el = ET.SubElement(
            parent,
            "circle",
            {
                "cx": format_coord(node.cx),
                "cy": format_coord(node.cy),
                "r": format_coord(node.r),
                "fill": node.fill,
            },
        )
        _set_optional(el, "stroke", node.stroke)
        _set_optional(el, "stroke-width", node.stroke_width)
        _set_optional(el, "opacity", node.opacity)
    elif isinstance(node, ArcPath):
        el = ET.SubElement(parent, "path", {"d": node.d, "fill": node.fill})
    elif isinstance(node, Rect):
        el = ET.SubElement(
            parent,
            "rect",
            {
                "x": format_coord(node.x),
                "y": format_coord(node.y),
                "width": format_coord(node.width),
                "height": format_coord(node.height),
                "fill": node.fill,
            },
        )
    elif isinstance(node, Text):
        el = ET.SubElement(
            parent,
            "text",
            {
                "x": format_coord(node.x),
                "y": format_coord(node.y),
                "fill": node.fill,
                "font-size": f"{format_coord(node.font_size)}px",
            },
        )
        _set_optional(el, "font-weight", node.font_weight)
        _set_optional(el, "opacity", node.opacity)
        el.text = node.content
    else:
        el = ET.SubElement(parent, "g")
        for child in node.children:
            _append_element(el, child)

    for key, value in node.attrs.items():
        el.set(key, value)
    if node.title:
        title = ET.Element("title")
        title.text = node.title
        el.insert(0, title)


class SceneBuilder:
    """
    Accumulates primitives into a fresh Scene.

    Primitives are appended to the innermost open group:

        builder = SceneBuilder(100, 100, (-50, -50, 100, 100))
        with builder.group({ATTR_KIND: "segment"}):
            builder.rect(0, 0, 10, 10, fill="#fff")
        scene = builder.build()
    """

    def __init__(
        self,
        width: float,
        height: float,
        view_box: Optional[Tuple[float, float, float, float]] = None,
        attrs: Optional[Dict[str, str]] = None,
    ) -> None:
        self._scene = Scene(
            width=width,
            height=height,
            view_box=view_box or (0.0, 0.0, width, height),
            attrs=dict(attrs or {}),
        )
        self._stack: List[List[Primitive]] = [self._scene.children]

    def _add(self, node: Primitive) -> Primitive:
        self._stack[-1].append(node)
        return node

    def circle(self, cx: float, cy: float, r: float, **kwargs) -> Circle:
        return self._add(Circle(cx=cx, cy=cy, r=r, **kwargs))

    def arc_path(self, d: str, **kwargs) -> ArcPath:
        return self._add(ArcPath(d=d, **kwargs))

    def rect(self, x: float, y: float, width: float, height: float, **kwargs) -> Rect:
        return self._add(Rect(x=x, y=y, width=width, height=height, **kwargs))

    def text(self, x: float, y: float, content: str, **kwargs) -> Text:
        return self._add(Text(x=x, y=y, content=content, **kwargs))

    @contextmanager
    def group(
        self, attrs: Optional[Dict[str, str]] = None, title: Optional[str] = None
    ) -> Iterator[Group]:
        node = Group(attrs=dict(attrs or {}), title=title)
        self._add(node)
        self._stack.append(node.children)
        try:
            yield node
        finally:
            self._stack.pop()

    def build(self) -> Scene:
        return self._scene
