"""
Command-style facade over the renderers.

The host translates its UI events into commands and calls `dispatch`;
every command is a pure "input in, fresh scene out" call. Routing between
the full bubble cluster and the placeholder happens here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from .bubble_layout import ClusterOptions, layout_cluster
from .config import Config, get_config
from .cost_chart import CostChart, render_cost_chart
from .delay_cost import simulate
from .host import NullHost, RenderHost
from .placeholder import render_placeholder
from .prioritization import (
    BacklogViewState,
    CostComparison,
    build_style_map,
    compare_costs,
    current_order,
    optimal_order,
)
from .scene import Scene
from .schema import ItemStyle, MetricTriple, WorkItem
from .theme import Theme, UiStrings, load_theme, load_ui_strings

logger = logging.getLogger(__name__)


@dataclass
class WsjfComparison:
    optimal: CostChart
    current: CostChart
    comparison: CostComparison
    styles: Dict[str, ItemStyle]


class VisualizationEngine:
    def __init__(
        self,
        theme: Optional[Theme] = None,
        strings: Optional[UiStrings] = None,
        options: Optional[ClusterOptions] = None,
        host: Optional[RenderHost] = None,
        palette: Optional[Sequence[str]] = None,
        chart_size: tuple = (600.0, 300.0),
    ) -> None:
        self.theme = theme or Theme()
        self.strings = strings or UiStrings()
        self.options = options or ClusterOptions()
        self.host = host or NullHost()
        self.palette = list(palette) if palette is not None else None
        self.chart_size = chart_size

        self._commands: Dict[str, Callable[..., Any]] = {
            "size_cluster": self.render_size_cluster,
            "cod_cluster": self.render_cod_cluster,
            "cluster": self.render_cluster,
            "cost_chart": self.render_cost_chart,
            "wsjf_comparison": self.render_wsjf_comparison,
        }

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        host: Optional[RenderHost] = None,
    ) -> "VisualizationEngine":
        cfg = config or get_config()
        return cls(
            theme=load_theme(cfg.theme_path),
            strings=load_ui_strings(cfg.strings_path),
            options=ClusterOptions(
                edge_pair=cfg.edge_pair,
                padding_px=cfg.padding_px,
                padding_token=cfg.padding_token,
            ),
            host=host,
            palette=cfg.palette,
            chart_size=(cfg.chart_width, cfg.chart_height),
        )

    @property
    def commands(self) -> Sequence[str]:
        return sorted(self._commands)

    def dispatch(self, command: str, **kwargs: Any) -> Any:
        try:
            handler = self._commands[command]
        except KeyError:
            raise ValueError(
                f"Unknown command {command!r}. Known commands: {', '.join(self.commands)}"
            ) from None
        return handler(**kwargs)

    # --- Clusters ---------------------------------------------------------

    def render_cluster(self, triple: MetricTriple, item_id: Optional[str] = None) -> Scene:
        if triple.is_complete:
            return layout_cluster(
                triple,
                theme=self.theme,
                strings=self.strings,
                options=self.options,
                host=self.host,
                item_id=item_id,
            )
        return render_placeholder(triple, theme=self.theme, item_id=item_id)

    def render_size_cluster(self, item: WorkItem) -> Scene:
        return self.render_cluster(item.size, item_id=item.item_id)

    def render_cod_cluster(self, item: WorkItem) -> Scene:
        return self.render_cluster(item.cost_of_delay, item_id=item.item_id)

    # --- Charts -----------------------------------------------------------

    def styles_for(self, items: Sequence[WorkItem]) -> Dict[str, ItemStyle]:
        return build_style_map(items, palette=self.palette)

    def render_cost_chart(
        self,
        ordered_items: Sequence[WorkItem],
        styles: Optional[Mapping[str, ItemStyle]] = None,
        highlighted_item_id: Optional[str] = None,
    ) -> CostChart:
        styles = styles if styles is not None else self.styles_for(ordered_items)
        model = simulate(ordered_items, styles)
        width, height = self.chart_size
        return render_cost_chart(
            model,
            ordered_items,
            styles,
            strings=self.strings,
            theme=self.theme,
            width=width,
            height=height,
            highlighted_item_id=highlighted_item_id,
        )

    def render_wsjf_comparison(
        self,
        items: Sequence[WorkItem],
        state: Optional[BacklogViewState] = None,
    ) -> WsjfComparison:
        """Optimal (WSJF) order next to the user's current order."""
        state = state or BacklogViewState()
        styles = self.styles_for(items)
        highlight = state.highlighted_item_id
        optimal = self.render_cost_chart(optimal_order(items), styles, highlight)
        current = self.render_cost_chart(current_order(items, state), styles, highlight)
        comparison = compare_costs(optimal.total_delay_cost, current.total_delay_cost)
        logger.debug(
            "Delay cost optimal=%s current=%s", comparison.optimal_cost, comparison.current_cost
        )
        return WsjfComparison(optimal, current, comparison, styles)
