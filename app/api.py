"""
FastAPI app for the WSJF visualization system.

Endpoints:
- POST /cluster
- POST /cost_chart
- POST /rank

Run locally with `uvicorn app.api:app --reload`.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from wsjf_viz.config import get_config
from wsjf_viz.engine import VisualizationEngine
from wsjf_viz.prioritization import BacklogViewState, rank_by_wsjf, wsjf_score
from wsjf_viz.schema import WorkItem, cod_triple, size_triple

app = FastAPI(title="WSJF Viz API")


# --- Helpers -----------------------------------------------------------------


def get_engine() -> VisualizationEngine:
    """
    Build an engine from the process configuration.

    A fresh engine per request: renders never share mutable state.
    """
    try:
        return VisualizationEngine.from_config(get_config())
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=500, detail=str(e))


# --- Request / Response schemas ----------------------------------------------


class WorkItemPayload(BaseModel):
    """
    One backlog item.

    Missing or negative estimates are treated as 0 ("not estimated").
    """

    id: str
    title: str = ""
    complexity: Optional[float] = None
    effort: Optional[float] = None
    doubt: Optional[float] = None
    cod_bv: Optional[float] = None
    cod_tc: Optional[float] = None
    cod_rroe: Optional[float] = None
    color: Optional[str] = None

    def to_item(self) -> WorkItem:
        return WorkItem(
            item_id=self.id,
            title=self.title,
            size=size_triple(self.complexity, self.effort, self.doubt),
            cost_of_delay=cod_triple(self.cod_bv, self.cod_tc, self.cod_rroe),
            color=self.color,
        )


class ClusterRequest(BaseModel):
    item: WorkItemPayload
    view: str = Field(default="size", pattern="^(size|cod)$")


class ClusterResponse(BaseModel):
    item_id: str
    complete: bool
    svg: str


class CostChartRequest(BaseModel):
    items: List[WorkItemPayload]
    sort_criteria: str = "custom"
    sort_direction: str = Field(default="asc", pattern="^(asc|desc)$")
    locked_order: List[str] = Field(default_factory=list)


class ChartPayload(BaseModel):
    total_delay_cost: float
    no_data: bool
    svg: str


class CostChartResponse(BaseModel):
    optimal: ChartPayload
    current: ChartPayload
    percent_above_optimal: float
    is_optimal: bool


class RankEntry(BaseModel):
    id: str
    rank: int
    wsjf: float


class RankRequest(BaseModel):
    items: List[WorkItemPayload]


class RankResponse(BaseModel):
    ranks: List[RankEntry]
    unranked: List[str]


# --- Endpoints ---------------------------------------------------------------


@app.post("/cluster", response_model=ClusterResponse)
def cluster(payload: ClusterRequest) -> ClusterResponse:
    """
    Render the size or cost-of-delay cluster for a single item.

    Body example:
    {
      "item": {"id": "PBI-1", "complexity": 3, "effort": 5, "doubt": 1},
      "view": "size"
    }
    """
    engine = get_engine()
    item = payload.item.to_item()
    triple = item.size if payload.view == "size" else item.cost_of_delay
    scene = engine.render_cluster(triple, item_id=item.item_id)
    return ClusterResponse(item_id=item.item_id, complete=triple.is_complete, svg=scene.to_svg())


@app.post("/cost_chart", response_model=CostChartResponse)
def cost_chart(payload: CostChartRequest) -> CostChartResponse:
    """
    Delay cost charts for the WSJF order and the requested current order.
    """
    engine = get_engine()
    items = [p.to_item() for p in payload.items]
    state = BacklogViewState(
        sort_criteria=payload.sort_criteria,
        sort_direction=payload.sort_direction,
        locked_order=list(payload.locked_order),
    )
    result = engine.render_wsjf_comparison(items, state)

    def _chart(chart) -> ChartPayload:
        return ChartPayload(
            total_delay_cost=chart.total_delay_cost,
            no_data=chart.no_data,
            svg=chart.scene.to_svg(),
        )

    return CostChartResponse(
        optimal=_chart(result.optimal),
        current=_chart(result.current),
        percent_above_optimal=result.comparison.percent_above_optimal,
        is_optimal=result.comparison.is_optimal,
    )


@app.post("/rank", response_model=RankResponse)
def rank(payload: RankRequest) -> RankResponse:
    items = [p.to_item() for p in payload.items]
    ranks: Dict[str, int] = rank_by_wsjf(items)
    by_id = {item.item_id: item for item in items}
    entries = [
        RankEntry(id=item_id, rank=r, wsjf=wsjf_score(by_id[item_id].cod, by_id[item_id].job_size))
        for item_id, r in sorted(ranks.items(), key=lambda pair: pair[1])
    ]
    return RankResponse(ranks=entries, unranked=[i.item_id for i in items if i.item_id not in ranks])


# Convenience for local dev:
# uvicorn app.api:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.api:app", host="0.0.0.0", port=8000, reload=True)
