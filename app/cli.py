"""
CLI for the WSJF visualization system.

Usage examples:

    # Rank a backlog by WSJF
    python -m app.cli rank data/backlog.csv

    # Write size / cost-of-delay cluster SVGs for every item
    python -m app.cli clusters data/backlog.csv --out-dir out/clusters

    # Optimal vs current order delay cost charts
    python -m app.cli chart data/backlog.json --out-dir out/charts --sort wsjf

    # Spreadsheet-style export
    python -m app.cli export-csv data/backlog.json out/backlog.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from wsjf_viz.config import get_config
from wsjf_viz.data_io import Backlog, export_items_csv, load_backlog_json, load_items_from_csv
from wsjf_viz.engine import VisualizationEngine
from wsjf_viz.prioritization import BacklogViewState, rank_by_wsjf, wsjf_score


def load_backlog(path: Path) -> Backlog:
    if path.suffix.lower() == ".json":
        return load_backlog_json(path)
    return Backlog(items=load_items_from_csv(str(path)))


def _resolve_input(command: str, raw_path: str) -> Path:
    path = Path(raw_path).resolve()
    if not path.exists():
        raise SystemExit(f"[{command}] Backlog file not found: {path}")
    return path


# --- Commands ----------------------------------------------------------------


def cmd_rank(args: argparse.Namespace) -> None:
    """
    Print items in WSJF order with job size, cost of delay and score.
    """
    backlog = load_backlog(_resolve_input("rank", args.backlog_path))
    ranks = rank_by_wsjf(backlog.items)
    by_id = {item.item_id: item for item in backlog.items}

    print(f"[rank] Ranked {len(ranks)} of {len(backlog.items)} items.")
    for item_id, rank in sorted(ranks.items(), key=lambda pair: pair[1]):
        item = by_id[item_id]
        print(
            f"{rank:>3}  {item.title:<40}  job size {item.job_size:g}  "
            f"CoD {item.cod:g}  WSJF {wsjf_score(item.cod, item.job_size):.2f}"
        )

    unranked = [item for item in backlog.items if item.item_id not in ranks]
    if unranked:
        print(f"[rank] Not ranked (incomplete estimates): {', '.join(i.title or i.item_id for i in unranked)}")


def cmd_clusters(args: argparse.Namespace) -> None:
    """
    Write one size and one cost-of-delay SVG per item.
    """
    backlog = load_backlog(_resolve_input("clusters", args.backlog_path))
    out_dir = Path(args.out_dir).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)

    engine = VisualizationEngine.from_config(get_config())
    for item in backlog.items:
        size_path = out_dir / f"{item.item_id}-size.svg"
        cod_path = out_dir / f"{item.item_id}-cod.svg"
        size_path.write_text(engine.render_size_cluster(item).to_svg(), encoding="utf-8")
        cod_path.write_text(engine.render_cod_cluster(item).to_svg(), encoding="utf-8")

    print(f"[clusters] Wrote {2 * len(backlog.items)} SVGs to {out_dir}")


def cmd_chart(args: argparse.Namespace) -> None:
    """
    Render optimal and current order delay cost charts and compare totals.
    """
    backlog = load_backlog(_resolve_input("chart", args.backlog_path))
    out_dir = Path(args.out_dir).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)

    state = BacklogViewState(
        sort_criteria=args.sort,
        sort_direction=args.direction,
        locked_order=list(backlog.locked_order),
    )
    engine = VisualizationEngine.from_config(get_config())
    result = engine.render_wsjf_comparison(backlog.items, state)

    (out_dir / "optimal.svg").write_text(result.optimal.scene.to_svg(), encoding="utf-8")
    (out_dir / "current.svg").write_text(result.current.scene.to_svg(), encoding="utf-8")

    number = engine.strings.number
    if result.optimal.no_data:
        print(f"[chart] {engine.strings.chart_no_data}")
    print(f"[chart] Optimal order total delay cost: {number(result.comparison.optimal_cost)}")
    print(
        f"[chart] Current order total delay cost: "
        f"{number(result.comparison.current_cost)}{result.comparison.suffix}"
    )
    print(f"[chart] Saved charts to {out_dir}")


def cmd_export_csv(args: argparse.Namespace) -> None:
    """
    Write the spreadsheet export (semicolon separated, WSJF column).
    """
    backlog = load_backlog(_resolve_input("export-csv", args.backlog_path))
    dest_path = Path(args.dest_path).resolve()
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    export_items_csv(backlog.items, str(dest_path), decimal_separator=args.decimal_separator)
    print(f"[export-csv] Exported {len(backlog.items)} items -> {dest_path}")


# --- Main --------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="WSJF Viz CLI – rank backlog, render clusters and delay cost charts."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # rank
    rank_p = subparsers.add_parser(
        "rank",
        help="Rank backlog items by WSJF.",
    )
    rank_p.add_argument(
        "backlog_path",
        help="Backlog CSV or JSON file.",
    )
    rank_p.set_defaults(func=cmd_rank)

    # clusters
    clusters_p = subparsers.add_parser(
        "clusters",
        help="Write size and cost-of-delay cluster SVGs for every item.",
    )
    clusters_p.add_argument(
        "backlog_path",
        help="Backlog CSV or JSON file.",
    )
    clusters_p.add_argument(
        "--out-dir",
        default="clusters",
        help="Directory for the SVG files (default: ./clusters).",
    )
    clusters_p.set_defaults(func=cmd_clusters)

    # chart
    chart_p = subparsers.add_parser(
        "chart",
        help="Render optimal vs current order delay cost charts.",
    )
    chart_p.add_argument(
        "backlog_path",
        help="Backlog CSV or JSON file.",
    )
    chart_p.add_argument(
        "--out-dir",
        default="charts",
        help="Directory for optimal.svg / current.svg (default: ./charts).",
    )
    chart_p.add_argument(
        "--sort",
        default="custom",
        help="Current order criterion: custom, wsjf, job_size, cod, title or a slot name.",
    )
    chart_p.add_argument(
        "--direction",
        choices=["asc", "desc"],
        default="asc",
        help="Current order direction (default: asc).",
    )
    chart_p.set_defaults(func=cmd_chart)

    # export-csv
    exp_p = subparsers.add_parser(
        "export-csv",
        help="Spreadsheet-style CSV export.",
    )
    exp_p.add_argument(
        "backlog_path",
        help="Backlog CSV or JSON file.",
    )
    exp_p.add_argument(
        "dest_path",
        help="Destination CSV path.",
    )
    exp_p.add_argument(
        "--decimal-separator",
        default=",",
        help="Decimal separator for the WSJF column (default: ',').",
    )
    exp_p.set_defaults(func=cmd_export_csv)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (ValueError, FileNotFoundError) as e:
        raise SystemExit(f"[{args.command}] {e}")


if __name__ == "__main__":
    main()
