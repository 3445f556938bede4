"""
Data I/O utilities.

Provides thin helpers to:
- Load/save backlog items from a local CSV
- Export the spreadsheet-style CSV (semicolon separated, WSJF column)
- Import/export the JSON backlog file (settings + backlogItems)
- Load/save backlog CSVs in Azure Blob Storage

Dependencies:
- Standard library only for local files.
- For Azure Blob: `azure-storage-blob` package is required.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, TextIO, Union

from .config import Config, get_config
from .prioritization import wsjf_score
from .schema import WorkItem, cod_triple, size_triple

try:
    from azure.storage.blob import BlobServiceClient  # type: ignore[import]
except ImportError:  # pragma: no cover - optional dependency
    BlobServiceClient = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "id",
    "title",
    "complexity",
    "effort",
    "doubt",
    "cod_bv",
    "cod_tc",
    "cod_rroe",
    "color",
    "rank",
    "notes",
    "reference_type",
]

EXPORT_HEADERS = [
    "Title",
    "Complexity",
    "Effort",
    "Doubt",
    "Job Size",
    "BV",
    "TC",
    "RR/OE",
    "CoD",
    "WSJF",
    "Notes",
    "Reference Item",
]


@dataclass
class Backlog:
    """Items plus the custom order and settings stored alongside them."""

    items: List[WorkItem] = field(default_factory=list)
    locked_order: List[str] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)


def _int_or_none(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _reference_type(value: Any) -> Optional[str]:
    value = (value or "").strip().lower() if isinstance(value, str) else None
    return value if value in ("min", "max") else None


def item_from_record(record: Mapping[str, Any], fallback_id: str) -> WorkItem:
    """
    Build a WorkItem from a CSV row or JSON object.

    Numeric fields are clamped by MetricTriple; unknown keys are ignored.
    """
    reference_type = _reference_type(record.get("reference_type", record.get("referenceType")))
    if record.get("isReference") is True and reference_type is None:
        reference_type = "min"

    return WorkItem(
        item_id=record.get("id") or fallback_id,
        title=record.get("title") or "",
        size=size_triple(record.get("complexity"), record.get("effort"), record.get("doubt")),
        cost_of_delay=cod_triple(record.get("cod_bv"), record.get("cod_tc"), record.get("cod_rroe")),
        color=record.get("color") or record.get("wsjfRankColor") or None,
        rank=_int_or_none(record.get("rank")),
        notes=record.get("notes") or "",
        is_reference=reference_type is not None,
        reference_type=reference_type,
    )


def item_to_record(item: WorkItem) -> Dict[str, Any]:
    complexity, effort, doubt = item.size.values
    bv, tc, rroe = item.cost_of_delay.values
    return {
        "id": item.item_id,
        "title": item.title,
        "complexity": complexity,
        "effort": effort,
        "doubt": doubt,
        "cod_bv": bv,
        "cod_tc": tc,
        "cod_rroe": rroe,
        "color": item.color or "",
        "rank": "" if item.rank is None else item.rank,
        "notes": item.notes,
        "reference_type": item.reference_type or "",
    }


# --- Local CSV helpers -----------------------------------------------------


def read_items_csv(stream: TextIO, delimiter: str = ",") -> List[WorkItem]:
    items: List[WorkItem] = []
    reader = csv.DictReader(stream, delimiter=delimiter)
    for index, row in enumerate(reader, start=1):
        if not row or not any((v or "").strip() for v in row.values() if isinstance(v, str)):
            logger.debug("Skipping empty CSV row %d", index)
            continue
        items.append(item_from_record(row, fallback_id=f"item-{index}"))
    return items


def write_items_csv(items: Iterable[WorkItem], stream: TextIO) -> None:
    writer = csv.DictWriter(stream, fieldnames=CSV_FIELDS)
    writer.writeheader()
    for item in items:
        writer.writerow(item_to_record(item))


def load_items_from_csv(path: str, delimiter: str = ",") -> List[WorkItem]:
    """
    Load backlog items from a CSV file.

    Expected columns (case-sensitive):
    - Required: title, complexity, effort, doubt, cod_bv, cod_tc, cod_rroe
    - Optional: id (defaults to item-<row>), color, rank, notes,
      reference_type

    Extra columns are ignored.
    """
    with open(path, mode="r", newline="", encoding="utf-8-sig") as f:
        return read_items_csv(f, delimiter=delimiter)


def save_items_to_csv(items: Iterable[WorkItem], path: str) -> None:
    """Save items in the same column layout load_items_from_csv reads."""
    with open(path, mode="w", newline="", encoding="utf-8") as f:
        write_items_csv(items, f)


def export_items_csv(
    items: Iterable[WorkItem],
    path: str,
    decimal_separator: str = ",",
    headers: Optional[List[str]] = None,
) -> None:
    """
    Spreadsheet export: semicolon separated, UTF-8 BOM, sums only for
    complete triples and WSJF with two decimals.
    """
    with open(path, mode="w", newline="", encoding="utf-8-sig") as f:
        writer = csv.writer(f, delimiter=";", lineterminator="\r\n")
        writer.writerow(headers or EXPORT_HEADERS)
        for item in items:
            job_size = item.job_size
            cod = item.cod
            wsjf = ""
            if job_size is not None and cod is not None:
                wsjf = f"{wsjf_score(cod, job_size):.2f}".replace(".", decimal_separator)
            writer.writerow(
                [
                    item.title,
                    *(_plain(v) for v in item.size.values),
                    "" if job_size is None else _plain(job_size),
                    *(_plain(v) for v in item.cost_of_delay.values),
                    "" if cod is None else _plain(cod),
                    wsjf,
                    item.notes,
                    item.reference_type or "",
                ]
            )


def _plain(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# --- JSON backlog helpers --------------------------------------------------


def backlog_from_json(data: Any) -> Backlog:
    """
    Parse a backlog document.

    Accepts {"settings": {...}, "backlogItems": [...]} or a bare list of
    items. Items with a customSortIndex define the locked order; the rest
    follow in file order.
    """
    settings: Dict[str, Any] = {}
    if isinstance(data, dict) and "backlogItems" in data:
        records = data["backlogItems"]
        settings = dict(data.get("settings") or {})
        if not isinstance(records, list):
            raise ValueError("Invalid backlogItems format: expected a list.")
    elif isinstance(data, list):
        records = data
        logger.warning("Importing item list without settings; defaults will be used.")
    else:
        raise ValueError("Unrecognized backlog file format.")

    records = [r for r in records if r]
    if any(not isinstance(r, dict) for r in records) or (records and "title" not in records[0]):
        raise ValueError("Invalid backlog item structure in data.")

    items: List[WorkItem] = []
    indexed: List[tuple] = []
    unindexed: List[str] = []
    for position, record in enumerate(records, start=1):
        item = item_from_record(record, fallback_id=f"item-{position}")
        items.append(item)
        sort_index = record.get("customSortIndex")
        if isinstance(sort_index, (int, float)) and not isinstance(sort_index, bool) and sort_index >= 0:
            indexed.append((sort_index, item.item_id))
        else:
            unindexed.append(item.item_id)

    locked_order: List[str] = []
    if indexed:
        locked_order = [item_id for _, item_id in sorted(indexed, key=lambda p: p[0])] + unindexed

    return Backlog(items=items, locked_order=locked_order, settings=settings)


def backlog_to_json(backlog: Backlog) -> Dict[str, Any]:
    order = {item_id: i for i, item_id in enumerate(backlog.locked_order)}
    records = []
    for item in backlog.items:
        record = item_to_record(item)
        record["isReference"] = item.is_reference
        record["referenceType"] = record.pop("reference_type") or None
        color = record.pop("color")
        if color:
            record["wsjfRankColor"] = color
        if item.item_id in order:
            record["customSortIndex"] = order[item.item_id]
        records.append(record)
    return {"settings": dict(backlog.settings), "backlogItems": records}


def load_backlog_json(path: Union[str, Path]) -> Backlog:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Backlog file not found: {path}")
    return backlog_from_json(json.loads(path.read_text(encoding="utf-8")))


def save_backlog_json(backlog: Backlog, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(backlog_to_json(backlog), indent=2), encoding="utf-8")


# --- Azure Blob helpers ----------------------------------------------------


def _get_blob_service(config: Optional[Config] = None):
    if BlobServiceClient is None:
        raise ImportError(
            "azure-storage-blob is required for Azure Blob operations. "
            "Install via `pip install azure-storage-blob`."
        )
    cfg = config or get_config()
    if not cfg.azure_blob_connection_string:
        raise ValueError(
            "Azure blob connection string is not configured. "
            "Set WV_AZURE_BLOB_CONNECTION_STRING or pass Config explicitly."
        )
    return BlobServiceClient.from_connection_string(
        cfg.azure_blob_connection_string
    ), cfg


def _blob_client(blob_name: str, container_name: Optional[str], config: Optional[Config]):
    service_client, cfg = _get_blob_service(config)
    container = container_name or cfg.azure_blob_container_name
    if not container:
        raise ValueError(
            "Azure blob container name is not configured. "
            "Set WV_AZURE_BLOB_CONTAINER_NAME or pass container_name."
        )
    return service_client.get_blob_client(container=container, blob=blob_name)


def load_items_from_azure_blob(
    blob_name: str,
    *,
    container_name: Optional[str] = None,
    config: Optional[Config] = None,
) -> List[WorkItem]:
    """
    Load backlog items from a CSV stored in Azure Blob Storage.

    - blob_name: name of the blob (e.g., 'backlog/items.csv')
    - container_name: overrides Config.azure_blob_container_name if provided
    """
    blob_client = _blob_client(blob_name, container_name, config)
    csv_text = blob_client.download_blob().readall().decode("utf-8-sig")
    return read_items_csv(StringIO(csv_text))


def save_items_to_azure_blob(
    items: Iterable[WorkItem],
    blob_name: str,
    *,
    container_name: Optional[str] = None,
    config: Optional[Config] = None,
) -> None:
    """
    Save items as CSV into an Azure Blob.

    Overwrites the target blob.
    """
    blob_client = _blob_client(blob_name, container_name, config)
    buffer = StringIO()
    write_items_csv(items, buffer)
    blob_client.upload_blob(buffer.getvalue().encode("utf-8"), overwrite=True)
