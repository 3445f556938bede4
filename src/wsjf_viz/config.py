"""
Configuration module for the WSJF visualization system.

Single source of truth for:
- Bubble cluster layout knobs (edge pair, padding)
- Theme / UI string file locations and chart size
- Azure Blob settings for backlog storage

All values can be overridden via environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import List, Optional

from .prioritization import DEFAULT_PALETTE


def _get_env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if value is None:
        return list(default)
    items = [part.strip() for part in value.split(",") if part.strip()]
    return items or list(default)


@dataclass
class Config:
    """
    Runtime configuration for the WSJF visualization system.

    All fields default from environment variables but can be overridden
    programmatically by constructing Config(...) manually if needed.
    """

    # Bubble cluster layout
    edge_pair: str = "largest"
    padding_px: Optional[float] = None
    padding_token: str = "bubble-gap"

    # Styling / localization (JSON files; None = built-in defaults)
    theme_path: Optional[str] = None
    strings_path: Optional[str] = None
    palette: List[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))

    # Cost chart box in px
    chart_width: float = 600.0
    chart_height: float = 300.0

    # Azure Blob Storage (backlog CSV/JSON in the cloud)
    azure_blob_connection_string: Optional[str] = None
    azure_blob_container_name: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Config":
        """
        Construct a Config object by reading environment variables.

        Environment variables (all optional):
        - WV_EDGE_PAIR          (largest | random | 01 | 02 | 12)
        - WV_PADDING_PX         (float, overrides the theme token)
        - WV_PADDING_TOKEN      (theme token name, default bubble-gap)
        - WV_THEME_PATH         (JSON object of role -> color)
        - WV_STRINGS_PATH       (JSON object of UI strings)
        - WV_PALETTE            (comma separated colors)
        - WV_CHART_WIDTH / WV_CHART_HEIGHT (float)
        - WV_AZURE_BLOB_CONNECTION_STRING
        - WV_AZURE_BLOB_CONTAINER_NAME
        """
        return cls(
            edge_pair=os.getenv("WV_EDGE_PAIR", "largest").strip() or "largest",
            padding_px=_get_env_float("WV_PADDING_PX", default=None),
            padding_token=os.getenv("WV_PADDING_TOKEN", "bubble-gap"),
            theme_path=os.getenv("WV_THEME_PATH") or None,
            strings_path=os.getenv("WV_STRINGS_PATH") or None,
            palette=_get_env_list("WV_PALETTE", DEFAULT_PALETTE),
            chart_width=_get_env_float("WV_CHART_WIDTH", default=600.0),
            chart_height=_get_env_float("WV_CHART_HEIGHT", default=300.0),
            azure_blob_connection_string=os.getenv(
                "WV_AZURE_BLOB_CONNECTION_STRING"
            ),
            azure_blob_container_name=os.getenv(
                "WV_AZURE_BLOB_CONTAINER_NAME"
            ),
        )


# Convenience singleton-style accessor if you want a shared config
_DEFAULT_CONFIG: Optional[Config] = None


def get_config(force_reload: bool = False) -> Config:
    """
    Return a process-wide Config instance.

    Use `force_reload=True` if environment variables changed at runtime
    and you want to refresh.
    """
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None or force_reload:
        _DEFAULT_CONFIG = Config.from_env()
    return _DEFAULT_CONFIG
