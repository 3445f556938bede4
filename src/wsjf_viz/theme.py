"""
Style tokens and localized strings.

- Theme: semantic role -> color, with a default color for anything
  missing, plus raw tokens such as the bubble gap.
- UiStrings: localized labels and `{value}` templates.
- fill_template / format_number: literal substitution and locale-style
  number formatting.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#cccccc"
VALUE_TOKEN = "{value}"

DEFAULT_TOKENS: Dict[str, str] = {
    "total": "#f4f4f4",
    "outer-stroke": "#9e9e9e",
    "placeholder-arc": "#d6d6d6",
    "complexity": "#8ecae6",
    "effort": "#219ebc",
    "doubt": "#ffb703",
    "bv": "#90be6d",
    "tc": "#f9844a",
    "rroe": "#577590",
    "number-complexity": "#1d3557",
    "number-effort": "#ffffff",
    "number-doubt": "#1d3557",
    "number-bv": "#1b4332",
    "number-tc": "#ffffff",
    "number-rroe": "#ffffff",
    "data-stroke": "#ffffff",
    "waiting": "#bdbdbd",
    "chart-label": "#333333",
    "chart-muted": "#999999",
    "bubble-gap": "2px",
}


def fill_template(template: Optional[str], value: Any) -> str:
    """
    Substitute `value` for the `{value}` token.

    Pure literal replacement: no separator is added, and a template
    without the token comes back unchanged.
    """
    if template is None:
        return ""
    return str(template).replace(VALUE_TOKEN, str(value))


def format_number(
    value: float,
    decimals: Optional[int] = None,
    decimal_separator: str = ".",
    thousands_separator: str = ",",
) -> str:
    """
    Format with grouping and the given separators.

    With decimals=None integral values print without fraction and other
    values keep up to three fraction digits.
    """
    value = float(value)
    if decimals is None:
        text = f"{value:,.3f}".rstrip("0").rstrip(".")
    else:
        text = f"{value:,.{decimals}f}"
    if text in ("-0", ""):
        text = "0"
    return (
        text.replace(",", "\0")
        .replace(".", decimal_separator)
        .replace("\0", thousands_separator)
    )


@dataclass
class Theme:
    """
    Role -> color lookup.

    Unknown or blank roles resolve to `default` instead of failing the
    render.
    """

    tokens: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TOKENS))
    default: str = DEFAULT_COLOR

    def token(self, name: str) -> Optional[str]:
        value = self.tokens.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def color(self, role: str) -> str:
        value = self.token(role)
        if value is None:
            logger.debug("Theme token %r missing, using %s", role, self.default)
            return self.default
        return value

    def number_color(self, role: str) -> str:
        return self.color(f"number-{role}")

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, Any], base_defaults: bool = True) -> "Theme":
        tokens = dict(DEFAULT_TOKENS) if base_defaults else {}
        tokens.update({str(k): str(v) for k, v in overrides.items() if v is not None})
        return cls(tokens=tokens)


@dataclass
class UiStrings:
    """
    Localized UI strings.

    Tooltip and axis entries are templates with a single `{value}` token.
    """

    legend_complexity: str = "Complexity"
    legend_effort: str = "Effort"
    legend_doubt: str = "Doubt"
    legend_bv: str = "Business Value"
    legend_tc: str = "Time Criticality"
    legend_rroe: str = "Risk Reduction / Opportunity Enablement"

    chart_no_data: str = "No valid data to display."
    tooltip_x_axis: str = "Cumulative Job Size: {value}"
    tooltip_y_axis: str = "Sum of Waiting Cost of Delay: {value}"
    tooltip_processing: str = "Processing"
    tooltip_waiting: str = "Waiting"
    tooltip_item: str = "Item: {value}"
    tooltip_job_size: str = "Job Size: {value}"
    tooltip_cod: str = "CoD: {value}"
    tooltip_wsjf: str = "WSJF: {value}"
    tooltip_accumulated_cost: str = "Accumulated Delay Cost: {value}"
    tooltip_separator: str = " - "

    decimal_separator: str = "."
    thousands_separator: str = ","

    def legend(self, slot: str) -> str:
        return getattr(self, f"legend_{slot}", slot)

    def number(self, value: float, decimals: Optional[int] = None) -> str:
        return format_number(
            value,
            decimals=decimals,
            decimal_separator=self.decimal_separator,
            thousands_separator=self.thousands_separator,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UiStrings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            logger.debug("Ignoring unknown UI string keys: %s", ", ".join(unknown))
        return cls(**{k: str(v) for k, v in data.items() if k in known})


def _read_json_object(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return data


def load_theme(path: Optional[Union[str, Path]] = None) -> Theme:
    """
    Load theme tokens from a JSON object file layered over the defaults.

    With no path, the built-in theme is returned.
    """
    if path is None:
        return Theme()
    return Theme.from_mapping(_read_json_object(path))


def load_ui_strings(path: Optional[Union[str, Path]] = None) -> UiStrings:
    if path is None:
        return UiStrings()
    return UiStrings.from_mapping(_read_json_object(path))
