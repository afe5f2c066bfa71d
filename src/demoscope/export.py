"""
Export Functionality for DemoScope

Provides export formats for a finished MatchState:
- JSON: complete data (server info, users with histories, typed events)
- CSV: one row per event with a human-readable description
- pandas DataFrame view of the event log for ad-hoc analysis
"""

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from demoscope import __version__
from demoscope.analysis.describe import describe_event
from demoscope.analysis.models import MatchEvent, MatchState
from demoscope.core.config import ExportConfig
from demoscope.core.utils import ticks_to_sec, ticks_to_timestamp

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ["tick", "seconds", "timestamp", "kind", "title", "subtitle"]


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def dataclass_to_dict(obj: Any) -> Any:
    """Convert a dataclass (or nested dataclasses) to plain JSON-ready values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {key: dataclass_to_dict(value) for key, value in asdict(obj).items()}
    elif isinstance(obj, dict):
        return {k: dataclass_to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [dataclass_to_dict(item) for item in obj]
    elif isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, Path):
        return str(obj)
    else:
        return obj


def event_to_dict(event: MatchEvent) -> dict[str, Any]:
    return {"tick": event.tick, "kind": event.kind.value, **dataclass_to_dict(event.value)}


def match_state_to_dict(state: MatchState) -> dict[str, Any]:
    """Convert a MatchState to a JSON-ready dictionary."""
    return {
        "server_info": {**dataclass_to_dict(state.server_info), "tick_rate": state.tick_rate},
        "start_tick": state.start_tick,
        "end_tick": state.end_tick,
        "duration_seconds": state.duration_seconds,
        "users": [dataclass_to_dict(user) for user in state.users],
        "events": [event_to_dict(event) for event in state.events],
    }


def events_dataframe(state: MatchState) -> pd.DataFrame:
    """
    Build a DataFrame of the event log.

    Columns: tick, seconds, timestamp, kind, title, subtitle
    """
    if not state.events:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    rate = state.tick_rate
    records = []
    for event in state.events:
        description = describe_event(state, event)
        records.append(
            {
                "tick": event.tick,
                "seconds": ticks_to_sec(event.tick, rate),
                "timestamp": ticks_to_timestamp(event.tick, rate),
                "kind": event.kind.value,
                "title": description.title,
                "subtitle": description.subtitle,
            }
        )
    return pd.DataFrame(records, columns=EVENT_COLUMNS)


# ============================================================================
# JSON Export
# ============================================================================


def export_to_json(
    state: MatchState,
    output_path: Path | None = None,
    indent: int = 2,
    include_metadata: bool = True,
) -> str:
    """
    Export a match to JSON format.

    Args:
        state: Finished match
        output_path: Optional path to write the file
        indent: JSON indentation level
        include_metadata: Whether to include export metadata

    Returns:
        JSON string
    """
    export_data = match_state_to_dict(state)

    if include_metadata:
        export_data = {
            "_metadata": {
                "exported_at": datetime.now().isoformat(),
                "format": "demoscope_json",
                "version": __version__,
            },
            **export_data,
        }

    json_str = json.dumps(export_data, indent=indent, default=str)

    if output_path:
        output_path.write_text(json_str)
        logger.info(f"Exported JSON to: {output_path}")

    return json_str


# ============================================================================
# CSV Export
# ============================================================================


def export_events_to_csv(
    state: MatchState,
    output_path: Path | None = None,
    delimiter: str = ",",
) -> str:
    """
    Export the event log to CSV format.

    Args:
        state: Finished match
        output_path: Optional path to write the file
        delimiter: CSV delimiter character

    Returns:
        CSV string
    """
    csv_str = events_dataframe(state).to_csv(index=False, sep=delimiter)

    if output_path:
        output_path.write_text(csv_str)
        logger.info(f"Exported CSV to: {output_path}")

    return csv_str


def export_match(state: MatchState, output_path: Path, config: ExportConfig | None = None) -> str:
    """
    Export a match, choosing the format from the file extension.

    Falls back to the configured default format for unknown extensions.

    Raises:
        ValueError: If the resolved format is not supported
    """
    config = config or ExportConfig()
    suffix = output_path.suffix.lower().lstrip(".") or config.default_format
    if suffix not in ("json", "csv"):
        suffix = config.default_format

    if suffix == "json":
        return export_to_json(state, output_path, indent=config.json_indent)
    if suffix == "csv":
        return export_events_to_csv(state, output_path, delimiter=config.csv_delimiter)
    raise ValueError(f"Unsupported export format: {suffix}")
