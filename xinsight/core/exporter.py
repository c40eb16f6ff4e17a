"""Export utilities for normalized rows."""

import json
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from xinsight.models.row import NormalizedRow, RawRecord

if TYPE_CHECKING:
    import pandas as pd

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False


# Header columns are collected from this many leading rows only. Columns that
# first appear further down are not exported.
CSV_SAMPLE_SIZE = 5

EXPORT_PREFIX = "twitter-data"

Row = NormalizedRow | Mapping[str, Any]


def _as_record(row: Row) -> Mapping[str, Any]:
    if isinstance(row, NormalizedRow):
        return row.to_record()
    return {key: value for key, value in row.items() if value is not None}


def _format_value(value: Any) -> str:
    """Render one CSV cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        value = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return '"' + value.replace('"', '""') + '"'


def to_csv(rows: Sequence[Row]) -> str:
    """
    Convert rows to CSV text.

    Columns are the sorted union of field names present in the first
    CSV_SAMPLE_SIZE rows. Strings are always quoted, numbers never are,
    and missing values are empty. Empty input gives an empty string with
    no header.

    Args:
        rows: NormalizedRows or flat mappings

    Returns:
        CSV string, every line newline-terminated
    """
    if not rows:
        return ""

    records = [_as_record(row) for row in rows]

    columns: set[str] = set()
    for record in records[:CSV_SAMPLE_SIZE]:
        columns.update(record.keys())
    headers = sorted(columns)

    lines = [",".join(headers)]
    for record in records:
        lines.append(",".join(_format_value(record.get(header)) for header in headers))

    return "\n".join(lines) + "\n"


def to_json(rows: Sequence[Row], indent: int = 2) -> str:
    """
    Convert rows to pretty-printed JSON.

    Args:
        rows: NormalizedRows or flat mappings
        indent: JSON indentation level

    Returns:
        JSON array string, or an empty string (not "[]") for empty input
    """
    if not rows:
        return ""
    return json.dumps([_as_record(row) for row in rows], indent=indent, ensure_ascii=False)


def flatten_record(record: RawRecord) -> dict[str, Any]:
    """
    Flatten a raw provider record for the raw CSV export.

    Top-level keys are kept except ``user`` and ``media``; each key of the
    nested user mapping is added as ``user_<key>``.
    """
    if not isinstance(record, Mapping):
        return {}

    flat = {key: value for key, value in record.items() if key not in ("user", "media")}
    user = record.get("user")
    if isinstance(user, Mapping):
        for key, value in user.items():
            flat[f"user_{key}"] = value
    return flat


def raw_to_csv(records: Sequence[RawRecord]) -> str:
    """CSV of raw provider records, flattened with ``flatten_record``."""
    return to_csv([flatten_record(record) for record in records])


def export_filename(kind: str, now: datetime | None = None) -> str:
    """
    Timestamped download filename, e.g. twitter-data-2024-05-01T10-20-30-000Z.csv

    Args:
        kind: File extension ("csv" or "json")
        now: Timestamp to use, defaults to current UTC time
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    stamp = now.isoformat(timespec="milliseconds") + "Z"
    stamp = stamp.replace(":", "-").replace(".", "-")
    return f"{EXPORT_PREFIX}-{stamp}.{kind}"


def save_export(
    content: str,
    directory: str | Path,
    kind: str,
    now: datetime | None = None,
) -> Path:
    """
    Write export text to a timestamped file.

    Args:
        content: CSV or JSON text
        directory: Output directory, created if missing
        kind: File extension ("csv" or "json")
        now: Timestamp for the filename

    Returns:
        Path to saved file
    """
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    filepath = path / export_filename(kind, now)
    filepath.write_text(content, encoding="utf-8")
    return filepath


def _check_pandas():
    """Raise ImportError if pandas is not available."""
    if not PANDAS_AVAILABLE:
        raise ImportError(
            "pandas is required for DataFrame export. Install with: pip install xinsight[dataframe]"
        )


def to_dataframe(rows: Sequence[NormalizedRow]) -> "pd.DataFrame":
    """
    Convert normalized rows to a pandas DataFrame.

    Unlike to_csv, every field present on any row becomes a column.

    Raises:
        ImportError: If pandas is not installed
    """
    _check_pandas()
    return pd.DataFrame([row.to_record() for row in rows])
