"""
Serializer for processed data exports (CSV, JSON, plain text).
"""

import csv
import json
from typing import Any, Dict, List

import pandas as pd

EXPORT_FORMATS = {
    "csv": ("text/csv", "processed_data.csv"),
    "json": ("application/json", "processed_data.json"),
    "text": ("text/plain", "processed_data.txt"),
}


def to_json_text(value: Any) -> str:
    """Pretty-print with a stable two-space indent."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def to_plain_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return to_json_text(value)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def data_to_csv(data: Any) -> str:
    """
    Convert records back to CSV text.

    Headers come from the first record's keys. Values containing a comma,
    quote or newline are quoted with inner quotes doubled. Lines are joined
    with "\\n" and there is no trailing newline.
    """
    rows: List[Any] = data if isinstance(data, list) else [data]
    if not rows or not isinstance(rows[0], dict):
        return ""

    headers = list(rows[0].keys())
    records: List[Dict[str, str]] = []
    for row in rows:
        row = row if isinstance(row, dict) else {}
        records.append({h: _stringify(row.get(h)) for h in headers})

    frame = pd.DataFrame(records, columns=headers, dtype=str)
    text = frame.to_csv(index=False, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    return text[:-1] if text.endswith("\n") else text


def export_data(data: Any, fmt: str) -> Dict[str, str]:
    """
    Render data for download.

    Args:
        data: Processed data (records, any JSON value, or text)
        fmt: "csv", "json"; anything else exports as plain text

    Returns:
        {"content", "contentType", "filename"}
    """
    fmt = (fmt or "").strip().lower()
    if fmt == "csv":
        content = data_to_csv(data)
    elif fmt == "json":
        content = to_json_text(data)
    else:
        fmt = "text"
        content = to_plain_text(data)

    content_type, filename = EXPORT_FORMATS[fmt]
    return {"content": content, "contentType": content_type, "filename": filename}
