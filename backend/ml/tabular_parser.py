"""
Tabular parser for uploaded files.

Chooses a parser by file extension: JSON, CSV (records of strings) or raw text.
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd


def reject_constant(name: str):
    """json.loads hook: NaN and Infinity are not JSON."""
    raise ValueError(f"Invalid JSON constant: {name}")


def decode_content(content: bytes) -> str:
    """Decode upload bytes as UTF-8 (BOM dropped, invalid bytes replaced)."""
    return content.decode("utf-8-sig", errors="replace")


def parse_file_content(content: bytes, filename: str) -> Dict[str, Any]:
    """
    Parse an uploaded file.

    Args:
        content: Raw uploaded bytes
        filename: Original filename (only the extension matters)

    Returns:
        {"type": "csv" | "json" | "text", "data": ..., "raw": decoded text}
        Any parse failure falls back to type "text" instead of raising.
    """
    ext = Path(filename or "").suffix.lower()
    text = decode_content(content)

    try:
        if ext == ".json":
            return {"type": "json", "data": json.loads(text, parse_constant=reject_constant), "raw": text}
        if ext == ".csv":
            return {"type": "csv", "data": parse_csv(text), "raw": text}
    except (ValueError, csv.Error):
        pass
    return {"type": "text", "data": text, "raw": text}


def parse_csv(content: str) -> List[Dict[str, str]]:
    """
    Parse CSV text into a list of records keyed by the header row.

    Quoted fields may contain commas, doubled quotes and newlines. A quote
    opens a quoted field even after spaces following the comma. Values are
    kept as trimmed strings; short rows are padded with "" and extra trailing
    fields are dropped, so every record has one key per header.
    """
    if not content.strip():
        return []

    read_opts = dict(
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
        engine="python",
    )
    header_frame = pd.read_csv(io.StringIO(content), nrows=1, **read_opts)
    width = header_frame.shape[1]

    frame = pd.read_csv(
        io.StringIO(content),
        on_bad_lines=lambda fields: fields[:width],
        **read_opts,
    )
    frame = frame.fillna("")
    for col in frame.columns:
        frame[col] = frame[col].astype(str).str.strip()

    rows = list(frame.itertuples(index=False, name=None))
    headers = list(rows[0])
    return [dict(zip(headers, values)) for values in rows[1:]]
