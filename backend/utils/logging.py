"""
Logging utilities for the AI Dataset Preprocessor.

Every line goes to stdout and is mirrored into backend.log.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from utils import settings


def get_log_path() -> Path:
    """Get the backend log file path."""
    return Path(settings.BACKEND_LOG_PATH)


def append_backend_log(line: str) -> None:
    """Append one line to backend.log. Never raises."""
    line_fmt = line if line.endswith("\n") else line + "\n"
    log_path = get_log_path()
    try:
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(line_fmt)
    except OSError as e:
        print(f"[log failed {log_path}] {e}", flush=True)


def log_event(message: str, stage: Optional[str] = None) -> str:
    """
    Print a log line and mirror it to backend.log.

    Args:
        message: Text to log
        stage: Optional tag (upload, process, train, predict, ...)

    Returns:
        The formatted line (timestamp excluded)
    """
    stage_str = f"[{stage}] " if stage else ""
    line = f"{stage_str}{message}"
    print(line, flush=True)
    append_backend_log(f"{datetime.now().isoformat()} {line}")
    return line
