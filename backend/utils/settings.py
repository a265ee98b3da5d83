"""
Runtime settings read from the environment.

Values are read once at import; tests override them by patching attributes.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")
load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


PORT = _int_env("PORT", 3000)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash").strip() or "gemini-2.5-flash"

# CORS: comma-separated, default allows every origin
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

MAX_UPLOAD_BYTES = _int_env("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
MAX_JSON_BYTES = _int_env("MAX_JSON_BYTES", 50 * 1024 * 1024)

AI_MAX_ATTEMPTS = _int_env("AI_MAX_ATTEMPTS", 3)
AI_RETRY_BACKOFF_SEC = _float_env("AI_RETRY_BACKOFF_SEC", 2.0)

BACKEND_LOG_PATH = Path(os.getenv("BACKEND_LOG_PATH", "") or (PROJECT_ROOT / "backend.log"))

# Rows echoed back in the upload preview
PREVIEW_ROWS = 10
# Rows embedded in the simulated-training prompt
TRAIN_SAMPLE_ROWS = 20
MIN_TRAINING_ROWS = 10
DEFAULT_TEST_SPLIT = 0.2
