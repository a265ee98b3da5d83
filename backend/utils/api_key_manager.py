"""
API Key Manager for the Gemini provider.
Automatically uses .env file keys by default.
"""

from typing import Optional
import os
from dotenv import load_dotenv

# Load .env file once on module import
load_dotenv()

# Value shipped in .env.example; treated as "not configured"
PLACEHOLDER_API_KEY = "your_gemini_api_key_here"


def get_api_key() -> Optional[str]:
    """
    Get the Gemini API key from the environment (.env loaded on import).

    Returns None when the key is absent, blank, or still the placeholder.
    """
    key = os.getenv("GEMINI_API_KEY", "")
    if not key or not key.strip():
        return None
    key = key.strip()
    if key == PLACEHOLDER_API_KEY:
        return None
    return key


def is_api_key_configured() -> bool:
    """True when a usable Gemini key is present."""
    return get_api_key() is not None
