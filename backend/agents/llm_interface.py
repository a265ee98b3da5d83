"""
LLM interface for the AI Dataset Preprocessor.

Thin async wrapper over the Gemini API plus the error types every upstream
failure is classified into.
"""

from typing import Optional

from utils import settings
from utils.api_key_manager import get_api_key

# Global tracking for current model usage
_current_model_name = None


def get_current_model_info():
    """Get info about which model answered last."""
    return {"model": _current_model_name}


class AIGatewayError(Exception):
    """Raised when the upstream model call fails."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class ConfigurationError(AIGatewayError):
    """Missing/placeholder/invalid API key or unavailable model."""


class QuotaExceededError(AIGatewayError):
    """Upstream quota or rate limit hit."""


class ResponseParseError(AIGatewayError):
    """No JSON could be recovered from the model reply."""


def is_quota_error(error: BaseException) -> bool:
    """Check whether an error means the upstream quota / rate limit was hit."""
    if isinstance(error, QuotaExceededError):
        return True
    error_full = str(error)
    error_str = error_full.lower()
    return (
        "429" in error_full
        or "quota" in error_str
        or "rate limit" in error_str
        or "resourceexhausted" in error_str
        or "resource exhausted" in error_str
    )


def classify_error(error: BaseException) -> AIGatewayError:
    """Map a raw upstream exception onto the AIGatewayError hierarchy."""
    if isinstance(error, AIGatewayError):
        return error
    error_str = str(error).lower()
    if is_quota_error(error):
        return QuotaExceededError(f"API quota exceeded: {error}", cause=error)
    if "api key" in error_str or "api_key" in error_str:
        return ConfigurationError(
            f"Invalid API key. Please check GEMINI_API_KEY in your .env file ({error})", cause=error
        )
    if "model" in error_str and ("not found" in error_str or "not supported" in error_str or "404" in error_str):
        return ConfigurationError(
            f"Model not available. Please check GEMINI_MODEL in your .env file ({error})", cause=error
        )
    return AIGatewayError(str(error), cause=error)


class LLMInterface:
    """
    Gemini text generation.

    The key is checked before any network call so an unconfigured server
    fails fast with a ConfigurationError.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self._api_key = api_key
        self.model_name = model_name or settings.GEMINI_MODEL

    @property
    def api_key(self) -> Optional[str]:
        """Explicit key if given, else the current environment key."""
        if self._api_key is not None:
            return self._api_key
        return get_api_key()

    async def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Full prompt text

        Returns:
            Raw reply text
        """
        if not self.api_key:
            raise ConfigurationError(
                "Gemini API key is not configured. Set GEMINI_API_KEY in your .env file"
            )

        import google.generativeai as genai

        try:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(self.model_name)
            response = await model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            raise classify_error(e) from e

        global _current_model_name
        _current_model_name = self.model_name
        return (text or "").strip()
