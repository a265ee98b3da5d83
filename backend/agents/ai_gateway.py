"""
AI Gateway - sends prompts upstream and recovers JSON from the reply.

Flow per call:
1. Call the LLM through a RetryPolicy (only quota errors are retried).
2. Strip markdown code fences from the reply.
3. Run an ordered chain of recovery strategies, stopping at the first success:
   direct JSON parse -> bracket-scan parse -> wrap-as-text (transform only).
"""

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Literal, Optional, Sequence

from agents.llm_interface import (
    AIGatewayError,
    LLMInterface,
    ResponseParseError,
    classify_error,
    is_quota_error,
)
from ml.tabular_parser import reject_constant
from utils import settings
from utils.logging import log_event

Operation = Literal["transform", "train", "predict"]

_FENCE_JSON = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE_BARE = re.compile(r"```\s*")
_BRACKET_PAIRS = (("[", "]"), ("{", "}"))


@dataclass
class RetryPolicy:
    """Fixed-backoff retry applied to every upstream call."""

    max_attempts: int = 3
    backoff_seconds: float = 2.0
    is_retryable: Callable[[BaseException], bool] = is_quota_error
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    async def run(self, call: Callable[[], Awaitable[Any]]) -> Any:
        """
        Await call(), retrying retryable failures.

        At most max_attempts calls are made. Non-retryable errors propagate on
        first occurrence; on exhaustion the last error is re-raised.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await call()
            except Exception as e:
                remaining = self.max_attempts - attempt
                if remaining <= 0 or not self.is_retryable(e):
                    raise
                log_event(
                    f"Quota exceeded, retrying in {self.backoff_seconds:g}s... ({remaining} retries left)",
                    stage="ai",
                )
                await self.sleep(self.backoff_seconds)


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.AI_MAX_ATTEMPTS,
        backoff_seconds=settings.AI_RETRY_BACKOFF_SEC,
    )


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markers and surrounding whitespace."""
    text = _FENCE_JSON.sub("", text or "")
    text = _FENCE_BARE.sub("", text)
    return text.strip()


@dataclass
class RecoveryResult:
    ok: bool
    value: Any = None


RecoveryStrategy = Callable[[str], RecoveryResult]


def direct_parse(text: str) -> RecoveryResult:
    try:
        return RecoveryResult(True, json.loads(text, parse_constant=reject_constant))
    except ValueError:
        return RecoveryResult(False)


def bracket_scan_parse(text: str) -> RecoveryResult:
    """
    Parse an embedded [...] or {...} span (first opener through last closer).

    Both spans are tried, leftmost opener first; the first that parses wins.
    """
    spans = []
    for opener, closer in _BRACKET_PAIRS:
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            spans.append((start, text[start : end + 1]))
    for _, span in sorted(spans):
        result = direct_parse(span)
        if result.ok:
            return result
    return RecoveryResult(False)


def wrap_as_text(text: str) -> RecoveryResult:
    """Last resort: keep free-form output as {"data": text}."""
    return RecoveryResult(True, {"data": text})


TRANSFORM_CHAIN: Sequence[RecoveryStrategy] = (direct_parse, bracket_scan_parse, wrap_as_text)
STRICT_CHAIN: Sequence[RecoveryStrategy] = (direct_parse, bracket_scan_parse)

RECOVERY_CHAINS: Dict[str, Sequence[RecoveryStrategy]] = {
    "transform": TRANSFORM_CHAIN,
    "train": STRICT_CHAIN,
    "predict": STRICT_CHAIN,
}

PARSE_ERRORS = {
    "transform": "Failed to parse AI response",
    "train": "Failed to parse training results",
    "predict": "Failed to parse prediction",
}


def recover_json(text: str, strategies: Sequence[RecoveryStrategy]) -> RecoveryResult:
    for strategy in strategies:
        result = strategy(text)
        if result.ok:
            return result
    return RecoveryResult(False)


class AIGateway:
    """
    Single entry point for upstream model calls.

    invoke() returns the recovered JSON value or raises an AIGatewayError
    subclass (ConfigurationError, QuotaExceededError, ResponseParseError).
    """

    def __init__(self, llm: Optional[Any] = None, retry_policy: Optional[RetryPolicy] = None):
        self.llm = llm if llm is not None else LLMInterface()
        self.retry_policy = retry_policy or default_retry_policy()

    async def invoke(self, prompt: str, operation: Operation = "transform") -> Any:
        if operation not in RECOVERY_CHAINS:
            raise ValueError(f"Unknown operation: {operation}")

        try:
            raw = await self.retry_policy.run(lambda: self.llm.generate(prompt))
        except AIGatewayError:
            raise
        except Exception as e:
            raise classify_error(e) from e

        cleaned = strip_code_fences(raw)
        result = recover_json(cleaned, RECOVERY_CHAINS[operation])
        if not result.ok:
            log_event(f"{PARSE_ERRORS[operation]}. Reply preview: {cleaned[:200]}", stage="ai")
            raise ResponseParseError(PARSE_ERRORS[operation])
        return result.value
