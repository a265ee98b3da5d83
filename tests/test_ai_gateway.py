"""Tests for agents.ai_gateway."""
import asyncio

import pytest

from agents.ai_gateway import (
    RetryPolicy,
    STRICT_CHAIN,
    TRANSFORM_CHAIN,
    bracket_scan_parse,
    direct_parse,
    recover_json,
    strip_code_fences,
)
from agents.llm_interface import (
    AIGatewayError,
    ConfigurationError,
    LLMInterface,
    QuotaExceededError,
    ResponseParseError,
    classify_error,
    is_quota_error,
)

def run(coro):
    return asyncio.run(coro)

def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("```JSON [1]```") == "[1]"
    assert strip_code_fences("```\n[1, 2]\n```  ") == "[1, 2]"
    assert strip_code_fences("  plain  ") == "plain"

def test_fenced_and_plain_replies_recover_the_same(gateway, fake_llm):
    """A reply wrapped in code fences parses to the same value as the bare reply."""
    fake_llm.replies = ['```json\n[{"a": 1}]\n```', '[{"a": 1}]']
    fenced = run(gateway.invoke("p", "transform"))
    plain = run(gateway.invoke("p", "transform"))
    assert fenced == plain == [{"a": 1}]

def test_bracket_scan_recovers_embedded_json(gateway, fake_llm):
    fake_llm.replies = ['Sure! Here is the result: {"prediction": 5, "confidence": 0.9} Hope it helps.']
    out = run(gateway.invoke("p", "predict"))
    assert out == {"prediction": 5, "confidence": 0.9}

def test_bracket_scan_takes_leftmost_opener():
    result = bracket_scan_parse('rows: [{"a": 1}] and more')
    assert result.ok
    assert result.value == [{"a": 1}]

def test_bracket_scan_falls_back_to_object_span(gateway, fake_llm):
    """A stray [...] before the JSON object does not hide the object."""
    fake_llm.replies = ['Metrics [see below]: {"metrics": {"accuracy": 0.9}}']
    out = run(gateway.invoke("p", "train"))
    assert out == {"metrics": {"accuracy": 0.9}}

def test_non_finite_constants_are_not_json(gateway, fake_llm):
    assert not direct_parse("NaN").ok
    assert not direct_parse('{"a": Infinity}').ok

    fake_llm.replies = ['{"a": NaN}', '{"accuracy": -Infinity}']
    assert run(gateway.invoke("p", "transform")) == {"data": '{"a": NaN}'}
    with pytest.raises(ResponseParseError):
        run(gateway.invoke("p", "train"))

def test_transform_wraps_free_text(gateway, fake_llm):
    fake_llm.replies = ["I cleaned the text: hello world"]
    out = run(gateway.invoke("p", "transform"))
    assert out == {"data": "I cleaned the text: hello world"}

@pytest.mark.parametrize("operation,message", [
    ("train", "Failed to parse training results"),
    ("predict", "Failed to parse prediction"),
])
def test_strict_operations_fail_on_free_text(gateway, fake_llm, operation, message):
    fake_llm.replies = ["no json in here"]
    with pytest.raises(ResponseParseError, match=message):
        run(gateway.invoke("p", operation))

def test_recovery_chain_stops_at_first_success():
    calls = []

    def first(text):
        calls.append("first")
        return direct_parse(text)

    def second(text):
        calls.append("second")
        return direct_parse(text)

    out = recover_json("[1]", [first, second])
    assert out.ok and out.value == [1]
    assert calls == ["first"]

def test_chains():
    assert recover_json("oops", TRANSFORM_CHAIN).value == {"data": "oops"}
    assert not recover_json("oops", STRICT_CHAIN).ok

def test_quota_error_retried_three_attempts_total(gateway, fake_llm, sleeps):
    """Quota errors are retried up to 3 attempts, then surfaced as QuotaExceededError."""
    fake_llm.replies = [Exception("429 Resource has been exhausted (e.g. check quota).")] * 5
    with pytest.raises(QuotaExceededError):
        run(gateway.invoke("p", "transform"))
    assert len(fake_llm.prompts) == 3
    assert sleeps == [2.0, 2.0]

def test_quota_error_then_success(gateway, fake_llm, sleeps):
    fake_llm.replies = [Exception("quota exceeded"), '{"ok": true}']
    assert run(gateway.invoke("p", "train")) == {"ok": True}
    assert len(fake_llm.prompts) == 2
    assert sleeps == [2.0]

def test_non_quota_error_is_not_retried(gateway, fake_llm, sleeps):
    fake_llm.replies = [Exception("connection reset"), '{"ok": true}']
    with pytest.raises(AIGatewayError, match="connection reset"):
        run(gateway.invoke("p", "transform"))
    assert len(fake_llm.prompts) == 1
    assert sleeps == []

def test_retry_policy_custom_predicate():
    attempts = []

    async def call():
        attempts.append(1)
        raise ValueError("boom")

    async def no_sleep(_):
        return None

    policy = RetryPolicy(max_attempts=4, backoff_seconds=0, is_retryable=lambda e: True, sleep=no_sleep)
    with pytest.raises(ValueError):
        run(policy.run(call))
    assert len(attempts) == 4

def test_unknown_operation(gateway):
    with pytest.raises(ValueError, match="Unknown operation"):
        run(gateway.invoke("p", "summarize"))

def test_classify_error():
    assert is_quota_error(Exception("Rate limit reached"))
    assert not is_quota_error(Exception("timeout"))
    assert isinstance(classify_error(Exception("API key not valid. Please pass a valid API key.")), ConfigurationError)
    assert isinstance(classify_error(Exception("404 models/gemini-x is not found")), ConfigurationError)
    assert type(classify_error(Exception("boom"))) is AIGatewayError

def test_missing_api_key_fails_before_network():
    llm = LLMInterface(api_key="")
    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
        run(llm.generate("hello"))

def test_placeholder_api_key_is_not_configured(monkeypatch):
    from utils.api_key_manager import get_api_key, is_api_key_configured

    monkeypatch.setenv("GEMINI_API_KEY", "your_gemini_api_key_here")
    assert get_api_key() is None
    assert not is_api_key_configured()
    monkeypatch.setenv("GEMINI_API_KEY", "  real-key  ")
    assert get_api_key() == "real-key"
