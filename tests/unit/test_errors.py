"""Unit tests for error types and the Decision value object."""

import pytest

from admission.errors import (
    AdmissionError,
    ConfigError,
    ErrorCode,
    RateLimitExceeded,
    ScriptNotFoundError,
    StoreError,
)
from admission.models import Decision


def _decision(**overrides) -> Decision:
    values = {"allowed": False, "limit": 10, "remaining": -1, "duration": 60}
    values.update(overrides)
    return Decision(**values)


class TestErrors:
    """Test error codes, rendering and hierarchy."""

    @pytest.mark.parametrize(
        ("error_cls", "code"),
        [
            (ConfigError, ErrorCode.CONFIG_INVALID),
            (StoreError, ErrorCode.STORE_UNAVAILABLE),
            (ScriptNotFoundError, ErrorCode.SCRIPT_NOT_FOUND),
        ],
    )
    def test_default_codes(self, error_cls, code):
        error = error_cls("boom")

        assert error.code is code
        assert error.message == "boom"
        assert error.details == {}

    def test_explicit_code_and_details(self):
        error = StoreError("slow", code=ErrorCode.STORE_TIMEOUT, details={"command": "EVALSHA"})

        assert error.code is ErrorCode.STORE_TIMEOUT
        assert error.details == {"command": "EVALSHA"}

    def test_base_error_requires_code(self):
        with pytest.raises(TypeError):
            AdmissionError("boom")

    def test_base_error_with_explicit_code(self):
        error = AdmissionError("slow", code=ErrorCode.STORE_TIMEOUT)

        assert error.code is ErrorCode.STORE_TIMEOUT

    def test_str_includes_code(self):
        assert str(ConfigError("bad window")) == "config_invalid: bad window"

    def test_script_not_found_is_store_error(self):
        assert issubclass(ScriptNotFoundError, StoreError)
        assert issubclass(StoreError, AdmissionError)

    def test_rate_limit_exceeded_carries_decision(self):
        decision = _decision()

        error = RateLimitExceeded("Too many requests", decision=decision)

        assert error.decision is decision
        assert error.code is ErrorCode.RATE_LIMIT_EXCEEDED
        assert error.message == "Too many requests"
        assert error.details == {"limit": 10, "remaining": -1}


class TestDecision:
    """Test Decision headers and immutability."""

    def test_headers(self):
        decision = _decision(allowed=True, remaining=4)

        assert decision.headers() == {
            "X-Rate-Limit-Limit": "10",
            "X-Rate-Limit-Remaining": "4",
            "X-Rate-Limit-Duration": "60",
        }

    def test_negative_remaining_in_headers(self):
        assert _decision(remaining=-3).headers()["X-Rate-Limit-Remaining"] == "-3"

    def test_fractional_duration_in_headers(self):
        assert _decision(duration=1.5).headers()["X-Rate-Limit-Duration"] == "1.5"

    def test_not_whitelisted_by_default(self):
        assert _decision().whitelisted is False

    def test_frozen(self):
        decision = _decision()

        with pytest.raises(AttributeError):
            decision.allowed = True
