import pytest

from flight_finder.config import FlightFinderConfig, configure, get_config, reset_config
from flight_finder.errors import ErrorCode, FlightAPIException
from flight_finder.retry import RetryPolicy, backoff_delay, is_retryable_error, retry_with_backoff


def test_retryable_classification():
    assert is_retryable_error(FlightAPIException.from_code(ErrorCode.TIMEOUT))
    assert not is_retryable_error(FlightAPIException.from_code(ErrorCode.INVALID_AIRPORT))
    assert is_retryable_error(ConnectionError("reset by peer"))


def test_backoff_delay_is_capped():
    assert backoff_delay(0, 1.0, 10.0, 2.0, jitter=False) == 1.0
    assert backoff_delay(3, 1.0, 10.0, 2.0, jitter=False) == 8.0
    assert backoff_delay(5, 1.0, 10.0, 2.0, jitter=False) == 10.0


def test_retries_then_succeeds():
    calls = []
    retries = []

    @retry_with_backoff(max_retries=2, on_retry=lambda e, n, d: retries.append(n))
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise FlightAPIException.from_code(ErrorCode.NETWORK_ERROR)
        return "ok"

    assert flaky() == "ok"
    assert retries == [1, 2]


def test_gives_up_after_max_retries():
    calls = []

    @retry_with_backoff(max_retries=1)
    def always_fails():
        calls.append(1)
        raise FlightAPIException.from_code(ErrorCode.RATE_LIMITED)

    with pytest.raises(FlightAPIException):
        always_fails()
    assert len(calls) == 2


def test_non_retryable_error_propagates_immediately():
    calls = []

    @retry_with_backoff()
    def bad_input():
        calls.append(1)
        raise FlightAPIException.from_code(ErrorCode.INVALID_DATE)

    with pytest.raises(FlightAPIException):
        bad_input()
    assert len(calls) == 1


def test_configure_overrides_and_reset(monkeypatch):
    monkeypatch.setenv("FLIGHT_FINDER_CACHE_TTL_SECONDS", "42")
    reset_config()
    assert get_config().cache_ttl_seconds == 42
    assert configure(max_comparison=5).max_comparison == 5
    assert get_config().cache_ttl_seconds == 42


def test_policy_reads_config_and_ignores_unset_overrides():
    configure(max_retries=4, retry_base_delay=1.5)
    policy = RetryPolicy.from_config(max_retries=None, jitter=False)
    assert policy.max_retries == 4
    assert policy.base_delay == 1.5
    assert policy.jitter is False
    assert policy.delay(1) == 3.0


def test_config_exposes_only_settings_that_are_read():
    fields = FlightFinderConfig.model_fields
    assert "provider_timeout_seconds" not in fields
    assert {"max_retries", "cache_ttl_seconds", "max_comparison"} <= set(fields)
