"""
Tests for the retry policy around provider GETs (scorefi.utils.ratelimit).

The HTTP session is a MagicMock; sleeps are recorded instead of slept.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from scorefi.errors import DataUnavailable
from scorefi.utils.ratelimit import RateLimiter, RetryPolicy, http_get_json

URL = "https://api.covalenthq.com/v1/1/address/0xabc/balances_v2/"


def _resp(status: int, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload if payload is not None else {}
    return resp


def _policy(sleeps: list, attempts: int = 3, base: float = 1.0) -> RetryPolicy:
    return RetryPolicy(max_attempts=attempts, base_delay=base, sleep=sleeps.append)


def test_linear_backoff_delays():
    policy = RetryPolicy(max_attempts=3, base_delay=0.5)
    assert [policy.delay(n) for n in (1, 2, 3)] == [0.5, 1.0, 1.5]


def test_success_on_third_attempt_after_two_429s():
    sleeps = []
    session = MagicMock()
    session.get.side_effect = [_resp(429), _resp(429), _resp(200, {"data": {"items": []}})]

    out = http_get_json(session, URL, {"key": "k"}, policy=_policy(sleeps))

    assert out == {"data": {"items": []}}
    assert session.get.call_count == 3
    assert sleeps == [1.0, 2.0]


def test_retry_exhaustion_raises_data_unavailable():
    sleeps = []
    session = MagicMock()
    session.get.return_value = _resp(429)

    with pytest.raises(DataUnavailable) as exc:
        http_get_json(session, URL, {"key": "k"}, policy=_policy(sleeps))

    assert exc.value.status == 429
    assert exc.value.url == URL
    assert session.get.call_count == 3
    assert sleeps == [1.0, 2.0]


def test_other_http_errors_are_not_retried():
    sleeps = []
    session = MagicMock()
    session.get.return_value = _resp(401)

    with pytest.raises(DataUnavailable) as exc:
        http_get_json(session, URL, {"key": "k"}, policy=_policy(sleeps))

    assert exc.value.status == 401
    assert session.get.call_count == 1
    assert sleeps == []


def test_timeouts_are_treated_as_transient():
    sleeps = []
    session = MagicMock()
    session.get.side_effect = [requests.Timeout("read timed out"), _resp(200, {"ok": 1})]

    assert http_get_json(session, URL, {}, policy=_policy(sleeps)) == {"ok": 1}
    assert sleeps == [1.0]


def test_persistent_connection_errors_exhaust_budget():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(DataUnavailable) as exc:
        http_get_json(session, URL, {}, policy=_policy([], attempts=2))

    assert exc.value.status is None
    assert session.get.call_count == 2


def test_non_json_body_raises():
    resp = _resp(200)
    resp.json.side_effect = ValueError("no json")
    session = MagicMock()
    session.get.return_value = resp

    with pytest.raises(DataUnavailable):
        http_get_json(session, URL, {}, policy=_policy([]))


def test_timeout_and_params_passed_through():
    session = MagicMock()
    session.get.return_value = _resp(200, {})
    http_get_json(session, URL, {"key": "secret"}, policy=_policy([]), timeout=7)
    session.get.assert_called_once_with(URL, params={"key": "secret"}, timeout=7)


def test_api_key_never_in_error_message():
    session = MagicMock()
    session.get.return_value = _resp(429)
    with pytest.raises(DataUnavailable) as exc:
        http_get_json(session, URL, {"key": "super-secret"}, policy=_policy([], attempts=1))
    assert "super-secret" not in str(exc.value)


def test_limiter_is_consulted_each_attempt():
    limiter = MagicMock(spec=RateLimiter)
    session = MagicMock()
    session.get.side_effect = [_resp(429), _resp(200, {})]
    http_get_json(session, URL, {}, policy=_policy([]), limiter=limiter)
    assert limiter.wait.call_count == 2


def test_policy_requires_at_least_one_attempt():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
