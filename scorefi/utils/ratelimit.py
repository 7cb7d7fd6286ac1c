# scorefi/utils/ratelimit.py
# Purpose: Client-side QPS limiter + reusable retry policy wrapped around a JSON GET.
# Only HTTP 429 and transport timeouts/connection errors are retried; every other failure surfaces at once.

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

import requests

from scorefi.errors import DataUnavailable


class RateLimiter:
    def __init__(self, max_per_sec: float):
        self.max_per_sec = max(0.1, float(max_per_sec))
        self.window = deque()
        self.lock = threading.Lock()

    def wait(self):
        with self.lock:
            now = time.monotonic()
            # drop timestamps older than 1s
            while self.window and now - self.window[0] > 1.0:
                self.window.popleft()

            if len(self.window) >= self.max_per_sec:
                # sleep until we drop under the limit
                sleep_for = 1.0 - (now - self.window[0]) + 0.001
                if sleep_for > 0:
                    time.sleep(sleep_for)
                now = time.monotonic()
                while self.window and now - self.window[0] > 1.0:
                    self.window.popleft()

            self.window.append(time.monotonic())


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with linear backoff: the wait after failed attempt N is N * base_delay.
    max_attempts counts every request, the first one included.
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    retry_statuses: Tuple[int, ...] = (429,)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def delay(self, attempt: int) -> float:
        return attempt * self.base_delay


def http_get_json(
    session: requests.Session,
    url: str,
    params: dict,
    policy: RetryPolicy,
    limiter: Optional[RateLimiter] = None,
    timeout: float = 15,
) -> dict:
    """
    GET with optional QPS limiting + policy-driven retries. Returns response.json() or raises DataUnavailable.
    The logged/raised URL never includes query params (the API key travels there).
    """
    last_status: Optional[int] = None
    last_error: Optional[Exception] = None

    for attempt in range(1, policy.max_attempts + 1):
        if limiter is not None:
            limiter.wait()
        try:
            resp = session.get(url, params=params, timeout=timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            last_status, last_error = None, e
            print(f"[RATELIMIT] attempt {attempt}/{policy.max_attempts} transport error on {url}: {e}")
        except requests.RequestException as e:
            raise DataUnavailable(f"Request to data provider failed: {e}", url=url) from e
        else:
            status = resp.status_code
            if status in policy.retry_statuses:
                last_status, last_error = status, None
                print(f"[RATELIMIT] attempt {attempt}/{policy.max_attempts} got HTTP {status} on {url}")
            elif status >= 400:
                raise DataUnavailable(f"Data provider returned an error for {url}", status=status, url=url)
            else:
                try:
                    return resp.json()
                except ValueError as e:
                    raise DataUnavailable(f"Data provider returned a non-JSON body for {url}", status=status, url=url) from e

        if attempt < policy.max_attempts:
            wait_s = policy.delay(attempt)
            print(f"[RATELIMIT] backing off {wait_s:.2f}s before attempt {attempt + 1}")
            policy.sleep(wait_s)

    reason = f"rate limited (HTTP {last_status})" if last_status is not None else f"transport error: {last_error}"
    raise DataUnavailable(
        f"Data provider unavailable after {policy.max_attempts} attempts, last failure {reason}",
        status=last_status,
        url=url,
    )
