# scorefi/core/provider.py
# Purpose: Balances + transactions for one address from the Covalent (GoldRush) REST API.
# Every GET goes through http_get_json with the configured RetryPolicy and QPS limiter.

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from scorefi.config import ScoringConfig
from scorefi.errors import DataUnavailable, ScoringCancelled
from scorefi.models import LogEvent, TokenHolding, Transaction
from scorefi.utils.ratelimit import RateLimiter, RetryPolicy, http_get_json

TX_PAGE_SIZE = 1000


def _parse_ts(raw: Optional[str]) -> Optional[datetime]:
    """Covalent timestamps look like 2021-05-03T11:33:50Z."""
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        print(f"[PROVIDER] unparseable block_signed_at: {raw!r}")
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def parse_holding(item: Dict[str, Any]) -> TokenHolding:
    quote = item.get("quote")
    try:
        quote_usd = float(quote) if quote is not None else 0.0
    except (TypeError, ValueError):
        quote_usd = 0.0
    return TokenHolding(
        contract_name=item.get("contract_name") or "",
        ticker_symbol=item.get("contract_ticker_symbol") or "",
        quote_usd=quote_usd,
    )


def parse_transaction(item: Dict[str, Any]) -> Optional[Transaction]:
    ts = _parse_ts(item.get("block_signed_at"))
    if ts is None:
        return None
    events = []
    for ev in item.get("log_events") or []:
        decoded = ev.get("decoded") or {}
        events.append(LogEvent(sender_address=ev.get("sender_address"), event_name=decoded.get("name")))
    return Transaction(
        from_address=item.get("from_address") or "",
        to_address=item.get("to_address"),
        block_signed_at=ts,
        summary=item.get("summary") or "",
        log_events=tuple(events),
    )


class ProviderClient:
    """
    One client per engine. The session (connection pool) and the QPS limiter are
    shared by every thread that scores through the same engine, so batch runs
    stay under one rate budget. A session created here is closed by close().
    """

    def __init__(self, config: ScoringConfig, session: Optional[requests.Session] = None,
                 policy: Optional[RetryPolicy] = None, limiter: Optional[RateLimiter] = None):
        self.config = config
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.policy = policy if policy is not None else RetryPolicy(
            max_attempts=config.max_retries, base_delay=config.backoff_base_delay
        )
        self.limiter = limiter if limiter is not None else RateLimiter(config.provider_qps)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _url(self, address: str, endpoint: str) -> str:
        base = self.config.provider_base_url.rstrip("/")
        return f"{base}/{self.config.chainid}/address/{address}/{endpoint}/"

    def _get_data(self, url: str, params: dict) -> dict:
        payload = http_get_json(
            self.session, url, {"key": self.config.provider_api_key, **params},
            policy=self.policy, limiter=self.limiter, timeout=self.config.request_timeout,
        )
        if not isinstance(payload, dict):
            raise DataUnavailable(
                f"Data provider returned {type(payload).__name__} instead of an object", status=200, url=url
            )
        if payload.get("error"):
            raise DataUnavailable(
                f"Data provider error: {payload.get('error_message') or 'unknown error'}",
                status=payload.get("error_code"),
                url=url,
            )
        data = payload.get("data")
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise DataUnavailable(
                f"Data provider 'data' field is {type(data).__name__}, expected an object", status=200, url=url
            )
        return data

    def fetch_balances(self, address: str) -> List[TokenHolding]:
        url = self._url(address, "balances_v2")
        print(f"[PROVIDER] balances -> {url} key={'yes' if self.config.provider_api_key else 'no'}")
        data = self._get_data(url, {"nft": "false", "no-spam": "true"})
        holdings = [parse_holding(item) for item in data.get("items") or []]
        print(f"[PROVIDER] balances OK: {len(holdings)} holdings")
        return holdings

    def fetch_transactions(self, address: str, stop: Optional[threading.Event] = None) -> List[Transaction]:
        """All pages up to max_pages. A set `stop` event aborts between pages."""
        url = self._url(address, "transactions_v2")
        print(f"[PROVIDER] transactions -> {url} key={'yes' if self.config.provider_api_key else 'no'}")
        txs: List[Transaction] = []
        skipped = 0
        for page in range(self.config.max_pages):
            if stop is not None and stop.is_set():
                print(f"[PROVIDER] transactions stopped before page {page}")
                raise ScoringCancelled(f"Transaction fetch stopped before page {page}")
            data = self._get_data(url, {"page-number": page, "page-size": TX_PAGE_SIZE})
            for item in data.get("items") or []:
                tx = parse_transaction(item)
                if tx is None:
                    skipped += 1
                else:
                    txs.append(tx)
            if not (data.get("pagination") or {}).get("has_more"):
                break
        else:
            print(f"[PROVIDER] transactions truncated at max_pages={self.config.max_pages}")
        if skipped:
            print(f"[PROVIDER] skipped {skipped} transactions without a timestamp")
        print(f"[PROVIDER] transactions OK: {len(txs)} txs")
        return txs
