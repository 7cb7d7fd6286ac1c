"""
Shared fixtures: a fixed clock and a wallet footprint matching the
"10 holdings / 50 txs over 400 days / 40 active days" scenario.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from scorefi.models import LogEvent, TokenHolding, Transaction

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


def make_tx(days_ago: float, summary: str = "", senders=(), from_address: str = WALLET,
            event_name: str | None = None) -> Transaction:
    return Transaction(
        from_address=from_address,
        to_address="0x1111111111111111111111111111111111111111",
        block_signed_at=NOW - timedelta(days=days_ago),
        summary=summary,
        log_events=tuple(LogEvent(sender_address=s, event_name=event_name) for s in senders),
    )


def scenario_holdings() -> list[TokenHolding]:
    names = [
        ("Aave Token", "AAVE"),
        ("Aave interest bearing USDC", "aUSDC"),
        ("Uniswap", "UNI"),
        ("Tether USD", "USDT"),
        ("USD Coin", "USDC"),
        ("Wrapped Ether", "WETH"),
        ("Chainlink Token", "LINK"),
        ("Dai Stablecoin", "DAI"),
        ("Lido Staked Ether", "stETH"),
        ("Shiba Inu", "SHIB"),
    ]
    return [TokenHolding(contract_name=n, ticker_symbol=t, quote_usd=1000.0) for n, t in names]


def scenario_transactions() -> list[Transaction]:
    # 40 distinct active days, earliest exactly 400 days back; all at 12:00 UTC
    offsets = [400] + [5 + 10 * i for i in range(39)]
    txs = [make_tx(d) for d in offsets]
    # 10 more on already-active days (12:05 same date)
    txs += [make_tx(d - 5 / 1440) for d in offsets[1:11]]
    return txs


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def holdings():
    return scenario_holdings()


@pytest.fixture
def transactions():
    return scenario_transactions()
