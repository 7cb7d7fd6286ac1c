# scorefi/core/factors.py
# Purpose: The five sub-score calculators. Pure functions of (holdings, transactions, now):
# no I/O, each returns a 0..100 value plus the intermediate numbers behind it.

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from scorefi.chains import NULL_ADDRESS
from scorefi.models import FactorResult, ScoreBreakdown, TokenHolding, Transaction

EPSILON = 1e-6
NO_REPAYMENT_DAYS = 999
REPAYMENT_PROXY_USD = 1000.0
REPAYMENT_VOLUME_CEILING_USD = 500_000.0
HISTORY_CAP_DAYS = 365 * 3
NEW_CREDIT_WINDOW_DAYS = 30

# category -> keywords, matched case-insensitively as substrings of the token's contract name.
# First matching category wins, in this order.
PROTOCOL_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "lending": ("aave", "compound", "maker", "morpho", "spark", "venus", "euler", "radiant", "benqi", "cream", "lend"),
    "dex": ("uniswap", "sushi", "curve", "balancer", "pancake", "1inch", "dodo", "velodrome", "aerodrome", "trader joe"),
    "nft": ("nft", "opensea", "blur", "punks", "erc721", "erc1155", "collectible"),
    "derivatives": ("dydx", "gmx", "synthetix", "perp", "option", "lyra", "hegic", "futures", "ribbon"),
}

# category -> (points per protocol, cap)
CATEGORY_POINTS: Dict[str, Tuple[float, float]] = {
    "lending": (10.0, 25.0),
    "dex": (10.0, 20.0),
    "nft": (5.0, 15.0),
    "derivatives": (15.0, 25.0),
    "other": (5.0, 10.0),
}


def _clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


def _utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


# ---------- repayment detection ----------

class RepaymentDetector:
    """Decides whether a transaction repaid a loan. Swap in a structured event parser by subclassing."""

    def is_repayment(self, tx: Transaction) -> bool:
        raise NotImplementedError


class SummaryPatternDetector(RepaymentDetector):
    """Regex over the transaction summary and the decoded log-event names."""

    def __init__(self, pattern: str = r"repay"):
        self.pattern = re.compile(pattern, re.IGNORECASE)

    def is_repayment(self, tx: Transaction) -> bool:
        if tx.summary and self.pattern.search(tx.summary):
            return True
        return any(ev.event_name and self.pattern.search(ev.event_name) for ev in tx.log_events)


# ---------- calculators ----------

def payment_history(
    holdings: Sequence[TokenHolding],
    transactions: Sequence[Transaction],
    now: datetime,
    detector: Optional[RepaymentDetector] = None,
    liquidation_count: int = 0,
) -> FactorResult:
    detector = detector or SummaryPatternDetector()
    now = _utc(now)
    repayments = [tx for tx in transactions if detector.is_repayment(tx)]

    sc = 100.0 / (1 + max(0, liquidation_count))

    volume_proxy = len(repayments) * REPAYMENT_PROXY_USD
    sv = min(100.0, math.log10(1 + volume_proxy) / math.log10(1 + REPAYMENT_VOLUME_CEILING_USD) * 100)

    if repayments:
        last = max(_utc(tx.block_signed_at) for tx in repayments)
        days_since_last = max(0, (now - last).days)
    else:
        days_since_last = NO_REPAYMENT_DAYS
    sr = 100.0 * math.exp(-0.03 * days_since_last)

    value = round(_clamp(0.80 * sc + 0.15 * sv + 0.05 * sr), 2)
    return FactorResult(value, {
        "liquidation_count": liquidation_count,
        "repayment_tx_count": len(repayments),
        "repaid_volume_proxy": volume_proxy,
        "days_since_last_repay": days_since_last,
        "SC": round(sc, 4),
        "SV": round(sv, 4),
        "SR": round(sr, 4),
    })


def amounts_owed(
    holdings: Sequence[TokenHolding],
    transactions: Sequence[Transaction],
    now: datetime,
    debt_usd: float = 0.0,
) -> FactorResult:
    # debt_usd stays 0 until a borrow-position feed exists; the decay shape is kept for that day
    total = sum(max(0.0, h.quote_usd) for h in holdings)
    utilization = max(0.0, debt_usd) / (total + EPSILON)
    value = round(max(0.0, 100.0 * math.exp(-utilization)), 2)
    return FactorResult(value, {
        "debt_usd": debt_usd,
        "total_holdings_usd": round(total, 2),
        "utilization": utilization,
    })


def credit_history(
    holdings: Sequence[TokenHolding],
    transactions: Sequence[Transaction],
    now: datetime,
) -> FactorResult:
    now = _utc(now)
    stamps = [_utc(tx.block_signed_at) for tx in transactions]
    if stamps:
        days_since_first = max(1, (now - min(stamps)).days)
    else:
        days_since_first = 1
    active_days = len({ts.date() for ts in stamps})

    s_age = min(100.0, days_since_first / HISTORY_CAP_DAYS * 100)
    # activity can exceed 100 when the first tx is <24h old but spans two dates
    s_activity = min(100.0, active_days / days_since_first * 100)

    value = round(_clamp(0.9 * s_age + 0.1 * s_activity), 2)
    return FactorResult(value, {
        "days_since_first_tx": days_since_first,
        "active_days": active_days,
        "S_age": round(s_age, 4),
        "S_activity": round(s_activity, 4),
    })


def categorize_protocol(contract_name: str, categories: Dict[str, Tuple[str, ...]] = PROTOCOL_CATEGORIES) -> str:
    name = (contract_name or "").lower()
    for category, keywords in categories.items():
        if any(kw in name for kw in keywords):
            return category
    return "other"


def credit_mix(
    holdings: Sequence[TokenHolding],
    transactions: Sequence[Transaction],
    now: datetime,
    categories: Dict[str, Tuple[str, ...]] = PROTOCOL_CATEGORIES,
) -> FactorResult:
    # one protocol per ticker, whatever order the holdings arrive in
    names_by_ticker: Dict[str, set] = {}
    for h in holdings:
        ticker = (h.ticker_symbol or "").strip().upper()
        if ticker:
            names_by_ticker.setdefault(ticker, set()).add(h.contract_name or "")

    counts = {category: 0 for category in CATEGORY_POINTS}
    for names in names_by_ticker.values():
        found = {categorize_protocol(name, categories) for name in names}
        # earliest table category any of the ticker's names matches
        category = next((c for c in categories if c in found), "other")
        counts[category] = counts.get(category, 0) + 1

    parts = {}
    for category, (points, cap) in CATEGORY_POINTS.items():
        parts[category] = min(cap, points * counts.get(category, 0))

    value = round(min(100.0, sum(parts.values())), 2)
    return FactorResult(value, {
        "unique_protocols": len(names_by_ticker),
        "counts": counts,
        "points": parts,
    })


def _recent(transactions: Iterable[Transaction], now: datetime, window_days: int) -> List[Transaction]:
    cutoff = _utc(now) - timedelta(days=window_days)
    return [tx for tx in transactions if _utc(tx.block_signed_at) >= cutoff]


def new_credit(
    holdings: Sequence[TokenHolding],
    transactions: Sequence[Transaction],
    now: datetime,
    window_days: int = NEW_CREDIT_WINDOW_DAYS,
) -> FactorResult:
    recent = _recent(transactions, now, window_days)

    protocols = set()
    for tx in recent:
        for ev in tx.log_events:
            sender = (ev.sender_address or "").lower()
            if sender and sender != NULL_ADDRESS:
                protocols.add(sender)
    n = len(protocols)
    s_rate = 100.0 * math.exp(-0.3 * n)

    tx_volume = len(recent)
    unique_senders = len({(tx.from_address or "").lower() for tx in recent if tx.from_address})
    tvl_proxy = tx_volume * max(1.0, unique_senders / 10)
    s_quality = min(100.0, 20 * math.log10(tvl_proxy + 1))

    value = round(_clamp(0.7 * s_rate + 0.3 * s_quality), 2)
    return FactorResult(value, {
        "window_days": window_days,
        "new_protocols": n,
        "recent_tx_count": tx_volume,
        "unique_senders": unique_senders,
        "tvl_proxy": tvl_proxy,
        "S_rate": round(s_rate, 4),
        "S_quality": round(s_quality, 4),
    })


def compute_breakdown(
    holdings: Sequence[TokenHolding],
    transactions: Sequence[Transaction],
    now: datetime,
    window_days: int = NEW_CREDIT_WINDOW_DAYS,
    detector: Optional[RepaymentDetector] = None,
) -> Tuple[ScoreBreakdown, Dict[str, dict]]:
    """Run all five calculators; returns the breakdown and per-factor diagnostics."""
    results = {
        "paymentHistory": payment_history(holdings, transactions, now, detector=detector),
        "amountsOwed": amounts_owed(holdings, transactions, now),
        "creditHistory": credit_history(holdings, transactions, now),
        "creditMix": credit_mix(holdings, transactions, now),
        "newCredit": new_credit(holdings, transactions, now, window_days=window_days),
    }
    breakdown = ScoreBreakdown(
        payment_history=results["paymentHistory"].value,
        amounts_owed=results["amountsOwed"].value,
        credit_history=results["creditHistory"].value,
        credit_mix=results["creditMix"].value,
        new_credit=results["newCredit"].value,
    )
    return breakdown, {key: res.details for key, res in results.items()}
