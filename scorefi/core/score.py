# scorefi/core/score.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from scorefi.config import RiskThresholds
from scorefi.models import AddressKind, RiskLevel, ScoreBreakdown, ScoreResult

TIP_BELOW = 80.0

FACTOR_TIPS = {
    "paymentHistory": "Repay borrowed positions on time and avoid liquidations to improve this score.",
    "amountsOwed": "Keep outstanding debt low relative to the value of your holdings.",
    "creditHistory": "A longer, steadily active wallet history raises this score over time.",
    "creditMix": "Consider diversifying across lending, DEX, NFT and derivatives protocols.",
    "newCredit": "Avoid opening positions with many new protocols in a short period.",
}


@dataclass(frozen=True)
class ScoreWeights:
    payment_history: float = 0.35
    amounts_owed: float = 0.30
    credit_history: float = 0.15
    credit_mix: float = 0.10
    new_credit: float = 0.10

    def __post_init__(self):
        weights = self.as_tuple()
        if any(w < 0 for w in weights):
            raise ValueError(f"Score weights must be non-negative: {weights}")
        total = math.fsum(weights)
        if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=1e-9):
            raise ValueError(f"Score weights must sum to 1.0 (got {total})")

    def as_tuple(self):
        return (self.payment_history, self.amounts_owed, self.credit_history, self.credit_mix, self.new_credit)


DEFAULT_WEIGHTS = ScoreWeights()


def risk_level(score: float, thresholds: Optional[RiskThresholds] = None) -> RiskLevel:
    """Inclusive lower bounds: a score equal to a threshold gets the better tier."""
    t = thresholds or RiskThresholds()
    if score >= t.low_min:
        return RiskLevel.LOW
    if score >= t.medium_min:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def weighted_score(breakdown: ScoreBreakdown, weights: ScoreWeights = DEFAULT_WEIGHTS) -> float:
    raw = (
        weights.payment_history * breakdown.payment_history
        + weights.amounts_owed * breakdown.amounts_owed
        + weights.credit_history * breakdown.credit_history
        + weights.credit_mix * breakdown.credit_mix
        + weights.new_credit * breakdown.new_credit
    )
    return round(max(0.0, min(100.0, raw)), 2)


def factor_tips(breakdown: ScoreBreakdown) -> Dict[str, str]:
    """Advice for every factor scoring below TIP_BELOW."""
    return {key: FACTOR_TIPS[key] for key, value in breakdown.to_dict().items() if value < TIP_BELOW}


def aggregate(
    breakdown: ScoreBreakdown,
    now: Optional[datetime] = None,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
    thresholds: Optional[RiskThresholds] = None,
    address: Optional[str] = None,
    address_kind: AddressKind = AddressKind.EOA,
    details: Optional[dict] = None,
) -> ScoreResult:
    score = weighted_score(breakdown, weights)
    return ScoreResult(
        score=score,
        breakdown=breakdown,
        risk_level=risk_level(score, thresholds),
        last_updated=now or datetime.now(timezone.utc),
        address=address,
        address_kind=address_kind,
        details=details or {},
        tips=factor_tips(breakdown),
    )
