"""
Tests for aggregation, weights and risk tiers (scorefi.core.score).
"""

from __future__ import annotations

import math

import pytest

from conftest import NOW
from scorefi.config import RiskThresholds
from scorefi.core.score import (
    DEFAULT_WEIGHTS,
    ScoreWeights,
    aggregate,
    factor_tips,
    risk_level,
    weighted_score,
)
from scorefi.models import RiskLevel, ScoreBreakdown


def _bd(ph=80.0, ao=100.0, ch=33.88, cm=40.0, nc=75.07) -> ScoreBreakdown:
    return ScoreBreakdown(payment_history=ph, amounts_owed=ao, credit_history=ch, credit_mix=cm, new_credit=nc)


def test_default_weights_sum_to_one():
    assert math.isclose(sum(DEFAULT_WEIGHTS.as_tuple()), 1.0)
    assert DEFAULT_WEIGHTS.as_tuple() == (0.35, 0.30, 0.15, 0.10, 0.10)


def test_weights_not_summing_to_one_are_rejected():
    with pytest.raises(ValueError, match="sum to 1.0"):
        ScoreWeights(payment_history=0.5)


def test_negative_weight_rejected():
    with pytest.raises(ValueError, match="non-negative"):
        ScoreWeights(payment_history=0.50, amounts_owed=0.30, credit_history=-0.05, credit_mix=0.15, new_credit=0.10)


def test_weighted_score_matches_formula():
    assert weighted_score(_bd()) == pytest.approx(74.59, abs=1e-9)


def test_weighted_score_extremes():
    assert weighted_score(_bd(100, 100, 100, 100, 100)) == 100.0
    assert weighted_score(_bd(0, 0, 0, 0, 0)) == 0.0


@pytest.mark.parametrize(
    "score,expected",
    [
        (100.0, RiskLevel.LOW),
        (90.0, RiskLevel.LOW),
        (89.99, RiskLevel.MEDIUM),
        (65.0, RiskLevel.MEDIUM),
        (64.99, RiskLevel.HIGH),
        (0.0, RiskLevel.HIGH),
    ],
)
def test_risk_level_boundaries_are_inclusive(score, expected):
    assert risk_level(score) is expected


def test_risk_level_custom_thresholds():
    t = RiskThresholds(low_min=80.0, medium_min=50.0)
    assert risk_level(80.0, t) is RiskLevel.LOW
    assert risk_level(50.0, t) is RiskLevel.MEDIUM
    assert risk_level(49.99, t) is RiskLevel.HIGH


@pytest.mark.parametrize("low,medium", [(65.0, 90.0), (90.0, 90.0), (740.0, 580.0), (90.0, -1.0)])
def test_invalid_thresholds_rejected(low, medium):
    with pytest.raises(ValueError):
        RiskThresholds(low_min=low, medium_min=medium)


def test_aggregate_is_idempotent():
    bd = _bd()
    first = aggregate(bd, now=NOW)
    second = aggregate(bd, now=NOW)
    assert first == second
    assert first.score == 74.59
    assert first.risk_level is RiskLevel.MEDIUM
    assert first.last_updated == NOW


def test_aggregate_uses_supplied_thresholds():
    res = aggregate(_bd(), now=NOW, thresholds=RiskThresholds(low_min=70.0, medium_min=40.0))
    assert res.risk_level is RiskLevel.LOW


def test_factor_tips_only_for_weak_factors():
    tips = factor_tips(_bd(ph=80.0, ao=100.0, ch=33.88, cm=79.99, nc=95.0))
    assert set(tips) == {"creditHistory", "creditMix"}


def test_score_result_to_dict_shape():
    out = aggregate(_bd(), now=NOW, address="0xabc").to_dict()
    assert out["riskLevel"] == "Medium"
    assert out["lastUpdated"] == NOW.isoformat()
    assert set(out["breakdown"]) == {"paymentHistory", "amountsOwed", "creditHistory", "creditMix", "newCredit"}
    assert out["addressKind"] == "EOA"
