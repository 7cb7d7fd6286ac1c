# scorefi/models.py
# Purpose: Value types flowing through one scoring run. Nothing here is mutated after construction.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class AddressKind(str, Enum):
    EOA = "EOA"
    CONTRACT = "Contract"
    UNKNOWN = "Unknown"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class TokenHolding:
    contract_name: str
    ticker_symbol: str
    quote_usd: float = 0.0


@dataclass(frozen=True)
class LogEvent:
    sender_address: Optional[str] = None
    event_name: Optional[str] = None


@dataclass(frozen=True)
class Transaction:
    from_address: str
    to_address: Optional[str]
    block_signed_at: datetime  # tz-aware, UTC
    summary: str = ""
    log_events: Tuple[LogEvent, ...] = ()


@dataclass(frozen=True)
class FactorResult:
    """One sub-score plus the intermediate values it was derived from."""
    value: float
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoreBreakdown:
    payment_history: float
    amounts_owed: float
    credit_history: float
    credit_mix: float
    new_credit: float

    def to_dict(self) -> Dict[str, float]:
        # camelCase keys: this is what the report page reads
        return {
            "paymentHistory": self.payment_history,
            "amountsOwed": self.amounts_owed,
            "creditHistory": self.credit_history,
            "creditMix": self.credit_mix,
            "newCredit": self.new_credit,
        }


@dataclass(frozen=True)
class ScoreResult:
    score: float
    breakdown: ScoreBreakdown
    risk_level: RiskLevel
    last_updated: datetime
    address: Optional[str] = None
    address_kind: AddressKind = AddressKind.EOA
    details: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    tips: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "score": self.score,
            "breakdown": self.breakdown.to_dict(),
            "riskLevel": self.risk_level.value,
            "lastUpdated": self.last_updated.isoformat(),
            "addressKind": self.address_kind.value,
            "details": self.details,
            "tips": self.tips,
        }
