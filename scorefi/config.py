# scorefi/config.py
# Purpose: Explicit configuration passed into the classifier, provider client and engine.
# Entry points call load_dotenv() first; ScoringConfig.from_env() then reads os.environ.

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from scorefi.chains import PROVIDER_V1_BASE, get_chain

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RiskThresholds:
    """Inclusive lower bounds on the 0-100 scale: score >= low_min -> Low, >= medium_min -> Medium."""
    low_min: float = 90.0
    medium_min: float = 65.0

    def __post_init__(self):
        if not (0.0 <= self.medium_min < self.low_min <= 100.0):
            raise ValueError(
                f"Risk thresholds must satisfy 0 <= medium_min < low_min <= 100 "
                f"(got low_min={self.low_min}, medium_min={self.medium_min})"
            )


@dataclass(frozen=True)
class ScoringConfig:
    provider_api_key: str = ""
    provider_base_url: str = PROVIDER_V1_BASE
    chain: str = "eth"
    primary_rpc_url: Optional[str] = None
    fallback_rpc_url: Optional[str] = None
    max_retries: int = 3
    backoff_base_delay: float = 1.0
    provider_qps: float = 4.0
    max_pages: int = 5
    request_timeout: float = 15.0
    new_credit_window_days: int = 30
    risk_thresholds: RiskThresholds = field(default_factory=RiskThresholds)
    strict_classification: bool = False

    def __post_init__(self):
        get_chain(self.chain)
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.backoff_base_delay < 0:
            raise ValueError("backoff_base_delay must be >= 0")
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.new_credit_window_days < 1:
            raise ValueError("new_credit_window_days must be >= 1")

    @property
    def chainid(self) -> int:
        return get_chain(self.chain)["chainid"]

    @property
    def supports_ens(self) -> bool:
        return get_chain(self.chain)["supports_ens"]

    @property
    def rpc_urls(self) -> tuple:
        """(primary, fallback) with chain defaults filled in."""
        cfg = get_chain(self.chain)
        return (self.primary_rpc_url or cfg["rpc_primary"], self.fallback_rpc_url or cfg["rpc_fallback"])

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScoringConfig":
        env = os.environ if environ is None else environ

        def _get(name: str) -> Optional[str]:
            val = (env.get(name) or "").strip()
            return val or None

        def _num(name: str, cast, default):
            raw = _get(name)
            if raw is None:
                return default
            try:
                return cast(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {name}: {raw!r}")

        thresholds = RiskThresholds(
            low_min=_num("RISK_LOW_MIN", float, RiskThresholds.low_min),
            medium_min=_num("RISK_MEDIUM_MIN", float, RiskThresholds.medium_min),
        )
        return cls(
            provider_api_key=_get("COVALENT_API_KEY") or "",
            provider_base_url=_get("COVALENT_BASE_URL") or PROVIDER_V1_BASE,
            chain=(_get("CHAIN") or "eth").lower(),
            primary_rpc_url=_get("WEB3_PROVIDER_PRIMARY"),
            fallback_rpc_url=_get("WEB3_PROVIDER_FALLBACK"),
            max_retries=_num("PROVIDER_MAX_RETRIES", int, 3),
            backoff_base_delay=_num("PROVIDER_BACKOFF_BASE", float, 1.0),
            provider_qps=_num("PROVIDER_QPS", float, 4.0),
            max_pages=_num("PROVIDER_MAX_PAGES", int, 5),
            request_timeout=_num("REQUEST_TIMEOUT", float, 15.0),
            new_credit_window_days=_num("NEW_CREDIT_WINDOW_DAYS", int, 30),
            risk_thresholds=thresholds,
            strict_classification=(_get("STRICT_CLASSIFICATION") or "").lower() in _TRUTHY,
        )

    def describe(self) -> str:
        primary, fallback = self.rpc_urls
        return (
            f"chain={self.chain} chainid={self.chainid} key={'yes' if self.provider_api_key else 'no'} "
            f"rpc_primary={primary} rpc_fallback={fallback} retries={self.max_retries} "
            f"backoff={self.backoff_base_delay}s qps={self.provider_qps} window={self.new_credit_window_days}d "
            f"tiers=Low>={self.risk_thresholds.low_min}/Medium>={self.risk_thresholds.medium_min}"
        )
