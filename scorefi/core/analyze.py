# scorefi/core/analyze.py
# Purpose: compute_score(address) -> ScoreResult. Resolve, classify, fetch (in parallel), score, aggregate.

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from scorefi.config import ScoringConfig
from scorefi.core.classifier import RpcClassifier
from scorefi.core.factors import RepaymentDetector, compute_breakdown
from scorefi.core.provider import ProviderClient
from scorefi.core.score import DEFAULT_WEIGHTS, ScoreWeights, aggregate
from scorefi.errors import ClassificationIndeterminate, ContractAddress, ScoringCancelled
from scorefi.models import AddressKind, ScoreResult, TokenHolding, Transaction
from scorefi.utils.addr import resolve_address


def _check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        print(f"[ANALYZE] cancelled before {stage}")
        raise ScoringCancelled(f"Scoring cancelled before {stage}")


class ScoringEngine:
    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        classifier: Optional[RpcClassifier] = None,
        provider: Optional[ProviderClient] = None,
        detector: Optional[RepaymentDetector] = None,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
    ):
        self.config = config or ScoringConfig()
        self.classifier = classifier if classifier is not None else RpcClassifier(self.config)
        self.provider = provider if provider is not None else ProviderClient(self.config)
        self.detector = detector
        self.weights = weights

    def classify(self, address: str) -> AddressKind:
        kind = self.classifier.classify(address)
        if kind is AddressKind.CONTRACT:
            raise ContractAddress(address)
        if kind is AddressKind.UNKNOWN:
            if self.config.strict_classification:
                raise ClassificationIndeterminate(f"Could not determine whether {address} is a wallet or a contract")
            print(f"[ANALYZE] WARNING classification Unknown for {address}; proceeding as EOA")
        return kind

    def close(self) -> None:
        close = getattr(self.provider, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def fetch(self, address: str) -> Tuple[List[TokenHolding], List[Transaction]]:
        """
        Balances and transactions in parallel; both must succeed.
        If one fails, the transaction pager is told to stop at its next page
        boundary. A request already in flight (with its retries) still finishes.
        """
        stop = threading.Event()
        with ThreadPoolExecutor(max_workers=2) as ex:
            fut_balances = ex.submit(self.provider.fetch_balances, address)
            fut_txs = ex.submit(self.provider.fetch_transactions, address, stop=stop)
            try:
                for fut in as_completed((fut_balances, fut_txs)):
                    fut.result()
            except Exception as e:
                print(f"[ANALYZE] fetch FAIL for {address}: {e}")
                stop.set()
                fut_balances.cancel()
                fut_txs.cancel()
                raise
        return fut_balances.result(), fut_txs.result()

    def compute_score(
        self,
        address: str,
        now: Optional[datetime] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScoreResult:
        print(f"[ANALYZE] compute_score start addr={address}")

        # 1) Resolve (hex or ENS)
        resolved = resolve_address(address, self.classifier.endpoints, supports_ens=self.config.supports_ens)
        print(f"[ANALYZE] Address resolved: {resolved}")

        # 2) Wallet vs contract gate
        _check_cancelled(cancel_event, "classification")
        kind = self.classify(resolved)

        # 3) Data
        _check_cancelled(cancel_event, "data fetch")
        holdings, transactions = self.fetch(resolved)
        _check_cancelled(cancel_event, "scoring")
        print(f"[ANALYZE] Data OK: holdings={len(holdings)} txs={len(transactions)}")

        # 4) Sub-scores + aggregate
        now = now or datetime.now(timezone.utc)
        breakdown, details = compute_breakdown(
            holdings, transactions, now,
            window_days=self.config.new_credit_window_days,
            detector=self.detector,
        )
        result = aggregate(
            breakdown,
            now=now,
            weights=self.weights,
            thresholds=self.config.risk_thresholds,
            address=resolved,
            address_kind=kind,
            details=details,
        )
        print(f"[ANALYZE] compute_score done addr={resolved} score={result.score} tier={result.risk_level.value}")
        return result


def compute_score(
    address: str,
    config: Optional[ScoringConfig] = None,
    now: Optional[datetime] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ScoreResult:
    with ScoringEngine(config) as engine:
        return engine.compute_score(address, now=now, cancel_event=cancel_event)
