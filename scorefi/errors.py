# scorefi/errors.py
from __future__ import annotations

from typing import Optional


class ScoringError(Exception):
    """Base class for every failure surfaced by the scoring engine."""


class AddressUnresolvable(ScoringError, ValueError):
    """Input is neither a valid 0x address nor a resolvable ENS name."""


class ClassificationIndeterminate(ScoringError):
    """Both RPC endpoints failed to answer eth_getCode.

    Only raised when strict classification is enabled; the default policy
    logs a warning and scores the address as a wallet.
    """


class ContractAddress(ScoringError, ValueError):
    """Address holds bytecode; only wallets (EOAs) are scored."""

    def __init__(self, address: str):
        super().__init__(f"{address} is a contract, not a wallet. Only wallet addresses can be scored.")
        self.address = address


class DataUnavailable(ScoringError):
    """Data provider failed after the retry budget, or returned a hard error."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (HTTP {self.status})" if self.status is not None else base


class ScoringCancelled(ScoringError):
    """The caller cancelled the run before scoring started."""
