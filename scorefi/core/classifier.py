# scorefi/core/classifier.py
# Purpose: EOA vs contract check via eth_getCode, primary node first, one fallback node.

from __future__ import annotations

from typing import Optional, Tuple

from web3 import Web3

from scorefi.chains import make_w3
from scorefi.config import ScoringConfig
from scorefi.models import AddressKind


def _is_empty_code(code) -> bool:
    if code is None:
        return True
    if isinstance(code, str):
        return code.strip().lower() in ("", "0x")
    return len(code) == 0


class RpcClassifier:
    """
    classify(address) -> AddressKind. At most two network calls, never raises:
    if neither node answers, the caller gets AddressKind.UNKNOWN and decides the policy.
    """

    def __init__(self, config: ScoringConfig, primary: Optional[Web3] = None, fallback: Optional[Web3] = None):
        primary_url, fallback_url = config.rpc_urls
        self.primary = primary if primary is not None else make_w3(primary_url, config.chainid, config.request_timeout)
        self.fallback = fallback if fallback is not None else make_w3(fallback_url, config.chainid, config.request_timeout)

    @property
    def endpoints(self) -> Tuple[Web3, Web3]:
        return self.primary, self.fallback

    def classify(self, address: str) -> AddressKind:
        for label, w3 in (("primary", self.primary), ("fallback", self.fallback)):
            try:
                code = w3.eth.get_code(Web3.to_checksum_address(address))
            except Exception as e:
                print(f"[CLASSIFY] {label} get_code FAIL for {address}: {e}")
                continue
            kind = AddressKind.EOA if _is_empty_code(code) else AddressKind.CONTRACT
            print(f"[CLASSIFY] {label} -> {address} is {kind.value}")
            return kind

        print(f"[CLASSIFY] WARNING both RPC endpoints failed for {address}; classification Unknown")
        return AddressKind.UNKNOWN
