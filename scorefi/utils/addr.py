# scorefi/utils/addr.py
from __future__ import annotations

from typing import Iterable

from web3 import Web3

from scorefi.errors import AddressUnresolvable


def is_ens_name(raw: str) -> bool:
    s = (raw or "").strip().lower()
    return s.endswith(".eth") and len(s) > 4 and not s.startswith("0x")


def normalize_evm_address(raw: str) -> str:
    """Strictly validate & checksum an EVM address."""
    s = (raw or "").strip()
    if "..." in s:
        raise AddressUnresolvable("Ellipses ('...') are not allowed. Provide the full 42-char 0x address.")
    if not s.startswith("0x") or len(s) != 42:
        raise AddressUnresolvable("Invalid address: must be 0x-prefixed and 42 characters long (0x + 40 hex).")
    try:
        return Web3.to_checksum_address(s)
    except (ValueError, TypeError):
        raise AddressUnresolvable("Invalid address: not a valid hex string.")


def resolve_address(raw: str, w3s: Iterable[Web3] = (), supports_ens: bool = True) -> str:
    """
    Return a checksummed 0x address for a hex address or an ENS name.
    ENS names are tried against each Web3 in order; the first hit wins.
    Chains without an ENS registry reject names outright.
    """
    s = (raw or "").strip()
    if not is_ens_name(s):
        return normalize_evm_address(s)

    name = s.lower()
    if not supports_ens:
        raise AddressUnresolvable(f"ENS names are not supported on this chain: {name}. Provide a 0x address.")
    last_err = None
    for w3 in w3s:
        try:
            resolved = w3.ens.address(name)
        except Exception as e:
            last_err = e
            print(f"[ADDR] ENS lookup failed for {name}: {e}")
            continue
        if resolved:
            print(f"[ADDR] ENS {name} -> {resolved}")
            return Web3.to_checksum_address(resolved)
        raise AddressUnresolvable(f"ENS name not found: {name}")

    detail = f": {last_err}" if last_err else ""
    raise AddressUnresolvable(f"Could not resolve ENS name {name}{detail}")
