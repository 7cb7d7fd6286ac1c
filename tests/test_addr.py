"""
Tests for address normalization and ENS resolution (scorefi.utils.addr).
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from scorefi.errors import AddressUnresolvable
from scorefi.utils.addr import is_ens_name, normalize_evm_address, resolve_address

CHECKSUMMED = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"


def test_normalize_checksums_lowercase_input():
    assert normalize_evm_address("  " + CHECKSUMMED.lower() + " ") == CHECKSUMMED


@pytest.mark.parametrize("raw", ["", "0x123", "d8dA6BF26964aF9D7eEd9e03E53415D37aA96045", "0xd8dA...6045",
                                 "0xZZdA6BF26964aF9D7eEd9e03E53415D37aA96045"])
def test_invalid_addresses_are_unresolvable(raw):
    with pytest.raises(AddressUnresolvable):
        normalize_evm_address(raw)


def test_unresolvable_is_a_value_error():
    with pytest.raises(ValueError):
        normalize_evm_address("nope")


def test_is_ens_name():
    assert is_ens_name("vitalik.eth")
    assert is_ens_name("Sub.Domain.ETH")
    assert not is_ens_name(".eth")
    assert not is_ens_name(CHECKSUMMED)


def test_resolve_hex_needs_no_rpc():
    w3 = MagicMock()
    assert resolve_address(CHECKSUMMED.lower(), [w3]) == CHECKSUMMED
    w3.ens.address.assert_not_called()


def test_resolve_ens_name():
    w3 = MagicMock()
    w3.ens.address.return_value = CHECKSUMMED.lower()
    assert resolve_address("Vitalik.eth", [w3]) == CHECKSUMMED
    w3.ens.address.assert_called_once_with("vitalik.eth")


def test_unknown_ens_name_is_unresolvable():
    w3 = MagicMock()
    w3.ens.address.return_value = None
    with pytest.raises(AddressUnresolvable, match="not found"):
        resolve_address("nobody-here.eth", [w3])


def test_ens_falls_back_to_second_endpoint():
    broken, working = MagicMock(), MagicMock()
    broken.ens.address.side_effect = TimeoutError("rpc timeout")
    working.ens.address.return_value = CHECKSUMMED
    assert resolve_address("vitalik.eth", [broken, working]) == CHECKSUMMED


def test_ens_with_all_endpoints_failing_is_unresolvable():
    broken = MagicMock()
    broken.ens.address.side_effect = TimeoutError("rpc timeout")
    with pytest.raises(AddressUnresolvable):
        resolve_address("vitalik.eth", [broken, broken])


def test_ens_disabled_chain_never_queries_rpc():
    w3 = MagicMock()
    with pytest.raises(AddressUnresolvable, match="not supported"):
        resolve_address("vitalik.eth", [w3], supports_ens=False)
    w3.ens.address.assert_not_called()
    assert resolve_address(CHECKSUMMED, [w3], supports_ens=False) == CHECKSUMMED
