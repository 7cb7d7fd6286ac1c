# scorefi/chains.py
# Purpose: Chain table (chain id + default RPC pair) + web3 factory (Web3 v7). Injects POA middleware for BSC.

from web3 import Web3
from web3.middleware.proof_of_authority import ExtraDataToPOAMiddleware

# Covalent (GoldRush) REST base; chain is addressed by numeric chain id
PROVIDER_V1_BASE = "https://api.covalenthq.com/v1"

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

CHAINS = {
    "eth": {
        "name": "eth",
        "chainid": 1,
        "rpc_primary": "https://ethereum-rpc.publicnode.com",
        "rpc_fallback": "https://cloudflare-eth.com",
        "supports_ens": True,
    },
    "sepolia": {
        "name": "sepolia",
        "chainid": 11155111,
        "rpc_primary": "https://ethereum-sepolia-rpc.publicnode.com",
        "rpc_fallback": "https://rpc.sepolia.org",
        "supports_ens": True,
    },
    "bsc": {
        "name": "bsc",
        "chainid": 56,
        "rpc_primary": "https://bsc-dataseed.binance.org",
        "rpc_fallback": "https://bsc-rpc.publicnode.com",
        "supports_ens": False,
    },
}


def get_chain(chain_key: str) -> dict:
    if chain_key not in CHAINS:
        raise ValueError(f"Unknown chain: {chain_key}. Expected one of {sorted(CHAINS)}")
    return CHAINS[chain_key]


def make_w3(rpc_url: str, chainid: int, timeout: float = 15) -> Web3:
    """Build a Web3 client for one endpoint. Does not touch the network."""
    rpc = (rpc_url or "").strip().rstrip("\r")
    if not rpc or rpc in {"https://", "http://"}:
        raise ValueError(f"Missing/invalid RPC URL for chainId={chainid}")

    print(f"[CHAINS] HTTPProvider -> {rpc} (timeout={timeout}s)")
    w3 = Web3(Web3.HTTPProvider(rpc, request_kwargs={"timeout": timeout}))

    # Inject POA middleware for PoA-like chains (BSC, etc.)
    if chainid in (56, 97):
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        print(f"[CHAINS] POA middleware injected (ExtraDataToPOAMiddleware) for chainId={chainid}")

    return w3


__all__ = ["PROVIDER_V1_BASE", "NULL_ADDRESS", "CHAINS", "get_chain", "make_w3"]
