"""Supported ledger networks."""

from __future__ import annotations

from dataclasses import dataclass

from ledgerbridge.core.errors import ConfigError


@dataclass(frozen=True, slots=True)
class ChainInfo:
    """Static metadata about one network."""

    key: str  # config value, e.g. "mainnet"
    name: str
    chain_id: int
    rpc_url: str


CHAINS: dict[str, ChainInfo] = {
    "mainnet": ChainInfo("mainnet", "Ethereum", 1, "https://eth.merkle.io"),
    "goerli": ChainInfo("goerli", "Goerli", 5, "https://rpc.ankr.com/eth_goerli"),
    "sepolia": ChainInfo(
        "sepolia", "Sepolia", 11_155_111, "https://sepolia.drpc.org"
    ),
    "local": ChainInfo("local", "Localhost", 31_337, "http://127.0.0.1:8545"),
}


def get_chain(key: str) -> ChainInfo:
    """Look up a network by its config key.

    Raises:
        ConfigError: If the network is not supported.
    """
    try:
        return CHAINS[key]
    except KeyError:
        supported = ", ".join(CHAINS)
        msg = f"Unsupported network {key!r} (expected one of: {supported})"
        raise ConfigError(msg) from None
