"""Pydantic models for ledgerbridge configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Network = Literal["mainnet", "goerli", "sepolia", "local"]

# Well-known local development accounts (hardhat / anvil default mnemonic).
DEFAULT_WALLETS: list[str] = [
    "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
    "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
    "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC",
    "0x90F79bf6EB2c4f870365E785982E1f101E93b906",
    "0x15d34AAf54267DB7D7c367839AAf71A00a2C6A65",
]


class ModelConfig(BaseModel):
    """Model oracle settings."""

    model_config = ConfigDict(protected_namespaces=())

    api_key: str | None = None
    api_key_env: str = "ANTHROPIC_API_KEY"
    model_id: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 1000
    temperature: float = 0.7
    max_tool_depth: int = Field(default=1, ge=1, le=10)
    max_retries: int = Field(default=3, ge=0)


class ChainConfig(BaseModel):
    """Ledger network and signer settings."""

    network: Network = "mainnet"
    network_env: str = "CHAIN_ENV"
    rpc_url: str | None = None
    private_key: str | None = None
    private_key_env: str = "PRIVATE_KEY"
    wallets: list[str] = Field(default_factory=lambda: list(DEFAULT_WALLETS))


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""


class LedgerBridgeConfig(BaseModel):
    """Top-level configuration for ledgerbridge."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
