"""Configuration loading and validation."""

from ledgerbridge.config.loader import load_config, require_api_key
from ledgerbridge.config.schema import (
    ChainConfig,
    LedgerBridgeConfig,
    LoggingConfig,
    ModelConfig,
)

__all__ = [
    "ChainConfig",
    "LedgerBridgeConfig",
    "LoggingConfig",
    "ModelConfig",
    "load_config",
    "require_api_key",
]
