"""Core errors and shared utilities."""

from ledgerbridge.core.errors import (
    ConfigError,
    LedgerBridgeError,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    TransportError,
)
from ledgerbridge.core.retry import RetryConfig, is_retryable, retry_with_backoff

__all__ = [
    "ConfigError",
    "LedgerBridgeError",
    "ModelNotFoundError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderOverloadedError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "RetryConfig",
    "TransportError",
    "is_retryable",
    "retry_with_backoff",
]
