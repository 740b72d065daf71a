"""Exception hierarchy for ledgerbridge.

Every module imports from here. The hierarchy is:

    LedgerBridgeError
    ├── ProviderError(provider_id)
    │   ├── ProviderAuthError
    │   ├── ProviderRateLimitError(retry_after)
    │   ├── ProviderTimeoutError
    │   ├── ProviderOverloadedError
    │   └── ModelNotFoundError
    ├── ConfigError
    └── TransportError

Tool argument and ledger failures are not exceptions: they travel as
:class:`~ledgerbridge.tools.base.ToolResult` values.
"""

from __future__ import annotations


class LedgerBridgeError(Exception):
    """Base exception for all ledgerbridge errors."""


# ─── Provider Errors ──────────────────────────────────────────


class ProviderError(LedgerBridgeError):
    """Base for model provider errors."""

    def __init__(self, provider_id: str, message: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"[{provider_id}] {message}")


class ProviderAuthError(ProviderError):
    """Invalid or missing API key."""


class ProviderRateLimitError(ProviderError):
    """Rate limit exceeded. Includes retry_after if available."""

    def __init__(self, provider_id: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        msg = "Rate limited"
        if retry_after is not None:
            msg += f" (retry after {retry_after}s)"
        super().__init__(provider_id, msg)


class ProviderTimeoutError(ProviderError):
    """Model call timed out."""


class ProviderOverloadedError(ProviderError):
    """Provider is overloaded (529, 503)."""


class ModelNotFoundError(ProviderError):
    """Requested model not available from this provider."""


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(LedgerBridgeError):
    """Invalid or missing configuration."""


# ─── Transport Errors ─────────────────────────────────────────


class TransportError(LedgerBridgeError):
    """The connection to the tool-serving process failed or was lost."""
