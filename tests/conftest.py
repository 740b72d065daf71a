"""Shared test fixtures for ledgerbridge."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from ledgerbridge.tools import build_registry
from tests.fixtures.ledger import make_ledger_client, make_ledger_context

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from unittest.mock import MagicMock

    from ledgerbridge.tools.ledger import LedgerContext
    from ledgerbridge.tools.registry import ToolRegistry


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's keys, config files and .env out of tests."""
    for var in (
        "ANTHROPIC_API_KEY",
        "CHAIN_ENV",
        "PRIVATE_KEY",
        "LEDGERBRIDGE_CONFIG",
    ):
        # set first so anything a test loads from .env is undone afterwards
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo setup_logging so caplog sees records from every test."""
    yield
    logger = logging.getLogger("ledgerbridge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def ledger_client() -> MagicMock:
    return make_ledger_client()


@pytest.fixture
def ledger_ctx(ledger_client: MagicMock) -> LedgerContext:
    """Read-only context: no signer configured."""
    return make_ledger_context(ledger_client)


@pytest.fixture
def signer_ctx(ledger_client: MagicMock) -> LedgerContext:
    return make_ledger_context(ledger_client, signer=True)


@pytest.fixture
def registry(ledger_ctx: LedgerContext) -> ToolRegistry:
    return build_registry(ledger_ctx)


@pytest.fixture
def signer_registry(signer_ctx: LedgerContext) -> ToolRegistry:
    return build_registry(signer_ctx)
