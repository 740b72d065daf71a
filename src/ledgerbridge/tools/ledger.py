"""Ledger access: a thin async facade over web3.py plus the session context.

Tools never talk to web3 directly. They receive a :class:`LedgerContext`
built once at server startup, holding the :class:`LedgerClient`, the
optional signing account and the list of watched wallets. The context
is closed when the server shuts down.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from ledgerbridge.core.errors import ConfigError
from ledgerbridge.tools.chains import get_chain

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

    from ledgerbridge.config.schema import ChainConfig
    from ledgerbridge.tools.chains import ChainInfo

logger = logging.getLogger(__name__)

ETHER_DECIMALS = 18
GWEI_DECIMALS = 9


# ─── Formatting helpers ─────────────────────────────────────────


def format_units(value: int, decimals: int) -> str:
    """Render an integer amount of base units as a plain decimal string."""
    amount = Decimal(value).scaleb(-decimals).normalize()
    return format(amount, "f")


def parse_units(amount: str, decimals: int = ETHER_DECIMALS) -> int:
    """Convert a decimal string (e.g. ``"0.5"``) to integer base units."""
    return int(Decimal(amount).scaleb(decimals).to_integral_value())


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray)):
        return "0x" + bytes(obj).hex()
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    msg = f"Object of type {type(obj).__name__} is not JSON serializable"
    raise TypeError(msg)


def to_json(obj: Any) -> str:
    """Serialize ledger objects (AttributeDict, HexBytes, big ints) as JSON."""
    if isinstance(obj, Mapping) and not isinstance(obj, dict):
        obj = dict(obj)
    return json.dumps(obj, default=_json_default, indent=2)


# ─── Client ─────────────────────────────────────────────────────


class LedgerClient:
    """Async ledger reads and value transfers.

    Addresses are checksummed here, so callers may pass any casing that
    already passed argument validation.
    """

    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3

    @classmethod
    def connect(cls, rpc_url: str) -> LedgerClient:
        return cls(AsyncWeb3(AsyncHTTPProvider(rpc_url)))

    @staticmethod
    def checksum(address: str) -> str:
        return Web3.to_checksum_address(address)

    async def get_balance(self, address: str) -> int:
        return await self._w3.eth.get_balance(self.checksum(address))

    async def get_transaction(self, tx_hash: str) -> Mapping[str, Any]:
        return await self._w3.eth.get_transaction(tx_hash)

    async def get_transaction_receipt(self, tx_hash: str) -> Mapping[str, Any]:
        return await self._w3.eth.get_transaction_receipt(tx_hash)

    async def get_block(self, block_id: int | str) -> Mapping[str, Any]:
        return await self._w3.eth.get_block(block_id)

    async def block_number(self) -> int:
        return await self._w3.eth.block_number

    async def gas_price(self) -> int:
        return await self._w3.eth.gas_price

    async def chain_id(self) -> int:
        return await self._w3.eth.chain_id

    async def read_contract(
        self,
        address: str,
        abi: list[dict[str, Any]],
        function: str,
        args: list[Any] | None = None,
    ) -> Any:
        contract = self._w3.eth.contract(address=self.checksum(address), abi=abi)
        fn = contract.get_function_by_name(function)
        return await fn(*(args or [])).call()

    async def ens_address(self, name: str) -> str | None:
        return await self._w3.ens.address(name)

    async def ens_name(self, address: str) -> str | None:
        return await self._w3.ens.name(self.checksum(address))

    async def send_value(self, account: LocalAccount, to: str, wei: int) -> str:
        """Sign and submit one value transfer. Returns the transaction hash.

        Submits exactly once; callers must not retry on failure.
        """
        sender = account.address
        tx: dict[str, Any] = {
            "to": self.checksum(to),
            "value": wei,
            "chainId": await self.chain_id(),
            "nonce": await self._w3.eth.get_transaction_count(sender),
        }
        tx["gas"] = await self._w3.eth.estimate_gas({**tx, "from": sender})
        tx["gasPrice"] = await self.gas_price()
        signed = account.sign_transaction(tx)
        tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.info("Submitted transfer of %d wei to %s", wei, to)
        return Web3.to_hex(tx_hash)

    async def close(self) -> None:
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()


# ─── Context ────────────────────────────────────────────────────


@dataclass(slots=True)
class LedgerContext:
    """Everything the ledger tools need for one server session."""

    client: LedgerClient
    chain: ChainInfo
    account: LocalAccount | None = None
    wallets: tuple[str, ...] = field(default_factory=tuple)

    @property
    def can_sign(self) -> bool:
        return self.account is not None

    async def close(self) -> None:
        await self.client.close()


def _load_account(private_key: str | None) -> LocalAccount | None:
    if not private_key:
        return None
    try:
        return Account.from_key(private_key)
    except Exception as e:
        msg = f"Invalid signing key: {e}"
        raise ConfigError(msg) from e


def create_ledger_context(
    config: ChainConfig, *, client: LedgerClient | None = None
) -> LedgerContext:
    """Build the ledger context for *config*.

    Raises:
        ConfigError: On an unsupported network or a malformed signing key.
    """
    chain = get_chain(config.network)
    rpc_url = config.rpc_url or chain.rpc_url
    account = _load_account(config.private_key)
    logger.info(
        "Ledger context: network=%s rpc=%s signer=%s",
        chain.key,
        rpc_url,
        account.address if account else "none",
    )
    return LedgerContext(
        client=client or LedgerClient.connect(rpc_url),
        chain=chain,
        account=account,
        wallets=tuple(config.wallets),
    )
