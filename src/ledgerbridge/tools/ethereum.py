"""Ethereum ledger tools.

One class per tool. Each declares its input fields and an ``execute``
body wrapped in :func:`~ledgerbridge.tools.base.fallible`, so ledger
errors surface as failed results carrying the tool's error prefix.
All tools share the :class:`~ledgerbridge.tools.ledger.LedgerContext`
they were built with.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar

from ledgerbridge.tools.base import ToolResult, fallible
from ledgerbridge.tools.ledger import (
    ETHER_DECIMALS,
    GWEI_DECIMALS,
    format_units,
    parse_units,
    to_json,
)
from ledgerbridge.tools.schema import FieldSpec, Predicate, address_field

if TYPE_CHECKING:
    from ledgerbridge.tools.ledger import LedgerContext

logger = logging.getLogger(__name__)

ERC20_ABI: list[dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function",
    },
]

BLOCK_TAGS = frozenset({"latest", "earliest", "pending", "safe", "finalized"})

SIGNER_NOT_CONFIGURED = (
    "Wallet client not configured. Set PRIVATE_KEY in your environment."
)


def _positive_amount(value: str) -> bool:
    amount = Decimal(value)
    return amount.is_finite() and amount > 0


def _parse_arg(raw: str) -> Any:
    """Decode one contract argument: JSON if it parses, else the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


class LedgerTool:
    """Base for tools backed by a :class:`LedgerContext`."""

    name: ClassVar[str]
    description: ClassVar[str]
    fields: ClassVar[tuple[FieldSpec, ...]] = ()

    def __init__(self, ctx: LedgerContext) -> None:
        self._ctx = ctx

    async def execute(self, **kwargs: Any) -> ToolResult:
        raise NotImplementedError


# ─── Reads ──────────────────────────────────────────────────────


class GetEthBalanceTool(LedgerTool):
    name = "getEthBalance"
    description = "Get the balance of an Ethereum address"
    fields = (address_field("address", "The address to get the balance of"),)

    @fallible("Error getting balance")
    async def execute(self, *, address: str) -> str:
        wei = await self._ctx.client.get_balance(address)
        return format_units(wei, ETHER_DECIMALS)


class GetTransactionDetailsTool(LedgerTool):
    name = "getTransactionDetails"
    description = "Get details of a transaction by its hash"
    fields = (FieldSpec("txHash", description="The transaction hash to look up"),)

    @fallible("Error getting transaction details")
    async def execute(self, *, txHash: str) -> str:  # noqa: N803
        tx = await self._ctx.client.get_transaction(txHash)
        receipt = await self._ctx.client.get_transaction_receipt(txHash)
        return f"Transaction: {to_json(tx)}\nReceipt: {to_json(receipt)}"


class GetBlockDetailsTool(LedgerTool):
    name = "getBlockDetails"
    description = "Get details of a block by its number or hash"
    fields = (
        FieldSpec(
            "blockNumberOrHash",
            description="The block number or block hash to look up",
        ),
    )

    @fallible("Error getting block details")
    async def execute(self, *, blockNumberOrHash: str) -> str:  # noqa: N803
        ref = blockNumberOrHash.strip()
        block_id: int | str = int(ref) if ref.isdigit() else ref
        if isinstance(block_id, str) and block_id.lower() in BLOCK_TAGS:
            block_id = block_id.lower()
        block = await self._ctx.client.get_block(block_id)
        return f"Block: {to_json(block)}"


class GetLatestBlockNumberTool(LedgerTool):
    name = "getLatestBlockNumber"
    description = "Get the latest block number"

    @fallible("Error getting latest block number")
    async def execute(self) -> str:
        return str(await self._ctx.client.block_number())


class GetCurrentGasPriceTool(LedgerTool):
    name = "getCurrentGasPrice"
    description = "Get the current gas price (in Gwei)"

    @fallible("Error getting current gas price")
    async def execute(self) -> str:
        wei = await self._ctx.client.gas_price()
        return f"{format_units(wei, GWEI_DECIMALS)} Gwei"


class GetTokenBalanceTool(LedgerTool):
    name = "getTokenBalance"
    description = "Get the ERC-20 token balance of an address"
    fields = (
        address_field("address", "The address to get the token balance of"),
        address_field(
            "tokenContract",
            "The ERC-20 token contract address",
            "Invalid contract address",
        ),
    )

    @fallible("Error getting token balance")
    async def execute(self, *, address: str, tokenContract: str) -> str:  # noqa: N803
        client = self._ctx.client
        decimals = await client.read_contract(tokenContract, ERC20_ABI, "decimals")
        balance = await client.read_contract(
            tokenContract, ERC20_ABI, "balanceOf", [client.checksum(address)]
        )
        symbol = await client.read_contract(tokenContract, ERC20_ABI, "symbol")
        return f"{format_units(int(balance), int(decimals))} {symbol}"


class CallContractMethodTool(LedgerTool):
    name = "callContractMethod"
    description = "Call a read-only method on a smart contract"
    fields = (
        address_field(
            "contractAddress", "The contract address", "Invalid contract address"
        ),
        FieldSpec("abi", description="The contract ABI as a JSON string"),
        FieldSpec("method", description="The method name to call"),
        FieldSpec(
            "args",
            type="array",
            items="string",
            required=False,
            description="Arguments for the method as strings (will be parsed)",
        ),
    )

    @fallible("Error calling contract method")
    async def execute(
        self,
        *,
        contractAddress: str,  # noqa: N803
        abi: str,
        method: str,
        args: list[str] | None = None,
    ) -> str:
        parsed_abi = json.loads(abi)
        if not isinstance(parsed_abi, list):
            msg = "ABI must be a JSON array"
            raise ValueError(msg)
        parsed_args = [_parse_arg(a) for a in args or []]
        result = await self._ctx.client.read_contract(
            contractAddress, parsed_abi, method, parsed_args
        )
        return f"Result: {to_json(result)}"


class ResolveEnsNameTool(LedgerTool):
    name = "resolveEnsName"
    description = "Resolve an ENS name to an Ethereum address"
    fields = (
        FieldSpec("ensName", description="The ENS name to resolve (e.g. vitalik.eth)"),
    )

    @fallible("Error resolving ENS name")
    async def execute(self, *, ensName: str) -> str:  # noqa: N803
        address = await self._ctx.client.ens_address(ensName)
        if not address:
            msg = "ENS name not found"
            raise LookupError(msg)
        return str(address)


class LookupEnsNameTool(LedgerTool):
    name = "lookupEnsName"
    description = "Lookup the ENS name for an Ethereum address"
    fields = (
        address_field("address", "The Ethereum address to lookup the ENS name for"),
    )

    @fallible("Error looking up ENS name")
    async def execute(self, *, address: str) -> str:
        ens_name = await self._ctx.client.ens_name(address)
        if not ens_name:
            msg = "No ENS name found for this address"
            raise LookupError(msg)
        return ens_name


class GetAllWalletsBalancesTool(LedgerTool):
    name = "getAllWalletsBalances"
    description = "Get the ETH balance of all addresses in the list of wallets"

    @fallible("Error getting wallet balances")
    async def execute(self) -> str:
        results: dict[str, str] = {}
        for address in self._ctx.wallets:
            try:
                wei = await self._ctx.client.get_balance(address)
            except Exception as exc:
                logger.warning("Balance lookup failed for %s: %s", address, exc)
                results[address] = f"Error: {exc}"
            else:
                results[address] = format_units(wei, ETHER_DECIMALS)
        return json.dumps(results, indent=2)


# ─── Writes ─────────────────────────────────────────────────────


class SendEthTool(LedgerTool):
    name = "sendEth"
    description = "Send ETH from the configured wallet to an address"
    fields = (
        address_field("to", "Recipient address"),
        FieldSpec(
            "amount",
            description="Amount of ETH to send (as a string, in ETH)",
            constraints=(
                Predicate(
                    _positive_amount, "Amount must be a positive number (in ETH)"
                ),
            ),
        ),
    )

    @fallible("Error sending ETH")
    async def execute(self, *, to: str, amount: str) -> str | ToolResult:
        account = self._ctx.account
        if account is None:
            return ToolResult.fail(SIGNER_NOT_CONFIGURED)
        tx_hash = await self._ctx.client.send_value(
            account, to, parse_units(amount, ETHER_DECIMALS)
        )
        return f"Transaction sent! Hash: {tx_hash}"


TOOL_CLASSES: tuple[type[LedgerTool], ...] = (
    GetEthBalanceTool,
    GetTransactionDetailsTool,
    GetBlockDetailsTool,
    GetLatestBlockNumberTool,
    GetCurrentGasPriceTool,
    GetTokenBalanceTool,
    CallContractMethodTool,
    ResolveEnsNameTool,
    LookupEnsNameTool,
    SendEthTool,
    GetAllWalletsBalancesTool,
)


def build_ledger_tools(ctx: LedgerContext) -> list[LedgerTool]:
    """Instantiate every ledger tool against *ctx*, in catalogue order."""
    return [cls(ctx) for cls in TOOL_CLASSES]
