"""Tests for the Ethereum ledger tools, run through the registry."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from ledgerbridge.tools import build_registry
from ledgerbridge.tools.ethereum import SIGNER_NOT_CONFIGURED, TOOL_CLASSES
from ledgerbridge.tools.schema import ZERO_ADDRESS
from tests.fixtures.ledger import DEV_ADDRESS, RECIPIENT, TX_HASH, make_ledger_context

# ── Catalogue ────────────────────────────────────────────────────


class TestCatalogue:
    def test_all_tools_registered_in_order(self, registry):
        assert registry.list_names() == [
            "getEthBalance",
            "getTransactionDetails",
            "getBlockDetails",
            "getLatestBlockNumber",
            "getCurrentGasPrice",
            "getTokenBalance",
            "callContractMethod",
            "resolveEnsName",
            "lookupEnsName",
            "sendEth",
            "getAllWalletsBalances",
        ]
        assert len(TOOL_CLASSES) == len(registry)

    def test_every_tool_has_description_and_schema(self, registry):
        for descriptor in registry.list():
            assert descriptor.description
            assert descriptor.input_schema["type"] == "object"

    def test_send_eth_schema(self, registry):
        (send,) = [d for d in registry.list() if d.name == "sendEth"]
        assert send.input_schema["required"] == ["to", "amount"]
        assert send.input_schema["properties"]["amount"]["type"] == "string"

    def test_no_arg_tools_have_empty_schema(self, registry):
        (latest,) = [d for d in registry.list() if d.name == "getLatestBlockNumber"]
        assert latest.input_schema == {"type": "object", "properties": {}}


# ── getEthBalance ────────────────────────────────────────────────


class TestGetEthBalance:
    async def test_formats_ether(self, registry, ledger_client):
        result = await registry.invoke("getEthBalance", {"address": RECIPIENT})
        assert result.success
        assert result.text == "1000"
        ledger_client.get_balance.assert_awaited_once_with(RECIPIENT)

    async def test_fractional_balance(self, registry, ledger_client):
        ledger_client.get_balance.return_value = 1_250_000_000_000_000_000
        result = await registry.invoke("getEthBalance", {"address": RECIPIENT})
        assert result.text == "1.25"

    async def test_lowercase_address_accepted(self, registry):
        result = await registry.invoke("getEthBalance", {"address": RECIPIENT.lower()})
        assert result.success

    @pytest.mark.parametrize(
        ("address", "message"),
        [
            ("0x123", "Invalid Ethereum address"),
            (RECIPIENT[2:] + "00", "Invalid Ethereum address"),
            (ZERO_ADDRESS, "Zero address is not allowed"),
        ],
    )
    async def test_rejected_before_network(
        self, registry, ledger_client, address, message
    ):
        result = await registry.invoke("getEthBalance", {"address": address})
        assert not result.success
        assert message in result.text
        ledger_client.get_balance.assert_not_awaited()

    async def test_node_error(self, registry, ledger_client):
        ledger_client.get_balance.side_effect = ConnectionError("node down")
        result = await registry.invoke("getEthBalance", {"address": RECIPIENT})
        assert not result.success
        assert result.text == "Error getting balance: node down"

    async def test_repeatable(self, registry):
        first = await registry.invoke("getEthBalance", {"address": RECIPIENT})
        second = await registry.invoke("getEthBalance", {"address": RECIPIENT})
        assert first == second


# ── Transactions and blocks ──────────────────────────────────────


class TestTransactionDetails:
    async def test_renders_transaction_and_receipt(self, registry, ledger_client):
        result = await registry.invoke("getTransactionDetails", {"txHash": TX_HASH})
        assert result.success
        assert result.text.startswith("Transaction: ")
        assert "\nReceipt: " in result.text
        assert TX_HASH in result.text
        ledger_client.get_transaction_receipt.assert_awaited_once_with(TX_HASH)

    async def test_unknown_hash(self, registry, ledger_client):
        ledger_client.get_transaction.side_effect = ValueError("not found")
        result = await registry.invoke("getTransactionDetails", {"txHash": "0xdead"})
        assert result.text == "Error getting transaction details: not found"


class TestBlockDetails:
    async def test_number(self, registry, ledger_client):
        result = await registry.invoke(
            "getBlockDetails", {"blockNumberOrHash": "19000000"}
        )
        assert result.success
        assert result.text.startswith("Block: ")
        ledger_client.get_block.assert_awaited_once_with(19_000_000)

    async def test_tag_normalized(self, registry, ledger_client):
        await registry.invoke("getBlockDetails", {"blockNumberOrHash": "Latest"})
        ledger_client.get_block.assert_awaited_once_with("latest")

    async def test_hash_passed_through(self, registry, ledger_client):
        await registry.invoke("getBlockDetails", {"blockNumberOrHash": TX_HASH})
        ledger_client.get_block.assert_awaited_once_with(TX_HASH)

    async def test_latest_block_number(self, registry):
        result = await registry.invoke("getLatestBlockNumber", {})
        assert result.text == "19000000"

    async def test_gas_price_in_gwei(self, registry, ledger_client):
        ledger_client.gas_price.return_value = 12_500_000_000
        result = await registry.invoke("getCurrentGasPrice", {})
        assert result.text == "12.5 Gwei"

    async def test_gas_price_error(self, registry, ledger_client):
        ledger_client.gas_price.side_effect = TimeoutError("rpc timeout")
        result = await registry.invoke("getCurrentGasPrice", {})
        assert result.text == "Error getting current gas price: rpc timeout"


# ── Contracts ────────────────────────────────────────────────────


class TestTokenBalance:
    async def test_scaled_by_decimals(self, registry, ledger_client):
        values = {"decimals": 6, "balanceOf": 1_500_000, "symbol": "USDC"}

        def _read(address, abi, function, args=None):
            return values[function]

        ledger_client.read_contract.side_effect = _read
        result = await registry.invoke(
            "getTokenBalance", {"address": RECIPIENT, "tokenContract": DEV_ADDRESS}
        )
        assert result.text == "1.5 USDC"
        balance_call = ledger_client.read_contract.await_args_list[1]
        assert balance_call.args[2] == "balanceOf"
        assert balance_call.args[3] == [RECIPIENT]

    async def test_bad_contract_address(self, registry, ledger_client):
        result = await registry.invoke(
            "getTokenBalance", {"address": RECIPIENT, "tokenContract": "usdc"}
        )
        assert "Invalid contract address" in result.text
        ledger_client.read_contract.assert_not_awaited()


class TestCallContractMethod:
    ABI = json.dumps(
        [
            {
                "name": "totalSupply",
                "type": "function",
                "inputs": [],
                "outputs": [{"name": "", "type": "uint256"}],
            }
        ]
    )

    async def test_result_rendered(self, registry, ledger_client):
        ledger_client.read_contract.return_value = 42
        result = await registry.invoke(
            "callContractMethod",
            {"contractAddress": DEV_ADDRESS, "abi": self.ABI, "method": "totalSupply"},
        )
        assert result.text == "Result: 42"
        args = ledger_client.read_contract.await_args.args
        assert args[2] == "totalSupply"
        assert args[3] == []

    async def test_args_parsed_as_json_when_possible(self, registry, ledger_client):
        await registry.invoke(
            "callContractMethod",
            {
                "contractAddress": DEV_ADDRESS,
                "abi": self.ABI,
                "method": "allowance",
                "args": ["7", "true", '"quoted"', RECIPIENT],
            },
        )
        assert ledger_client.read_contract.await_args.args[3] == [
            7,
            True,
            "quoted",
            RECIPIENT,
        ]

    async def test_abi_must_be_array(self, registry, ledger_client):
        result = await registry.invoke(
            "callContractMethod",
            {"contractAddress": DEV_ADDRESS, "abi": "{}", "method": "x"},
        )
        assert result.text == "Error calling contract method: ABI must be a JSON array"
        ledger_client.read_contract.assert_not_awaited()

    async def test_abi_not_json(self, registry):
        result = await registry.invoke(
            "callContractMethod",
            {"contractAddress": DEV_ADDRESS, "abi": "not json", "method": "x"},
        )
        assert not result.success
        assert result.text.startswith("Error calling contract method: ")

    async def test_args_must_be_strings(self, registry):
        result = await registry.invoke(
            "callContractMethod",
            {"contractAddress": DEV_ADDRESS, "abi": "[]", "method": "x", "args": [1]},
        )
        assert result.text == (
            "invalid arguments for callContractMethod: args[0]: expected string"
        )


# ── ENS ──────────────────────────────────────────────────────────


class TestEns:
    async def test_resolve(self, registry, ledger_client):
        result = await registry.invoke("resolveEnsName", {"ensName": "vitalik.eth"})
        assert result.text == DEV_ADDRESS
        ledger_client.ens_address.assert_awaited_once_with("vitalik.eth")

    async def test_resolve_not_found(self, registry, ledger_client):
        ledger_client.ens_address.return_value = None
        result = await registry.invoke("resolveEnsName", {"ensName": "nobody.eth"})
        assert result.text == "Error resolving ENS name: ENS name not found"

    async def test_lookup(self, registry):
        result = await registry.invoke("lookupEnsName", {"address": DEV_ADDRESS})
        assert result.text == "vitalik.eth"

    async def test_lookup_not_found(self, registry, ledger_client):
        ledger_client.ens_name.return_value = None
        result = await registry.invoke("lookupEnsName", {"address": DEV_ADDRESS})
        assert not result.success
        assert "No ENS name found for this address" in result.text


# ── Wallets ──────────────────────────────────────────────────────


class TestAllWalletsBalances:
    async def test_one_entry_per_wallet(self, registry):
        result = await registry.invoke("getAllWalletsBalances", {})
        assert json.loads(result.text) == {DEV_ADDRESS: "1000", RECIPIENT: "1000"}

    async def test_partial_failure_reported_per_address(self, registry, ledger_client):
        ledger_client.get_balance.side_effect = [10**18, ConnectionError("down")]
        result = await registry.invoke("getAllWalletsBalances", {})
        assert result.success
        assert json.loads(result.text) == {DEV_ADDRESS: "1", RECIPIENT: "Error: down"}

    async def test_empty_wallet_list(self, ledger_client):
        registry = build_registry(make_ledger_context(ledger_client, wallets=()))
        result = await registry.invoke("getAllWalletsBalances", {})
        assert json.loads(result.text) == {}


# ── sendEth ──────────────────────────────────────────────────────


class TestSendEth:
    async def test_without_signer_never_submits(self, registry, ledger_client):
        result = await registry.invoke("sendEth", {"to": RECIPIENT, "amount": "0.5"})
        assert not result.success
        assert result.text == SIGNER_NOT_CONFIGURED
        assert "not configured" in result.text
        ledger_client.send_value.assert_not_awaited()

    async def test_submits_once(self, signer_registry, signer_ctx, ledger_client):
        result = await signer_registry.invoke(
            "sendEth", {"to": RECIPIENT, "amount": "0.5"}
        )
        assert result.success
        assert result.text == f"Transaction sent! Hash: {TX_HASH}"
        ledger_client.send_value.assert_awaited_once_with(
            signer_ctx.account, RECIPIENT, 5 * 10**17
        )

    @pytest.mark.parametrize("amount", ["0", "-1", "abc", "NaN", "Infinity", ""])
    async def test_bad_amount_rejected(self, signer_registry, ledger_client, amount):
        result = await signer_registry.invoke(
            "sendEth", {"to": RECIPIENT, "amount": amount}
        )
        assert not result.success
        assert "Amount must be a positive number" in result.text
        ledger_client.send_value.assert_not_awaited()

    async def test_zero_recipient_rejected(self, signer_registry, ledger_client):
        result = await signer_registry.invoke(
            "sendEth", {"to": ZERO_ADDRESS, "amount": "1"}
        )
        assert "Zero address is not allowed" in result.text
        ledger_client.send_value.assert_not_awaited()

    async def test_submission_error(self, signer_registry, ledger_client):
        ledger_client.send_value = AsyncMock(
            side_effect=ValueError("insufficient funds for gas")
        )
        result = await signer_registry.invoke(
            "sendEth", {"to": RECIPIENT, "amount": "1"}
        )
        assert result.text == "Error sending ETH: insufficient funds for gas"
        ledger_client.send_value.assert_awaited_once()
