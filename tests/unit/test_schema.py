"""Tests for declarative tool argument constraints."""

from __future__ import annotations

import pytest

from ledgerbridge.tools.schema import (
    ADDRESS_PATTERN,
    ZERO_ADDRESS,
    FieldSpec,
    NotEqual,
    Pattern,
    Predicate,
    address_field,
    build_input_schema,
    validate_arguments,
)

VALID = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


# ── Constraints ──────────────────────────────────────────────────


class TestConstraints:
    def test_pattern_requires_string(self):
        p = Pattern(ADDRESS_PATTERN, "bad")
        assert p.check(VALID)
        assert not p.check(VALID.lower()[:-1])
        assert not p.check(12345)

    def test_pattern_is_anchored(self):
        p = Pattern(ADDRESS_PATTERN, "bad")
        assert not p.check(VALID + "00")
        assert not p.check(" " + VALID)

    def test_not_equal_ignores_case_for_strings(self):
        c = NotEqual("0xABCDEF", "same")
        assert not c.check("0xabcdef")
        assert c.check("0xabcdee")

    def test_predicate_errors_count_as_violation(self):
        c = Predicate(lambda v: int(v) > 0, "must be positive")
        assert c.check("3")
        assert not c.check("-1")
        assert not c.check("abc")
        assert not c.check(None)


# ── validate_arguments ───────────────────────────────────────────


class TestValidateArguments:
    def test_valid(self):
        fields = (address_field("address", "An address"),)
        assert validate_arguments(fields, {"address": VALID}) is None

    def test_missing_required(self):
        fields = (FieldSpec("txHash"),)
        assert validate_arguments(fields, {}) == "txHash: required field is missing"

    def test_null_counts_as_missing(self):
        fields = (FieldSpec("txHash"),)
        assert validate_arguments(fields, {"txHash": None}) is not None

    def test_optional_may_be_absent(self):
        fields = (FieldSpec("args", type="array", items="string", required=False),)
        assert validate_arguments(fields, {}) is None

    def test_wrong_type(self):
        fields = (FieldSpec("amount"),)
        assert validate_arguments(fields, {"amount": 1}) == "amount: expected string"

    def test_bool_is_not_an_integer(self):
        fields = (FieldSpec("n", type="integer"),)
        assert validate_arguments(fields, {"n": True}) == "n: expected integer"

    def test_array_items_checked(self):
        fields = (FieldSpec("args", type="array", items="string"),)
        violation = validate_arguments(fields, {"args": ["a", 2]})
        assert violation == "args[1]: expected string"

    def test_bad_address(self):
        fields = (address_field("address", "An address"),)
        violation = validate_arguments(fields, {"address": "0x123"})
        assert violation == "address: Invalid Ethereum address"

    def test_zero_address(self):
        fields = (address_field("address", "An address"),)
        violation = validate_arguments(fields, {"address": ZERO_ADDRESS})
        assert violation == "address: Zero address is not allowed"

    def test_custom_address_message(self):
        fields = (address_field("tokenContract", "Token", "Invalid contract address"),)
        violation = validate_arguments(fields, {"tokenContract": "nope"})
        assert violation == "tokenContract: Invalid contract address"

    def test_first_violation_wins(self):
        fields = (FieldSpec("a"), FieldSpec("b"))
        assert validate_arguments(fields, {}) == "a: required field is missing"


# ── JSON Schema ──────────────────────────────────────────────────


class TestInputSchema:
    def test_address_field_schema(self):
        schema = address_field("to", "Recipient address").json_schema()
        assert schema == {
            "type": "string",
            "pattern": ADDRESS_PATTERN,
            "not": {"const": ZERO_ADDRESS},
            "description": "Recipient address",
        }

    def test_predicate_adds_nothing(self):
        spec = FieldSpec("amount", constraints=(Predicate(bool, "x"),))
        assert spec.json_schema() == {"type": "string"}

    def test_required_list(self):
        schema = build_input_schema(
            (
                FieldSpec("a"),
                FieldSpec("b", type="array", items="string", required=False),
            )
        )
        assert schema["type"] == "object"
        assert schema["required"] == ["a"]
        assert schema["properties"]["b"] == {
            "type": "array",
            "items": {"type": "string"},
        }

    def test_no_fields(self):
        assert build_input_schema(()) == {"type": "object", "properties": {}}

    @pytest.mark.parametrize("name", ["address", "to"])
    def test_field_order_preserved(self, name):
        schema = build_input_schema((FieldSpec(name), FieldSpec("z")))
        assert list(schema["properties"]) == [name, "z"]
