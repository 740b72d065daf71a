"""ledgerbridge: tool-calling bridge between a language model and an Ethereum ledger."""

__version__ = "0.1.0"
