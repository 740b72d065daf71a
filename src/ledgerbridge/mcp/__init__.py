"""MCP tool server for the ledger tools."""
