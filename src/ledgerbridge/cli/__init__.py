"""Command-line interface: the interactive chat session."""
