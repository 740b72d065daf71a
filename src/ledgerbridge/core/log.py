"""Logging setup shared by the chat client and the tool server.

Both processes keep stdout for something else (the chat surface and the
MCP stdio channel), so log records go to stderr unless a file is named.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledgerbridge.config.schema import LoggingConfig

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(config: LoggingConfig) -> None:
    """Configure the ``ledgerbridge`` logger from *config*.

    Safe to call more than once; earlier handlers are replaced.
    """
    root = logging.getLogger("ledgerbridge")
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    handler: logging.Handler
    if config.file:
        path = Path(config.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))

    root.addHandler(handler)
    root.setLevel(config.level.upper())
    root.propagate = False
