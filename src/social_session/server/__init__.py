"""Social Session MCP Server."""

import logging
import sys

from .main import mcp, get_coordinator

from . import session_tools

__all__ = ["mcp", "get_coordinator", "main"]


def main():
    """Entry point for the Social Session MCP server."""
    from ..core.config import LOG_LEVEL

    # stdout carries the stdio transport
    logging.basicConfig(
        level=LOG_LEVEL,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run(show_banner=False)
