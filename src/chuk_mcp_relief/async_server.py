#!/usr/bin/env python3
"""
Async Relief MCP Server using chuk-mcp-server

Layered relief model export: fetches Terrarium elevation tiles for a
viewport, slices the terrain into elevation bands and writes one laser-cut
SVG per band, zipped and stored in chuk-artifacts.

Storage is managed through chuk-mcp-server's built-in artifact store context.
"""

import logging

from chuk_mcp_server import ChukMCPServer

from .constants import ServerConfig
from .core.relief_manager import ReliefManager
from .tools.discovery import register_discovery_tools
from .tools.export import register_export_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer(ServerConfig.NAME)

# Create relief manager instance
manager = ReliefManager()

# Register all tool modules
register_discovery_tools(mcp, manager)
register_export_tools(mcp, manager)

# Run the server
if __name__ == "__main__":
    logger.info("Starting Relief MCP Server...")
    logger.info("Storage: Using chuk-mcp-server artifact store context")
    mcp.run(stdio=True)
