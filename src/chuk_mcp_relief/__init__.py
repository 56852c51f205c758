"""
chuk-mcp-relief: Layered Relief Model MCP Server

Turns a map viewport into a stack of laser-cut SVG layers, one per
elevation band, from Terrarium elevation tiles. Finished bundles are stored
in chuk-artifacts for download.
"""
