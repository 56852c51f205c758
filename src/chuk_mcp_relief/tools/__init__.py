"""MCP tool modules for chuk-mcp-relief."""
