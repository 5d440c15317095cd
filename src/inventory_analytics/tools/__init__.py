"""MCP tool registrations for the inventory analytics server."""
