"""
Inventory transaction analytics - ledger, statistics and reports served over MCP.
"""

__version__ = "0.1.0"
