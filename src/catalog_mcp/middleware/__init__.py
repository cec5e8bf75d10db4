# src/catalog_mcp/middleware/__init__.py
"""Request admission checks that run ahead of protocol dispatch."""
