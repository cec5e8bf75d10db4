# src/catalog_mcp/rpc/__init__.py
"""JSON-RPC dispatch and the catalog tools it exposes."""

from .dispatcher import RpcDispatcher, RpcMethod, RpcOutcome
from .tools import TOOLS, ToolError, ToolHandler, ToolName

__all__ = [
    "RpcDispatcher", "RpcMethod", "RpcOutcome",
    "TOOLS", "ToolError", "ToolHandler", "ToolName",
]
