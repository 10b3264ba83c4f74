"""
Flow EVM MCP server package.

This package exposes LLM-friendly tools backed by a Flow EVM JSON-RPC node.
Each tool validates its arguments, performs at most one JSON-RPC call and
renders the result as plain text. See DESIGN.md for full details.
"""

__all__ = ["config"]
