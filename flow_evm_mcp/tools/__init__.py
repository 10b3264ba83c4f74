"""LLM-facing tool implementations."""

from .network import get_block_number, get_chain_id, get_gas_price, get_network_info
from .account import check_coa, get_balance, get_code
from .contracts import call_contract, get_logs, send_raw_transaction
from .results import ToolResult
from . import validators

__all__ = [
    "get_network_info",
    "get_chain_id",
    "get_gas_price",
    "get_block_number",
    "get_balance",
    "get_code",
    "check_coa",
    "call_contract",
    "get_logs",
    "send_raw_transaction",
    "ToolResult",
    "validators",
]
