"""Stdio tool server integration (newline-delimited JSON-RPC)."""

from .bridge import ToolProcessBridge, extract_result_text
from .catalog import (
    AvailableTool,
    McpServer,
    McpTool,
    StaticToolCatalog,
    ToolCall,
    ToolCallResult,
    ToolServerCatalog,
)
from .connection import PROTOCOL_VERSION, StdioToolProcess, resolve_env

__all__ = [
    "AvailableTool",
    "McpServer",
    "McpTool",
    "PROTOCOL_VERSION",
    "StaticToolCatalog",
    "StdioToolProcess",
    "ToolCall",
    "ToolCallResult",
    "ToolProcessBridge",
    "ToolServerCatalog",
    "extract_result_text",
    "resolve_env",
]
