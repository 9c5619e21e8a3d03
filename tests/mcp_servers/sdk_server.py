#!/usr/bin/env python3
"""Stdio tool server built on the official MCP SDK.

Checks that the bridge interoperates with a real implementation. Tools:
- echo: Echo back the input message
- add: Add two numbers
- env: Read an environment variable of the server process
- fail: Raise, which the SDK reports as an ``isError`` result

Usage:
    python sdk_server.py
"""

import asyncio
import os
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

app = Server("orchestra-sdk-test-server")


@app.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="echo",
            description="Echo back the input message",
            inputSchema={
                "type": "object",
                "properties": {"message": {"type": "string"}},
                "required": ["message"],
            },
        ),
        Tool(
            name="add",
            description="Add two numbers together",
            inputSchema={
                "type": "object",
                "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
                "required": ["a", "b"],
            },
        ),
        Tool(
            name="env",
            description="Read an environment variable",
            inputSchema={"type": "object", "properties": {"name": {"type": "string"}}},
        ),
        Tool(name="fail", description="Always fails", inputSchema={"type": "object", "properties": {}}),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    if name == "echo":
        return [TextContent(type="text", text=f"Echo: {arguments.get('message', '')}")]
    if name == "add":
        a = arguments.get("a", 0)
        b = arguments.get("b", 0)
        return [TextContent(type="text", text=f"{a} + {b} = {a + b}")]
    if name == "env":
        return [TextContent(type="text", text=os.environ.get(arguments.get("name", ""), "<unset>"))]
    if name == "fail":
        raise RuntimeError("deliberate failure")
    raise ValueError(f"Unknown tool: {name}")


async def main():
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
