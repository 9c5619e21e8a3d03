"""Tool process bridge: lazy spawning, reuse and shutdown of stdio tool servers."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections import defaultdict
from typing import Any, Dict, List

from agentOrchestra.utils.errors import (
    ToolServerDisabledError,
    ToolServerNotFoundError,
    ToolSpawnError,
)
from agentOrchestra.utils.logging_utils import log_tool_call, log_tool_result

from .catalog import AvailableTool, McpServer, ToolCall, ToolCallResult, ToolServerCatalog
from .connection import StdioToolProcess

LOGGER = logging.getLogger(__name__)

DEFAULT_CLIENT_NAME = "agent-orchestra"
DEFAULT_CLIENT_VERSION = "0.1.0"


class ToolProcessBridge:
    """
    Runs tool calls against stdio tool servers.

    Features:
    - Lazy startup: a server is spawned on its first tool call
    - Reuse: one live process per server id, shared by concurrent callers
    - Cleanup: every process terminated on shutdown
    """

    def __init__(
        self,
        catalog: ToolServerCatalog,
        request_timeout: float = 30.0,
        startup_timeout: float = 30.0,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ):
        self.catalog = catalog
        self.request_timeout = request_timeout
        self.startup_timeout = startup_timeout
        self.client_name = client_name
        self.client_version = client_version
        self._processes: Dict[str, StdioToolProcess] = {}
        self._spawn_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._ids = itertools.count(1)

    async def get_or_spawn_process(self, server: McpServer) -> StdioToolProcess:
        """Return the live process for ``server``, spawning it if needed.

        Raises:
            ToolSpawnError: If the process cannot be started or initialized
        """
        async with self._spawn_locks[server.id]:
            existing = self._processes.get(server.id)
            if existing is not None and existing.is_alive:
                return existing

            LOGGER.info(f"🚀 Starting MCP server: {server.id}")
            process = StdioToolProcess(
                server_id=server.id,
                command=server.command,
                args=list(server.args),
                env=dict(server.env),
                next_id=lambda: next(self._ids),
                on_exit=self._forget,
            )
            await process.start()
            try:
                await process.initialize(self.client_name, self.client_version, timeout=self.startup_timeout)
            except asyncio.CancelledError:
                await process.close()
                raise
            except Exception as e:
                await process.close()
                raise ToolSpawnError(f"Failed to initialize MCP server '{server.id}': {e}") from e

            self._processes[server.id] = process
            LOGGER.info(f"  ✓ MCP server started: {server.id} (pid: {process.pid})")
            return process

    async def execute_tool_call(self, call: ToolCall) -> ToolCallResult:
        """Run one tool call. Failures come back as ``success=False``."""
        log_tool_call(LOGGER, call.server_id, call.tool_name, call.arguments)
        try:
            server = await self._resolve_server(call.server_id)
            process = await self.get_or_spawn_process(server)
            result = await process.request(
                "tools/call",
                {"name": call.tool_name, "arguments": call.arguments},
                timeout=self.request_timeout,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            LOGGER.error(f"  ✗ Tool call {call.server_id}/{call.tool_name} failed: {e}")
            return ToolCallResult(success=False, error=str(e))

        text = extract_result_text(result)
        if isinstance(result, dict) and result.get("isError"):
            log_tool_result(LOGGER, call.tool_name, text, success=False)
            return ToolCallResult(success=False, error=text)

        log_tool_result(LOGGER, call.tool_name, text, success=True)
        return ToolCallResult(success=True, content=text)

    async def list_server_tools(self, server_id: str) -> List[Dict[str, Any]]:
        """Ask a server which tools it advertises (spawns it if needed)."""
        server = await self._resolve_server(server_id)
        process = await self.get_or_spawn_process(server)
        result = await process.request("tools/list", {}, timeout=self.request_timeout)
        return list((result or {}).get("tools", []))

    async def get_available_tools(self) -> List[AvailableTool]:
        """Enabled tools of enabled servers, straight from the catalog."""
        available: List[AvailableTool] = []
        for server in await self.catalog.find_enabled_servers():
            for tool in await self.catalog.find_enabled_tools_by_server_id(server.id):
                available.append(AvailableTool(server_id=server.id, server_name=server.name, tool=tool))
        return available

    async def shutdown(self) -> None:
        """Terminate every tracked process and fail their outstanding requests."""
        processes, self._processes = self._processes, {}
        if not processes:
            return

        LOGGER.info(f"Shutting down {len(processes)} MCP server(s)...")
        for server_id, process in processes.items():
            try:
                await process.close()
                LOGGER.info(f"  ✓ Closed: {server_id}")
            except Exception as e:
                LOGGER.error(f"  ✗ Failed to close {server_id}: {e}")

    def is_running(self, server_id: str) -> bool:
        process = self._processes.get(server_id)
        return process is not None and process.is_alive

    def list_running_servers(self) -> List[str]:
        return [sid for sid, process in self._processes.items() if process.is_alive]

    async def _resolve_server(self, server_id: str) -> McpServer:
        server = await self.catalog.find_server_by_id(server_id)
        if server is None:
            raise ToolServerNotFoundError(server_id)
        if not server.enabled:
            raise ToolServerDisabledError(server.name)
        return server

    def _forget(self, process: StdioToolProcess) -> None:
        if self._processes.get(process.server_id) is process:
            del self._processes[process.server_id]
            LOGGER.info(f"MCP server {process.server_id} removed from process table")


def extract_result_text(result: Any) -> str:
    """Text of the first content block, or the whole result as JSON."""
    if isinstance(result, dict):
        content = result.get("content")
        if isinstance(content, list) and content:
            first = content[0]
            if isinstance(first, dict) and first.get("text"):
                return str(first["text"])
    return json.dumps(result, ensure_ascii=False)


__all__ = ["ToolProcessBridge", "extract_result_text"]
