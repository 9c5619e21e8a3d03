"""Stdio child process speaking newline-delimited JSON-RPC."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from agentOrchestra.utils.errors import ToolProtocolError, ToolSpawnError, ToolTimeoutError

LOGGER = logging.getLogger(__name__)
PROCESS_LOGGER = logging.getLogger("agentOrchestra.tools.mcp.process")

PROTOCOL_VERSION = "2024-11-05"
JSONRPC_METHOD_NOT_FOUND = -32601
STREAM_LIMIT = 16 * 1024 * 1024


def resolve_env(overrides: Dict[str, str]) -> Dict[str, str]:
    """Return ``os.environ`` merged with ``overrides``.

    Values written as ``${NAME}`` are looked up in the current environment.
    """
    full_env = os.environ.copy()
    for key, value in overrides.items():
        if value.startswith("${") and value.endswith("}"):
            full_env[key] = os.environ.get(value[2:-1], "")
        else:
            full_env[key] = value
    return full_env


class StdioToolProcess:
    """One spawned tool server and its outstanding requests.

    Requests are correlated by id, so responses may arrive in any order.
    When the process exits, every outstanding request fails.
    """

    def __init__(
        self,
        server_id: str,
        command: str,
        args: List[str],
        env: Dict[str, str],
        next_id: Callable[[], int],
        on_exit: Optional[Callable[["StdioToolProcess"], None]] = None,
    ):
        self.server_id = server_id
        self.command = command
        self.args = args
        self.env = env
        self._next_id = next_id
        self._on_exit = on_exit
        self._process: Optional[asyncio.subprocess.Process] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._write_lock = asyncio.Lock()
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.returncode is None and not self._closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        """Spawn the child process and start the stdout/stderr readers."""
        LOGGER.debug(f"  Starting stdio server: {self.command} {' '.join(self.args)}")
        try:
            self._process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                env=resolve_env(self.env),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise ToolSpawnError(f"Failed to start MCP server {self.server_id}: {e}") from e

        self._reader_task = asyncio.create_task(self._read_stdout(), name=f"mcp-stdout-{self.server_id}")
        self._stderr_task = asyncio.create_task(self._read_stderr(), name=f"mcp-stderr-{self.server_id}")

    async def initialize(self, client_name: str, client_version: str, timeout: float) -> Dict[str, Any]:
        """Run the ``initialize`` handshake and announce readiness."""
        result = await self.request(
            "initialize",
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": client_name, "version": client_version},
            },
            timeout=timeout,
        )
        await self.notify("notifications/initialized")
        LOGGER.debug(f"  ✓ Stdio connection established for server: {self.server_id}")
        return result or {}

    async def request(self, method: str, params: Optional[Dict[str, Any]] = None, *, timeout: float) -> Any:
        """Send a request and wait for the matching response.

        Raises:
            ToolTimeoutError: No response within ``timeout`` seconds
            ToolProtocolError: RPC error, write failure or process exit
        """
        if not self.is_alive:
            raise ToolProtocolError(f"MCP server process is not running: {self.server_id}")

        request_id = self._next_id()
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            await self._write({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or {}})
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise ToolTimeoutError(
                f"Request timeout: {method} on {self.server_id} after {timeout}s",
                details={"server_id": self.server_id, "method": method, "id": request_id},
            ) from None
        finally:
            self._pending.pop(request_id, None)

    async def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        await self._write(message)

    async def close(self, grace: float = 5.0) -> None:
        """Terminate the process, escalating to kill after ``grace`` seconds."""
        self._closed = True
        process = self._process
        if process is not None and process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=grace)
            except asyncio.TimeoutError:
                LOGGER.warning(f"  MCP server {self.server_id} ignored terminate, killing")
                process.kill()
                await process.wait()
            except ProcessLookupError:
                pass

        for task in (self._reader_task, self._stderr_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._fail_pending(ToolProtocolError(f"MCP server {self.server_id} was shut down"))
        LOGGER.debug(f"  ✓ Closed stdio process for server: {self.server_id}")

    async def _write(self, message: Dict[str, Any]) -> None:
        assert self._process is not None and self._process.stdin is not None
        line = json.dumps(message, ensure_ascii=False) + "\n"
        async with self._write_lock:
            try:
                self._process.stdin.write(line.encode("utf-8"))
                await self._process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as e:
                raise ToolProtocolError(f"Failed to write to MCP server {self.server_id}: {e}") from e

    async def _read_stdout(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout
        while True:
            try:
                raw = await stdout.readline()
            except ValueError as e:
                LOGGER.warning(f"  Dropping oversized line from {self.server_id}: {e}")
                continue
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                LOGGER.warning(f"  Malformed line from {self.server_id}: {line[:200]}")
                continue
            if not isinstance(message, dict):
                LOGGER.warning(f"  Unexpected message from {self.server_id}: {line[:200]}")
                continue
            await self._dispatch(message)

        returncode = await self._process.wait()
        LOGGER.info(f"MCP server {self.server_id} exited with code {returncode}")
        if self._closed:
            self._fail_pending(ToolProtocolError(f"MCP server {self.server_id} was shut down"))
        else:
            self._fail_pending(ToolProtocolError(f"MCP server {self.server_id} exited with code {returncode}"))
        if self._on_exit is not None:
            self._on_exit(self)

    async def _read_stderr(self) -> None:
        assert self._process is not None and self._process.stderr is not None
        while True:
            raw = await self._process.stderr.readline()
            if not raw:
                break
            PROCESS_LOGGER.debug(f"[{self.server_id}] {raw.decode('utf-8', errors='replace').rstrip()}")

    async def _dispatch(self, message: Dict[str, Any]) -> None:
        if "method" in message:
            if "id" in message:
                LOGGER.debug(f"  Rejecting server request {message['method']} from {self.server_id}")
                try:
                    await self._write(
                        {
                            "jsonrpc": "2.0",
                            "id": message["id"],
                            "error": {"code": JSONRPC_METHOD_NOT_FOUND, "message": "Method not found"},
                        }
                    )
                except ToolProtocolError as e:
                    LOGGER.warning(f"  {e}")
            else:
                LOGGER.debug(f"  Notification from {self.server_id}: {message['method']}")
            return

        response_id = message.get("id")
        future = self._pending.pop(response_id, None) if isinstance(response_id, int) else None
        if future is None:
            LOGGER.debug(f"  Dropping unmatched response id={response_id} from {self.server_id}")
            return
        if future.done():
            return

        error = message.get("error")
        if error is not None:
            text = error.get("message") if isinstance(error, dict) else str(error)
            future.set_exception(ToolProtocolError(text or "Unknown MCP error", details={"error": error}))
        else:
            future.set_result(message.get("result"))

    def _fail_pending(self, error: Exception) -> None:
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)
