"""Pytest fixtures for tool bridge tests."""

import sys
from pathlib import Path

import pytest

from agentOrchestra.tools.mcp import McpServer, McpTool, StaticToolCatalog, ToolProcessBridge

SERVERS_DIR = Path(__file__).parent.parent / "mcp_servers"


@pytest.fixture
def line_server_path():
    """Path to the scripted line-protocol server."""
    return SERVERS_DIR / "line_server.py"


@pytest.fixture
def sdk_server_path():
    """Path to the MCP SDK based server."""
    return SERVERS_DIR / "sdk_server.py"


@pytest.fixture
def test_catalog(line_server_path, sdk_server_path):
    """Catalog with one live server, one disabled server and one SDK server."""
    python_exe = sys.executable  # Use current Python interpreter

    servers = [
        McpServer(
            id="line",
            name="Line Server",
            command=python_exe,
            args=[str(line_server_path)],
            env={"GREETING": "${ORCHESTRA_TEST_GREETING}", "PLAIN": "plain-value"},
        ),
        McpServer(
            id="off",
            name="Disabled Server",
            command=python_exe,
            args=[str(line_server_path)],
            enabled=False,
        ),
        McpServer(
            id="sdk",
            name="SDK Server",
            command=python_exe,
            args=[str(sdk_server_path)],
        ),
    ]
    tools = [
        McpTool(id="line:echo", server_id="line", name="echo", description="Echo back a message"),
        McpTool(id="line:pid", server_id="line", name="pid", enabled=False),
        McpTool(id="off:echo", server_id="off", name="echo"),
        McpTool(id="sdk:add", server_id="sdk", name="add", description="Add two numbers"),
    ]
    return StaticToolCatalog(servers, tools)


@pytest.fixture
async def bridge(test_catalog):
    """Bridge with short timeouts; every process is shut down afterwards."""
    bridge = ToolProcessBridge(test_catalog, request_timeout=2.0, startup_timeout=10.0)
    yield bridge

    # Cleanup
    await bridge.shutdown()


@pytest.fixture
async def fast_bridge(test_catalog):
    """Bridge with a sub-second request timeout for timeout tests."""
    bridge = ToolProcessBridge(test_catalog, request_timeout=0.5, startup_timeout=10.0)
    yield bridge

    await bridge.shutdown()
