"""Tool server catalog: which servers and tools exist and which are enabled."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

LOGGER = logging.getLogger(__name__)


class McpServer(BaseModel):
    id: str
    name: str
    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    enabled: bool = True
    description: Optional[str] = None


class McpTool(BaseModel):
    id: str
    server_id: str
    name: str
    description: Optional[str] = None
    schema_: Dict[str, Any] = Field(default_factory=dict, alias="schema")
    enabled: bool = True

    model_config = ConfigDict(populate_by_name=True)


class AvailableTool(BaseModel):
    server_id: str
    server_name: str
    tool: McpTool


class ToolCall(BaseModel):
    server_id: str
    tool_name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolCallResult(BaseModel):
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None


@runtime_checkable
class ToolServerCatalog(Protocol):
    """Lookup contract the bridge consults before spawning anything."""

    async def find_server_by_id(self, server_id: str) -> Optional[McpServer]:
        ...

    async def find_enabled_servers(self) -> List[McpServer]:
        ...

    async def find_enabled_tools_by_server_id(self, server_id: str) -> List[McpTool]:
        ...


class StaticToolCatalog:
    """In-memory catalog, normally built from the ``tool_servers`` config section."""

    def __init__(self, servers: Optional[List[McpServer]] = None, tools: Optional[List[McpTool]] = None):
        self._servers: Dict[str, McpServer] = {s.id: s for s in servers or []}
        self._tools: List[McpTool] = list(tools or [])

    @classmethod
    def from_config(cls, tool_servers: Mapping[str, Any]) -> "StaticToolCatalog":
        """Build from ``{server_id: ToolServerConfig | dict}``."""
        servers: List[McpServer] = []
        tools: List[McpTool] = []

        for server_id, cfg in tool_servers.items():
            data = cfg.model_dump(by_alias=True) if hasattr(cfg, "model_dump") else dict(cfg)
            servers.append(
                McpServer(
                    id=server_id,
                    name=data.get("name") or server_id,
                    command=data["command"],
                    args=[str(a) for a in data.get("args") or []],
                    env={k: str(v) for k, v in (data.get("env") or {}).items()},
                    enabled=data.get("enabled", True),
                    description=data.get("description"),
                )
            )
            for tool_name, tool_cfg in (data.get("tools") or {}).items():
                tool_cfg = tool_cfg or {}
                tools.append(
                    McpTool(
                        id=f"{server_id}:{tool_name}",
                        server_id=server_id,
                        name=tool_name,
                        description=tool_cfg.get("description"),
                        schema=tool_cfg.get("schema") or {},
                        enabled=tool_cfg.get("enabled", True),
                    )
                )
            LOGGER.debug(f"  Registered tool server: {server_id}")

        return cls(servers, tools)

    async def find_server_by_id(self, server_id: str) -> Optional[McpServer]:
        return self._servers.get(server_id)

    async def find_enabled_servers(self) -> List[McpServer]:
        return [s for s in self._servers.values() if s.enabled]

    async def find_enabled_tools_by_server_id(self, server_id: str) -> List[McpTool]:
        return [t for t in self._tools if t.server_id == server_id and t.enabled]
