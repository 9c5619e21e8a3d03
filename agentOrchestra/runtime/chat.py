"""Single-turn chat: route, call the agent's model, run requested tools."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from agentOrchestra.models.bus import ModelBus
from agentOrchestra.models.schema import AgentSpec, ChatMessage
from agentOrchestra.routing.router import RuleRouter
from agentOrchestra.tools.mcp.bridge import ToolProcessBridge
from agentOrchestra.tools.mcp.catalog import AvailableTool, ToolCall, ToolCallResult
from agentOrchestra.utils.errors import AgentNotFoundError
from agentOrchestra.utils.logging_utils import log_agent_response, log_user_message

LOGGER = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

TOOL_INSTRUCTIONS = """You can use the following tools:
{catalogue}

To use a tool, reply with only this JSON object and nothing else:
{{"tool_call": {{"server_id": "<server id>", "tool_name": "<tool name>", "arguments": {{}}}}}}
The tool result will be sent back to you. Otherwise answer normally."""

TOOL_LIMIT_NOTICE = "Tool limit reached: no more tools can be called. Answer the user with what you have."

TOOL_LIMIT_REPLY = "I could not finish this request within the allowed number of tool calls."


@dataclass(frozen=True, slots=True)
class ChatReply:
    agent_id: str
    output: str
    tool_calls: List[Tuple[ToolCall, ToolCallResult]] = field(default_factory=list)


def parse_tool_request(text: str) -> Optional[ToolCall]:
    """Return the tool call encoded in ``text``, or None for a normal answer."""
    candidate = text.strip()
    fenced = _FENCE_RE.match(candidate)
    if fenced:
        candidate = fenced.group(1)
    if not candidate.startswith("{"):
        return None

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        return None

    request = payload.get("tool_call") if isinstance(payload, dict) else None
    if not isinstance(request, dict) or not request.get("server_id") or not request.get("tool_name"):
        return None
    arguments = request.get("arguments") or {}
    if not isinstance(arguments, dict):
        return None
    return ToolCall(server_id=str(request["server_id"]), tool_name=str(request["tool_name"]), arguments=arguments)


def render_tool_catalogue(tools: Iterable[AvailableTool]) -> str:
    lines = []
    for item in tools:
        description = item.tool.description or "No description"
        schema = json.dumps(item.tool.schema_, ensure_ascii=False)
        lines.append(f"- server_id={item.server_id} tool_name={item.tool.name}: {description} (arguments schema: {schema})")
    return "\n".join(lines)


class ChatService:
    """Answers one message with a routed agent, optionally using tools."""

    def __init__(
        self,
        router: RuleRouter,
        model_bus: ModelBus,
        agents: Union[Mapping[str, AgentSpec], Iterable[AgentSpec]],
        bridge: Optional[ToolProcessBridge] = None,
        max_tool_rounds: int = 3,
    ):
        self.router = router
        self.model_bus = model_bus
        if isinstance(agents, Mapping):
            self.agents: Dict[str, AgentSpec] = dict(agents)
        else:
            self.agents = {agent.id: agent for agent in agents}
        self.bridge = bridge
        self.max_tool_rounds = max_tool_rounds

    async def chat(self, text: str, agent_id: Optional[str] = None) -> ChatReply:
        """Answer ``text``.

        Args:
            text: User message
            agent_id: Explicit agent; when omitted the router decides

        Raises:
            AgentNotFoundError: If the chosen agent is not configured
        """
        log_user_message(LOGGER, text)
        if agent_id is None:
            agent_id = self.router.route(text).agent_id
        agent = self.agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        messages: List[ChatMessage] = []
        system_prompt = await self._system_prompt(agent)
        if system_prompt:
            messages.append(ChatMessage.system(system_prompt))
        messages.append(ChatMessage.user(text))

        exchanges: List[Tuple[ToolCall, ToolCallResult]] = []
        while True:
            result = await self.model_bus.call(agent.model_id, messages, max_tokens=agent.max_tokens)
            output = result.text
            call = parse_tool_request(output) if self.bridge is not None else None
            if call is None:
                break
            if len(exchanges) >= self.max_tool_rounds:
                output = await self._final_answer(agent, messages, output)
                break

            tool_result = await self.bridge.execute_tool_call(call)
            exchanges.append((call, tool_result))
            messages.append(ChatMessage.assistant(output))
            if tool_result.success:
                messages.append(ChatMessage.tool(tool_result.content or ""))
            else:
                messages.append(ChatMessage.tool(f"Tool error: {tool_result.error}"))

        log_agent_response(LOGGER, f"[{agent.id}] {output}")
        return ChatReply(agent_id=agent.id, output=output, tool_calls=exchanges)

    async def _final_answer(self, agent: AgentSpec, messages: List[ChatMessage], request_text: str) -> str:
        """Ask once more for a plain answer after the tool budget is spent."""
        LOGGER.warning(f"[{agent.id}] Tool limit of {self.max_tool_rounds} round(s) reached, requesting final answer")

        final_messages = [m for m in messages if m.role != "system"]
        if agent.system_prompt:
            final_messages.insert(0, ChatMessage.system(agent.system_prompt))
        final_messages.append(ChatMessage.assistant(request_text))
        final_messages.append(ChatMessage.tool(TOOL_LIMIT_NOTICE))

        result = await self.model_bus.call(agent.model_id, final_messages, max_tokens=agent.max_tokens)
        if parse_tool_request(result.text) is not None:
            return TOOL_LIMIT_REPLY
        return result.text

    async def _system_prompt(self, agent: AgentSpec) -> Optional[str]:
        prompt = agent.system_prompt
        if self.bridge is None:
            return prompt

        tools = await self.bridge.get_available_tools()
        if agent.tools:
            allowed = set(agent.tools)
            tools = [t for t in tools if t.server_id in allowed or t.tool.id in allowed]
        if not tools:
            return prompt

        instructions = TOOL_INSTRUCTIONS.format(catalogue=render_tool_catalogue(tools))
        return f"{prompt}\n\n{instructions}" if prompt else instructions
