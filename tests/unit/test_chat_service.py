"""Unit tests for the chat service and its tool-call loop."""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from agentOrchestra.models import AgentSpec, ChatResult
from agentOrchestra.routing import RuleRouter
from agentOrchestra.runtime.chat import TOOL_LIMIT_NOTICE, TOOL_LIMIT_REPLY, ChatService, parse_tool_request
from agentOrchestra.tools.mcp import AvailableTool, McpTool, ToolCall, ToolCallResult
from agentOrchestra.utils.errors import AgentNotFoundError

AGENTS = [
    AgentSpec(id="generalist", model_id="mini", system_prompt="Be helpful."),
    AgentSpec(id="coder", model_id="big"),
]


def _tool_request(server_id="clock", tool_name="now", arguments=None):
    return json.dumps({"tool_call": {"server_id": server_id, "tool_name": tool_name, "arguments": arguments or {}}})


def _bus(*texts):
    bus = MagicMock()
    bus.call = AsyncMock(side_effect=[ChatResult(text=t) for t in texts])
    return bus


def _bridge(results):
    bridge = MagicMock()
    bridge.get_available_tools = AsyncMock(
        return_value=[
            AvailableTool(
                server_id="clock",
                server_name="Clock",
                tool=McpTool(id="clock:now", server_id="clock", name="now", description="Current time"),
            )
        ]
    )
    bridge.execute_tool_call = AsyncMock(side_effect=results)
    return bridge


@pytest.fixture
def router():
    return RuleRouter([("code", "coder")], fallback="generalist")


class TestParseToolRequest:
    def test_plain_text_is_not_a_request(self):
        assert parse_tool_request("The answer is 4.") is None

    def test_json_request(self):
        call = parse_tool_request(_tool_request(arguments={"tz": "UTC"}))
        assert call == ToolCall(server_id="clock", tool_name="now", arguments={"tz": "UTC"})

    def test_fenced_json_request(self):
        text = f"```json\n{_tool_request()}\n```"
        assert parse_tool_request(text).tool_name == "now"

    @pytest.mark.parametrize(
        "text",
        [
            '{"tool_call": {"server_id": "clock"}}',
            '{"something": "else"}',
            '{"tool_call": {"server_id": "a", "tool_name": "b", "arguments": [1]}}',
            "{not json",
        ],
    )
    def test_incomplete_requests_ignored(self, text):
        assert parse_tool_request(text) is None


class TestChatService:
    """Routing, prompts and tool rounds"""

    @pytest.mark.asyncio
    async def test_routes_and_answers(self, router):
        bus = _bus("def f(): pass")
        service = ChatService(router, bus, AGENTS)

        reply = await service.chat("write code please")

        assert reply.agent_id == "coder"
        assert reply.output == "def f(): pass"
        assert reply.tool_calls == []
        model_id, messages = bus.call.await_args.args
        assert model_id == "big"
        assert [m.role for m in messages] == ["user"]

    @pytest.mark.asyncio
    async def test_explicit_agent_and_system_prompt(self, router):
        bus = _bus("hi")
        service = ChatService(router, bus, AGENTS)

        reply = await service.chat("write code please", agent_id="generalist")

        assert reply.agent_id == "generalist"
        messages = bus.call.await_args.args[1]
        assert messages[0].role == "system"
        assert messages[0].content == "Be helpful."

    @pytest.mark.asyncio
    async def test_unknown_agent(self, router):
        service = ChatService(router, _bus(), AGENTS)
        with pytest.raises(AgentNotFoundError):
            await service.chat("hello", agent_id="ghost")

    @pytest.mark.asyncio
    async def test_tool_round_trip(self, router):
        bus = _bus(_tool_request(), "It is noon.")
        bridge = _bridge([ToolCallResult(success=True, content="12:00")])
        service = ChatService(router, bus, AGENTS, bridge=bridge)

        reply = await service.chat("what time is it")

        assert reply.output == "It is noon."
        assert len(reply.tool_calls) == 1
        call, result = reply.tool_calls[0]
        assert call.server_id == "clock"
        assert result.content == "12:00"

        first_messages = bus.call.await_args_list[0].args[1]
        assert "server_id=clock tool_name=now" in first_messages[0].content
        assert first_messages[0].content.startswith("Be helpful.")

        second_messages = bus.call.await_args_list[1].args[1]
        assert [m.role for m in second_messages][-2:] == ["assistant", "tool"]
        assert second_messages[-1].content == "12:00"

    @pytest.mark.asyncio
    async def test_tool_error_fed_back(self, router):
        bus = _bus(_tool_request(), "Sorry, the clock is broken.")
        bridge = _bridge([ToolCallResult(success=False, error="Request timeout")])
        service = ChatService(router, bus, AGENTS, bridge=bridge)

        reply = await service.chat("what time is it")

        second_messages = bus.call.await_args_list[1].args[1]
        assert second_messages[-1].content == "Tool error: Request timeout"
        assert reply.output == "Sorry, the clock is broken."

    @pytest.mark.asyncio
    async def test_tool_rounds_are_bounded(self, router):
        bus = _bus(_tool_request(), _tool_request(), _tool_request(), "Best guess: noon.")
        bridge = _bridge([ToolCallResult(success=True, content="x")] * 2)
        service = ChatService(router, bus, AGENTS, bridge=bridge, max_tool_rounds=2)

        reply = await service.chat("loop forever")

        assert bus.call.await_count == 4
        assert bridge.execute_tool_call.await_count == 2
        assert len(reply.tool_calls) == 2
        assert reply.output == "Best guess: noon."

        final_messages = bus.call.await_args_list[-1].args[1]
        assert final_messages[0].content == "Be helpful."
        assert "server_id=clock" not in final_messages[0].content
        assert final_messages[-1].role == "tool"
        assert final_messages[-1].content == TOOL_LIMIT_NOTICE

    @pytest.mark.asyncio
    async def test_model_that_always_requests_tools_gets_plain_reply(self, router):
        bus = MagicMock()
        bus.call = AsyncMock(return_value=ChatResult(text=_tool_request(server_id="s", tool_name="t")))
        bridge = _bridge([ToolCallResult(success=True, content="x")])
        service = ChatService(router, bus, AGENTS, bridge=bridge, max_tool_rounds=1)

        reply = await service.chat("what time is it")

        assert reply.output == TOOL_LIMIT_REPLY
        assert parse_tool_request(reply.output) is None
        assert bridge.execute_tool_call.await_count == 1
        assert bus.call.await_count == 3

    @pytest.mark.asyncio
    async def test_without_tools_no_catalogue(self, router):
        bus = _bus("plain")
        bridge = _bridge([])
        bridge.get_available_tools = AsyncMock(return_value=[])
        service = ChatService(router, bus, AGENTS, bridge=bridge)

        await service.chat("hello")

        messages = bus.call.await_args.args[1]
        assert messages[0].content == "Be helpful."
