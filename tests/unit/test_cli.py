"""Unit tests for the command line entry point."""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from agentOrchestra.main import async_main, parse_args, run_command
from agentOrchestra.models import RouteDecision
from agentOrchestra.tools.mcp import ToolCallResult


def _app():
    app = MagicMock()
    app.aclose = AsyncMock()
    app.router.route.return_value = RouteDecision(agent_id="coder", confidence=0.9, reasoning="Matched rule: code")
    app.bridge.execute_tool_call = AsyncMock(return_value=ToolCallResult(success=True, content="12:00"))
    return app


class TestCli:
    def test_parse_call_arguments(self):
        args = parse_args(["call", "time", "now", "--args", '{"tz": "UTC"}'])
        assert (args.command, args.server, args.tool, args.args) == ("call", "time", "now", '{"tz": "UTC"}')

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    @pytest.mark.asyncio
    async def test_route_prints_decision(self, capsys):
        code = await run_command(_app(), parse_args(["route", "code please"]))

        assert code == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed["agent_id"] == "coder"
        assert printed["confidence"] == 0.9

    @pytest.mark.asyncio
    async def test_call_passes_arguments(self, capsys):
        app = _app()
        code = await run_command(app, parse_args(["call", "time", "now", "--args", '{"tz": "UTC"}']))

        assert code == 0
        call = app.bridge.execute_tool_call.await_args.args[0]
        assert call.server_id == "time"
        assert call.arguments == {"tz": "UTC"}
        assert capsys.readouterr().out.strip() == "12:00"

    @pytest.mark.asyncio
    async def test_call_rejects_bad_json(self):
        code = await run_command(_app(), parse_args(["call", "time", "now", "--args", "{oops"]))
        assert code == 2

    @pytest.mark.asyncio
    async def test_app_closed_after_command(self):
        app = _app()
        with patch("agentOrchestra.main.build_application", return_value=app), patch(
            "agentOrchestra.main.get_logger"
        ):
            code = await async_main(["route", "hello"])

        assert code == 0
        app.aclose.assert_awaited_once()
