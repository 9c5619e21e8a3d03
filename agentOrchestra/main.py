"""Command line entry point for agent-orchestra.

Usage:
    agent-orchestra chat "refactor this function" [--agent coder]
    agent-orchestra plan "write a release note" [--execute]
    agent-orchestra tools
    agent-orchestra call time get_current_time --args '{"timezone": "UTC"}'
    agent-orchestra route "write a poem"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from agentOrchestra.runtime import Application, build_application
from agentOrchestra.tools.mcp import ToolCall
from agentOrchestra.utils import OrchestraError, get_logger, handle_model_error, log_error


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="agent-orchestra",
        description="Agent orchestration: routing, planning and tool calls",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat = subparsers.add_parser("chat", help="Send one message to a routed agent")
    chat.add_argument("text", help="Message text")
    chat.add_argument("--agent", default=None, help="Agent id (skips routing)")

    plan = subparsers.add_parser("plan", help="Decompose a goal into steps")
    plan.add_argument("goal", help="Goal to plan")
    plan.add_argument("--execute", action="store_true", help="Run the plan after generating it")

    subparsers.add_parser("tools", help="List enabled tools of enabled servers")

    call = subparsers.add_parser("call", help="Call one tool directly")
    call.add_argument("server", help="Tool server id")
    call.add_argument("tool", help="Tool name")
    call.add_argument("--args", default="{}", help="Tool arguments as a JSON object")

    route = subparsers.add_parser("route", help="Show which agent would handle a message")
    route.add_argument("text", help="Message text")

    return parser.parse_args(argv)


async def run_command(app: Application, args: argparse.Namespace) -> int:
    if args.command == "route":
        decision = app.router.route(args.text)
        print(json.dumps(decision.model_dump(exclude_none=True), ensure_ascii=False, indent=2))
        return 0

    if args.command == "chat":
        reply = await app.chat.chat(args.text, agent_id=args.agent)
        for call, result in reply.tool_calls:
            status = "ok" if result.success else f"error: {result.error}"
            print(f"[tool] {call.server_id}.{call.tool_name} -> {status}")
        print(f"{reply.agent_id}> {reply.output}")
        return 0

    if args.command == "plan":
        if not args.execute:
            plan = await app.planner.generate_plan(args.goal)
            print(plan.model_dump_json(indent=2))
            return 0
        summary = await app.planner.plan_and_execute(args.goal)
        print(summary.model_dump_json(indent=2))
        return 0 if summary.status == "completed" else 1

    if args.command == "tools":
        tools = await app.bridge.get_available_tools()
        if not tools:
            print("No tools available")
        for item in tools:
            print(f"{item.server_id}.{item.tool.name}: {item.tool.description or ''}")
        return 0

    if args.command == "call":
        try:
            arguments = json.loads(args.args)
        except json.JSONDecodeError as e:
            print(f"Invalid --args JSON: {e}", file=sys.stderr)
            return 2
        result = await app.bridge.execute_tool_call(
            ToolCall(server_id=args.server, tool_name=args.tool, arguments=arguments)
        )
        if result.success:
            print(result.content)
            return 0
        print(f"Tool call failed: {result.error}", file=sys.stderr)
        return 1

    print(f"Unknown command: {args.command}", file=sys.stderr)
    return 2


async def async_main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = get_logger()

    try:
        app = build_application()
    except OrchestraError as e:
        log_error(logger, e, context="startup")
        print(f"Startup failed: {e}", file=sys.stderr)
        return 2

    try:
        return await run_command(app, args)
    except OrchestraError as e:
        log_error(logger, e, context=f"command={args.command}")
        print(f"Error: {handle_model_error(e)}", file=sys.stderr)
        return 1
    finally:
        await app.aclose()


def main() -> None:
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
