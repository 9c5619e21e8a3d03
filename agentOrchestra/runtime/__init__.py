"""Runtime services and application assembly."""

from .app import Application, build_application
from .chat import ChatReply, ChatService, parse_tool_request
from .planner_service import PlannerService, RunSummary, generate_run_id

__all__ = [
    "Application",
    "build_application",
    "ChatReply",
    "ChatService",
    "parse_tool_request",
    "PlannerService",
    "RunSummary",
    "generate_run_id",
]
