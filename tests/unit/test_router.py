"""Unit tests for rule-based routing."""

import re

import pytest

from agentOrchestra.config import RoutingConfig
from agentOrchestra.routing import FALLBACK_CONFIDENCE, RULE_CONFIDENCE, RoutingRule, RuleRouter
from agentOrchestra.utils.errors import ConfigError


@pytest.fixture
def router():
    return RuleRouter(
        [
            (r"\b(code|bug|function)\b", "coder"),
            (r"write|draft", "writer"),
            (r"bug", "debugger"),
        ],
        fallback="generalist",
    )


class TestRuleRouter:
    """Rule matching and fallback"""

    def test_no_match_uses_fallback(self, router):
        decision = router.route("what is the weather like")
        assert decision.agent_id == "generalist"
        assert decision.confidence == FALLBACK_CONFIDENCE == 0.5
        assert decision.reasoning == "Fallback"

    def test_first_matching_rule_wins(self, router):
        decision = router.route("please fix this bug")
        assert decision.agent_id == "coder"
        assert decision.confidence == RULE_CONFIDENCE == 0.9
        assert decision.reasoning.startswith("Matched rule: ")

    def test_matching_is_case_insensitive(self, router):
        assert router.route("DRAFT a blog post").agent_id == "writer"

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_text_falls_back(self, router, text):
        assert router.route(text).agent_id == "generalist"

    def test_no_rules(self):
        assert RuleRouter([], fallback="solo").route("anything").agent_id == "solo"

    def test_invalid_pattern_rejected(self):
        with pytest.raises(ConfigError, match="Invalid routing pattern"):
            RuleRouter([("(unclosed", "coder")], fallback="generalist")

    def test_missing_fallback_rejected(self):
        with pytest.raises(ConfigError):
            RuleRouter([], fallback="")

    def test_precompiled_patterns_accepted(self):
        rule = RoutingRule.compile(re.compile("sql"), "dba")
        router = RuleRouter([rule], fallback="generalist")
        assert router.route("Optimize this SQL").agent_id == "dba"
        assert router.rules == (rule,)

    def test_from_config(self):
        config = RoutingConfig.model_validate(
            {"rules": [{"if": "code", "route_to": "coder"}], "fallback": "generalist"}
        )
        router = RuleRouter.from_config(config)
        assert router.route("code review").agent_id == "coder"
        assert router.route("hello").agent_id == "generalist"
