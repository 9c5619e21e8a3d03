"""Rule-based agent routing with a guaranteed fallback."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Pattern, Tuple, Union

from agentOrchestra.models.schema import RouteDecision
from agentOrchestra.utils.errors import ConfigError
from agentOrchestra.utils.logging_utils import log_routing_decision

if TYPE_CHECKING:
    from agentOrchestra.config.app_config import RoutingConfig

LOGGER = logging.getLogger(__name__)

RULE_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.5


@dataclass(frozen=True, slots=True)
class RoutingRule:
    """Compiled ``pattern → agent`` rule."""

    pattern: Pattern[str]
    route_to: str

    @classmethod
    def compile(cls, pattern: Union[str, Pattern[str]], route_to: str) -> "RoutingRule":
        if isinstance(pattern, re.Pattern):
            return cls(pattern=re.compile(pattern.pattern, pattern.flags | re.IGNORECASE), route_to=route_to)
        try:
            return cls(pattern=re.compile(pattern, re.IGNORECASE), route_to=route_to)
        except re.error as e:
            raise ConfigError(f"Invalid routing pattern {pattern!r}: {e}") from e


RuleLike = Union[RoutingRule, Tuple[Union[str, Pattern[str]], str]]


class RuleRouter:
    """Maps free text to an agent id.

    Rules are evaluated in order and the first match wins; there is no
    scoring across several matching rules.
    """

    def __init__(self, rules: Optional[Iterable[RuleLike]] = None, *, fallback: str):
        if not fallback:
            raise ConfigError("Router fallback agent must be set")
        compiled: List[RoutingRule] = []
        for rule in rules or []:
            if isinstance(rule, RoutingRule):
                compiled.append(rule)
            else:
                pattern, route_to = rule
                compiled.append(RoutingRule.compile(pattern, route_to))
        self._rules: Tuple[RoutingRule, ...] = tuple(compiled)
        self.fallback = fallback

    @classmethod
    def from_config(cls, config: "RoutingConfig") -> "RuleRouter":
        return cls(
            [(rule.pattern, rule.route_to) for rule in config.rules],
            fallback=config.fallback,
        )

    @property
    def rules(self) -> Tuple[RoutingRule, ...]:
        return self._rules

    def route(self, text: Optional[str]) -> RouteDecision:
        """Return the agent for ``text``: first matching rule, else the fallback."""
        text = text or ""
        for rule in self._rules:
            if rule.pattern.search(text):
                decision = RouteDecision(
                    agent_id=rule.route_to,
                    confidence=RULE_CONFIDENCE,
                    reasoning=f"Matched rule: {rule.pattern.pattern}",
                )
                break
        else:
            decision = RouteDecision(
                agent_id=self.fallback,
                confidence=FALLBACK_CONFIDENCE,
                reasoning="Fallback",
            )

        log_routing_decision(LOGGER, text, decision.agent_id, decision.reasoning or "")
        return decision
