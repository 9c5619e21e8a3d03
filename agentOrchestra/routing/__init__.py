"""Agent selection."""

from .router import FALLBACK_CONFIDENCE, RULE_CONFIDENCE, RoutingRule, RuleRouter

__all__ = ["FALLBACK_CONFIDENCE", "RULE_CONFIDENCE", "RoutingRule", "RuleRouter"]
