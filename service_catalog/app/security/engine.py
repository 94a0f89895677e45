"""
Role-based authorization engine for the catalog service.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from shared.logging import get_logger
from .directory import Principal, ROLE_STREAM


def _compile_pattern(pattern: str) -> re.Pattern:
    """Translate an ant-style path pattern into a regex.

    ``**`` spans any number of path segments (including none), ``*`` matches
    within a single segment and ``?`` matches one character of a segment.
    """
    regex = "^"
    for segment in pattern.strip("/").split("/"):
        if segment == "**":
            regex += "(?:/[^/]*)*"
        else:
            regex += "/" + re.escape(segment).replace(r"\*", "[^/]*").replace(r"\?", "[^/]")
    return re.compile(regex + "/?$")


@dataclass(frozen=True)
class AccessRule:
    """Required role for every path matching ``pattern``."""
    pattern: str
    required_role: str
    description: Optional[str] = None
    _regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_regex", _compile_pattern(self.pattern))

    def matches(self, path: str) -> bool:
        return self._regex.match(path) is not None


@dataclass(frozen=True)
class AuthorizationDecision:
    """Allow/deny outcome for one request."""
    allowed: bool
    reason: str
    matched_rule: Optional[str] = None
    evaluation_time_ms: float = 0.0

    def __bool__(self) -> bool:
        return self.allowed


class AuthorizationEngine:
    """Evaluates a principal against the first access rule matching a path.

    Rules are fixed at construction and the engine holds no other state, so
    a single instance is shared by all concurrent requests.
    """

    def __init__(self, rules: Iterable[AccessRule]):
        self.logger = get_logger("catalog.security.engine")
        self.rules: Tuple[AccessRule, ...] = tuple(rules)

    def rule_for(self, path: str) -> Optional[AccessRule]:
        """First rule whose pattern matches the path."""
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    def evaluate(self, principal: Optional[Principal], path: str) -> AuthorizationDecision:
        """Decide whether ``principal`` may access ``path``."""
        start_time = time.time()

        rule = self.rule_for(path)
        if rule is None:
            allowed, reason = False, "No access rule matches path"
        elif principal is None:
            allowed, reason = False, "No authenticated principal"
        elif principal.has_role(rule.required_role):
            allowed, reason = True, f"Principal holds role '{rule.required_role}'"
        else:
            allowed, reason = False, f"Principal lacks role '{rule.required_role}'"

        decision = AuthorizationDecision(
            allowed=allowed,
            reason=reason,
            matched_rule=rule.pattern if rule else None,
            evaluation_time_ms=(time.time() - start_time) * 1000
        )

        self.logger.debug(
            "Authorization decision",
            path=path,
            username=principal.username if principal else None,
            allowed=decision.allowed,
            reason=decision.reason
        )

        return decision

    def is_allowed(self, principal: Optional[Principal], path: str) -> bool:
        return self.evaluate(principal, path).allowed


def default_engine(required_role: str = ROLE_STREAM, pattern: str = "/**") -> AuthorizationEngine:
    """Engine with a single rule: every path requires ``required_role``."""
    return AuthorizationEngine([
        AccessRule(pattern=pattern, required_role=required_role, description="All catalog paths")
    ])
