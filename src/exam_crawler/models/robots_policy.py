"""Robots.txt policy model."""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

WILDCARD_AGENT = "*"


def path_matches(path: str, pattern: str) -> bool:
    """
    Match a URL path against a robots.txt pattern.
    `*` matches any run of characters, a trailing `$` anchors the end,
    otherwise the pattern is a prefix.
    """
    anchored = pattern.endswith("$")
    body = pattern[:-1] if anchored else pattern
    if "*" not in body:
        return path == body if anchored else path.startswith(body)
    regex = ".*".join(re.escape(part) for part in body.split("*"))
    if anchored:
        return re.fullmatch(regex, path) is not None
    return re.match(regex, path) is not None


class RobotsRule(BaseModel):
    """One user-agent group of a robots.txt file."""

    model_config = ConfigDict(frozen=True)

    agent_name: str
    disallow_patterns: tuple[str, ...] = ()
    allow_patterns: tuple[str, ...] = ()
    crawl_delay_ms: Optional[int] = None


class RobotsPolicy(BaseModel):
    """
    Parsed robots.txt for one site, immutable for the whole crawl run.
    Group selection: exact agent name, else `*`, else everything allowed.
    Allow patterns always win over disallow patterns.
    """

    model_config = ConfigDict(frozen=True)

    rules: tuple[RobotsRule, ...] = ()
    sitemaps: tuple[str, ...] = ()
    fetched: bool = Field(default=False, description="False for the permissive fallback")
    fetch_error: Optional[str] = None

    @classmethod
    def permissive(cls, fetch_error: Optional[str] = None) -> "RobotsPolicy":
        """Policy used when robots.txt is missing or unreachable."""
        return cls(fetch_error=fetch_error)

    def rule_for(self, agent: str = WILDCARD_AGENT) -> Optional[RobotsRule]:
        for rule in self.rules:
            if rule.agent_name == agent:
                return rule
        for rule in self.rules:
            if rule.agent_name == WILDCARD_AGENT:
                return rule
        return None

    def is_allowed(self, path: str, agent: str = WILDCARD_AGENT) -> bool:
        rule = self.rule_for(agent)
        if rule is None:
            return True
        if any(path_matches(path, p) for p in rule.allow_patterns):
            return True
        return not any(path_matches(path, p) for p in rule.disallow_patterns)

    def crawl_delay(self, agent: str = WILDCARD_AGENT) -> Optional[int]:
        """Crawl delay in milliseconds for the agent's group, if any."""
        rule = self.rule_for(agent)
        return rule.crawl_delay_ms if rule else None

    def disallowed_paths(self) -> list[str]:
        seen: dict[str, None] = {}
        for rule in self.rules:
            for pattern in rule.disallow_patterns:
                seen.setdefault(pattern, None)
        return list(seen)
