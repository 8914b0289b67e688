"""Robots tool - fetch and parse a site's robots.txt."""

import logging
from urllib.parse import urlparse

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config.loader import FetchSettings, RetryPolicy
from ..models.robots_policy import RobotsPolicy, RobotsRule

logger = logging.getLogger(__name__)


class _RuleBuilder:
    def __init__(self, agent_name: str):
        self.agent_name = agent_name
        self.disallow: list[str] = []
        self.allow: list[str] = []
        self.crawl_delay_ms: int | None = None

    def build(self) -> RobotsRule:
        return RobotsRule(
            agent_name=self.agent_name,
            disallow_patterns=tuple(self.disallow),
            allow_patterns=tuple(self.allow),
            crawl_delay_ms=self.crawl_delay_ms,
        )


def parse_robots(content: str) -> RobotsPolicy:
    """
    Parse robots.txt content.
    Every user-agent line opens a new group; groups are never merged.
    Sitemap lines are global.
    """
    rules: list[RobotsRule] = []
    sitemaps: list[str] = []
    current: _RuleBuilder | None = None

    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "#" in line:
            line = line.split("#", 1)[0].strip()
        directive, sep, value = line.partition(":")
        if not sep:
            continue
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            if current:
                rules.append(current.build())
            current = _RuleBuilder(value)
        elif directive == "disallow":
            if current and value:
                current.disallow.append(value)
        elif directive == "allow":
            if current and value:
                current.allow.append(value)
        elif directive == "crawl-delay":
            if current:
                try:
                    current.crawl_delay_ms = int(round(float(value) * 1000))
                except ValueError:
                    logger.debug("Ignoring malformed crawl-delay %r", value)
        elif directive == "sitemap":
            if value:
                sitemaps.append(value)

    if current:
        rules.append(current.build())

    return RobotsPolicy(rules=tuple(rules), sitemaps=tuple(sitemaps), fetched=True)


def robots_url(base_url: str) -> str:
    parsed = urlparse(base_url)
    return f"{parsed.scheme}://{parsed.netloc}/robots.txt"


def robots_path(url: str) -> str:
    """Path plus query of url, the part robots.txt patterns are matched against."""
    parsed = urlparse(url)
    path = parsed.path or "/"
    return f"{path}?{parsed.query}" if parsed.query else path


def fetch_robots(
    base_url: str,
    settings: FetchSettings | None = None,
    retry_policy: RetryPolicy | None = None,
    client: httpx.Client | None = None,
) -> RobotsPolicy:
    """
    Fetch /robots.txt for the origin of base_url.
    Any failure or non-2xx status yields the permissive policy.
    """
    settings = settings or FetchSettings()
    retry_policy = retry_policy or RetryPolicy()
    url = robots_url(base_url)
    headers = {"User-Agent": settings.user_agent, **settings.headers}

    retrying = Retrying(
        stop=stop_after_attempt(retry_policy.max_attempts),
        wait=wait_exponential(multiplier=retry_policy.backoff_seconds, max=30),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )

    own_client = client is None
    if own_client:
        client = httpx.Client(follow_redirects=True, trust_env=False)
    try:
        response = retrying(client.get, url, headers=headers, timeout=settings.timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("robots.txt unavailable at %s (%s), allowing everything", url, e)
        return RobotsPolicy.permissive(fetch_error=str(e) or type(e).__name__)
    finally:
        if own_client:
            client.close()

    if not response.is_success:
        logger.info("robots.txt at %s returned HTTP %s, allowing everything", url, response.status_code)
        return RobotsPolicy.permissive()

    policy = parse_robots(response.text)
    logger.debug(
        "Parsed robots.txt at %s: %d groups, %d sitemaps", url, len(policy.rules), len(policy.sitemaps)
    )
    return policy
