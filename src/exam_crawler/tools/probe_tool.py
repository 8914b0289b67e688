"""Probe tool - try a source configuration against one page before crawling."""

import time
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ..config.loader import FetchSettings, RetryPolicy
from .fetch_tool import fetch_tool
from .robots_tool import fetch_robots, robots_path


class RobotsSummary(BaseModel):
    exists: bool
    is_allowed: bool
    crawl_delay: Optional[int] = None
    disallowed_paths: list[str] = Field(default_factory=list)


class FileLinkSummary(BaseModel):
    url: str
    type: str
    name: str


class PageSummary(BaseModel):
    title: str
    links_found: int
    file_links_found: int
    file_links: list[FileLinkSummary] = Field(default_factory=list)
    sample_links: list[str] = Field(default_factory=list)


class SourceProbe(BaseModel):
    """Outcome of a single-page test crawl."""

    url: str
    success: bool
    elapsed_ms: int
    robots: RobotsSummary
    page: Optional[PageSummary] = None
    error: Optional[str] = None


def probe_source(
    url: str,
    settings: FetchSettings | None = None,
    retry_policy: RetryPolicy | None = None,
    client: httpx.Client | None = None,
) -> SourceProbe:
    """Check robots.txt and fetch one page, summarising what a crawl would see."""
    settings = settings or FetchSettings()
    started = time.monotonic()

    robots = fetch_robots(url, settings, retry_policy, client=client)
    robots_summary = RobotsSummary(
        exists=robots.fetched and len(robots.rules) > 0,
        is_allowed=robots.is_allowed(robots_path(url), settings.robots_agent),
        crawl_delay=robots.crawl_delay(settings.robots_agent),
        disallowed_paths=robots.disallowed_paths()[:10],
    )

    page = fetch_tool(url, settings, client=client)
    elapsed_ms = int((time.monotonic() - started) * 1000)

    page_summary = None
    if page.success:
        page_summary = PageSummary(
            title=page.title,
            links_found=len(page.links),
            file_links_found=len(page.file_links),
            file_links=[
                FileLinkSummary(url=f.url, type=f.type, name=f.display_name)
                for f in page.file_links[:20]
            ],
            sample_links=page.links[:10],
        )

    return SourceProbe(
        url=url,
        success=page.success,
        elapsed_ms=elapsed_ms,
        robots=robots_summary,
        page=page_summary,
        error=page.error,
    )
