"""Fetch tool - retrieve a page and extract its links and file links."""

import logging
import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urldefrag, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from ..config.loader import FetchSettings
from ..models.page_result import DOCUMENT_EXTENSIONS, FileLink, PageResult

logger = logging.getLogger(__name__)

SKIPPED_SCHEMES = re.compile(r"^\s*(javascript|mailto|tel):", re.I)

PAGE_ACCEPT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
}


def resolve_url(base: str, href: str) -> str | None:
    """Resolve href against base. None for javascript:, mailto:, tel: and non-http results."""
    if not href or not href.strip() or SKIPPED_SCHEMES.match(href):
        return None
    try:
        absolute, _ = urldefrag(urljoin(base, href.strip()))
    except ValueError:
        return None
    if urlparse(absolute).scheme not in ("http", "https"):
        return None
    return absolute


def file_extension(url: str) -> str | None:
    suffix = PurePosixPath(urlparse(url).path).suffix
    return suffix[1:].lower() if len(suffix) > 1 else None


def file_name(url: str) -> str:
    """Trailing path segment, URL-decoded."""
    segment = urlparse(url).path.rstrip("/").rsplit("/", 1)[-1]
    return unquote(segment) or "file"


def is_same_domain(url1: str, url2: str) -> bool:
    host1 = urlparse(url1).hostname
    return host1 is not None and host1 == urlparse(url2).hostname


def extract_links(html: str, base_url: str) -> tuple[list[str], list[FileLink], str]:
    """
    Single pass over the anchors of a page.
    Returns (deduplicated links, deduplicated file links, title).
    """
    soup = BeautifulSoup(html, "lxml")
    title = soup.title.get_text(strip=True) if soup.title else ""

    links: dict[str, None] = {}
    file_links: dict[str, FileLink] = {}
    for a in soup.find_all("a", href=True):
        absolute = resolve_url(base_url, a["href"])
        if not absolute:
            continue
        links.setdefault(absolute, None)
        ext = file_extension(absolute)
        if ext in DOCUMENT_EXTENSIONS and absolute not in file_links:
            name = a.get_text(" ", strip=True) or file_name(absolute)
            file_links[absolute] = FileLink(url=absolute, type=ext, display_name=name)
    return list(links), list(file_links.values()), title


def extract_links_with_pattern(html: str, pattern: str | re.Pattern, base_url: str) -> list[str]:
    """Absolute links whose URL matches pattern."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    links, _, _ = extract_links(html, base_url)
    return [link for link in links if regex.search(link)]


def extract_links_with_selector(html: str, selector: str, base_url: str) -> list[str]:
    """Absolute links of the elements matched by a CSS selector."""
    soup = BeautifulSoup(html, "lxml")
    links: dict[str, None] = {}
    for el in soup.select(selector):
        href = el.get("href")
        if not href:
            continue
        absolute = resolve_url(base_url, href)
        if absolute:
            links.setdefault(absolute, None)
    return list(links)


def fetch_tool(
    url: str,
    settings: FetchSettings | None = None,
    client: httpx.Client | None = None,
) -> PageResult:
    """
    Fetch HTML from URL and extract links.
    Timeouts, transport errors and non-2xx statuses give success=False.
    """
    settings = settings or FetchSettings()
    headers = {"User-Agent": settings.user_agent, **PAGE_ACCEPT_HEADERS, **settings.headers}
    own_client = client is None
    if own_client:
        client = httpx.Client(follow_redirects=True, trust_env=False)
    try:
        response = client.get(url, headers=headers, timeout=settings.timeout)
    except httpx.TimeoutException:
        return PageResult(url=url, error=f"Timeout after {settings.timeout:g}s")
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return PageResult(url=url, error=str(e) or type(e).__name__)
    finally:
        if own_client:
            client.close()

    if not response.is_success:
        return PageResult(
            url=url, error=f"HTTP {response.status_code}: {response.reason_phrase}"
        )

    html = response.text
    links, file_links, title = extract_links(html, url)
    logger.debug("Fetched %s: %d links, %d file links", url, len(links), len(file_links))
    return PageResult(
        url=url,
        html=html,
        links=links,
        file_links=file_links,
        title=title,
        success=True,
    )
