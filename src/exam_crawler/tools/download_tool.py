"""Download tool - retrieve the bytes of a single file."""

import httpx

from ..config.loader import FetchSettings
from ..models.page_result import DownloadedFile


def download_tool(
    url: str,
    settings: FetchSettings | None = None,
    client: httpx.Client | None = None,
) -> DownloadedFile:
    """Download url once. No retries; failures come back as success=False."""
    settings = settings or FetchSettings()
    headers = {"User-Agent": settings.user_agent, **settings.headers}
    own_client = client is None
    if own_client:
        client = httpx.Client(follow_redirects=True, trust_env=False)
    try:
        response = client.get(url, headers=headers, timeout=settings.timeout)
    except httpx.TimeoutException:
        return DownloadedFile(url=url, error=f"Timeout after {settings.timeout:g}s")
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return DownloadedFile(url=url, error=str(e) or type(e).__name__)
    finally:
        if own_client:
            client.close()

    if not response.is_success:
        return DownloadedFile(
            url=url, error=f"HTTP {response.status_code}: {response.reason_phrase}"
        )
    content = response.content
    return DownloadedFile(url=url, content=content, size=len(content), success=True)
