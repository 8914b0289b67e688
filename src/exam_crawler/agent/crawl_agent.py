"""Crawl agent - breadth-first crawl that downloads and mines exam documents."""

import logging
import re
import threading
import time
from collections import deque
from typing import Callable

import httpx

from ..config.loader import PipelineConfig
from ..models.crawl_run import CrawledFile, PipelineProgress, PipelineResult, ProcessedFile
from ..models.page_result import DOCUMENT_EXTENSIONS, FileLink, PageResult
from ..models.robots_policy import RobotsPolicy
from ..tools.download_tool import download_tool
from ..tools.fetch_tool import (
    extract_links_with_selector,
    fetch_tool,
    file_extension,
    is_same_domain,
)
from ..tools.pdf_tool import DocumentTextExtractor, make_backend
from ..tools.problem_tool import extract_problems
from ..tools.robots_tool import fetch_robots, robots_path

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PipelineProgress], None]


class CrawlAgent:
    """
    Runs one crawl over a single site.
    Owns the frontier, the visited set and the PipelineProgress; invokes the
    robots, fetch, download, pdf and problem tools in order. One logical
    worker processes the frontier strictly sequentially.
    """

    def __init__(
        self,
        config: PipelineConfig,
        client: httpx.Client | None = None,
        extractor: DocumentTextExtractor | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.config = config
        self.client = client
        self.extractor = extractor or DocumentTextExtractor(
            make_backend(config.pdf_backend),
            image_text_threshold=config.image_text_threshold,
        )
        self.on_progress = on_progress
        self.cancel_event = cancel_event
        self.crawl_pattern = re.compile(config.crawl_pattern) if config.crawl_pattern else None
        self.file_types = set(config.file_types)

    def run(self) -> PipelineResult:
        """Crawl from base_url until the frontier empties or a limit is hit."""
        if self.client is not None:
            return self._run(self.client)
        with httpx.Client(follow_redirects=True, trust_env=False) as client:
            return self._run(client)

    def _run(self, client: httpx.Client) -> PipelineResult:
        config = self.config
        progress = PipelineProgress()
        files: list[CrawledFile] = []
        visited: set[str] = set()
        downloaded: set[str] = set()
        frontier: deque[tuple[str, int]] = deque([(config.base_url, 0)])

        logger.info("Starting crawl of %s (source %s)", config.base_url, config.source_id or "-")
        robots = fetch_robots(config.base_url, config.fetch, config.retry_policy, client=client)
        if robots.fetch_error:
            progress.errors.append(f"robots.txt: {robots.fetch_error}")
        delay_ms = self._delay_ms(robots)

        while frontier:
            if self._limit_reached(progress):
                break
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.info("Crawl of %s cancelled", config.base_url)
                break

            url, depth = frontier.popleft()
            if url in visited:
                continue
            visited.add(url)

            if not robots.is_allowed(robots_path(url), config.fetch.robots_agent):
                logger.debug("Skipping %s: disallowed by robots.txt", url)
                continue

            progress.current_url = url
            self._notify(progress)

            if delay_ms:
                time.sleep(delay_ms / 1000)

            page = fetch_tool(url, config.fetch, client=client)
            if not page.success:
                logger.warning("Fetch failed %s: %s", url, page.error)
                progress.errors.append(f"{url}: {page.error}")
                self._notify(progress)
                continue

            progress.pages_visited += 1
            logger.info(
                "[%d] %s (depth %d, %d links, %d file links)",
                progress.pages_visited, url, depth, len(page.links), len(page.file_links),
            )

            for file_link in page.file_links:
                if config.max_files and progress.files_saved >= config.max_files:
                    break
                if file_link.type not in self.file_types or file_link.url in downloaded:
                    continue
                downloaded.add(file_link.url)
                crawled = self._process_file_link(file_link, url, client, progress)
                if crawled is not None:
                    files.append(crawled)

            if depth < config.max_depth:
                for link in self._next_links(page):
                    if link not in visited:
                        frontier.append((link, depth + 1))

            self._notify(progress)

        progress.finalize(config.max_errors)
        logger.info(
            "Crawl of %s %s: %d pages, %d/%d files saved, %d problems, %d errors",
            config.base_url,
            progress.status.value,
            progress.pages_visited,
            progress.files_saved,
            progress.files_found,
            progress.problems_extracted,
            len(progress.errors),
        )
        self._notify(progress)
        return PipelineResult(files=files, progress=progress)

    def _delay_ms(self, robots: RobotsPolicy) -> int:
        robots_delay = robots.crawl_delay(self.config.fetch.robots_agent) or 0
        return max(self.config.crawl_delay, robots_delay)

    def _limit_reached(self, progress: PipelineProgress) -> bool:
        config = self.config
        if config.max_pages and progress.pages_visited >= config.max_pages:
            return True
        if config.max_files and progress.files_saved >= config.max_files:
            return True
        return False

    def _next_links(self, page: PageResult) -> list[str]:
        """Same-host page links to follow, optionally scoped by selector and crawl pattern."""
        if self.config.link_selector:
            links = extract_links_with_selector(page.html, self.config.link_selector, page.url)
        else:
            links = page.links
        result = []
        for link in links:
            if not is_same_domain(self.config.base_url, link):
                continue
            if file_extension(link) in DOCUMENT_EXTENSIONS:
                continue
            if self.crawl_pattern and not self.crawl_pattern.search(link):
                continue
            result.append(link)
        return result

    def _process_file_link(
        self,
        file_link: FileLink,
        page_url: str,
        client: httpx.Client,
        progress: PipelineProgress,
    ) -> CrawledFile | None:
        progress.files_found += 1
        download = download_tool(file_link.url, self.config.fetch, client=client)
        if not download.success:
            logger.warning("Download failed %s: %s", file_link.url, download.error)
            progress.errors.append(f"Download failed: {file_link.url} ({download.error})")
            return None

        text = None
        extraction = None
        if file_link.type == "pdf":
            parsed = self.extractor.parse(download.content)
            if parsed.success:
                text = self.extractor.clean(parsed.text)
                if self.extractor.is_image_based(text, parsed.page_count):
                    logger.info("%s looks image-based, skipping problem extraction", file_link.url)
                else:
                    extraction = extract_problems(text)
                    progress.problems_extracted += len(extraction.problems)

        progress.files_saved += 1
        return CrawledFile(
            url=file_link.url,
            file_name=file_link.display_name,
            file_type=file_link.type,
            content=download.content,
            source_page=page_url,
            text=text,
            extraction=extraction,
            metadata=extraction.metadata if extraction else None,
        )

    def _notify(self, progress: PipelineProgress) -> None:
        if self.on_progress:
            self.on_progress(progress.snapshot())


def run_crawl_pipeline(
    config: PipelineConfig,
    on_progress: ProgressCallback | None = None,
    client: httpx.Client | None = None,
    extractor: DocumentTextExtractor | None = None,
    cancel_event: threading.Event | None = None,
) -> PipelineResult:
    """Run a complete crawl and return the files and final progress."""
    agent = CrawlAgent(
        config,
        client=client,
        extractor=extractor,
        on_progress=on_progress,
        cancel_event=cancel_event,
    )
    return agent.run()


def process_file(
    data: bytes,
    file_type: str,
    extractor: DocumentTextExtractor | None = None,
) -> ProcessedFile:
    """Re-run text and problem extraction on already downloaded bytes."""
    if file_type.lower().lstrip(".") != "pdf":
        return ProcessedFile()

    extractor = extractor or DocumentTextExtractor()
    parsed = extractor.parse(data)
    if not parsed.success:
        return ProcessedFile(needs_ocr=True)

    text = extractor.clean(parsed.text)
    if extractor.is_image_based(text, parsed.page_count):
        return ProcessedFile(text=text, needs_ocr=True)
    return ProcessedFile(text=text, extraction=extract_problems(text), needs_ocr=False)
