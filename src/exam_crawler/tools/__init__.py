"""Tools used by the crawl agent."""

from .robots_tool import fetch_robots, parse_robots, robots_path
from .fetch_tool import (
    extract_links,
    extract_links_with_pattern,
    extract_links_with_selector,
    fetch_tool,
    resolve_url,
)
from .download_tool import download_tool
from .pdf_tool import (
    DocumentTextExtractor,
    clean_text,
    is_image_based,
    make_backend,
    split_into_pages,
)
from .problem_tool import extract_metadata, extract_problems, parse_block, split_into_blocks
from .probe_tool import probe_source
from .storage_tool import storage_tool

__all__ = [
    "fetch_robots",
    "parse_robots",
    "robots_path",
    "extract_links",
    "extract_links_with_pattern",
    "extract_links_with_selector",
    "fetch_tool",
    "resolve_url",
    "download_tool",
    "DocumentTextExtractor",
    "clean_text",
    "is_image_based",
    "make_backend",
    "split_into_pages",
    "extract_metadata",
    "extract_problems",
    "parse_block",
    "split_into_blocks",
    "probe_source",
    "storage_tool",
]
