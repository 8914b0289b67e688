"""Data models for the exam crawler."""

from .robots_policy import RobotsPolicy, RobotsRule, WILDCARD_AGENT
from .page_result import DOCUMENT_EXTENSIONS, DownloadedFile, FileLink, PageResult
from .problem import (
    CIRCLED_NUMBERS,
    ExtractedProblem,
    ExtractionMetadata,
    ExtractionResult,
    ProblemType,
    circled_number_to_index,
    index_to_circled_number,
)
from .crawl_run import (
    CrawledFile,
    PipelineProgress,
    PipelineResult,
    PipelineStatus,
    ProcessedFile,
    TERMINAL_STATUSES,
)

__all__ = [
    "RobotsPolicy",
    "RobotsRule",
    "WILDCARD_AGENT",
    "DOCUMENT_EXTENSIONS",
    "DownloadedFile",
    "FileLink",
    "PageResult",
    "CIRCLED_NUMBERS",
    "ExtractedProblem",
    "ExtractionMetadata",
    "ExtractionResult",
    "ProblemType",
    "circled_number_to_index",
    "index_to_circled_number",
    "CrawledFile",
    "PipelineProgress",
    "PipelineResult",
    "PipelineStatus",
    "ProcessedFile",
    "TERMINAL_STATUSES",
]
