"""Crawl run state and output records."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .page_result import FileLink
from .problem import ExtractionMetadata, ExtractionResult


class PipelineStatus(str, Enum):
    """Run status. COMPLETED and FAILED are terminal."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = {PipelineStatus.COMPLETED, PipelineStatus.FAILED}


class PipelineProgress(BaseModel):
    """Mutable progress of one crawl run. Only the crawl agent writes to it."""

    status: PipelineStatus = PipelineStatus.RUNNING
    pages_visited: int = Field(0, ge=0)
    files_found: int = Field(0, ge=0)
    files_saved: int = Field(0, ge=0)
    problems_extracted: int = Field(0, ge=0)
    errors: list[str] = Field(default_factory=list)
    current_url: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def finalize(self, max_errors: int = 10) -> None:
        """Move to the terminal status. Allowed exactly once."""
        if self.is_terminal:
            raise RuntimeError(f"Run already finalized as {self.status.value}")
        self.status = (
            PipelineStatus.FAILED if len(self.errors) > max_errors else PipelineStatus.COMPLETED
        )
        self.current_url = None

    def snapshot(self) -> "PipelineProgress":
        """Detached copy handed to progress callbacks."""
        return self.model_copy(deep=True)


class CrawledFile(BaseModel):
    """A downloaded document matching the run's file types."""

    model_config = ConfigDict(frozen=True)

    url: str
    file_name: str
    file_type: str
    content: bytes = Field(repr=False)
    source_page: Optional[str] = None
    text: Optional[str] = None
    extraction: Optional[ExtractionResult] = None
    metadata: Optional[ExtractionMetadata] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def file_link(self) -> FileLink:
        return FileLink(url=self.url, type=self.file_type, display_name=self.file_name)


class PipelineResult(BaseModel):
    """Everything a crawl run hands back to its caller."""

    files: list[CrawledFile] = Field(default_factory=list)
    progress: PipelineProgress


class ProcessedFile(BaseModel):
    """Result of re-running extraction on already downloaded bytes."""

    text: str = ""
    extraction: Optional[ExtractionResult] = None
    needs_ocr: bool = False
