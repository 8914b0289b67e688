"""Transient results of page fetches and file downloads."""

from dataclasses import dataclass, field

DOCUMENT_EXTENSIONS = frozenset(
    {"pdf", "hwp", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "zip"}
)


@dataclass(frozen=True)
class FileLink:
    """Anchor pointing at a downloadable document."""

    url: str
    type: str
    display_name: str


@dataclass
class PageResult:
    """Result from fetch_tool."""

    url: str
    html: str = ""
    links: list[str] = field(default_factory=list)
    file_links: list[FileLink] = field(default_factory=list)
    title: str = ""
    success: bool = False
    error: str | None = None


@dataclass
class DownloadedFile:
    """Result from download_tool."""

    url: str
    content: bytes = b""
    size: int = 0
    success: bool = False
    error: str | None = None
