"""PDF tool - extract and clean the text layer of a downloaded document."""

import io
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from pypdf import PdfReader

logger = logging.getLogger(__name__)

IMAGE_TEXT_THRESHOLD = 100

# Applied in order; each step assumes the previous ones already ran.
CLEANING_STEPS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"[^\S\n]+"), " "),
    (re.compile(r" *\n *"), "\n"),
    (re.compile(r"\n{3,}"), "\n\n"),
    (re.compile(r"(?m)(?:^|[ \n])- ?\d{1,4} ?-(?= |\n|$) ?"), "\n"),
    (re.compile(r" ?[●•◦] ?"), "\n• "),
    (re.compile(r"，"), ","),
    (re.compile(r"．"), "."),
    (re.compile(r"："), ":"),
    (re.compile(r"（"), "("),
    (re.compile(r"）"), ")"),
)

# Page breaks in text that lost its page boundaries, strongest signal first.
PAGE_BREAK_PATTERNS = (
    re.compile(r"\f"),
    re.compile(r"\n\s*-\s*\d+\s*-\s*\n"),
    re.compile(r"\n\s*\d+\s*/\s*\d+\s*\n"),
)


@dataclass
class DocumentInfo:
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    creation_date: datetime | None = None


@dataclass
class ParsedDocument:
    """Result from a PDF backend."""

    success: bool
    text: str = ""
    page_count: int = 0
    info: DocumentInfo = field(default_factory=DocumentInfo)
    error: str | None = None


class PdfBackend(Protocol):
    def parse(self, data: bytes) -> ParsedDocument: ...


class PypdfBackend:
    """Text-layer extraction with pypdf. Malformed input never escapes as an exception."""

    def parse(self, data: bytes) -> ParsedDocument:
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = list(reader.pages)
        except Exception as e:
            logger.warning("Cannot open PDF: %s", e, exc_info=True)
            return ParsedDocument(success=False, error=f"PDF parse error: {e}")

        parts: list[str] = []
        for number, page in enumerate(pages, 1):
            try:
                page_text = page.extract_text() or ""
            except Exception as e:
                logger.warning("Cannot extract text of page %d: %s", number, e, exc_info=True)
                page_text = ""
            if page_text:
                parts.append(page_text)

        return ParsedDocument(
            success=True,
            text="\n\n".join(parts),
            page_count=len(pages),
            info=self._info(reader),
        )

    @staticmethod
    def _info(reader: PdfReader) -> DocumentInfo:
        try:
            meta = reader.metadata
            if not meta:
                return DocumentInfo()
            title, author, subject = meta.title, meta.author, meta.subject
        except Exception as e:
            logger.debug("Ignoring unreadable PDF metadata: %s", e)
            return DocumentInfo()
        try:
            created = meta.creation_date
        except Exception:
            created = None
        return DocumentInfo(title=title, author=author, subject=subject, creation_date=created)


class UnavailableBackend:
    """Backend used when document parsing is disabled."""

    def parse(self, data: bytes) -> ParsedDocument:
        return ParsedDocument(success=False, error="PDF text extraction is not available")


PDF_BACKENDS: dict[str, type] = {
    "pypdf": PypdfBackend,
    "none": UnavailableBackend,
}


def make_backend(name: str = "pypdf") -> PdfBackend:
    """Backend registered under name; "none" disables text extraction."""
    try:
        return PDF_BACKENDS[name]()
    except KeyError:
        raise ValueError(f"Unknown PDF backend: {name}") from None


def split_into_pages(text: str) -> list[str]:
    """
    Recover page texts from a flat text layer.
    Each break pattern is tried in turn and kept only if it yields more pages.
    """
    pages = [text]
    for pattern in PAGE_BREAK_PATTERNS:
        candidate = [p for page in pages for p in pattern.split(page) if p.strip()]
        if len(candidate) > len(pages):
            pages = candidate
    return [p.strip() for p in pages if p.strip()]


def clean_text(text: str) -> str:
    """Normalize whitespace, page-number artifacts, bullets and full-width punctuation."""
    for pattern, replacement in CLEANING_STEPS:
        text = pattern.sub(replacement, text)
    return text.strip()


def is_image_based(text: str, page_count: int, threshold: int = IMAGE_TEXT_THRESHOLD) -> bool:
    """True when the text layer is too thin to be anything but scanned images."""
    return len(text) / max(page_count, 1) < threshold


class DocumentTextExtractor:
    """Turns document bytes into cleaned text through a pluggable backend."""

    def __init__(self, backend: PdfBackend | None = None, image_text_threshold: int = IMAGE_TEXT_THRESHOLD):
        self.backend = backend if backend is not None else PypdfBackend()
        self.image_text_threshold = image_text_threshold

    def parse(self, data: bytes) -> ParsedDocument:
        try:
            result = self.backend.parse(data)
        except Exception as e:
            logger.exception("PDF backend %s failed: %s", type(self.backend).__name__, e)
            return ParsedDocument(success=False, error=f"PDF parse error: {e}")
        if not result.success:
            logger.warning("Text extraction failed: %s", result.error)
        elif result.page_count == 0 and result.text:
            result.page_count = len(split_into_pages(result.text))
        return result

    def clean(self, text: str) -> str:
        return clean_text(text)

    def is_image_based(self, text: str, page_count: int) -> bool:
        return is_image_based(text, page_count, self.image_text_threshold)
