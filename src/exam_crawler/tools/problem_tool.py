"""Problem tool - turn cleaned exam text into structured problems."""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable

from ..models.problem import (
    ExtractedProblem,
    ExtractionMetadata,
    ExtractionResult,
    ProblemType,
)

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
MIN_BLOCK_LENGTH = 20
MIN_FALLBACK_CHUNK_LENGTH = 30
MIN_CONTENT_LENGTH = 10
MAX_OPTION_LENGTH = 500

# Order matters: the first pattern that matches gives the question number.
QUESTION_NUMBER_PATTERNS = (
    re.compile(r"^[ \t]*(\d{1,3})[ \t]*[.．)）](?!\d)[ \t]*", re.M),   # 1. 1) 1）
    re.compile(r"^[ \t]*\[(\d{1,3})\][ \t]*", re.M),                   # [1]
    re.compile(r"^[ \t]*【(\d{1,3})】[ \t]*", re.M),                   # 【1】
    re.compile(r"^[ \t]*문[ \t]*(\d{1,3})[ \t]*[.．:：][ \t]*", re.M),  # 문1. 문1:
    re.compile(r"^[ \t]*제[ \t]*(\d{1,3})[ \t]*문[ \t]*", re.M),        # 제1문
)
SEGMENT_PATTERN = re.compile(
    "|".join(f"(?:{p.pattern})" for p in QUESTION_NUMBER_PATTERNS), re.M
)
BLANK_LINE = re.compile(r"\n[ \t]*\n")

CIRCLED_SPAN = re.compile(r"([①②③④⑤])([^①②③④⑤]*)")
CIRCLED_CHAR = re.compile(r"[①②③④⑤]")
# Start of the answer/explanation section of a block: a bracketed label, a word
# followed by a colon, or a bare label word opening a line.
TRAILER = re.compile(
    r"\[정답\]|\[해설\]"
    r"|(?<![가-힣\[])(?:정답|답|해설|풀이)[ \t]*[:：]"
    r"|^[ \t]*(?:정답|해설|풀이)(?![가-힣])",
    re.M,
)

TRUE_FALSE_MARKERS = ("O/X", "참/거짓")
TRUE_FALSE_PATTERN = re.compile(r"\(O\)\s*\(X\)")
ESSAY_MARKERS = ("서술하시오", "논술하시오", "설명하시오")

ANSWER_PATTERNS = (
    re.compile(r"(?<!\[)정답\s*[:：]?\s*([①②③④⑤\d]+)"),
    re.compile(r"(?<![가-힣\[])답\s*[:：]?\s*([①②③④⑤\d]+)"),
    re.compile(r"\[정답\]\s*([①②③④⑤\d]+)"),
)
_EXPLANATION_END = r"(?=\n[ \t]*\d{1,3}[ \t]*[.．)）](?!\d)|\Z)"
EXPLANATION_PATTERNS = (
    re.compile(
        r"(?:(?<![가-힣\[])해설[ \t]*[:：]|^[ \t]*해설(?![가-힣]))\s*([\s\S]*?)" + _EXPLANATION_END,
        re.M,
    ),
    re.compile(r"\[해설\]\s*([\s\S]*?)" + _EXPLANATION_END),
    re.compile(
        r"(?:(?<![가-힣])풀이[ \t]*[:：]|^[ \t]*풀이(?![가-힣]))\s*([\s\S]*?)" + _EXPLANATION_END,
        re.M,
    ),
)

YEAR_PATTERNS = (
    re.compile(r"(\d{4})\s*학년도"),
    re.compile(r"(\d{4})년\s*(?:수능|모의|학력)"),
)
MONTH_PATTERNS = (re.compile(r"(\d{1,2})월\s*(?:모의|학력)"),)
EXAM_NAME_PATTERNS = (
    re.compile(r"(대학수학능력시험|수능)"),
    re.compile(r"(모의고사|모의평가)"),
    re.compile(r"(학력평가)"),
    re.compile(r"(전국연합|전국모의)"),
    re.compile(r"(중간고사|기말고사)"),
)
# Electives first so that "생명과학" is not reported as "과학".
SUBJECT_PATTERNS = (
    re.compile(r"(생명과학|지구과학|물리|화학)"),
    re.compile(r"(한국지리|세계지리|동아시아사|세계사)"),
    re.compile(r"(생활과윤리|윤리와사상|정치와법|사회문화|경제)"),
    re.compile(r"(제2외국어|한국사|국어|영어|수학|과학|사회)"),
)
GRADE_PATTERNS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"고\s*([1-3])\s*학년"), "고{}"),
    (re.compile(r"중\s*([1-3])\s*학년"), "중{}"),
    (re.compile(r"고([1-3])"), "고{}"),
    (re.compile(r"중([1-3])"), "중{}"),
)


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _trailer_start(text: str) -> int:
    m = TRAILER.search(text)
    return m.start() if m else len(text)


@dataclass
class ProblemDraft:
    """Mutable state filled in by the extraction rules for one block."""

    block: str
    question_number: int = 0
    number_span: tuple[int, int] | None = None
    options: list[str] = field(default_factory=list)
    answer: str = ""
    explanation: str = ""
    type: ProblemType = ProblemType.SHORT_ANSWER
    confidence: float = BASE_CONFIDENCE

    def content(self) -> str:
        text = self.block
        if self.number_span:
            start, end = self.number_span
            text = text[:start] + text[end:]
        if self.type == ProblemType.MULTIPLE_CHOICE:
            m = CIRCLED_CHAR.search(text)
            if m and m.start() > 0:
                text = text[: m.start()]
        cut = _trailer_start(text)
        if cut > 0:
            text = text[:cut]
        return _collapse(text)


@dataclass(frozen=True)
class ExtractionRule:
    """A detector that fills part of the draft and earns a confidence bonus when it fires."""

    name: str
    bonus: float
    apply: Callable[[ProblemDraft], bool]


def _question_number(draft: ProblemDraft) -> bool:
    for pattern in QUESTION_NUMBER_PATTERNS:
        m = pattern.search(draft.block)
        if m:
            draft.question_number = int(m.group(1))
            draft.number_span = m.span()
            return True
    return False


def _circled_options(draft: ProblemDraft) -> bool:
    region = draft.block[: _trailer_start(draft.block)]
    spans: dict[str, str] = {}
    for numeral, body in CIRCLED_SPAN.findall(region):
        spans.setdefault(numeral, body)
    if len(spans) < 2:
        return False
    draft.type = ProblemType.MULTIPLE_CHOICE
    draft.options = [
        text for text in (_collapse(body) for body in spans.values())
        if 0 < len(text) < MAX_OPTION_LENGTH
    ]
    return True


def _true_false(draft: ProblemDraft) -> bool:
    block = draft.block
    if any(m in block for m in TRUE_FALSE_MARKERS) or TRUE_FALSE_PATTERN.search(block):
        draft.type = ProblemType.TRUE_FALSE
        return True
    return False


def _essay(draft: ProblemDraft) -> bool:
    if any(m in draft.block for m in ESSAY_MARKERS):
        draft.type = ProblemType.ESSAY
        return True
    return False


def _answer(draft: ProblemDraft) -> bool:
    for pattern in ANSWER_PATTERNS:
        m = pattern.search(draft.block)
        if m:
            draft.answer = m.group(1).strip()
            return True
    return False


def _explanation(draft: ProblemDraft) -> bool:
    for pattern in EXPLANATION_PATTERNS:
        m = pattern.search(draft.block)
        if m and m.group(1).strip():
            draft.explanation = _collapse(m.group(1))
            return True
    return False


# Applied in order. Type detection is last-rule-wins.
PROBLEM_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule("question_number", 0.1, _question_number),
    ExtractionRule("circled_options", 0.2, _circled_options),
    ExtractionRule("true_false", 0.1, _true_false),
    ExtractionRule("essay", 0.1, _essay),
    ExtractionRule("answer", 0.15, _answer),
    ExtractionRule("explanation", 0.1, _explanation),
)


def split_into_blocks(text: str) -> list[str]:
    """
    Split text at question-number lines; each block runs up to the next number.
    Falls back to blank-line paragraphs when fewer than two numbers are found.
    """
    starts = [m.start() for m in SEGMENT_PATTERN.finditer(text)]
    if len(starts) >= 2:
        ends = starts[1:] + [len(text)]
        blocks = [text[s:e].strip() for s, e in zip(starts, ends)]
    else:
        blocks = [
            chunk.strip() for chunk in BLANK_LINE.split(text)
            if len(chunk.strip()) > MIN_FALLBACK_CHUNK_LENGTH
        ]
    return [b for b in blocks if len(b) >= MIN_BLOCK_LENGTH]


def parse_block(block: str, rules: tuple[ExtractionRule, ...] = PROBLEM_RULES) -> ExtractedProblem | None:
    """Parse one block. None when the remaining question text is too short."""
    draft = ProblemDraft(block=block)
    for rule in rules:
        if rule.apply(draft):
            draft.confidence += rule.bonus

    content = draft.content()
    if len(content) < MIN_CONTENT_LENGTH:
        return None

    return ExtractedProblem(
        question_number=draft.question_number,
        content=content,
        options=draft.options,
        answer=draft.answer,
        explanation=draft.explanation,
        type=draft.type,
        confidence=round(min(1.0, draft.confidence), 2),
    )


def _first_match(patterns, text: str) -> str | None:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return m.group(1)
    return None


def extract_metadata(text: str) -> ExtractionMetadata:
    """Best-effort year, month, exam name, subject and grade from the whole document."""
    year = _first_match(YEAR_PATTERNS, text)
    month = _first_match(MONTH_PATTERNS, text)
    grade_level = None
    for pattern, fmt in GRADE_PATTERNS:
        m = pattern.search(text)
        if m:
            grade_level = fmt.format(m.group(1))
            break
    return ExtractionMetadata(
        year=int(year) if year else None,
        month=int(month) if month else None,
        exam_name=_first_match(EXAM_NAME_PATTERNS, text),
        subject=_first_match(SUBJECT_PATTERNS, text),
        grade_level=grade_level,
    )


def extract_problems(text: str) -> ExtractionResult:
    """Extract problems and metadata from cleaned document text."""
    problems = [p for p in (parse_block(b) for b in split_into_blocks(text)) if p is not None]
    confidence = sum(p.confidence for p in problems) / len(problems) if problems else 0.0
    logger.debug("Extracted %d problems (confidence %.2f)", len(problems), confidence)
    return ExtractionResult(
        problems=problems,
        metadata=extract_metadata(text),
        raw_text=text,
        confidence=min(1.0, confidence),
    )
