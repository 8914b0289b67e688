"""Extracted exam problem models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

CIRCLED_NUMBERS = ("①", "②", "③", "④", "⑤", "⑥", "⑦", "⑧", "⑨", "⑩")


def circled_number_to_index(char: str) -> int:
    """Map a circled numeral to its zero-based option index, -1 if not one."""
    try:
        return CIRCLED_NUMBERS.index(char)
    except ValueError:
        return -1


def index_to_circled_number(index: int) -> str:
    if 0 <= index < len(CIRCLED_NUMBERS):
        return CIRCLED_NUMBERS[index]
    return str(index + 1)


class ProblemType(str, Enum):
    """Kinds of exam question."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SHORT_ANSWER = "SHORT_ANSWER"
    ESSAY = "ESSAY"
    TRUE_FALSE = "TRUE_FALSE"


class ExtractedProblem(BaseModel):
    """One question detected in a document."""

    question_number: int = Field(0, ge=0)
    content: str = Field(..., min_length=10)
    options: list[str] = Field(default_factory=list)
    answer: str = ""
    explanation: str = ""
    type: ProblemType = ProblemType.SHORT_ANSWER
    confidence: float = Field(..., ge=0.0, le=1.0)

    @property
    def answer_option(self) -> Optional[str]:
        """Option text selected by a circled-numeral answer."""
        if not self.answer or not self.options:
            return None
        idx = circled_number_to_index(self.answer[0])
        if idx < 0 and self.answer.isdigit():
            idx = int(self.answer) - 1
        if 0 <= idx < len(self.options):
            return self.options[idx]
        return None


class ExtractionMetadata(BaseModel):
    """Document-level metadata mined from the full text. Always partial."""

    year: Optional[int] = None
    month: Optional[int] = None
    exam_name: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[str] = None


class ExtractionResult(BaseModel):
    """Problems and metadata extracted from one document."""

    problems: list[ExtractedProblem] = Field(default_factory=list)
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)
    raw_text: str = ""
    confidence: float = Field(0.0, ge=0.0, le=1.0)
