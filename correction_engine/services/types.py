"""Shared dataclasses used across services."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from correction_engine.db.models import Pattern, PatternType


@dataclass(slots=True, frozen=True)
class Token:
    """Whitespace-delimited word with half-open character offsets."""

    text: str
    start_offset: int
    end_offset: int


@dataclass(slots=True, frozen=True)
class Span:
    """Contiguous substring of one text version.

    ``word_index`` is the position of the span's first token among all tokens
    of its source text.
    """

    text: str
    start_offset: int
    end_offset: int
    word_index: int

    def overlaps(self, start: int, end: int) -> bool:
        return self.start_offset < end and start < self.end_offset


class SpanSource(str, Enum):
    """Which version of the text a selection was made in."""

    ORIGINAL = "original"
    EDITED = "edited"

    @property
    def other(self) -> "SpanSource":
        return SpanSource.EDITED if self is SpanSource.ORIGINAL else SpanSource.ORIGINAL


class AlignmentKind(str, Enum):
    UNCHANGED = "unchanged"
    REPLACE = "replace"
    INSERT = "insert"
    AMBIGUOUS = "ambiguous"


@dataclass(slots=True)
class AlignmentResult:
    """Outcome of mapping a selection onto the other text version."""

    original_span: Optional[Span]
    corrected_span: Optional[Span]
    kind: AlignmentKind
    source: SpanSource

    @property
    def is_learnable(self) -> bool:
        """Only a resolved replacement yields a (bad -> good) correction."""
        return (
            self.kind is AlignmentKind.REPLACE
            and self.original_span is not None
            and self.corrected_span is not None
        )

    def as_correction(self) -> Tuple[str, str]:
        if not self.is_learnable:
            raise ValueError(f"alignment of kind {self.kind.value} is not a correction")
        return self.original_span.text, self.corrected_span.text


@dataclass(slots=True)
class Match:
    """A stored pattern and every place its bad phrase occurs in a draft."""

    pattern: Pattern
    occurrences: List[Span]

    @property
    def replacement(self) -> str:
        return self.pattern.good_phrase

    @property
    def confidence(self) -> float:
        return self.pattern.confidence


@dataclass(slots=True)
class Suggestion:
    """Alternative phrasing proposed by the generation service."""

    text: str
    explanation: Optional[str] = None
    tone: Optional[str] = None
    when_to_use: Optional[str] = None


@dataclass(slots=True)
class GenerationRequest:
    prompt: str
    system_prompt: str
    max_tokens: int
    temperature: float


@dataclass(slots=True)
class GenerationConstraints:
    """Learned phrasings the generation service should avoid."""

    forbidden_phrases: List[str] = field(default_factory=list)
    replacements: Dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.forbidden_phrases)


@dataclass(slots=True)
class PatternSeed:
    """A pattern offered for bulk import."""

    bad_phrase: str
    good_phrase: str
    pattern_type: PatternType = PatternType.AI_STYLE
    confidence: float = 0.8
    category: Optional[str] = None
    explanation: Optional[str] = None


@dataclass(slots=True)
class ImportReport:
    imported: int = 0
    skipped: int = 0
    total: int = 0
