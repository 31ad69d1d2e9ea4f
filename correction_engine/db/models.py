"""Database models for learned correction patterns."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import CheckConstraint, Column, Enum as SAEnum, JSON, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tz info anyway."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PatternType(str, Enum):
    """What kind of phrasing a pattern corrects."""

    GENERAL = "general"
    AI_STYLE = "ai-style"
    WORD_LEVEL = "word-level"


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


class Pattern(SQLModel, table=True):
    """A learned (bad phrasing -> good phrasing) correction for one user.

    ``bad_phrase`` and ``good_phrase`` are stored whitespace-normalised.
    ``sources`` must be reassigned, never mutated in place, for the JSON
    column to register the change.
    """

    __tablename__ = "correction_pattern"
    __table_args__ = (
        UniqueConstraint("user_id", "bad_phrase", name="uq_correction_pattern_user_bad_phrase"),
        CheckConstraint("confidence >= 0 AND confidence <= 1", name="ck_correction_pattern_confidence"),
        CheckConstraint("occurrence_count >= 1", name="ck_correction_pattern_occurrences"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=128, nullable=False, index=True)
    bad_phrase: str = Field(max_length=1000, nullable=False)
    good_phrase: str = Field(max_length=1000, nullable=False)
    pattern_type: PatternType = Field(
        default=PatternType.AI_STYLE,
        sa_column=Column(
            SAEnum(
                PatternType,
                name="pattern_type",
                values_callable=lambda members: [m.value for m in members],
            ),
            nullable=False,
        ),
    )
    confidence: float = Field(default=0.5, nullable=False)
    occurrence_count: int = Field(default=1, nullable=False)
    sources: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)


__all__ = [
    "Pattern",
    "PatternType",
    "utcnow",
]
