"""
模式仓库接口 - 定义学习模式的数据访问接口
Both implementations share the confidence policy and the listing order.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from correction_engine.core.config import Settings
from correction_engine.core.errors import ValidationError
from correction_engine.db.models import Pattern, PatternType
from correction_engine.services.types import PatternSeed


@dataclass(slots=True, frozen=True)
class ConfidencePolicy:
    """Confidence of new and reinforced patterns.

    Reinforcement closes a fixed fraction of the gap to 1.0 and is capped at
    ``ceiling``, so a learned pattern never becomes fully certain.
    """

    initial: float = 0.5
    ceiling: float = 0.95
    rate: float = 0.2

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfidencePolicy":
        return cls(
            initial=settings.initial_confidence,
            ceiling=settings.confidence_ceiling,
            rate=settings.reinforcement_rate,
        )

    def reinforce(self, confidence: float) -> float:
        if confidence >= self.ceiling:
            # Administrative edits may leave a pattern above the ceiling
            return confidence
        return min(self.ceiling, confidence + (1.0 - confidence) * self.rate)


def ranking_key(pattern: Pattern) -> tuple:
    """Sort key for listings: confidence, occurrences, recency, id; all descending."""
    return (
        -pattern.confidence,
        -pattern.occurrence_count,
        -pattern.updated_at.timestamp(),
        -(pattern.id or 0),
    )


def merge_sources(sources: Optional[List[str]], source: Optional[str]) -> List[str]:
    """Return a new list; JSON columns only notice reassignment."""
    merged = list(sources or [])
    if source and source not in merged:
        merged.append(source)
    return merged


def validate_confidence(confidence: float) -> None:
    if not 0.0 <= confidence <= 1.0:
        raise ValidationError(
            "Confidence must be between 0 and 1",
            field="confidence",
            value=confidence,
        )


def validate_limit(limit: Optional[int]) -> None:
    if limit is not None and limit < 0:
        raise ValidationError("Limit must not be negative", field="limit", value=limit)


class PatternStore(ABC):
    """学习模式仓库抽象类"""

    def __init__(self, policy: Optional[ConfidencePolicy] = None):
        self.policy = policy or ConfidencePolicy()

    @abstractmethod
    async def upsert(
        self,
        user_id: str,
        bad_phrase: str,
        good_phrase: str,
        pattern_type: PatternType = PatternType.AI_STYLE,
        source: Optional[str] = None,
    ) -> Pattern:
        """Create the pattern, or reinforce it when the bad phrase is known."""

    @abstractmethod
    async def find_by_exact_phrase(self, user_id: str, bad_phrase: str) -> Optional[Pattern]:
        """根据坏短语精确查找"""

    @abstractmethod
    async def top_by_confidence(
        self,
        user_id: str,
        pattern_type: Optional[PatternType] = None,
        limit: Optional[int] = 20,
    ) -> List[Pattern]:
        """Patterns in ranking order; ``limit=None`` lists all of them."""

    @abstractmethod
    async def get(self, user_id: str, pattern_id: int) -> Pattern:
        """Raises ResourceNotFoundError when the user has no such pattern."""

    @abstractmethod
    async def update(
        self,
        user_id: str,
        pattern_id: int,
        confidence: Optional[float] = None,
        pattern_type: Optional[PatternType] = None,
    ) -> Pattern:
        """管理员更新"""

    @abstractmethod
    async def delete(self, user_id: str, pattern_id: int) -> None:
        """删除模式"""

    @abstractmethod
    async def import_seed(self, user_id: str, seed: PatternSeed) -> Tuple[Pattern, bool]:
        """Store a catalogue pattern. Returns the row and whether it was created.

        A known bad phrase keeps its good phrase; confidence becomes the larger
        of the two and the occurrence count grows by one.
        """
