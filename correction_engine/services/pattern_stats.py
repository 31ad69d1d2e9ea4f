"""Learning progress statistics for one user."""
from dataclasses import dataclass, field
from typing import Dict, List

from correction_engine.core.config import Settings
from correction_engine.db.models import Pattern
from correction_engine.repositories.base import PatternStore
from correction_engine.services.base_service import BaseService

RECENT_LIMIT = 10
TOP_LIMIT = 10


@dataclass(slots=True)
class PatternStats:
    total_patterns: int = 0
    high_confidence_patterns: int = 0
    patterns_applied_count: int = 0
    estimated_time_saved_seconds: int = 0
    average_confidence: float = 0.0
    categories_breakdown: Dict[str, int] = field(default_factory=dict)
    recent_activity: List[Pattern] = field(default_factory=list)
    top_patterns: List[Pattern] = field(default_factory=list)

    @property
    def estimated_time_saved_minutes(self) -> int:
        return self.estimated_time_saved_seconds // 60

    @property
    def estimated_time_saved_hours(self) -> float:
        return round(self.estimated_time_saved_seconds / 3600, 1)


class PatternStatsService(BaseService):
    """统计服务 - aggregates over every pattern the user owns"""

    def __init__(self, store: PatternStore, settings: Settings = None):
        super().__init__(settings)
        self.store = store

    async def compute(self, user_id: str) -> PatternStats:
        patterns = await self.store.top_by_confidence(user_id, limit=None)
        if not patterns:
            return PatternStats()

        threshold = self.settings.high_confidence_threshold
        applied = sum(pattern.occurrence_count for pattern in patterns)

        breakdown: Dict[str, int] = {}
        for pattern in patterns:
            key = pattern.pattern_type.value
            breakdown[key] = breakdown.get(key, 0) + 1

        recent = sorted(patterns, key=lambda p: (p.created_at, p.id or 0), reverse=True)
        # stable sort keeps the confidence order among equal counts
        top = sorted(patterns, key=lambda p: p.occurrence_count, reverse=True)

        return PatternStats(
            total_patterns=len(patterns),
            high_confidence_patterns=sum(1 for p in patterns if p.confidence >= threshold),
            patterns_applied_count=applied,
            estimated_time_saved_seconds=applied * self.settings.seconds_saved_per_correction,
            average_confidence=round(sum(p.confidence for p in patterns) / len(patterns), 4),
            categories_breakdown=breakdown,
            recent_activity=recent[:RECENT_LIMIT],
            top_patterns=top[:TOP_LIMIT],
        )
