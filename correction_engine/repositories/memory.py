"""
内存模式仓库 - 用于测试和简单场景
"""
from typing import Dict, List, Optional, Tuple

from correction_engine.core.errors import ResourceNotFoundError
from correction_engine.core.logging import LogEvent, get_logger, preview
from correction_engine.db.models import Pattern, PatternType, utcnow
from correction_engine.repositories.base import (
    ConfidencePolicy,
    PatternStore,
    merge_sources,
    ranking_key,
    validate_confidence,
    validate_limit,
)
from correction_engine.services.types import PatternSeed

logger = get_logger(__name__)


class InMemoryPatternStore(PatternStore):
    """内存仓库实现

    Every method runs without awaiting, so each call is atomic on the event loop.
    """

    def __init__(self, policy: Optional[ConfidencePolicy] = None):
        super().__init__(policy)
        self._storage: Dict[int, Pattern] = {}
        self._next_id = 1

    def _find(self, user_id: str, bad_phrase: str) -> Optional[Pattern]:
        for pattern in self._storage.values():
            if pattern.user_id == user_id and pattern.bad_phrase == bad_phrase:
                return pattern
        return None

    def _create(self, pattern: Pattern) -> Pattern:
        pattern.id = self._next_id
        self._next_id += 1
        self._storage[pattern.id] = pattern
        return pattern

    async def upsert(
        self,
        user_id: str,
        bad_phrase: str,
        good_phrase: str,
        pattern_type: PatternType = PatternType.AI_STYLE,
        source: Optional[str] = None,
    ) -> Pattern:
        pattern = self._find(user_id, bad_phrase)
        if pattern is None:
            pattern = self._create(
                Pattern(
                    user_id=user_id,
                    bad_phrase=bad_phrase,
                    good_phrase=good_phrase,
                    pattern_type=pattern_type,
                    confidence=self.policy.initial,
                    occurrence_count=1,
                    sources=merge_sources([], source),
                )
            )
            logger.info(
                LogEvent.PATTERN_CREATED,
                user_id=user_id,
                pattern_id=pattern.id,
                bad_phrase=preview(bad_phrase),
                good_phrase=preview(good_phrase),
            )
            return pattern

        previous = pattern.confidence
        pattern.good_phrase = good_phrase
        pattern.confidence = self.policy.reinforce(previous)
        pattern.occurrence_count += 1
        pattern.sources = merge_sources(pattern.sources, source)
        pattern.updated_at = utcnow()
        logger.info(
            LogEvent.PATTERN_REINFORCED,
            user_id=user_id,
            pattern_id=pattern.id,
            confidence_before=previous,
            confidence_after=pattern.confidence,
            occurrence_count=pattern.occurrence_count,
        )
        return pattern

    async def find_by_exact_phrase(self, user_id: str, bad_phrase: str) -> Optional[Pattern]:
        return self._find(user_id, bad_phrase)

    async def top_by_confidence(
        self,
        user_id: str,
        pattern_type: Optional[PatternType] = None,
        limit: Optional[int] = 20,
    ) -> List[Pattern]:
        validate_limit(limit)
        patterns = [
            pattern
            for pattern in self._storage.values()
            if pattern.user_id == user_id
            and (pattern_type is None or pattern.pattern_type == pattern_type)
        ]
        patterns.sort(key=ranking_key)
        return patterns if limit is None else patterns[:limit]

    async def get(self, user_id: str, pattern_id: int) -> Pattern:
        pattern = self._storage.get(pattern_id)
        if pattern is None or pattern.user_id != user_id:
            raise ResourceNotFoundError("pattern", str(pattern_id))
        return pattern

    async def update(
        self,
        user_id: str,
        pattern_id: int,
        confidence: Optional[float] = None,
        pattern_type: Optional[PatternType] = None,
    ) -> Pattern:
        if confidence is not None:
            validate_confidence(confidence)
        pattern = await self.get(user_id, pattern_id)
        if confidence is not None:
            pattern.confidence = confidence
        if pattern_type is not None:
            pattern.pattern_type = pattern_type
        pattern.updated_at = utcnow()
        logger.info(LogEvent.PATTERN_UPDATED, user_id=user_id, pattern_id=pattern_id)
        return pattern

    async def delete(self, user_id: str, pattern_id: int) -> None:
        await self.get(user_id, pattern_id)
        del self._storage[pattern_id]
        logger.info(LogEvent.PATTERN_DELETED, user_id=user_id, pattern_id=pattern_id)

    async def import_seed(self, user_id: str, seed: PatternSeed) -> Tuple[Pattern, bool]:
        validate_confidence(seed.confidence)
        pattern = self._find(user_id, seed.bad_phrase)
        if pattern is None:
            pattern = self._create(
                Pattern(
                    user_id=user_id,
                    bad_phrase=seed.bad_phrase,
                    good_phrase=seed.good_phrase,
                    pattern_type=seed.pattern_type,
                    confidence=seed.confidence,
                    occurrence_count=1,
                    sources=["import"],
                )
            )
            return pattern, True

        pattern.confidence = max(pattern.confidence, seed.confidence)
        pattern.occurrence_count += 1
        pattern.sources = merge_sources(pattern.sources, "import")
        pattern.updated_at = utcnow()
        return pattern, False

    async def clear(self) -> None:
        """清空所有数据"""
        self._storage.clear()
        self._next_id = 1
