"""Relational pattern store on SQLModel / async SQLAlchemy."""
from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from correction_engine.core.errors import PersistenceError, ResourceNotFoundError
from correction_engine.core.logging import LogEvent, get_logger, preview
from correction_engine.db import get_session
from correction_engine.db.models import Pattern, PatternType, utcnow
from correction_engine.repositories.base import (
    PatternStore,
    merge_sources,
    validate_confidence,
    validate_limit,
)
from correction_engine.services.types import PatternSeed

logger = get_logger(__name__)


def _ranked(stmt):
    return stmt.order_by(
        Pattern.confidence.desc(),
        Pattern.occurrence_count.desc(),
        Pattern.updated_at.desc(),
        Pattern.id.desc(),
    )


class SQLPatternStore(PatternStore):
    """Patterns persisted in the ``correction_pattern`` table.

    Reinforcement is a read-modify-write; two concurrent acceptances of the
    same phrase may both read the old row and one increment is lost. An
    insert that loses the uniqueness race is retried once as a reinforcement.
    """

    def _failure(self, operation: str, exc: SQLAlchemyError) -> PersistenceError:
        logger.error(LogEvent.PERSISTENCE_ERROR, operation=operation, error=str(exc))
        return PersistenceError(exc.__class__.__name__, operation=operation, original_error=exc)

    async def upsert(
        self,
        user_id: str,
        bad_phrase: str,
        good_phrase: str,
        pattern_type: PatternType = PatternType.AI_STYLE,
        source: Optional[str] = None,
    ) -> Pattern:
        try:
            return await self._upsert_once(user_id, bad_phrase, good_phrase, pattern_type, source)
        except IntegrityError as exc:
            logger.info(LogEvent.UPSERT_RACE_RETRY, user_id=user_id, bad_phrase=preview(bad_phrase))
            try:
                return await self._upsert_once(user_id, bad_phrase, good_phrase, pattern_type, source)
            except SQLAlchemyError as retry_exc:
                raise self._failure("upsert", retry_exc) from exc
        except SQLAlchemyError as exc:
            raise self._failure("upsert", exc) from exc

    async def _upsert_once(
        self,
        user_id: str,
        bad_phrase: str,
        good_phrase: str,
        pattern_type: PatternType,
        source: Optional[str],
    ) -> Pattern:
        async with get_session() as session:
            stmt = select(Pattern).where(
                Pattern.user_id == user_id,
                Pattern.bad_phrase == bad_phrase,
            )
            pattern = (await session.exec(stmt)).first()
            created = pattern is None
            previous = None

            if created:
                pattern = Pattern(
                    user_id=user_id,
                    bad_phrase=bad_phrase,
                    good_phrase=good_phrase,
                    pattern_type=pattern_type,
                    confidence=self.policy.initial,
                    occurrence_count=1,
                    sources=merge_sources([], source),
                )
            else:
                previous = pattern.confidence
                pattern.good_phrase = good_phrase
                pattern.confidence = self.policy.reinforce(previous)
                pattern.occurrence_count += 1
                pattern.sources = merge_sources(pattern.sources, source)
                pattern.updated_at = utcnow()

            session.add(pattern)
            await session.flush()

        if created:
            logger.info(
                LogEvent.PATTERN_CREATED,
                user_id=user_id,
                pattern_id=pattern.id,
                bad_phrase=preview(bad_phrase),
                good_phrase=preview(good_phrase),
            )
        else:
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
        try:
            async with get_session() as session:
                stmt = select(Pattern).where(
                    Pattern.user_id == user_id,
                    Pattern.bad_phrase == bad_phrase,
                )
                return (await session.exec(stmt)).first()
        except SQLAlchemyError as exc:
            raise self._failure("find_by_exact_phrase", exc) from exc

    async def top_by_confidence(
        self,
        user_id: str,
        pattern_type: Optional[PatternType] = None,
        limit: Optional[int] = 20,
    ) -> List[Pattern]:
        validate_limit(limit)
        stmt = select(Pattern).where(Pattern.user_id == user_id)
        if pattern_type is not None:
            stmt = stmt.where(Pattern.pattern_type == pattern_type)
        stmt = _ranked(stmt)
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with get_session() as session:
                result = await session.exec(stmt)
                return list(result.all())
        except SQLAlchemyError as exc:
            raise self._failure("top_by_confidence", exc) from exc

    async def get(self, user_id: str, pattern_id: int) -> Pattern:
        try:
            async with get_session() as session:
                pattern = await session.get(Pattern, pattern_id)
        except SQLAlchemyError as exc:
            raise self._failure("get", exc) from exc
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
        try:
            async with get_session() as session:
                pattern = await session.get(Pattern, pattern_id)
                if pattern is None or pattern.user_id != user_id:
                    raise ResourceNotFoundError("pattern", str(pattern_id))
                if confidence is not None:
                    pattern.confidence = confidence
                if pattern_type is not None:
                    pattern.pattern_type = pattern_type
                pattern.updated_at = utcnow()
                session.add(pattern)
                await session.flush()
        except SQLAlchemyError as exc:
            raise self._failure("update", exc) from exc

        logger.info(LogEvent.PATTERN_UPDATED, user_id=user_id, pattern_id=pattern_id)
        return pattern

    async def delete(self, user_id: str, pattern_id: int) -> None:
        try:
            async with get_session() as session:
                pattern = await session.get(Pattern, pattern_id)
                if pattern is None or pattern.user_id != user_id:
                    raise ResourceNotFoundError("pattern", str(pattern_id))
                await session.delete(pattern)
        except SQLAlchemyError as exc:
            raise self._failure("delete", exc) from exc

        logger.info(LogEvent.PATTERN_DELETED, user_id=user_id, pattern_id=pattern_id)

    async def import_seed(self, user_id: str, seed: PatternSeed) -> Tuple[Pattern, bool]:
        validate_confidence(seed.confidence)
        try:
            async with get_session() as session:
                stmt = select(Pattern).where(
                    Pattern.user_id == user_id,
                    Pattern.bad_phrase == seed.bad_phrase,
                )
                pattern = (await session.exec(stmt)).first()
                created = pattern is None

                if created:
                    pattern = Pattern(
                        user_id=user_id,
                        bad_phrase=seed.bad_phrase,
                        good_phrase=seed.good_phrase,
                        pattern_type=seed.pattern_type,
                        confidence=seed.confidence,
                        occurrence_count=1,
                        sources=["import"],
                    )
                else:
                    pattern.confidence = max(pattern.confidence, seed.confidence)
                    pattern.occurrence_count += 1
                    pattern.sources = merge_sources(pattern.sources, "import")
                    pattern.updated_at = utcnow()

                session.add(pattern)
                await session.flush()
        except SQLAlchemyError as exc:
            raise self._failure("import_seed", exc) from exc

        return pattern, created
