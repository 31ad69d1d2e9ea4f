"""Turns accepted corrections into stored patterns."""
from typing import Iterable, Optional

from correction_engine.core.config import Settings
from correction_engine.core.errors import (
    EmptyCorrectionError,
    NoOpCorrectionError,
    PatternError,
    PhraseTooLongError,
)
from correction_engine.core.logging import LogEvent, preview
from correction_engine.db.models import Pattern, PatternType
from correction_engine.repositories.base import PatternStore
from correction_engine.services.base_service import BaseService
from correction_engine.services.tokenizer import normalize_whitespace
from correction_engine.services.types import ImportReport, PatternSeed


class PatternLearner(BaseService):
    """
    模式学习服务

    Normalises both sides of a correction and hands it to the store, which
    creates or reinforces the pattern. Persistence failures propagate.
    """

    def __init__(self, store: PatternStore, settings: Settings = None):
        super().__init__(settings)
        self.store = store

    def normalize_correction(self, original: str, corrected: str) -> tuple[str, str]:
        """Trimmed, whitespace-collapsed sides; raises when nothing is learnable."""
        bad_phrase = normalize_whitespace(original)
        good_phrase = normalize_whitespace(corrected)
        if not bad_phrase:
            raise EmptyCorrectionError("original")
        if not good_phrase:
            raise EmptyCorrectionError("corrected")
        limit = self.settings.max_phrase_length
        for field, phrase in (("original", bad_phrase), ("corrected", good_phrase)):
            if len(phrase) > limit:
                raise PhraseTooLongError(field, len(phrase), limit)
        if bad_phrase.casefold() == good_phrase.casefold():
            raise NoOpCorrectionError(bad_phrase)
        return bad_phrase, good_phrase

    async def save_pattern(
        self,
        user_id: str,
        original: str,
        corrected: str,
        pattern_type: PatternType = PatternType.AI_STYLE,
        source: Optional[str] = None,
    ) -> Pattern:
        """Record that the user replaced ``original`` with ``corrected``."""
        bad_phrase, good_phrase = self.normalize_correction(original, corrected)
        return await self.store.upsert(
            user_id,
            bad_phrase,
            good_phrase,
            pattern_type=PatternType(pattern_type),
            source=source,
        )

    async def import_patterns(self, user_id: str, seeds: Iterable[PatternSeed]) -> ImportReport:
        """Bulk-load catalogue patterns; invalid entries are skipped, not fatal."""
        report = ImportReport()
        for seed in seeds:
            report.total += 1
            try:
                bad_phrase, good_phrase = self.normalize_correction(seed.bad_phrase, seed.good_phrase)
            except PatternError as exc:
                report.skipped += 1
                self.logger.info(
                    LogEvent.PATTERN_SKIPPED,
                    user_id=user_id,
                    bad_phrase=preview(seed.bad_phrase),
                    reason=exc.error_code.value,
                )
                continue

            normalized = PatternSeed(
                bad_phrase=bad_phrase,
                good_phrase=good_phrase,
                pattern_type=seed.pattern_type,
                confidence=seed.confidence,
                category=seed.category,
                explanation=seed.explanation,
            )
            await self.store.import_seed(user_id, normalized)
            report.imported += 1

        self.logger.info(
            LogEvent.PATTERN_IMPORTED,
            user_id=user_id,
            imported=report.imported,
            skipped=report.skipped,
            total=report.total,
        )
        return report
