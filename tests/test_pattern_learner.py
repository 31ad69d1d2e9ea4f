# -*- coding: utf-8 -*-
"""
Tests for learning patterns from corrections.
בדיקות ללמידת דפוסי תיקון
"""
import pytest

from correction_engine.core.errors import (
    EmptyCorrectionError,
    NoOpCorrectionError,
    PhraseTooLongError,
    ValidationError,
)
from correction_engine.db.models import PatternType
from correction_engine.repositories import ConfidencePolicy
from correction_engine.services.common_patterns import common_ai_patterns
from correction_engine.services.pattern_learner import PatternLearner
from correction_engine.services.pattern_matcher import phrase_regex
from correction_engine.services.types import PatternSeed

from conftest import USER


class TestConfidencePolicy:
    """Tests for the reinforcement curve."""

    def test_reinforce_closes_a_fifth_of_the_gap(self):
        policy = ConfidencePolicy()
        assert policy.reinforce(0.5) == pytest.approx(0.6)

    def test_reinforce_is_capped(self):
        policy = ConfidencePolicy()
        assert policy.reinforce(0.94) == pytest.approx(0.95)
        assert policy.reinforce(0.95) == 0.95

    def test_reinforce_leaves_higher_confidence_alone(self):
        assert ConfidencePolicy().reinforce(0.99) == 0.99


class TestSavePattern:
    """Tests for PatternLearner.save_pattern()."""

    async def test_new_pattern(self, learner):
        pattern = await learner.save_pattern(USER, "קיבלתי החלטה", "החלטתי", source="manual-edit")

        assert pattern.id is not None
        assert pattern.confidence == pytest.approx(0.5)
        assert pattern.occurrence_count == 1
        assert pattern.sources == ["manual-edit"]

    async def test_repeated_correction_reinforces(self, learner, store):
        """The same correction twice leaves one pattern, counted twice."""
        first = await learner.save_pattern(USER, "קיבלתי החלטה", "החלטתי")
        second = await learner.save_pattern(USER, "קיבלתי החלטה", "החלטתי")

        assert second.id == first.id
        assert second.occurrence_count == 2
        assert second.confidence == pytest.approx(0.6)
        assert len(await store.top_by_confidence(USER, limit=None)) == 1

    async def test_confidence_is_monotonic_and_bounded(self, learner):
        previous = 0.0
        for _ in range(40):
            pattern = await learner.save_pattern(USER, "על מנת", "כדי")
            assert previous <= pattern.confidence <= 0.95
            previous = pattern.confidence

        assert previous == pytest.approx(0.95)
        assert pattern.occurrence_count == 40

    async def test_latest_good_phrase_wins(self, learner):
        await learner.save_pattern(USER, "על מנת", "כדי")
        pattern = await learner.save_pattern(USER, "על מנת", "בשביל")

        assert pattern.good_phrase == "בשביל"

    async def test_whitespace_is_normalised(self, learner, store):
        await learner.save_pattern(USER, "  קיבלתי   החלטה ", "החלטתי\n")

        stored = await store.find_by_exact_phrase(USER, "קיבלתי החלטה")
        assert stored is not None
        assert stored.good_phrase == "החלטתי"

    async def test_patterns_are_per_user(self, learner, store):
        await learner.save_pattern(USER, "על מנת", "כדי")
        await learner.save_pattern("user-2", "על מנת", "כדי")

        assert len(await store.top_by_confidence(USER)) == 1
        assert len(await store.top_by_confidence("user-2")) == 1

    async def test_no_op_rejected(self, learner, store):
        with pytest.raises(NoOpCorrectionError):
            await learner.save_pattern(USER, "שלום", " שלום ")
        with pytest.raises(NoOpCorrectionError):
            await learner.save_pattern(USER, "Hello", "hello")

        assert await store.top_by_confidence(USER) == []

    async def test_empty_side_rejected(self, learner):
        with pytest.raises(EmptyCorrectionError):
            await learner.save_pattern(USER, "", "כדי")
        with pytest.raises(EmptyCorrectionError):
            await learner.save_pattern(USER, "על מנת", "   ")

    async def test_pattern_type_kept(self, learner):
        pattern = await learner.save_pattern(USER, "גם כן", "גם", pattern_type=PatternType.GENERAL)
        assert pattern.pattern_type is PatternType.GENERAL

    async def test_oversized_phrase_rejected(self, learner, store):
        with pytest.raises(PhraseTooLongError) as exc_info:
            await learner.save_pattern(USER, "א" * 5000, "ב")

        assert exc_info.value.details["field"] == "original"
        assert exc_info.value.status_code == 422
        with pytest.raises(PhraseTooLongError) as exc_info:
            await learner.save_pattern(USER, "על מנת", "כדי " * 400)
        assert exc_info.value.details["field"] == "corrected"

        assert await store.top_by_confidence(USER) == []

    async def test_phrase_at_the_limit_is_kept(self, store, settings):
        learner = PatternLearner(store, settings=settings.model_copy(update={"max_phrase_length": 6}))

        pattern = await learner.save_pattern(USER, "על מנת", "כדי")
        assert pattern.bad_phrase == "על מנת"
        with pytest.raises(ValidationError):
            await learner.save_pattern(USER, "להביא בחשבון", "לקחת בחשבון")


class TestImportPatterns:
    """Tests for bulk import of the built-in catalogue."""

    async def test_catalogue_imports_cleanly(self, learner, store):
        seeds = common_ai_patterns()
        report = await learner.import_patterns(USER, seeds)

        assert report.total == len(seeds)
        assert report.skipped == 0
        assert report.imported == len(seeds)

        stored = await store.find_by_exact_phrase(USER, "על מנת")
        assert stored.confidence == pytest.approx(0.95)
        assert stored.sources == ["import"]

    def test_catalogue_phrases_are_matchable(self):
        """Every bad phrase is found when it stands between other words."""
        for seed in common_ai_patterns():
            sentence = f"כתבתי {seed.bad_phrase} אתמול"
            assert phrase_regex(seed.bad_phrase).search(sentence), seed.bad_phrase

    async def test_invalid_entries_are_skipped(self, learner, store):
        seeds = [
            PatternSeed("באופן", ""),
            PatternSeed("ככל ש", "ככל ש"),
            PatternSeed("א" * 2000, "ב"),
            PatternSeed("על מנת", "כדי", confidence=0.95),
        ]
        report = await learner.import_patterns(USER, seeds)

        assert (report.imported, report.skipped, report.total) == (1, 3, 4)
        assert len(await store.top_by_confidence(USER, limit=None)) == 1

    async def test_reimport_merges(self, learner, store):
        seeds = [PatternSeed("על מנת", "כדי", confidence=0.9)]
        await learner.import_patterns(USER, seeds)
        await learner.import_patterns(USER, [PatternSeed("על מנת", "כדי", confidence=0.7)])

        stored = await store.find_by_exact_phrase(USER, "על מנת")
        assert stored.occurrence_count == 2
        assert stored.confidence == pytest.approx(0.9)

    async def test_import_keeps_learned_good_phrase(self, learner, store):
        """A user's own correction is not overwritten by the catalogue."""
        await learner.save_pattern(USER, "על מנת", "בשביל", source="manual-edit")
        await learner.import_patterns(USER, [PatternSeed("על מנת", "כדי", confidence=0.95)])

        stored = await store.find_by_exact_phrase(USER, "על מנת")
        assert stored.good_phrase == "בשביל"
        assert stored.confidence == pytest.approx(0.95)
        assert stored.sources == ["manual-edit", "import"]

    def test_min_confidence_filter(self):
        seeds = common_ai_patterns(min_confidence=0.95)
        assert seeds
        assert all(seed.confidence >= 0.95 for seed in seeds)
