# -*- coding: utf-8 -*-
"""
Tests for the suggestion orchestrator and the editing session workflow.
בדיקות לתיאום הצעות ולמצבי עריכה
"""
import pytest

from correction_engine.core.errors import (
    InvalidStateTransitionError,
    PersistenceError,
    RateLimitedError,
    ValidationError,
)
from correction_engine.db.models import PatternType
from correction_engine.repositories import InMemoryPatternStore
from correction_engine.services.suggestion_orchestrator import (
    EditingSession,
    SessionState,
    SuggestionOrchestrator,
)
from correction_engine.services.types import AlignmentKind

from conftest import USER, FakeGenerator


class BrokenStore(InMemoryPatternStore):
    """Store whose backend is unreachable."""

    async def top_by_confidence(self, user_id, pattern_type=None, limit=20):
        raise PersistenceError("database is locked", operation="top_by_confidence")

    async def upsert(self, user_id, bad_phrase, good_phrase, pattern_type=PatternType.AI_STYLE, source=None):
        raise PersistenceError("database is locked", operation="upsert")


@pytest.fixture
def broken_orchestrator(settings):
    return SuggestionOrchestrator(BrokenStore(), FakeGenerator(), settings=settings)


class TestGenerationConstraints:
    """Tests for prepare_generation_constraints()."""

    async def test_only_ai_style_in_confidence_order(self, orchestrator, learner):
        await learner.save_pattern(USER, "על מנת", "כדי")
        await learner.save_pattern(USER, "קריטי", "חיוני")
        await learner.save_pattern(USER, "קריטי", "חיוני")
        await learner.save_pattern(USER, "גם כן", "גם", pattern_type=PatternType.GENERAL)

        constraints = await orchestrator.prepare_generation_constraints(USER)

        assert constraints.forbidden_phrases == ["קריטי", "על מנת"]
        assert constraints.replacements == {"קריטי": "חיוני", "על מנת": "כדי"}

    async def test_limit(self, orchestrator, learner, settings):
        for index in range(settings.forbidden_pattern_limit + 5):
            await learner.save_pattern(USER, f"ביטוי {index}", f"חלופה {index}")

        constraints = await orchestrator.prepare_generation_constraints(USER)
        assert len(constraints.forbidden_phrases) == settings.forbidden_pattern_limit

    async def test_no_patterns(self, orchestrator):
        constraints = await orchestrator.prepare_generation_constraints(USER)
        assert not constraints
        assert constraints.replacements == {}

    async def test_store_failure_gives_empty_constraints(self, broken_orchestrator):
        constraints = await broken_orchestrator.prepare_generation_constraints(USER)
        assert constraints.forbidden_phrases == []


class TestSuggestionsForSelection:
    """Tests for get_suggestions_for_selection()."""

    async def test_prompt_carries_learned_constraints(self, orchestrator, learner, generator, settings):
        await learner.save_pattern(USER, "על מנת", "כדי")

        suggestions = await orchestrator.get_suggestions_for_selection(
            USER, "קיבלתי החלטה על מנת לעזור", "קיבלתי החלטה", context="מכתב רשמי"
        )

        assert [s.text for s in suggestions] == ["החלטתי", "הגעתי להחלטה"]
        request = generator.requests[0]
        assert '- ❌ "על מנת" → ✅ "כדי"' in request.prompt
        assert '"קיבלתי החלטה"' in request.prompt
        assert "מכתב רשמי" in request.prompt
        assert request.max_tokens == settings.generation_max_tokens
        assert request.temperature == settings.generation_temperature

    async def test_prompt_lists_synonym_groups(self, store, generator, settings):
        class TechnicalSynonyms:
            def lookup(self, word):
                return ["פלטפורמה"] if word == "מערכת" else []

            def prompt_groups(self):
                return [("מערכת", ("פלטפורמה",))]

        orchestrator = SuggestionOrchestrator(store, generator, synonyms=TechnicalSynonyms(), settings=settings)

        await orchestrator.get_suggestions_for_selection(USER, "המערכת עובדת", "המערכת")

        assert '"מערכת" (מועדף) ← [פלטפורמה]' in generator.requests[0].prompt
        assert '"לפיכך"' not in generator.requests[0].prompt
        assert orchestrator.word_alternatives("מערכת חדשה") == {"מערכת": ["פלטפורמה"]}

    async def test_unparseable_response_gives_no_suggestions(self, store, settings):
        orchestrator = SuggestionOrchestrator(store, FakeGenerator("not json at all"), settings=settings)

        assert await orchestrator.get_suggestions_for_selection(USER, "טקסט כלשהו", "טקסט") == []

    async def test_upstream_failure_propagates(self, store, settings):
        orchestrator = SuggestionOrchestrator(store, FakeGenerator(error=RateLimitedError()), settings=settings)

        with pytest.raises(RateLimitedError):
            await orchestrator.get_suggestions_for_selection(USER, "טקסט כלשהו", "טקסט")

    async def test_empty_selection_rejected(self, orchestrator, generator):
        with pytest.raises(ValidationError):
            await orchestrator.get_suggestions_for_selection(USER, "טקסט כלשהו", "  ")

        assert generator.requests == []

    async def test_store_failure_still_generates(self, broken_orchestrator):
        suggestions = await broken_orchestrator.get_suggestions_for_selection(USER, "טקסט כלשהו", "טקסט")
        assert len(suggestions) == 2


class TestInstantSuggestions:
    """Tests for instant_suggestions() and word_alternatives()."""

    async def test_patterns_inside_selection(self, orchestrator, learner):
        await learner.save_pattern(USER, "על מנת", "כדי")
        await learner.save_pattern(USER, "קריטי", "חיוני")
        draft = "באתי על מנת לעזור וזה קריטי"

        matches = await orchestrator.instant_suggestions(USER, draft, "על מנת לעזור")

        assert len(matches) == 1
        assert matches[0].replacement == "כדי"
        assert matches[0].occurrences[0].start_offset == 5

    async def test_only_selected_occurrence(self, orchestrator, learner):
        await learner.save_pattern(USER, "על מנת", "כדי")
        draft = "על מנת לבוא, על מנת ללכת"
        second = draft.rindex("על מנת")

        matches = await orchestrator.instant_suggestions(USER, draft, "על מנת", selection_offset=second)

        assert [span.start_offset for span in matches[0].occurrences] == [second]

    async def test_selection_not_in_draft(self, orchestrator, learner):
        await learner.save_pattern(USER, "על מנת", "כדי")
        assert await orchestrator.instant_suggestions(USER, "על מנת", "משהו אחר") == []

    async def test_store_failure(self, broken_orchestrator):
        assert await broken_orchestrator.instant_suggestions(USER, "על מנת", "על מנת") == []

    def test_word_alternatives(self, orchestrator):
        alternatives = orchestrator.word_alternatives("בהתאם לתוכנית, לפיכך נמשיך.")

        assert set(alternatives) == {"בהתאם", "לפיכך"}
        assert alternatives["לפיכך"][0] == "לכן"
        assert all(len(words) <= 5 for words in alternatives.values())


class TestLearning:
    """Tests for learning from accepted suggestions and manual edits."""

    async def test_accept_suggestion(self, orchestrator, store):
        pattern = await orchestrator.accept_suggestion(USER, "קיבלתי החלטה", "החלטתי")

        assert pattern.sources == ["suggestion"]
        assert await store.find_by_exact_phrase(USER, "קיבלתי החלטה") is not None

    async def test_accept_no_op_is_ignored(self, orchestrator, store):
        assert await orchestrator.accept_suggestion(USER, "שלום", "שלום") is None
        assert await store.top_by_confidence(USER) == []

    async def test_accept_store_failure_is_ignored(self, broken_orchestrator):
        assert await broken_orchestrator.accept_suggestion(USER, "על מנת", "כדי") is None

    async def test_learn_from_edit(self, orchestrator):
        outcome = await orchestrator.learn_from_edit(
            USER, "אני חושב שזה טוב", "אני מאמין שזה טוב", "מאמין"
        )

        assert outcome.alignment.kind is AlignmentKind.REPLACE
        assert outcome.pattern.bad_phrase == "חושב"
        assert outcome.pattern.good_phrase == "מאמין"
        assert outcome.pattern.sources == ["manual-edit"]

    async def test_insertion_is_not_learned(self, orchestrator, store):
        outcome = await orchestrator.learn_from_edit(USER, "שלום", "שלום וברכה", "וברכה")

        assert outcome.alignment.kind is AlignmentKind.INSERT
        assert outcome.pattern is None
        assert await store.top_by_confidence(USER) == []

    async def test_learn_from_revision(self, orchestrator):
        patterns = await orchestrator.learn_from_revision(
            USER,
            "קיבלתי החלטה לבוא על מנת לעזור",
            "החלטתי לבוא כדי לעזור",
        )

        assert [(p.bad_phrase, p.good_phrase) for p in patterns] == [
            ("קיבלתי החלטה", "החלטתי"),
            ("על מנת", "כדי"),
        ]
        assert all(p.sources == ["revision"] for p in patterns)

    async def test_rewritten_document_is_not_one_pattern(self, orchestrator, store):
        """A full rewrite is a single replace run, longer than any phrase the store keeps."""
        original = " ".join(["המערכת מהווה פתרון קריטי"] * 100)
        edited = " ".join(["הכלי הזה עוזר מאוד לכולם"] * 100)

        assert await orchestrator.learn_from_revision(USER, original, edited) == []
        assert await store.top_by_confidence(USER, limit=None) == []

    async def test_oversized_suggestion_is_ignored(self, orchestrator, store):
        assert await orchestrator.accept_suggestion(USER, "א" * 5000, "ב") is None
        assert await store.top_by_confidence(USER) == []


class TestEditingSession:
    """Tests for the selection workflow state machine."""

    async def test_full_workflow(self, orchestrator, store):
        session = EditingSession(orchestrator, USER, "קיבלתי החלטה לבוא מחר")
        assert session.state is SessionState.IDLE

        await session.select("קיבלתי החלטה")
        assert session.state is SessionState.ALTERNATIVES_SHOWN
        assert session.selection_start == 0

        suggestions = await session.fetch_suggestions()
        assert session.state is SessionState.SUGGESTIONS_SHOWN
        assert suggestions[0].text == "החלטתי"

        pattern = await session.accept(suggestions[0].text)
        assert session.state is SessionState.IDLE
        assert session.draft_text == "החלטתי לבוא מחר"
        assert session.selected_text is None
        assert pattern.bad_phrase == "קיבלתי החלטה"
        assert await store.find_by_exact_phrase(USER, "קיבלתי החלטה") is not None

    async def test_accept_straight_from_alternatives(self, orchestrator):
        session = EditingSession(orchestrator, USER, "בהתאם לתוכנית")
        await session.select("בהתאם", selection_offset=0)
        assert "בהתאם" in session.alternatives

        await session.accept("לפי")
        assert session.draft_text == "לפי לתוכנית"

    async def test_instant_matches_on_select(self, orchestrator, learner):
        await learner.save_pattern(USER, "על מנת", "כדי")
        session = EditingSession(orchestrator, USER, "באתי על מנת לעזור")

        await session.select("על מנת לעזור")

        assert [m.replacement for m in session.instant_matches] == ["כדי"]

    async def test_fetch_from_idle_rejected(self, orchestrator):
        session = EditingSession(orchestrator, USER, "טקסט")

        with pytest.raises(InvalidStateTransitionError):
            await session.fetch_suggestions()

    async def test_select_twice_rejected(self, orchestrator):
        session = EditingSession(orchestrator, USER, "טקסט כלשהו")
        await session.select("טקסט")

        with pytest.raises(InvalidStateTransitionError):
            await session.select("כלשהו")

    async def test_accept_from_idle_rejected(self, orchestrator):
        session = EditingSession(orchestrator, USER, "טקסט")

        with pytest.raises(InvalidStateTransitionError):
            await session.accept("משהו")

    async def test_select_missing_text(self, orchestrator):
        session = EditingSession(orchestrator, USER, "טקסט")

        with pytest.raises(ValidationError):
            await session.select("לא שם")
        assert session.state is SessionState.IDLE

    async def test_failed_fetch_returns_to_alternatives(self, store, settings):
        orchestrator = SuggestionOrchestrator(store, FakeGenerator(error=RateLimitedError()), settings=settings)
        session = EditingSession(orchestrator, USER, "טקסט כלשהו")
        await session.select("טקסט")

        with pytest.raises(RateLimitedError):
            await session.fetch_suggestions()

        assert session.state is SessionState.ALTERNATIVES_SHOWN
        assert session.selected_text == "טקסט"

    async def test_clear_from_any_state(self, orchestrator):
        session = EditingSession(orchestrator, USER, "טקסט כלשהו")
        await session.select("טקסט")
        await session.fetch_suggestions()

        session.clear_selection()

        assert session.state is SessionState.IDLE
        assert session.suggestions == []
        assert session.alternatives == {}
