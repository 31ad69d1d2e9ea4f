"""Coordination layer between the editor, the pattern store and the generation service."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from correction_engine.core.config import Settings
from correction_engine.core.errors import (
    InvalidStateTransitionError,
    PatternError,
    PersistenceError,
    ValidationError,
)
from correction_engine.core.logging import LogEvent, preview
from correction_engine.db.models import Pattern, PatternType
from correction_engine.repositories.base import PatternStore
from correction_engine.services.base_service import BaseService
from correction_engine.services.generation_client import TextGenerator
from correction_engine.services.pattern_learner import PatternLearner
from correction_engine.services.pattern_matcher import find_matches
from correction_engine.services.prompts import SUGGESTION_SYSTEM_PROMPT, build_suggestion_prompt
from correction_engine.services.suggestion_parser import parse_suggestions
from correction_engine.services.synonyms import StaticSynonymDictionary, SynonymLookup, word_alternatives
from correction_engine.services.text_alignment import TextAlignmentService
from correction_engine.services.types import (
    AlignmentResult,
    GenerationConstraints,
    GenerationRequest,
    Match,
    SpanSource,
    Suggestion,
)


@dataclass(slots=True)
class LearningOutcome:
    """What learning from one edit produced; ``pattern`` is None when nothing was stored."""

    alignment: AlignmentResult
    pattern: Optional[Pattern] = None


class SuggestionOrchestrator(BaseService):
    """Facade used by the API and by editing sessions."""

    def __init__(
        self,
        store: PatternStore,
        generator: TextGenerator,
        learner: Optional[PatternLearner] = None,
        synonyms: Optional[SynonymLookup] = None,
        aligner: Optional[TextAlignmentService] = None,
        settings: Settings = None,
    ):
        super().__init__(settings)
        self.store = store
        self.generator = generator
        self.learner = learner or PatternLearner(store, settings=self.settings)
        self.synonyms = synonyms or StaticSynonymDictionary()
        self.aligner = aligner or TextAlignmentService(settings=self.settings)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def prepare_generation_constraints(self, user_id: str) -> GenerationConstraints:
        """Top learned ai-style phrasings, to be avoided by the generator. Read-only."""
        try:
            patterns = await self.store.top_by_confidence(
                user_id,
                PatternType.AI_STYLE,
                self.settings.forbidden_pattern_limit,
            )
        except PersistenceError as exc:
            self.logger.warning(
                LogEvent.PERSISTENCE_ERROR,
                operation="prepare_generation_constraints",
                user_id=user_id,
                error=exc.message,
            )
            return GenerationConstraints()

        return GenerationConstraints(
            forbidden_phrases=[pattern.bad_phrase for pattern in patterns],
            replacements={pattern.bad_phrase: pattern.good_phrase for pattern in patterns},
        )

    async def get_suggestions_for_selection(
        self,
        user_id: str,
        draft_text: str,
        selected_text: str,
        context: Optional[str] = None,
    ) -> List[Suggestion]:
        """Ask the generation service for alternative phrasings of the selection.

        An unparseable response yields an empty list; transport failures raise
        UpstreamServiceError subclasses.
        """
        if not draft_text or not draft_text.strip():
            raise ValidationError("Draft text is empty", field="draft_text")
        if not selected_text or not selected_text.strip():
            raise ValidationError("Selection is empty", field="selected_text")

        constraints = await self.prepare_generation_constraints(user_id)
        groups = self.synonyms.prompt_groups()

        request = GenerationRequest(
            prompt=build_suggestion_prompt(
                draft_text,
                selected_text.strip(),
                constraints,
                context=context,
                synonym_groups=groups,
            ),
            system_prompt=SUGGESTION_SYSTEM_PROMPT,
            max_tokens=self.settings.generation_max_tokens,
            temperature=self.settings.generation_temperature,
        )
        raw = await self.generator.generate(request)
        outcome = parse_suggestions(raw)
        self.logger.info(
            LogEvent.SUGGESTIONS_READY,
            user_id=user_id,
            selection=preview(selected_text),
            count=len(outcome.suggestions),
            forbidden=len(constraints.forbidden_phrases),
        )
        return outcome.suggestions

    # ------------------------------------------------------------------
    # Local lookups
    # ------------------------------------------------------------------

    async def instant_suggestions(
        self,
        user_id: str,
        draft_text: str,
        selected_text: str,
        selection_offset: Optional[int] = None,
    ) -> List[Match]:
        """Stored patterns occurring inside the selection, in confidence order."""
        if not selected_text or not selected_text.strip():
            return []
        selected = selected_text.strip()
        start = self.aligner.locate_selection(draft_text or "", selected, selection_offset)
        if start is None:
            return []
        end = start + len(selected)

        try:
            patterns = await self.store.top_by_confidence(user_id, limit=None)
        except PersistenceError as exc:
            self.logger.warning(
                LogEvent.PERSISTENCE_ERROR,
                operation="instant_suggestions",
                user_id=user_id,
                error=exc.message,
            )
            return []

        selected_matches: List[Match] = []
        for match in find_matches(draft_text, patterns):
            inside = [span for span in match.occurrences if span.overlaps(start, end)]
            if inside:
                selected_matches.append(Match(pattern=match.pattern, occurrences=inside))
        return selected_matches

    def word_alternatives(self, selected_text: str) -> Dict[str, List[str]]:
        return word_alternatives(selected_text, self.synonyms)

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    async def accept_suggestion(
        self,
        user_id: str,
        original: str,
        corrected: str,
        pattern_type: PatternType = PatternType.AI_STYLE,
        source: Optional[str] = "suggestion",
    ) -> Optional[Pattern]:
        """Learn from an accepted replacement. Failures are logged, never raised."""
        try:
            return await self.learner.save_pattern(
                user_id,
                original,
                corrected,
                pattern_type=pattern_type,
                source=source,
            )
        except PatternError as exc:
            self.logger.info(
                LogEvent.CORRECTION_IGNORED,
                user_id=user_id,
                reason=exc.error_code.value,
                original=preview(original),
            )
        except PersistenceError as exc:
            self.logger.error(
                LogEvent.PERSISTENCE_ERROR,
                operation="accept_suggestion",
                user_id=user_id,
                error=exc.message,
            )
        return None

    async def learn_from_edit(
        self,
        user_id: str,
        original_text: str,
        edited_text: str,
        selected_text: str,
        source: SpanSource = SpanSource.EDITED,
        selection_offset: Optional[int] = None,
        pattern_type: PatternType = PatternType.AI_STYLE,
    ) -> LearningOutcome:
        """Align a manual edit and learn it when it is a clean replacement."""
        alignment = self.aligner.align(
            original_text,
            edited_text,
            selected_text,
            source=source,
            selection_offset=selection_offset,
        )
        if not alignment.is_learnable:
            self.logger.info(
                LogEvent.CORRECTION_IGNORED,
                user_id=user_id,
                reason=f"alignment_{alignment.kind.value}",
                selection=preview(selected_text),
            )
            return LearningOutcome(alignment)

        bad_phrase, good_phrase = alignment.as_correction()
        pattern = await self.accept_suggestion(
            user_id,
            bad_phrase,
            good_phrase,
            pattern_type=pattern_type,
            source="manual-edit",
        )
        return LearningOutcome(alignment, pattern)

    async def learn_from_revision(
        self,
        user_id: str,
        original_text: str,
        edited_text: str,
        pattern_type: PatternType = PatternType.AI_STYLE,
    ) -> List[Pattern]:
        """Learn every word-level replacement between two full versions."""
        learned: List[Pattern] = []
        for alignment in self.aligner.extract_replacements(original_text, edited_text):
            bad_phrase, good_phrase = alignment.as_correction()
            pattern = await self.accept_suggestion(
                user_id,
                bad_phrase,
                good_phrase,
                pattern_type=pattern_type,
                source="revision",
            )
            if pattern is not None:
                learned.append(pattern)
        return learned


# ---------------------------------------------------------------------------
# Editing session
# ---------------------------------------------------------------------------


class SessionState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    ALTERNATIVES_SHOWN = "alternatives_shown"
    FETCHING_SUGGESTIONS = "fetching_suggestions"
    SUGGESTIONS_SHOWN = "suggestions_shown"


@dataclass
class EditingSession:
    """Selection workflow of one editor.

    IDLE -> ANALYZING -> ALTERNATIVES_SHOWN -> FETCHING_SUGGESTIONS ->
    SUGGESTIONS_SHOWN -> IDLE on accept; ``clear_selection`` returns to IDLE
    from any state.
    """

    orchestrator: SuggestionOrchestrator
    user_id: str
    draft_text: str
    state: SessionState = SessionState.IDLE
    selected_text: Optional[str] = None
    selection_start: Optional[int] = None
    context: Optional[str] = None
    instant_matches: List[Match] = field(default_factory=list)
    alternatives: Dict[str, List[str]] = field(default_factory=dict)
    suggestions: List[Suggestion] = field(default_factory=list)

    def _require(self, operation: str, *allowed: SessionState) -> None:
        if self.state not in allowed:
            raise InvalidStateTransitionError(self.state.value, operation)

    async def select(self, selected_text: str, selection_offset: Optional[int] = None) -> None:
        """Analyse a new selection and show instant alternatives."""
        self._require("select", SessionState.IDLE)
        if not selected_text or not selected_text.strip():
            raise ValidationError("Selection is empty", field="selected_text")

        selected = selected_text.strip()
        start = self.orchestrator.aligner.locate_selection(self.draft_text, selected, selection_offset)
        if start is None:
            raise ValidationError("Selection not found in draft", field="selected_text", value=preview(selected))

        self.state = SessionState.ANALYZING
        try:
            self.instant_matches = await self.orchestrator.instant_suggestions(
                self.user_id, self.draft_text, selected, start
            )
            self.alternatives = self.orchestrator.word_alternatives(selected)
        except Exception:
            self.clear_selection()
            raise

        self.selected_text = selected
        self.selection_start = start
        self.state = SessionState.ALTERNATIVES_SHOWN

    async def fetch_suggestions(self, context: Optional[str] = None) -> List[Suggestion]:
        self._require("fetch suggestions", SessionState.ALTERNATIVES_SHOWN)
        self.state = SessionState.FETCHING_SUGGESTIONS
        self.context = context
        try:
            self.suggestions = await self.orchestrator.get_suggestions_for_selection(
                self.user_id, self.draft_text, self.selected_text, context=context
            )
        except Exception:
            self.state = SessionState.ALTERNATIVES_SHOWN
            raise
        self.state = SessionState.SUGGESTIONS_SHOWN
        return self.suggestions

    async def accept(self, replacement: str) -> Optional[Pattern]:
        """Apply ``replacement`` to the draft and learn from it."""
        self._require("accept", SessionState.ALTERNATIVES_SHOWN, SessionState.SUGGESTIONS_SHOWN)
        if not replacement or not replacement.strip():
            raise ValidationError("Replacement is empty", field="replacement")

        replacement = replacement.strip()
        pattern = await self.orchestrator.accept_suggestion(
            self.user_id, self.selected_text, replacement
        )
        end = self.selection_start + len(self.selected_text)
        self.draft_text = self.draft_text[: self.selection_start] + replacement + self.draft_text[end:]
        self.clear_selection()
        return pattern

    def clear_selection(self) -> None:
        self.state = SessionState.IDLE
        self.selected_text = None
        self.selection_start = None
        self.context = None
        self.instant_matches = []
        self.alternatives = {}
        self.suggestions = []
