"""Text alignment between the pre-edit and post-edit versions of a draft.

Edits are assumed to be local: a selection is mapped onto the other version
at the same word position, then confirmed by the words that surround it.
Global reorderings are out of reach for this heuristic by construction.
"""
from difflib import SequenceMatcher
from typing import List, Optional, Sequence, Tuple

from correction_engine.core.config import Settings
from correction_engine.core.errors import ValidationError
from correction_engine.core.logging import LogEvent, preview
from correction_engine.services.base_service import BaseService
from correction_engine.services.tokenizer import token_index_at, tokenize
from correction_engine.services.types import (
    AlignmentKind,
    AlignmentResult,
    Span,
    SpanSource,
    Token,
)

# (-boundary matches, position distance, length distance)
_RankKey = Tuple[int, int, int]


class TextAlignmentService(BaseService):
    """Maps a selected span between two versions of the same text."""

    def __init__(self, settings: Settings = None, search_radius: Optional[int] = None):
        super().__init__(settings)
        self.search_radius = (
            self.settings.alignment_search_radius if search_radius is None else search_radius
        )

    def align(
        self,
        original_text: str,
        edited_text: str,
        selected_text: str,
        source: SpanSource = SpanSource.EDITED,
        selection_offset: Optional[int] = None,
    ) -> AlignmentResult:
        """Find the counterpart of ``selected_text`` in the other version.

        Args:
            original_text: text before the user's edit
            edited_text: text after the user's edit
            selected_text: the fragment the user selected
            source: which version the selection was made in
            selection_offset: character offset of the selection as reported by
                the UI; disambiguates repeated fragments

        Returns:
            AlignmentResult whose ``kind`` tells the caller whether there is a
            learnable replacement.
        """
        if selected_text is None or not selected_text.strip():
            raise ValidationError("Selection is empty", field="selected_text")

        source = SpanSource(source)
        selected = selected_text.strip()
        if source is SpanSource.ORIGINAL:
            source_text, other_text = original_text or "", edited_text or ""
        else:
            source_text, other_text = edited_text or "", original_text or ""

        if len(selected) > len(source_text):
            raise ValidationError(
                "Selection is longer than its source text",
                field="selected_text",
                value=len(selected),
            )

        start = self.locate_selection(source_text, selected, selection_offset)
        if start is None:
            self.logger.info(
                LogEvent.ALIGNMENT_UNRESOLVED,
                reason="selection_not_found",
                source=source.value,
                selection=preview(selected),
            )
            return AlignmentResult(None, None, AlignmentKind.AMBIGUOUS, source)

        end = start + len(selected)
        source_tokens = tokenize(source_text)
        other_tokens = tokenize(other_text)

        first = token_index_at(source_tokens, start)
        last = token_index_at(source_tokens, end - 1)
        width = last - first + 1
        selected_span = Span(selected, start, end, first)

        # Fragments of the boundary tokens outside the selection ("," in "מאמין,")
        leading = source_tokens[first].text[: start - source_tokens[first].start_offset]
        trailing = source_tokens[last].text[end - source_tokens[last].start_offset:]

        if first >= len(other_tokens):
            return self._without_counterpart(source, selected_span)

        before = source_tokens[first - 1].text if first > 0 else None
        after = source_tokens[last + 1].text if last + 1 < len(source_tokens) else None

        # Proportional candidate: same word index, same width, clamped to bounds
        cand_width = min(width, len(other_tokens))
        cand_start = min(first, len(other_tokens) - cand_width)
        if self._boundary_score(other_tokens, cand_start, cand_width, before, after) == 2:
            counterpart = self._window_span(
                other_text, other_tokens, cand_start, cand_width, leading, trailing
            )
            return self._build(source, selected_span, counterpart, self._kind(selected, counterpart))

        ranked = self._rank_windows(other_tokens, first, width, before, after)
        if not ranked:
            counterpart = self._window_span(
                other_text, other_tokens, cand_start, cand_width, leading, trailing
            )
            self.logger.info(
                LogEvent.ALIGNMENT_UNRESOLVED,
                reason="no_boundary_agreement",
                source=source.value,
                selection=preview(selected),
                candidate=preview(counterpart.text),
            )
            return self._build(source, selected_span, counterpart, AlignmentKind.AMBIGUOUS)

        best_key, best_start, best_width = ranked[0]
        tied = len(ranked) > 1 and ranked[1][0] == best_key
        if tied:
            counterpart = (
                self._window_span(other_text, other_tokens, best_start, best_width, leading, trailing)
                if best_width else None
            )
            self.logger.info(
                LogEvent.ALIGNMENT_UNRESOLVED,
                reason="tied_candidates",
                source=source.value,
                selection=preview(selected),
                candidates=sum(1 for item in ranked if item[0] == best_key),
            )
            return self._build(source, selected_span, counterpart, AlignmentKind.AMBIGUOUS)

        if best_width == 0:
            # Both neighbours agree around an empty window: the selection is new content
            return self._without_counterpart(source, selected_span)

        counterpart = self._window_span(
            other_text, other_tokens, best_start, best_width, leading, trailing
        )
        return self._build(source, selected_span, counterpart, self._kind(selected, counterpart))

    def extract_replacements(self, original_text: str, edited_text: str) -> List[AlignmentResult]:
        """All word-level replacements between two versions, left to right.

        Pure insertions and deletions carry no (bad -> good) pair and are skipped.
        """
        original_tokens = tokenize(original_text or "")
        edited_tokens = tokenize(edited_text or "")
        matcher = SequenceMatcher(
            None,
            [token.text for token in original_tokens],
            [token.text for token in edited_tokens],
            autojunk=False,
        )

        results: List[AlignmentResult] = []
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag != "replace":
                continue
            original_span = self._window_span(original_text, original_tokens, i1, i2 - i1)
            corrected_span = self._window_span(edited_text, edited_tokens, j1, j2 - j1)
            results.append(
                AlignmentResult(original_span, corrected_span, AlignmentKind.REPLACE, SpanSource.EDITED)
            )
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def locate_selection(text: str, selected: str, selection_offset: Optional[int] = None) -> Optional[int]:
        """Start offset of the occurrence of ``selected`` the user most likely meant."""
        occurrences: List[int] = []
        index = text.find(selected)
        while index != -1:
            occurrences.append(index)
            index = text.find(selected, index + 1)

        if not occurrences:
            return None
        if selection_offset is None or len(occurrences) == 1:
            return occurrences[0]

        half = len(selected) / 2
        target = selection_offset + half
        return min(occurrences, key=lambda start: abs(start + half - target))

    @staticmethod
    def _boundary_score(
        tokens: Sequence[Token],
        start: int,
        width: int,
        before: Optional[str],
        after: Optional[str],
    ) -> int:
        """How many of the two neighbouring words agree (text edges count as words)."""
        prev_text = tokens[start - 1].text if start > 0 else None
        next_text = tokens[start + width].text if start + width < len(tokens) else None
        return int(prev_text == before) + int(next_text == after)

    def _rank_windows(
        self,
        tokens: Sequence[Token],
        word_index: int,
        width: int,
        before: Optional[str],
        after: Optional[str],
    ) -> List[Tuple[_RankKey, int, int]]:
        """Windows near ``word_index`` with at least one agreeing boundary, best first."""
        radius = self.search_radius
        low = max(0, word_index - radius)
        high = min(len(tokens), word_index + radius)

        ranked: List[Tuple[_RankKey, int, int]] = []
        for start in range(low, high + 1):
            for length in range(0, width + radius + 1):
                if start + length > len(tokens):
                    break
                score = self._boundary_score(tokens, start, length, before, after)
                if score == 0 or (length == 0 and score < 2):
                    continue
                key = (-score, abs(start - word_index), abs(length - width))
                ranked.append((key, start, length))

        ranked.sort(key=lambda item: item[0])
        return ranked

    @staticmethod
    def _window_span(
        text: str,
        tokens: Sequence[Token],
        start: int,
        width: int,
        leading: str = "",
        trailing: str = "",
    ) -> Span:
        """Span covering ``width`` tokens from ``start``, minus shared edge fragments."""
        first_token = tokens[start]
        last_token = tokens[start + width - 1]
        begin = first_token.start_offset
        end = last_token.end_offset

        if leading and first_token.text.startswith(leading) and begin + len(leading) < end:
            begin += len(leading)
        if trailing and last_token.text.endswith(trailing) and end - len(trailing) > begin:
            end -= len(trailing)

        return Span(text[begin:end], begin, end, start)

    @staticmethod
    def _kind(selected: str, counterpart: Span) -> AlignmentKind:
        return AlignmentKind.UNCHANGED if counterpart.text == selected else AlignmentKind.REPLACE

    @staticmethod
    def _build(
        source: SpanSource,
        selected_span: Span,
        counterpart: Optional[Span],
        kind: AlignmentKind,
    ) -> AlignmentResult:
        if source is SpanSource.ORIGINAL:
            return AlignmentResult(selected_span, counterpart, kind, source)
        return AlignmentResult(counterpart, selected_span, kind, source)

    def _without_counterpart(self, source: SpanSource, selected_span: Span) -> AlignmentResult:
        if source is SpanSource.EDITED:
            return AlignmentResult(None, selected_span, AlignmentKind.INSERT, source)
        # Selected original text vanished from the edit; nothing to pair it with
        self.logger.info(
            LogEvent.ALIGNMENT_UNRESOLVED,
            reason="deleted_content",
            source=source.value,
            selection=preview(selected_span.text),
        )
        return AlignmentResult(selected_span, None, AlignmentKind.AMBIGUOUS, source)
