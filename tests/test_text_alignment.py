# -*- coding: utf-8 -*-
"""
Tests for mapping a selection between the original and edited text.
בדיקות ליישור טקסט בין גרסה מקורית לגרסה ערוכה
"""
import pytest

from correction_engine.core.errors import ValidationError
from correction_engine.services.types import AlignmentKind, SpanSource


class TestAlign:
    """Tests for TextAlignmentService.align()."""

    def test_identical_texts_are_unchanged(self, aligner):
        """Aligning a text with itself maps the selection onto itself."""
        text = "אני חושב שזה טוב"
        result = aligner.align(text, text, "שזה")

        assert result.kind is AlignmentKind.UNCHANGED
        assert result.original_span.text == "שזה"
        assert result.corrected_span.text == "שזה"
        assert result.original_span.start_offset == 9
        assert not result.is_learnable

    def test_local_replacement(self, aligner):
        """A replaced word is paired with the word it replaced."""
        result = aligner.align("אני חושב שזה טוב", "אני מאמין שזה טוב", "מאמין")

        assert result.kind is AlignmentKind.REPLACE
        assert result.original_span.text == "חושב"
        assert result.corrected_span.text == "מאמין"
        assert result.original_span.word_index == 1
        assert result.as_correction() == ("חושב", "מאמין")

    def test_selection_in_original_version(self, aligner):
        result = aligner.align(
            "אני חושב שזה טוב",
            "אני מאמין שזה טוב",
            "חושב",
            source=SpanSource.ORIGINAL,
        )

        assert result.kind is AlignmentKind.REPLACE
        assert result.source is SpanSource.ORIGINAL
        assert result.as_correction() == ("חושב", "מאמין")

    def test_replacement_with_different_length(self, aligner):
        """Two words collapsed into one are found by the local search."""
        result = aligner.align("קיבלתי החלטה לגבי זה", "החלטתי לגבי זה", "החלטתי")

        assert result.kind is AlignmentKind.REPLACE
        assert result.as_correction() == ("קיבלתי החלטה", "החלטתי")

    def test_multi_word_selection_in_original(self, aligner):
        result = aligner.align(
            "קיבלתי החלטה לגבי זה",
            "החלטתי לגבי זה",
            "קיבלתי החלטה",
            source=SpanSource.ORIGINAL,
        )

        assert result.kind is AlignmentKind.REPLACE
        assert result.corrected_span.text == "החלטתי"

    def test_insertion_at_end(self, aligner):
        """Text added after the last original word has no counterpart."""
        result = aligner.align("שלום", "שלום וברכה", "וברכה")

        assert result.kind is AlignmentKind.INSERT
        assert result.original_span is None
        assert result.corrected_span.text == "וברכה"
        assert not result.is_learnable

    def test_insertion_in_the_middle(self, aligner):
        result = aligner.align("אני חושב שזה טוב", "אני באמת חושב שזה טוב", "באמת")

        assert result.kind is AlignmentKind.INSERT
        assert result.original_span is None

    def test_deleted_original_content(self, aligner):
        """Original words removed by the edit cannot be paired."""
        result = aligner.align(
            "אני באמת חושב",
            "אני חושב",
            "באמת",
            source=SpanSource.ORIGINAL,
        )

        assert result.kind is AlignmentKind.AMBIGUOUS
        assert result.original_span.text == "באמת"
        assert result.corrected_span is None

    def test_deleted_trailing_original_content(self, aligner):
        result = aligner.align("שלום וברכה", "שלום", "וברכה", source=SpanSource.ORIGINAL)

        assert result.kind is AlignmentKind.AMBIGUOUS
        assert result.corrected_span is None

    def test_no_boundary_agreement_is_ambiguous(self, aligner):
        """A fully rewritten sentence gives only a tentative counterpart."""
        result = aligner.align("אחת שתיים שלוש", "ארבע חמש שש", "חמש")

        assert result.kind is AlignmentKind.AMBIGUOUS
        assert result.original_span.text == "שתיים"
        assert not result.is_learnable

    def test_selection_not_found(self, aligner):
        result = aligner.align("אני חושב", "אני מאמין", "לא קיים")

        assert result.kind is AlignmentKind.AMBIGUOUS
        assert result.original_span is None
        assert result.corrected_span is None

    def test_empty_selection_rejected(self, aligner):
        with pytest.raises(ValidationError):
            aligner.align("אני חושב", "אני מאמין", "   ")

    def test_selection_longer_than_source_rejected(self, aligner):
        with pytest.raises(ValidationError):
            aligner.align("שלום", "שלום", "שלום וברכה רבה")

    def test_trailing_punctuation_is_not_part_of_counterpart(self, aligner):
        """Punctuation glued to the selected word is trimmed from the other side."""
        result = aligner.align("אני חושב, שזה טוב", "אני מאמין, שזה טוב", "מאמין")

        assert result.kind is AlignmentKind.REPLACE
        assert result.as_correction() == ("חושב", "מאמין")

    def test_selection_offset_picks_the_right_occurrence(self, aligner):
        """A repeated word is disambiguated by the offset the editor reports."""
        original = "טוב מאוד יפה"
        edited = "טוב מאוד טוב"

        second = aligner.align(original, edited, "טוב", selection_offset=9)
        assert second.kind is AlignmentKind.REPLACE
        assert second.corrected_span.start_offset == 9
        assert second.as_correction() == ("יפה", "טוב")

        first = aligner.align(original, edited, "טוב")
        assert first.kind is AlignmentKind.UNCHANGED
        assert first.corrected_span.start_offset == 0

    def test_equally_good_windows_are_ambiguous(self, aligner):
        """Two windows framed by the same neighbours at the same distance."""
        result = aligner.align("a P b c a Q b", "d d a Z b d d", "Z")

        assert result.kind is AlignmentKind.AMBIGUOUS
        assert result.corrected_span.text == "Z"
        assert not result.is_learnable

    def test_nearest_agreeing_window_wins(self, aligner):
        """Of two windows framed by the same neighbours the closer one is chosen."""
        result = aligner.align("a P b c c a Q b", "d d d d a Z b", "Z")

        assert result.kind is AlignmentKind.REPLACE
        assert result.original_span.word_index == 6
        assert result.as_correction() == ("Q", "Z")


class TestLocateSelection:
    """Tests for locate_selection()."""

    def test_first_occurrence_without_offset(self, aligner):
        assert aligner.locate_selection("א ב א", "א") == 0

    def test_nearest_occurrence_to_offset(self, aligner):
        assert aligner.locate_selection("א ב א", "א", selection_offset=3) == 4

    def test_missing(self, aligner):
        assert aligner.locate_selection("א ב", "ג") is None


class TestExtractReplacements:
    """Tests for extract_replacements()."""

    def test_single_replacement(self, aligner):
        results = aligner.extract_replacements("אני חושב שזה טוב מאוד", "אני מאמין שזה טוב מאוד")

        assert len(results) == 1
        assert results[0].as_correction() == ("חושב", "מאמין")

    def test_several_replacements_left_to_right(self, aligner):
        results = aligner.extract_replacements(
            "קיבלתי החלטה לבוא על מנת לעזור",
            "החלטתי לבוא כדי לעזור",
        )

        assert [r.as_correction() for r in results] == [
            ("קיבלתי החלטה", "החלטתי"),
            ("על מנת", "כדי"),
        ]

    def test_pure_insertion_yields_nothing(self, aligner):
        assert aligner.extract_replacements("שלום", "שלום וברכה") == []

    def test_identical_texts(self, aligner):
        assert aligner.extract_replacements("שלום עולם", "שלום עולם") == []
