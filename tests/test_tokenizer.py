# -*- coding: utf-8 -*-
"""
Tests for the whitespace tokenizer.
בדיקות לפירוק טקסט למילים
"""
from correction_engine.services.tokenizer import normalize_whitespace, token_index_at, tokenize


class TestTokenize:
    """Tests for tokenize()."""

    def test_offsets_are_half_open(self):
        """Every token slices back out of the text."""
        text = "אני  חושב,\tשזה טוב"
        tokens = tokenize(text)

        assert [t.text for t in tokens] == ["אני", "חושב,", "שזה", "טוב"]
        for token in tokens:
            assert text[token.start_offset:token.end_offset] == token.text

    def test_empty_text(self):
        assert tokenize("") == []
        assert tokenize("   \n ") == []

    def test_punctuation_stays_attached(self):
        tokens = tokenize("שלום, עולם!")
        assert [t.text for t in tokens] == ["שלום,", "עולם!"]


class TestNormalizeWhitespace:
    """Tests for normalize_whitespace()."""

    def test_collapses_runs_and_trims(self):
        assert normalize_whitespace("  קיבלתי \n  החלטה ") == "קיבלתי החלטה"

    def test_empty(self):
        assert normalize_whitespace("") == ""
        assert normalize_whitespace(None) == ""


class TestTokenIndexAt:
    """Tests for token_index_at()."""

    def test_offset_inside_token(self):
        tokens = tokenize("אני חושב שזה")
        assert token_index_at(tokens, 0) == 0
        assert token_index_at(tokens, 5) == 1
        assert token_index_at(tokens, 9) == 2

    def test_offset_on_whitespace_points_to_next_token(self):
        tokens = tokenize("אני חושב")
        assert token_index_at(tokens, 3) == 1
