"""Finds known bad phrasings inside a draft."""
import re
from functools import lru_cache
from typing import Iterable, List, Sequence, Tuple

from correction_engine.db.models import Pattern
from correction_engine.services.tokenizer import token_index_at, tokenize
from correction_engine.services.types import Match, Span


@lru_cache(maxsize=1024)
def phrase_regex(phrase: str) -> re.Pattern:
    """Whole-word regex for ``phrase``; internal whitespace matches any run.

    Boundaries use lookarounds on Unicode word characters, so a phrase never
    matches inside a longer word ("שם" does not match in "השם").
    """
    words = [re.escape(word) for word in phrase.split()]
    return re.compile(r"(?<!\w)" + r"\s+".join(words) + r"(?!\w)")


def find_matches(draft_text: str, candidate_patterns: Iterable[Pattern]) -> List[Match]:
    """Patterns whose bad phrase occurs in ``draft_text``.

    Matches keep the order of ``candidate_patterns``; occurrences run left to right.
    """
    if not draft_text:
        return []

    tokens = tokenize(draft_text)
    matches: List[Match] = []
    for pattern in candidate_patterns:
        if not pattern.bad_phrase or not pattern.bad_phrase.strip():
            continue
        occurrences = [
            Span(
                found.group(),
                found.start(),
                found.end(),
                token_index_at(tokens, found.start()),
            )
            for found in phrase_regex(pattern.bad_phrase).finditer(draft_text)
        ]
        if occurrences:
            matches.append(Match(pattern=pattern, occurrences=occurrences))
    return matches


def apply_matches(
    draft_text: str,
    matches: Sequence[Match],
    min_confidence: float = 0.0,
) -> Tuple[str, List[Match]]:
    """Rewrite occurrences of confident patterns with their good phrase.

    Earlier matches win where occurrences overlap. Returns the rewritten text
    and the matches that contributed at least one replacement.
    """
    claimed: List[Tuple[int, int, str]] = []
    applied: List[Match] = []
    for match in matches:
        if match.confidence < min_confidence:
            continue
        used = False
        for span in match.occurrences:
            if any(span.overlaps(start, end) for start, end, _ in claimed):
                continue
            claimed.append((span.start_offset, span.end_offset, match.replacement))
            used = True
        if used:
            applied.append(match)

    if not claimed:
        return draft_text, applied

    pieces: List[str] = []
    cursor = 0
    for start, end, replacement in sorted(claimed):
        pieces.append(draft_text[cursor:start])
        pieces.append(replacement)
        cursor = end
    pieces.append(draft_text[cursor:])
    return "".join(pieces), applied
