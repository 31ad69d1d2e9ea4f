"""Whitespace tokenizer that keeps character offsets."""
import re
from bisect import bisect_right
from typing import Iterator, List, Sequence

from correction_engine.services.types import Token

_WORD_RE = re.compile(r"\S+")
_WHITESPACE_RE = re.compile(r"\s+")


def iter_tokens(text: str) -> Iterator[Token]:
    """Yield whitespace-delimited tokens in order. Single pass."""
    if not text:
        return
    for match in _WORD_RE.finditer(text):
        yield Token(match.group(), match.start(), match.end())


def tokenize(text: str) -> List[Token]:
    """Split ``text`` on whitespace runs; punctuation stays attached to its word."""
    return list(iter_tokens(text))


def normalize_whitespace(text: str) -> str:
    """Trim and collapse internal whitespace runs to a single space."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def token_index_at(tokens: Sequence[Token], offset: int) -> int:
    """Index of the token containing ``offset``, or of the first token after it."""
    starts = [token.start_offset for token in tokens]
    index = bisect_right(starts, offset) - 1
    if index >= 0 and offset < tokens[index].end_offset:
        return index
    return index + 1
