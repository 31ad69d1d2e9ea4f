"""Decoding of generation-service responses into suggestions."""
import json
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from correction_engine.core.logging import LogEvent, get_logger
from correction_engine.services.types import Suggestion

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json|JSON)?\s*|\s*```\s*$")


class _SuggestionItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str
    explanation: Optional[str] = None
    tone: Optional[str] = None
    when_to_use: Optional[str] = Field(default=None, alias="whenToUse")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("suggestion text is empty")
        return value


class _SuggestionEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    suggestions: List[_SuggestionItem]


@dataclass(slots=True)
class ParsedSuggestions:
    suggestions: List[Suggestion]


@dataclass(slots=True)
class EmptySuggestions:
    """The response held no usable suggestions; ``reason`` says why."""

    reason: str

    @property
    def suggestions(self) -> List[Suggestion]:
        return []


ParseOutcome = Union[ParsedSuggestions, EmptySuggestions]


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    return _FENCE_RE.sub("", raw or "").strip()


def parse_suggestions(raw: str) -> ParseOutcome:
    """Decode ``{"suggestions": [...]}``; never raises."""
    body = strip_code_fences(raw)
    if not body:
        return _fallback("empty_response", raw)

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        return _fallback("invalid_json", raw, error=str(exc))

    try:
        envelope = _SuggestionEnvelope.model_validate(payload)
    except PydanticValidationError as exc:
        return _fallback("unexpected_shape", raw, error=str(exc.errors()[:3]))

    if not envelope.suggestions:
        return EmptySuggestions("no_suggestions")

    return ParsedSuggestions(
        [
            Suggestion(
                text=item.text,
                explanation=item.explanation,
                tone=item.tone,
                when_to_use=item.when_to_use,
            )
            for item in envelope.suggestions
        ]
    )


def _fallback(reason: str, raw: str, error: Optional[str] = None) -> EmptySuggestions:
    logger.warning(
        LogEvent.SUGGESTIONS_PARSE_FALLBACK,
        reason=reason,
        raw_preview=(raw or "")[:200],
        error=error,
    )
    return EmptySuggestions(reason)
