"""Learned-pattern management APIs."""
from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from correction_engine.api.deps import (
    get_pattern_learner,
    get_pattern_store,
    get_stats_service,
    get_text_analyzer,
    get_user_id,
    resolve_user_id,
)
from correction_engine.db.models import Pattern, PatternType
from correction_engine.repositories.base import PatternStore
from correction_engine.services.common_patterns import common_ai_patterns
from correction_engine.services.pattern_learner import PatternLearner
from correction_engine.services.pattern_stats import PatternStatsService
from correction_engine.services.text_analyzer import TextAnalyzer
from correction_engine.services.types import PatternSeed

router = APIRouter(prefix="/api/v1/patterns", tags=["Patterns"])


class PatternResponse(BaseModel):
    id: int
    user_id: str
    bad_phrase: str
    good_phrase: str
    pattern_type: PatternType
    confidence: float
    occurrence_count: int
    sources: List[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_model(cls, pattern: Pattern) -> "PatternResponse":
        return cls(
            id=pattern.id,
            user_id=pattern.user_id,
            bad_phrase=pattern.bad_phrase,
            good_phrase=pattern.good_phrase,
            pattern_type=pattern.pattern_type,
            confidence=pattern.confidence,
            occurrence_count=pattern.occurrence_count,
            sources=list(pattern.sources or []),
            created_at=pattern.created_at.isoformat(),
            updated_at=pattern.updated_at.isoformat(),
        )


class PatternListResponse(BaseModel):
    items: List[PatternResponse]
    total: int


class SavePatternRequest(BaseModel):
    user_id: Optional[str] = Field(default=None, max_length=128)
    original: str = Field(..., max_length=1000)
    corrected: str = Field(..., max_length=1000)
    pattern_type: PatternType = PatternType.AI_STYLE
    source: Optional[str] = Field(default=None, max_length=64)


class PatternUpdateRequest(BaseModel):
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    pattern_type: Optional[PatternType] = None


class PatternDeleteResponse(BaseModel):
    id: int
    deleted: bool = True


class SeedModel(BaseModel):
    bad_phrase: str = Field(..., max_length=1000)
    good_phrase: str = Field(..., max_length=1000)
    pattern_type: PatternType = PatternType.AI_STYLE
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    category: Optional[str] = None
    explanation: Optional[str] = None

    def to_seed(self) -> PatternSeed:
        return PatternSeed(
            bad_phrase=self.bad_phrase,
            good_phrase=self.good_phrase,
            pattern_type=self.pattern_type,
            confidence=self.confidence,
            category=self.category,
            explanation=self.explanation,
        )

    @classmethod
    def from_seed(cls, seed: PatternSeed) -> "SeedModel":
        return cls(
            bad_phrase=seed.bad_phrase,
            good_phrase=seed.good_phrase,
            pattern_type=seed.pattern_type,
            confidence=seed.confidence,
            category=seed.category,
            explanation=seed.explanation,
        )


class ImportRequest(BaseModel):
    """Explicit ``patterns``, or the built-in catalogue when omitted."""

    user_id: Optional[str] = Field(default=None, max_length=128)
    patterns: Optional[List[SeedModel]] = None
    min_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class ImportResponse(BaseModel):
    imported: int
    skipped: int
    total: int


class SuggestPatternsRequest(BaseModel):
    text: str = Field(..., max_length=100_000)


class SuggestPatternsResponse(BaseModel):
    """Patterns worth saving, most confident first, and the 0-100 score of the text."""

    patterns: List[SeedModel]
    total: int
    score: int


class PatternSummary(BaseModel):
    bad_phrase: str
    good_phrase: str
    occurrence_count: int
    confidence: float
    created_at: str

    @classmethod
    def from_model(cls, pattern: Pattern) -> "PatternSummary":
        return cls(
            bad_phrase=pattern.bad_phrase,
            good_phrase=pattern.good_phrase,
            occurrence_count=pattern.occurrence_count,
            confidence=pattern.confidence,
            created_at=pattern.created_at.isoformat(),
        )


class StatsResponse(BaseModel):
    total_patterns: int
    high_confidence_patterns: int
    patterns_applied_count: int
    estimated_time_saved_seconds: int
    estimated_time_saved_minutes: int
    estimated_time_saved_hours: float
    average_confidence: float
    categories_breakdown: Dict[str, int]
    recent_activity: List[PatternSummary]
    top_patterns: List[PatternSummary]


@router.get("", response_model=PatternListResponse, summary="List learned patterns")
async def list_patterns(
    user_id: str = Depends(get_user_id),
    pattern_type: Optional[PatternType] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    store: PatternStore = Depends(get_pattern_store),
) -> PatternListResponse:
    patterns = await store.top_by_confidence(user_id, pattern_type=pattern_type, limit=limit)
    return PatternListResponse(
        items=[PatternResponse.from_model(pattern) for pattern in patterns],
        total=len(patterns),
    )


@router.post("", response_model=PatternResponse, summary="Save or reinforce a correction")
async def save_pattern(
    payload: SavePatternRequest,
    learner: PatternLearner = Depends(get_pattern_learner),
) -> PatternResponse:
    pattern = await learner.save_pattern(
        resolve_user_id(payload.user_id),
        payload.original,
        payload.corrected,
        pattern_type=payload.pattern_type,
        source=payload.source or "api",
    )
    return PatternResponse.from_model(pattern)


@router.post("/import", response_model=ImportResponse, summary="Bulk import patterns")
async def import_patterns(
    payload: ImportRequest,
    learner: PatternLearner = Depends(get_pattern_learner),
) -> ImportResponse:
    if payload.patterns is None:
        seeds = common_ai_patterns(payload.min_confidence)
    else:
        seeds = [
            item.to_seed()
            for item in payload.patterns
            if payload.min_confidence is None or item.confidence >= payload.min_confidence
        ]
    report = await learner.import_patterns(resolve_user_id(payload.user_id), seeds)
    return ImportResponse(imported=report.imported, skipped=report.skipped, total=report.total)


@router.post("/suggest", response_model=SuggestPatternsResponse, summary="Propose patterns found in a text")
async def suggest_patterns(
    payload: SuggestPatternsRequest,
    analyzer: TextAnalyzer = Depends(get_text_analyzer),
) -> SuggestPatternsResponse:
    suggestions = analyzer.suggest_patterns(payload.text)
    return SuggestPatternsResponse(
        patterns=[SeedModel.from_seed(seed) for seed in suggestions.patterns],
        total=len(suggestions.patterns),
        score=suggestions.score,
    )


@router.get("/stats", response_model=StatsResponse, summary="Learning progress statistics")
async def pattern_stats(
    user_id: str = Depends(get_user_id),
    service: PatternStatsService = Depends(get_stats_service),
) -> StatsResponse:
    stats = await service.compute(user_id)
    return StatsResponse(
        total_patterns=stats.total_patterns,
        high_confidence_patterns=stats.high_confidence_patterns,
        patterns_applied_count=stats.patterns_applied_count,
        estimated_time_saved_seconds=stats.estimated_time_saved_seconds,
        estimated_time_saved_minutes=stats.estimated_time_saved_minutes,
        estimated_time_saved_hours=stats.estimated_time_saved_hours,
        average_confidence=stats.average_confidence,
        categories_breakdown=stats.categories_breakdown,
        recent_activity=[PatternSummary.from_model(p) for p in stats.recent_activity],
        top_patterns=[PatternSummary.from_model(p) for p in stats.top_patterns],
    )


@router.get("/{pattern_id}", response_model=PatternResponse, summary="Get one pattern")
async def get_pattern(
    pattern_id: int,
    user_id: str = Depends(get_user_id),
    store: PatternStore = Depends(get_pattern_store),
) -> PatternResponse:
    pattern = await store.get(user_id, pattern_id)
    return PatternResponse.from_model(pattern)


@router.patch("/{pattern_id}", response_model=PatternResponse, summary="Adjust a pattern")
async def update_pattern(
    pattern_id: int,
    payload: PatternUpdateRequest,
    user_id: str = Depends(get_user_id),
    store: PatternStore = Depends(get_pattern_store),
) -> PatternResponse:
    pattern = await store.update(
        user_id,
        pattern_id,
        confidence=payload.confidence,
        pattern_type=payload.pattern_type,
    )
    return PatternResponse.from_model(pattern)


@router.delete("/{pattern_id}", response_model=PatternDeleteResponse, summary="Delete a pattern")
async def delete_pattern(
    pattern_id: int,
    user_id: str = Depends(get_user_id),
    store: PatternStore = Depends(get_pattern_store),
) -> PatternDeleteResponse:
    await store.delete(user_id, pattern_id)
    return PatternDeleteResponse(id=pattern_id)
