"""Alignment, learning, matching and suggestion APIs for the editor."""
from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from correction_engine.api.deps import (
    get_orchestrator,
    get_text_aligner,
    get_text_analyzer,
    get_user_id,
    resolve_user_id,
)
from correction_engine.api.v1.patterns import PatternResponse
from correction_engine.db.models import PatternType
from correction_engine.services.pattern_matcher import apply_matches, find_matches
from correction_engine.services.suggestion_orchestrator import SuggestionOrchestrator
from correction_engine.services.text_alignment import TextAlignmentService
from correction_engine.services.text_analyzer import IssueType, TextAnalysis, TextAnalyzer, TextIssue
from correction_engine.services.types import AlignmentKind, AlignmentResult, Match, Span, SpanSource

router = APIRouter(prefix="/api/v1/corrections", tags=["Corrections"])


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class SpanModel(BaseModel):
    text: str
    start_offset: int
    end_offset: int
    word_index: int

    @classmethod
    def from_span(cls, span: Optional[Span]) -> Optional["SpanModel"]:
        if span is None:
            return None
        return cls(
            text=span.text,
            start_offset=span.start_offset,
            end_offset=span.end_offset,
            word_index=span.word_index,
        )


class AlignRequest(BaseModel):
    original_text: str = Field(..., max_length=100_000)
    edited_text: str = Field(..., max_length=100_000)
    selected_text: str = Field(..., max_length=1000)
    source: SpanSource = SpanSource.EDITED
    selection_offset: Optional[int] = Field(default=None, ge=0)


class AlignmentResponse(BaseModel):
    kind: AlignmentKind
    source: SpanSource
    learnable: bool
    original_span: Optional[SpanModel] = None
    corrected_span: Optional[SpanModel] = None

    @classmethod
    def from_result(cls, result: AlignmentResult) -> "AlignmentResponse":
        return cls(
            kind=result.kind,
            source=result.source,
            learnable=result.is_learnable,
            original_span=SpanModel.from_span(result.original_span),
            corrected_span=SpanModel.from_span(result.corrected_span),
        )


class LearnRequest(AlignRequest):
    user_id: Optional[str] = Field(default=None, max_length=128)
    pattern_type: PatternType = PatternType.AI_STYLE


class LearnResponse(BaseModel):
    alignment: AlignmentResponse
    learned: bool
    pattern: Optional[PatternResponse] = None


class RevisionRequest(BaseModel):
    user_id: Optional[str] = Field(default=None, max_length=128)
    original_text: str = Field(..., max_length=100_000)
    edited_text: str = Field(..., max_length=100_000)
    pattern_type: PatternType = PatternType.AI_STYLE


class RevisionResponse(BaseModel):
    learned: List[PatternResponse]


class MatchesRequest(BaseModel):
    user_id: Optional[str] = Field(default=None, max_length=128)
    draft_text: str = Field(..., max_length=100_000)
    pattern_type: Optional[PatternType] = None
    apply: bool = False
    min_confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class MatchModel(BaseModel):
    pattern: PatternResponse
    replacement: str
    confidence: float
    occurrences: List[SpanModel]

    @classmethod
    def from_match(cls, match: Match) -> "MatchModel":
        return cls(
            pattern=PatternResponse.from_model(match.pattern),
            replacement=match.replacement,
            confidence=match.confidence,
            occurrences=[SpanModel.from_span(span) for span in match.occurrences],
        )


class MatchesResponse(BaseModel):
    matches: List[MatchModel]
    rewritten_text: Optional[str] = None


class AnalyzeRequest(BaseModel):
    user_id: Optional[str] = Field(default=None, max_length=128)
    text: str = Field(..., max_length=100_000)
    apply: bool = True


class IssueModel(BaseModel):
    issue_type: IssueType
    text: str
    suggestion: str
    confidence: float
    explanation: str
    start_offset: int
    end_offset: int

    @classmethod
    def from_issue(cls, issue: TextIssue) -> "IssueModel":
        return cls(
            issue_type=issue.issue_type,
            text=issue.span.text,
            suggestion=issue.suggestion,
            confidence=issue.confidence,
            explanation=issue.explanation,
            start_offset=issue.span.start_offset,
            end_offset=issue.span.end_offset,
        )


class AnalysisModel(BaseModel):
    score: int
    issues: List[IssueModel]
    advice: List[str]

    @classmethod
    def from_analysis(cls, analysis: Optional[TextAnalysis]) -> Optional["AnalysisModel"]:
        if analysis is None:
            return None
        return cls(
            score=analysis.score,
            issues=[IssueModel.from_issue(issue) for issue in analysis.issues],
            advice=analysis.advice,
        )


class AnalyzeResponse(BaseModel):
    analysis: AnalysisModel
    rewritten_text: str
    applied: List[MatchModel]
    revised: Optional[AnalysisModel] = None
    score_improvement: Optional[int] = None
    issues_fixed: Optional[int] = None


class ConstraintsResponse(BaseModel):
    forbidden_phrases: List[str]
    replacements: Dict[str, str]


class SuggestionsRequest(BaseModel):
    user_id: Optional[str] = Field(default=None, max_length=128)
    draft_text: str = Field(..., max_length=100_000)
    selected_text: str = Field(..., max_length=1000)
    context: Optional[str] = Field(default=None, max_length=2000)


class SuggestionModel(BaseModel):
    text: str
    explanation: Optional[str] = None
    tone: Optional[str] = None
    when_to_use: Optional[str] = None


class SuggestionsResponse(BaseModel):
    selected_text: str
    suggestions: List[SuggestionModel]
    word_alternatives: Dict[str, List[str]]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/align", response_model=AlignmentResponse, summary="Map a selection onto the other version")
async def align_selection(
    payload: AlignRequest,
    aligner: TextAlignmentService = Depends(get_text_aligner),
) -> AlignmentResponse:
    result = aligner.align(
        payload.original_text,
        payload.edited_text,
        payload.selected_text,
        source=payload.source,
        selection_offset=payload.selection_offset,
    )
    return AlignmentResponse.from_result(result)


@router.post("/learn", response_model=LearnResponse, summary="Learn from a manual edit")
async def learn_from_edit(
    payload: LearnRequest,
    orchestrator: SuggestionOrchestrator = Depends(get_orchestrator),
) -> LearnResponse:
    outcome = await orchestrator.learn_from_edit(
        resolve_user_id(payload.user_id),
        payload.original_text,
        payload.edited_text,
        payload.selected_text,
        source=payload.source,
        selection_offset=payload.selection_offset,
        pattern_type=payload.pattern_type,
    )
    return LearnResponse(
        alignment=AlignmentResponse.from_result(outcome.alignment),
        learned=outcome.pattern is not None,
        pattern=PatternResponse.from_model(outcome.pattern) if outcome.pattern is not None else None,
    )


@router.post("/learn-revision", response_model=RevisionResponse, summary="Learn every replacement of a revision")
async def learn_from_revision(
    payload: RevisionRequest,
    orchestrator: SuggestionOrchestrator = Depends(get_orchestrator),
) -> RevisionResponse:
    patterns = await orchestrator.learn_from_revision(
        resolve_user_id(payload.user_id),
        payload.original_text,
        payload.edited_text,
        pattern_type=payload.pattern_type,
    )
    return RevisionResponse(learned=[PatternResponse.from_model(pattern) for pattern in patterns])


@router.post("/matches", response_model=MatchesResponse, summary="Find known bad phrasings in a draft")
async def match_draft(
    payload: MatchesRequest,
    orchestrator: SuggestionOrchestrator = Depends(get_orchestrator),
) -> MatchesResponse:
    patterns = await orchestrator.store.top_by_confidence(
        resolve_user_id(payload.user_id),
        pattern_type=payload.pattern_type,
        limit=None,
    )
    matches = find_matches(payload.draft_text, patterns)
    rewritten = None
    if payload.apply:
        rewritten, _ = apply_matches(payload.draft_text, matches, payload.min_confidence)
    return MatchesResponse(
        matches=[MatchModel.from_match(match) for match in matches],
        rewritten_text=rewritten,
    )


@router.post("/analyze", response_model=AnalyzeResponse, summary="Score a draft and apply confident patterns")
async def analyze_draft(
    payload: AnalyzeRequest,
    analyzer: TextAnalyzer = Depends(get_text_analyzer),
) -> AnalyzeResponse:
    report = await analyzer.review(resolve_user_id(payload.user_id), payload.text, apply=payload.apply)
    return AnalyzeResponse(
        analysis=AnalysisModel.from_analysis(report.analysis),
        rewritten_text=report.rewritten_text,
        applied=[MatchModel.from_match(match) for match in report.applied],
        revised=AnalysisModel.from_analysis(report.revised),
        score_improvement=report.score_improvement,
        issues_fixed=report.issues_fixed,
    )


@router.get("/constraints", response_model=ConstraintsResponse, summary="Phrasings the generator must avoid")
async def generation_constraints(
    user_id: str = Depends(get_user_id),
    orchestrator: SuggestionOrchestrator = Depends(get_orchestrator),
) -> ConstraintsResponse:
    constraints = await orchestrator.prepare_generation_constraints(user_id)
    return ConstraintsResponse(
        forbidden_phrases=constraints.forbidden_phrases,
        replacements=constraints.replacements,
    )


@router.post("/suggestions", response_model=SuggestionsResponse, summary="Alternative phrasings for a selection")
async def suggest_alternatives(
    payload: SuggestionsRequest,
    orchestrator: SuggestionOrchestrator = Depends(get_orchestrator),
) -> SuggestionsResponse:
    suggestions = await orchestrator.get_suggestions_for_selection(
        resolve_user_id(payload.user_id),
        payload.draft_text,
        payload.selected_text,
        context=payload.context,
    )
    return SuggestionsResponse(
        selected_text=payload.selected_text,
        suggestions=[
            SuggestionModel(
                text=item.text,
                explanation=item.explanation,
                tone=item.tone,
                when_to_use=item.when_to_use,
            )
            for item in suggestions
        ],
        word_alternatives=orchestrator.word_alternatives(payload.selected_text),
    )
