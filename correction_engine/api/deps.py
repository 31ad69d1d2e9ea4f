from typing import Optional

from fastapi import Query

from correction_engine.core.config import get_settings
from correction_engine.repositories.base import PatternStore
from correction_engine.services import ServiceFactory
from correction_engine.services.pattern_learner import PatternLearner
from correction_engine.services.pattern_stats import PatternStatsService
from correction_engine.services.suggestion_orchestrator import SuggestionOrchestrator
from correction_engine.services.text_alignment import TextAlignmentService
from correction_engine.services.text_analyzer import TextAnalyzer


def get_pattern_store() -> PatternStore:
    """获取模式仓库单例"""
    return ServiceFactory.get_pattern_store()


def get_pattern_learner() -> PatternLearner:
    return ServiceFactory.get_pattern_learner()


def get_text_aligner() -> TextAlignmentService:
    return ServiceFactory.get_text_aligner()


def get_stats_service() -> PatternStatsService:
    return ServiceFactory.get_stats_service()


def get_text_analyzer() -> TextAnalyzer:
    return ServiceFactory.get_text_analyzer()


def get_orchestrator() -> SuggestionOrchestrator:
    """获取建议调度服务单例"""
    return ServiceFactory.get_suggestion_orchestrator()


def get_user_id(user_id: Optional[str] = Query(default=None, max_length=128, description="Owner of the patterns")) -> str:
    """Query-string user id, falling back to the configured default user."""
    return resolve_user_id(user_id)


def resolve_user_id(user_id: Optional[str]) -> str:
    """Body-supplied user id, falling back to the configured default user."""
    return user_id or get_settings().default_user_id
