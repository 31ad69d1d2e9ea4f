"""
服务工厂 - 统一的服务创建和管理
One default graph per process; tests build their own graphs directly.
"""
from typing import TYPE_CHECKING, Optional

from correction_engine.core.config import PatternStoreBackend, get_settings

# 避免循环导入，使用TYPE_CHECKING
if TYPE_CHECKING:
    from correction_engine.repositories.base import PatternStore
    from correction_engine.services.generation_client import OpenAIGenerationClient
    from correction_engine.services.pattern_learner import PatternLearner
    from correction_engine.services.pattern_stats import PatternStatsService
    from correction_engine.services.suggestion_orchestrator import SuggestionOrchestrator
    from correction_engine.services.text_alignment import TextAlignmentService
    from correction_engine.services.text_analyzer import TextAnalyzer


class ServiceFactory:
    """
    服务工厂 - 提供统一的服务访问接口

    Collaborators are created once and shared, so the in-memory store keeps
    its contents for the life of the process.
    """

    _store: Optional["PatternStore"] = None
    _generator: Optional["OpenAIGenerationClient"] = None
    _orchestrator: Optional["SuggestionOrchestrator"] = None

    @classmethod
    def get_pattern_store(cls) -> "PatternStore":
        """获取模式仓库"""
        if cls._store is None:
            from correction_engine.repositories import ConfidencePolicy, InMemoryPatternStore, SQLPatternStore

            settings = get_settings()
            policy = ConfidencePolicy.from_settings(settings)
            if settings.pattern_store_backend == PatternStoreBackend.MEMORY:
                cls._store = InMemoryPatternStore(policy)
            else:
                cls._store = SQLPatternStore(policy)
        return cls._store

    @classmethod
    def get_generation_client(cls) -> "OpenAIGenerationClient":
        """获取生成服务客户端"""
        if cls._generator is None:
            from correction_engine.services.generation_client import OpenAIGenerationClient
            cls._generator = OpenAIGenerationClient()
        return cls._generator

    @staticmethod
    def get_text_aligner() -> "TextAlignmentService":
        from correction_engine.services.text_alignment import TextAlignmentService
        return TextAlignmentService()

    @classmethod
    def get_pattern_learner(cls) -> "PatternLearner":
        from correction_engine.services.pattern_learner import PatternLearner
        return PatternLearner(cls.get_pattern_store())

    @classmethod
    def get_text_analyzer(cls) -> "TextAnalyzer":
        from correction_engine.services.text_analyzer import TextAnalyzer
        return TextAnalyzer(cls.get_pattern_store())

    @classmethod
    def get_stats_service(cls) -> "PatternStatsService":
        from correction_engine.services.pattern_stats import PatternStatsService
        return PatternStatsService(cls.get_pattern_store())

    @classmethod
    def get_suggestion_orchestrator(cls) -> "SuggestionOrchestrator":
        """获取建议调度服务"""
        if cls._orchestrator is None:
            from correction_engine.services.suggestion_orchestrator import SuggestionOrchestrator
            cls._orchestrator = SuggestionOrchestrator(
                store=cls.get_pattern_store(),
                generator=cls.get_generation_client(),
                learner=cls.get_pattern_learner(),
            )
        return cls._orchestrator

    @classmethod
    async def shutdown(cls) -> None:
        if cls._generator is not None and cls._generator.is_initialized:
            await cls._generator.close()
        cls._store = None
        cls._generator = None
        cls._orchestrator = None
