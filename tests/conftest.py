# -*- coding: utf-8 -*-
"""
Pytest configuration and fixtures for the correction engine tests.
"""
from typing import List, Optional

import pytest

from correction_engine.core.config import PatternStoreBackend, Settings
from correction_engine.db import configure_engine, dispose_engine, init_db
from correction_engine.repositories import ConfidencePolicy, InMemoryPatternStore, SQLPatternStore
from correction_engine.services.pattern_learner import PatternLearner
from correction_engine.services.suggestion_orchestrator import SuggestionOrchestrator
from correction_engine.services.text_alignment import TextAlignmentService
from correction_engine.services.types import GenerationRequest

USER = "user-1"

SUGGESTIONS_JSON = """{
  "suggestions": [
    {"text": "החלטתי", "explanation": "פועל אחד במקום שניים", "tone": "לא פורמלי", "whenToUse": "בשיחה"},
    {"text": "הגעתי להחלטה", "tone": "רשמי"}
  ]
}"""


class FakeGenerator:
    """Records every request and answers with canned text (or raises)."""

    def __init__(self, response: str = SUGGESTIONS_JSON, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.requests: List[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        pattern_store_backend=PatternStoreBackend.MEMORY,
        json_logs=False,
    )


@pytest.fixture
def store(settings):
    return InMemoryPatternStore(ConfidencePolicy.from_settings(settings))


@pytest.fixture
def learner(store, settings):
    return PatternLearner(store, settings=settings)


@pytest.fixture
def aligner(settings):
    return TextAlignmentService(settings=settings)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def orchestrator(store, generator, learner, aligner, settings):
    return SuggestionOrchestrator(
        store=store,
        generator=generator,
        learner=learner,
        aligner=aligner,
        settings=settings,
    )


@pytest.fixture
async def sql_store(tmp_path, settings):
    """SQL store on a throwaway SQLite file."""
    configure_engine(f"sqlite+aiosqlite:///{tmp_path / 'patterns.db'}")
    await init_db()
    yield SQLPatternStore(ConfidencePolicy.from_settings(settings))
    await dispose_engine()
