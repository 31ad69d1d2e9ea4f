"""Pattern repositories."""
from .base import ConfidencePolicy, PatternStore
from .memory import InMemoryPatternStore
from .sql import SQLPatternStore

__all__ = ["ConfidencePolicy", "InMemoryPatternStore", "PatternStore", "SQLPatternStore"]
