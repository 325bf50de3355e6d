# Core package
"""Core models, configuration and interfaces for the knowledge-graph QA layer."""

from .config import SAMPLE_QUESTIONS, Config
from .interfaces import LLMInterface, QueryExecutorInterface
from .models import ExecutionResult, FallbackInfo, QueryMetadata, RankingSignal
from .settings import settings

__all__ = [
    "Config",
    "LLMInterface",
    "QueryExecutorInterface",
    "ExecutionResult",
    "FallbackInfo",
    "QueryMetadata",
    "RankingSignal",
    "SAMPLE_QUESTIONS",
    "settings",
]
