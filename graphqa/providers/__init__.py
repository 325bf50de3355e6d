# Providers package
"""External service providers for the knowledge-graph QA layer."""

from .llm_providers import GroqLLM, create_llm
from .mock_llm import MockLLM

__all__ = ["GroqLLM", "MockLLM", "create_llm"]
