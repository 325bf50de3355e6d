# conftest.py
"""Pytest configuration and shared fixtures."""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import pytest

from graphqa.core import QueryExecutorInterface
from graphqa.core.exceptions import QueryExecutionError
from graphqa.providers.mock_llm import MockLLM
from graphqa.query_handlers.vocabulary import Vocabulary


class FakeQueryExecutor(QueryExecutorInterface):
    """Records every call; returns scripted rows or raises scripted errors.

    Each entry of `script` is either a list of rows or a QueryExecutionError.
    Once the script runs out, `default_rows` is returned.
    """

    def __init__(self, script: Optional[List[Any]] = None, default_rows=None):
        self.script = list(script or [])
        self.default_rows = default_rows if default_rows is not None else []
        self.calls: List[Dict[str, Any]] = []

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        self.calls.append({"sql": sql, "params": list(params or [])})
        if self.script:
            outcome = self.script.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return self.default_rows


@pytest.fixture
def vocabulary():
    """Built-in router vocabulary."""
    return Vocabulary()


@pytest.fixture
def make_executor():
    """Factory for executors with a scripted sequence of outcomes."""
    return FakeQueryExecutor


@pytest.fixture
def scripted_llm():
    """Factory for a MockLLM that answers with the given responses in order."""

    def factory(*responses, default=""):
        return MockLLM(responses=responses, default=default)

    return factory


@pytest.fixture
def execution_error():
    """Factory for store errors with a SQLSTATE."""

    def factory(message="syntax error", pgcode=None, sql=None):
        return QueryExecutionError(message, sql=sql, pgcode=pgcode)

    return factory


@pytest.fixture
def sample_paper_rows():
    return [
        {
            "id": 1,
            "arxiv_id": "2308.04079",
            "title": "3D Gaussian Splatting for Real-Time Radiance Field Rendering",
            "authors": ["Bernhard Kerbl", "Georgios Kopanas"],
            "published_date": date(2023, 8, 8),
            "relevance_score": Decimal("3"),
        },
        {
            "id": 2,
            "arxiv_id": "2311.16493",
            "title": "Mip-Splatting: Alias-free 3D Gaussian Splatting",
            "authors": ["Zehao Yu"],
            "published_date": date(2023, 11, 27),
            "relevance_score": Decimal("2"),
        },
    ]


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )


# Custom collection hook for organizing tests
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "test_web_health" in item.nodeid or "test_question_answerer" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
