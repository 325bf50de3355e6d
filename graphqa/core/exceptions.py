# exceptions.py
"""Custom exceptions for the knowledge-graph question answering system."""

from typing import List, Optional


class GraphQAError(Exception):
    """Base exception for question answering errors"""

    def __init__(self, message: str, metadata=None):
        super().__init__(message)
        # Partial QueryMetadata accumulated before the failure, if any
        self.metadata = metadata


class RoutingError(GraphQAError):
    """Raised when a question cannot be routed"""
    pass


class QuerySynthesisError(GraphQAError):
    """Raised when no query text can be extracted from model output"""
    pass


class SafetyValidationError(GraphQAError):
    """Raised when generated query text is rejected by the safety validator"""

    def __init__(self, message: str, errors: Optional[List[str]] = None, metadata=None):
        super().__init__(message, metadata)
        self.errors = errors or []


class QueryExecutionError(GraphQAError):
    """Raised when the store rejects a statement"""

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        pgcode: Optional[str] = None,
        metadata=None,
    ):
        super().__init__(message, metadata)
        self.sql = sql
        self.pgcode = pgcode


class LLMProviderError(GraphQAError):
    """Raised when LLM provider operations fail"""
    pass


class ConfigurationError(GraphQAError):
    """Raised when configuration is invalid"""
    pass


class DatabaseError(GraphQAError):
    """Raised when database operations fail"""
    pass
