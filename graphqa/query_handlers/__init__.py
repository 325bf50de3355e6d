# Query package
"""Question routing, template queries and NL to SQL synthesis."""

from .classifier import IntentRouter, route
from .repair import ErrorKind, classify_error
from .router import AnswerState, QuestionAnswerer
from .sql_validator import extract_placeholders, validate_parameter_count, validate_sql
from .synthesis_handler import SynthesisHandler
from .template_handler import TemplateHandler
from .templates import build_query
from .types import BuiltQuery, Intent, QueryAnalysis, Route, RoutingResult, ValidationResult
from .utils import normalize_canonical_name

__all__ = [
    # Handlers
    "QuestionAnswerer",
    "SynthesisHandler",
    "TemplateHandler",
    # Core components
    "IntentRouter",
    "route",
    "build_query",
    "validate_sql",
    "validate_parameter_count",
    "extract_placeholders",
    "classify_error",
    "normalize_canonical_name",
    # Types
    "AnswerState",
    "BuiltQuery",
    "ErrorKind",
    "Intent",
    "QueryAnalysis",
    "Route",
    "RoutingResult",
    "ValidationResult",
]
