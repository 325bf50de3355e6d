# template_handler.py
"""Handler for the graph and lexical routes: fixed, parameterized templates."""

import logging
import time

from graphqa.core import ExecutionResult, QueryExecutorInterface, QueryMetadata, RankingSignal
from graphqa.core.exceptions import GraphQAError, SafetyValidationError
from .sql_validator import validate_parameter_count, validate_sql
from .templates import GRAPH_INTENTS, LEXICAL_INTENTS, build_query
from .types import Route, RoutingResult

logger = logging.getLogger(__name__)


class TemplateHandler:
    """Builds, validates and executes the template query for a routed question.

    Failures are raised with the partial metadata attached, so the caller can
    decide whether to fall back to another route.
    """

    def __init__(self, executor: QueryExecutorInterface, route: Route = Route.GRAPH):
        self.executor = executor
        self.route = route
        self.intents = GRAPH_INTENTS if route == Route.GRAPH else LEXICAL_INTENTS

    def handle(self, question: str, routing: RoutingResult) -> ExecutionResult:
        start = time.perf_counter()
        metadata = QueryMetadata(
            question=question,
            detected_intent=routing.intent.value,
            intent_confidence=routing.confidence,
            execution_route=self.route.value,
        )

        try:
            if routing.intent not in self.intents:
                raise SafetyValidationError(
                    f"Intent '{routing.intent.value}' has no {self.route.value} template"
                )

            built = build_query(routing.intent, routing.parameters)
            validation = validate_sql(built.text)
            metadata.warnings.extend(validation.warnings)
            if not validation.valid:
                raise SafetyValidationError(
                    f"Template query rejected: {'; '.join(validation.errors)}",
                    errors=validation.errors,
                )

            if not validate_parameter_count(validation.sanitized, built.params):
                raise SafetyValidationError("Parameter count mismatch for template query")

            metadata.sql_query = validation.sanitized
            if built.ranking_signal:
                metadata.ranking_signals = RankingSignal(
                    signal=built.ranking_signal, direction=built.ranking_direction
                )

            rows = self.executor.execute(validation.sanitized, list(built.params))
        except GraphQAError as e:
            metadata.add_error(str(e))
            metadata.execution_time_ms = int((time.perf_counter() - start) * 1000)
            e.metadata = metadata
            raise

        metadata.result_count = len(rows)
        metadata.execution_time_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            f"{self.route.value} route: {routing.intent.value} returned {len(rows)} rows"
        )
        return ExecutionResult(rows=rows, metadata=metadata)
