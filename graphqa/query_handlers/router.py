# router.py
"""Orchestrator: routes a question, executes it, falls back to synthesis once."""

import logging
import time
from enum import Enum
from typing import Optional

from graphqa.core import ExecutionResult, LLMInterface, QueryExecutorInterface, QueryMetadata
from graphqa.core.exceptions import GraphQAError
from .classifier import IntentRouter
from .synthesis_handler import SynthesisHandler
from .template_handler import TemplateHandler
from .types import Route, RoutingResult

logger = logging.getLogger(__name__)


class AnswerState(str, Enum):
    ROUTED = "routed"
    EXECUTING = "executing"
    SUCCESS = "success"
    FAILED = "failed"


class QuestionAnswerer:
    """Resolves one question end to end.

    ROUTED -> EXECUTING(route) -> SUCCESS | FAILED. A failed template route
    transitions once to EXECUTING(synthesis); there is no further fallback.
    Sub-handler metadata is merged additively into the top-level metadata.
    """

    def __init__(
        self,
        llm: LLMInterface,
        executor: QueryExecutorInterface,
        intent_router: Optional[IntentRouter] = None,
    ):
        self.intent_router = intent_router or IntentRouter()
        self.handlers = {
            Route.GRAPH: TemplateHandler(executor, Route.GRAPH),
            Route.LEXICAL: TemplateHandler(executor, Route.LEXICAL),
        }
        self.synthesis_handler = SynthesisHandler(llm, executor)

    def classify(self, question: str) -> RoutingResult:
        return self.intent_router.route(question)

    def answer(self, question: str) -> ExecutionResult:
        """Never raises: failures come back as empty rows with metadata.errors"""
        start = time.perf_counter()
        metadata = QueryMetadata(question=question)

        try:
            routing = self.intent_router.route(question)
        except GraphQAError as e:
            logger.error(f"Routing failed: {e}")
            metadata.add_error(f"Routing failed: {e}")
            return self._finish([], metadata, start, AnswerState.FAILED)

        metadata.detected_intent = routing.intent.value
        metadata.intent_confidence = routing.confidence
        logger.info(
            f"Question routed: intent={routing.intent.value} route={routing.route.value} "
            f"confidence={routing.confidence:.2f}"
        )

        if routing.route == Route.SYNTHESIS:
            return self._run_synthesis(question, metadata, start)

        metadata.execution_route = routing.route.value
        try:
            result = self.handlers[routing.route].handle(question, routing)
        except GraphQAError as e:
            logger.warning(f"{routing.route.value} route failed, falling back to synthesis: {e}")
            if e.metadata is not None:
                metadata.merge(e.metadata)
            else:
                metadata.add_error(str(e))
            metadata.add_fallback(
                from_route=routing.route.value,
                to_route=Route.SYNTHESIS.value,
                reason=str(e),
            )
            return self._run_synthesis(question, metadata, start)
        except Exception as e:
            logger.exception(f"Unexpected {routing.route.value} route failure: {e}")
            metadata.add_error(f"Execution error: {e}")
            metadata.add_fallback(
                from_route=routing.route.value,
                to_route=Route.SYNTHESIS.value,
                reason=str(e),
            )
            return self._run_synthesis(question, metadata, start)

        metadata.merge(result.metadata)
        return self._finish(result.rows, metadata, start, AnswerState.SUCCESS)

    def _run_synthesis(
        self, question: str, metadata: QueryMetadata, start: float
    ) -> ExecutionResult:
        metadata.execution_route = Route.SYNTHESIS.value
        try:
            result = self.synthesis_handler.handle(question)
        except Exception as e:
            logger.exception(f"Unexpected synthesis failure: {e}")
            metadata.add_error(f"Agent error: {e}")
            return self._finish([], metadata, start, AnswerState.FAILED)

        metadata.merge(result.metadata)
        state = AnswerState.FAILED if result.metadata.errors and not result.rows else AnswerState.SUCCESS
        return self._finish(result.rows, metadata, start, state)

    def _finish(
        self, rows, metadata: QueryMetadata, start: float, state: AnswerState
    ) -> ExecutionResult:
        metadata.result_count = len(rows)
        metadata.execution_time_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            f"Question {state.value}: {metadata.result_count} rows in {metadata.execution_time_ms}ms"
        )
        return ExecutionResult(rows=rows, metadata=metadata)
