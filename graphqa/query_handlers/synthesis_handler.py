# synthesis_handler.py
"""Handler for the synthesis route: model-assisted NL to SQL with one repair retry."""

import logging
import re
import time
from typing import Any, List, Optional

from graphqa.core import (
    ExecutionResult,
    LLMInterface,
    QueryExecutorInterface,
    QueryMetadata,
    RankingSignal,
)
from graphqa.core.exceptions import QueryExecutionError, QuerySynthesisError
from .analyzer import QueryAnalyzer
from .parameters import bind_parameters
from .repair import apply_post_generation_repairs, classify_error, plan_repair
from .sql_generator import SQLGenerator
from .sql_validator import validate_parameter_count, validate_sql
from .types import Route, SynthesisContext
from .utils import QueryPatternUtils

logger = logging.getLogger(__name__)

RANKING_PATTERN = re.compile(r"\bORDER\s+BY\s+([^\s,;]+)(?:\s+(DESC|ASC))?", re.IGNORECASE)


def detect_ranking_signal(sql: str) -> Optional[RankingSignal]:
    """First ORDER BY term of a query"""
    match = RANKING_PATTERN.search(sql)
    if not match:
        return None
    direction = (match.group(2) or "ASC").upper()
    return RankingSignal(signal=match.group(1), direction=direction)


class SynthesisHandler:
    """Answers arbitrary questions by analysing them and generating SQL.

    Never raises: every failure ends as an empty result with the reason in
    metadata.errors.
    """

    def __init__(self, llm: LLMInterface, executor: QueryExecutorInterface):
        self.executor = executor
        self.analyzer = QueryAnalyzer(llm)
        self.generator = SQLGenerator(llm)

    def handle(self, question: str) -> ExecutionResult:
        start = time.perf_counter()
        metadata = QueryMetadata(question=question, execution_route=Route.SYNTHESIS.value)

        def finish(rows: List[dict]) -> ExecutionResult:
            metadata.result_count = len(rows)
            metadata.execution_time_ms = int((time.perf_counter() - start) * 1000)
            return ExecutionResult(rows=rows, metadata=metadata)

        analysis = self.analyzer.analyze(question)
        metadata.detected_intent = analysis.intent
        metadata.intent_confidence = analysis.confidence
        if not analysis.from_model:
            metadata.add_warning("Analysis unavailable, used keyword-based default")

        context = SynthesisContext(
            question=question,
            analysis=analysis,
            negated=QueryPatternUtils.has_sql_negation(question),
        )

        try:
            generated = self.generator.generate(question, analysis)
        except QuerySynthesisError as e:
            logger.warning(f"Synthesis failed: {e}")
            metadata.add_error(str(e))
            return finish([])

        outcome = apply_post_generation_repairs(generated, context)
        metadata.warnings.extend(outcome.warnings)

        sql = self._validated(outcome.sql, metadata)
        if sql is None:
            return finish([])

        metadata.sql_query = sql
        metadata.ranking_signals = detect_ranking_signal(sql)
        params = bind_parameters(sql, question, analysis)

        try:
            rows = self.executor.execute(sql, params)
        except QueryExecutionError as e:
            logger.warning(f"Generated SQL failed: {e}")
            metadata.add_error(f"SQL execution failed: {e}")
            rows = self._retry_with_repair(sql, params, e, context, metadata)
            return finish(rows)

        if not rows and outcome.normalized:
            metadata.add_warning("Query returned 0 results after normalization")
        return finish(rows)

    def _validated(self, sql: str, metadata: QueryMetadata) -> Optional[str]:
        validation = validate_sql(sql)
        metadata.warnings.extend(validation.warnings)
        if not validation.valid:
            logger.warning(f"Generated SQL rejected: {validation.errors}")
            metadata.errors.extend(validation.errors)
            return None
        return validation.sanitized

    def _retry_with_repair(
        self,
        sql: str,
        params: List[Any],
        error: QueryExecutionError,
        context: SynthesisContext,
        metadata: QueryMetadata,
    ) -> List[dict]:
        """Exactly one deterministic rewrite and retry"""
        kind = classify_error(error.pgcode, str(error))
        plan = plan_repair(sql, kind, str(error), context)
        if plan is None:
            return []

        fixed = self._validated(plan.sql, metadata)
        if fixed is None:
            return []

        metadata.add_warning(
            f"Retried with repaired query (nl2sql -> nl2sql_fixed): {plan.description}"
        )
        metadata.sql_query = fixed
        if plan.focus_term:
            fixed_params: List[Any] = [f"%{plan.focus_term}%"]
            metadata.ranking_signals = RankingSignal(signal="focus_score", direction="DESC")
        else:
            fixed_params = params
            if not validate_parameter_count(fixed, fixed_params):
                fixed_params = bind_parameters(fixed, context.question, context.analysis)
            metadata.ranking_signals = detect_ranking_signal(fixed)

        try:
            return self.executor.execute(fixed, fixed_params)
        except QueryExecutionError as e:
            logger.warning(f"Repaired SQL also failed: {e}")
            metadata.add_error(f"Fixed SQL also failed: {e}")
            return []
