from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class FallbackInfo:
    """A recorded substitution of one execution strategy for another"""

    from_route: str
    to_route: str
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_route,
            "to": self.to_route,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class RankingSignal:
    """Ordering signal of the executed query"""

    signal: str
    direction: str = "DESC"
    weight: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"signal": self.signal, "direction": self.direction}
        if self.weight is not None:
            data["weight"] = self.weight
        return data


@dataclass
class QueryMetadata:
    """Provenance of one answered question.

    Lists are append-only: sub-components add warnings, errors and fallbacks,
    they never replace what is already recorded.
    """

    question: str
    detected_intent: str = "unknown"
    execution_route: str = "synthesis"
    intent_confidence: Optional[float] = None
    sql_query: Optional[str] = None
    ranking_signals: Optional[RankingSignal] = None
    fallbacks: List[FallbackInfo] = field(default_factory=list)
    execution_time_ms: int = 0
    result_count: int = 0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_fallback(self, from_route: str, to_route: str, reason: str) -> FallbackInfo:
        fallback = FallbackInfo(from_route=from_route, to_route=to_route, reason=reason)
        self.fallbacks.append(fallback)
        return fallback

    def merge(self, other: "QueryMetadata") -> None:
        """Fold a sub-executor's metadata into this one"""
        self.warnings.extend(other.warnings)
        self.errors.extend(other.errors)
        self.fallbacks.extend(other.fallbacks)
        if other.sql_query:
            self.sql_query = other.sql_query
        if other.ranking_signals is not None:
            self.ranking_signals = other.ranking_signals

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "question": self.question,
            "detectedIntent": self.detected_intent,
            "executionRoute": self.execution_route,
            "fallbacks": [fallback.to_dict() for fallback in self.fallbacks],
            "executionTimeMs": self.execution_time_ms,
            "resultCount": self.result_count,
            "warnings": list(self.warnings),
            "errors": list(self.errors),
        }
        if self.intent_confidence is not None:
            data["intentConfidence"] = self.intent_confidence
        if self.sql_query is not None:
            data["sqlQuery"] = self.sql_query
        if self.ranking_signals is not None:
            data["rankingSignals"] = self.ranking_signals.to_dict()
        return data


@dataclass
class ExecutionResult:
    """Rows plus metadata; the only return type of every execution path"""

    rows: List[Dict[str, Any]]
    metadata: QueryMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": self.rows, "metadata": self.metadata.to_dict()}
