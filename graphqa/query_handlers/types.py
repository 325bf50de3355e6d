# types.py
"""Data types and models for the query routing system."""

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Intent(str, Enum):
    """Structural shape of a question"""

    LINEAGE = "lineage"
    INTRODUCES = "introduces"
    EXTENDS = "extends"
    USES = "uses"
    COMPARES = "compares"
    AUTHORED_BY = "authored_by"
    NEIGHBORS = "neighbors"
    FOCUS = "focus"
    COUNT = "count"
    MOST_COMMON = "most_common"
    NL2SQL = "nl2sql"


class Route(str, Enum):
    """Execution strategy"""

    GRAPH = "graph"
    LEXICAL = "lexical"
    SYNTHESIS = "synthesis"


@dataclass(frozen=True)
class RoutingResult:
    """Routing decision for one question; never mutated downstream"""

    intent: Intent
    route: Route
    confidence: float
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence out of range: {self.confidence}")
        # Freeze a private copy of the parameters
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "route": self.route.value,
            "confidence": self.confidence,
            "parameters": dict(self.parameters),
        }


@dataclass(frozen=True)
class BuiltQuery:
    """Parameterized query text produced by a template builder"""

    text: str
    params: Tuple[Any, ...]
    ranking_signal: Optional[str] = None
    ranking_direction: str = "DESC"


@dataclass
class ValidationResult:
    """Outcome of the SQL safety validator"""

    valid: bool
    sanitized: Optional[str]
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class QueryAnalysis:
    """Structured understanding of a question produced by the analysis call"""

    intent: str = "search"
    entity_type: str = "mixed"
    fields_needed: List[str] = field(default_factory=list)
    conditions: Dict[str, Any] = field(default_factory=dict)
    aggregations: List[str] = field(default_factory=list)
    sorting: Dict[str, Any] = field(default_factory=dict)
    limit: Optional[int] = None
    confidence: Optional[float] = None
    from_model: bool = False

    @property
    def condition_value(self) -> Optional[str]:
        value = self.conditions.get("value") if isinstance(self.conditions, dict) else None
        if isinstance(value, str) and value.strip() and value.strip().lower() != "null":
            return value.strip()
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], from_model: bool = True) -> "QueryAnalysis":
        limit = data.get("limit")
        confidence = data.get("confidence")
        return cls(
            intent=str(data.get("intent") or "search"),
            entity_type=str(data.get("entity_type") or "mixed"),
            fields_needed=list(data.get("fields_needed") or []),
            conditions=data.get("conditions") if isinstance(data.get("conditions"), dict) else {},
            aggregations=list(data.get("aggregations") or []),
            sorting=data.get("sorting") if isinstance(data.get("sorting"), dict) else {},
            limit=limit if isinstance(limit, int) and not isinstance(limit, bool) else None,
            confidence=float(confidence)
            if isinstance(confidence, (int, float)) and 0 <= confidence <= 1
            else None,
            from_model=from_model,
        )

    def summary(self) -> str:
        """Compact text form embedded in the synthesis prompt"""
        return "\n".join(
            [
                f"- Intent: {self.intent}",
                f"- Entity Type: {self.entity_type}",
                f"- Fields Needed: {json.dumps(self.fields_needed, default=str)}",
                f"- Conditions: {json.dumps(self.conditions, default=str)}",
                f"- Aggregations: {json.dumps(self.aggregations, default=str)}",
                f"- Sorting: {json.dumps(self.sorting, default=str)}",
            ]
        )


@dataclass
class SynthesisContext:
    """Short-lived state shared between analysis, binding and repair for one question"""

    question: str
    analysis: QueryAnalysis
    negated: bool = False
