# repair.py
"""Deterministic rewrites applied to model-generated SQL.

Two families live here. Post-generation rules run on every generated query
before execution. Reactive strategies run at most once, after the store has
rejected a query, and are selected by the classified error kind.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from graphqa.core import Config
from .parameters import extract_entity_term
from .types import SynthesisContext
from .utils import normalize_canonical_name

logger = logging.getLogger(__name__)

PATTERN_VALUE = r"(\$\d+|'[^']*')"
ORDER_BY_CLAUSE = re.compile(
    r"\bORDER\s+BY\s+(.+?)(?=\s+LIMIT\b|\s+OFFSET\b|\s+FETCH\b|\s*;|\s*$)",
    re.IGNORECASE | re.DOTALL,
)
SELECT_DISTINCT_LIST = re.compile(
    r"\bSELECT\s+DISTINCT\s+(.+?)\s+FROM\b", re.IGNORECASE | re.DOTALL
)
CANONICAL_LITERAL = re.compile(r"(canonical_name\s*=\s*)'([^']*)'", re.IGNORECASE)


def _pattern_predicate(column: str, negated: bool = False) -> re.Pattern:
    operator = r"NOT\s+ILIKE" if negated else r"(?:NOT\s+)?ILIKE"
    return re.compile(rf"\b(?:\w+\.)?{column}\s+{operator}\b", re.IGNORECASE)


def _filters_column(sql: str, column: str) -> bool:
    return bool(_pattern_predicate(column).search(sql))


def _references_table(sql: str, table: str) -> bool:
    return bool(re.search(rf"\b(?:FROM|JOIN)\s+{table}\b", sql, re.IGNORECASE))


def _column_prefix(alias: Optional[str]) -> str:
    return f"{alias}." if alias else ""


# --------------------------------------------------------------------------
# Post-generation rules
# --------------------------------------------------------------------------


def repair_negation(sql: str) -> str:
    """Negate the pattern match over both title and abstract"""
    has_title = _filters_column(sql, "title")
    has_abstract = _filters_column(sql, "abstract")

    if has_title != has_abstract:
        column = "title" if has_title else "abstract"
        single = re.compile(
            rf"(?:\bNOT\s+)?\b(?:(\w+)\.)?{column}\s+(?:NOT\s+)?ILIKE\s+{PATTERN_VALUE}",
            re.IGNORECASE,
        )

        def expand(match):
            prefix = _column_prefix(match.group(1))
            value = match.group(2)
            return f"({prefix}title NOT ILIKE {value} AND {prefix}abstract NOT ILIKE {value})"

        return single.sub(expand, sql)

    if not has_title or re.search(r"\bNOT\s+ILIKE\b", sql, re.IGNORECASE):
        return sql

    paired = re.compile(
        rf"\b(?:(\w+)\.)?(?:title|abstract)\s+ILIKE\s+{PATTERN_VALUE}\s+OR\s+"
        rf"(?:\w+\.)?(?:title|abstract)\s+ILIKE\s+{PATTERN_VALUE}",
        re.IGNORECASE,
    )
    match = paired.search(sql)
    if match:
        prefix = _column_prefix(match.group(1))
        value = match.group(2)
        return (
            sql[: match.start()]
            + f"({prefix}title NOT ILIKE {value} AND {prefix}abstract NOT ILIKE {value})"
            + sql[match.end():]
        )

    return re.sub(
        r"\b((?:\w+\.)?(?:title|abstract))\s+ILIKE\b",
        r"\1 NOT ILIKE",
        sql,
        flags=re.IGNORECASE,
    )


def expand_positive_symmetry(sql: str) -> str:
    """Widen a title-only or abstract-only search to both columns"""
    has_title = _filters_column(sql, "title")
    has_abstract = _filters_column(sql, "abstract")
    if has_title == has_abstract:
        return sql

    column = "title" if has_title else "abstract"
    if _pattern_predicate(column, negated=True).search(sql):
        return sql

    single = re.compile(
        rf"\b(?:(\w+)\.)?{column}\s+ILIKE\s+{PATTERN_VALUE}", re.IGNORECASE
    )

    def expand(match):
        prefix = _column_prefix(match.group(1))
        value = match.group(2)
        return f"({prefix}title ILIKE {value} OR {prefix}abstract ILIKE {value})"

    return single.sub(expand, sql)


def collapse_double_negation(sql: str) -> str:
    """NOT NOT ILIKE / NOT col NOT ILIKE -> col NOT ILIKE"""
    collapsed = re.sub(r"\bNOT\s+(?:NOT\s+)+", "NOT ", sql, flags=re.IGNORECASE)
    return re.sub(
        r"\bNOT\s+((?:\w+\.)?\w+)\s+NOT\s+(I?LIKE)\b",
        r"\1 NOT \2",
        collapsed,
        flags=re.IGNORECASE,
    )


def strip_false_comparison(sql: str) -> str:
    """Drop a stray '= FALSE' after a negated pattern predicate"""
    stripped = re.sub(
        rf"(NOT\s+I?LIKE\s+{PATTERN_VALUE}(?:\s*\))?)\s*=\s*FALSE\b",
        r"\1",
        sql,
        flags=re.IGNORECASE,
    )
    return stripped


def downgrade_sort_signal(sql: str) -> str:
    """Order papers-only queries by published_date instead of confidence_score"""
    if _references_table(sql, "relationships") or _references_table(sql, "entities"):
        return sql
    match = ORDER_BY_CLAUSE.search(sql)
    if not match or "confidence_score" not in match.group(1).lower():
        return sql
    return sql[: match.start(1)] + "published_date DESC" + sql[match.end(1):]


def normalize_canonical_literals(sql: str) -> str:
    """Apply canonical-name normalization to literal comparisons"""
    return CANONICAL_LITERAL.sub(
        lambda match: f"{match.group(1)}'{normalize_canonical_name(match.group(2))}'", sql
    )


@dataclass(frozen=True)
class RepairRule:
    name: str
    apply: Callable[[str], str]
    message: str
    when: Callable[[SynthesisContext], bool] = lambda context: True


POST_GENERATION_RULES = (
    RepairRule(
        "negation",
        repair_negation,
        "Fixed negation: checked both title and abstract with NOT ILIKE",
        lambda context: context.negated,
    ),
    RepairRule(
        "positive_symmetry",
        expand_positive_symmetry,
        "Expanded text search to both title and abstract",
        lambda context: not context.negated,
    ),
    RepairRule("double_negation", collapse_double_negation, "Fixed double negation in SQL"),
    RepairRule("false_comparison", strip_false_comparison, "Removed invalid '= FALSE' in SQL"),
    RepairRule(
        "sort_signal",
        downgrade_sort_signal,
        "Replaced ordering by confidence_score with published_date for papers-only query",
    ),
    RepairRule(
        "canonical_name", normalize_canonical_literals, "Normalized canonical_name in SQL"
    ),
)


@dataclass
class RepairOutcome:
    sql: str
    warnings: List[str] = field(default_factory=list)
    applied: List[str] = field(default_factory=list)

    @property
    def normalized(self) -> bool:
        return "canonical_name" in self.applied


def apply_post_generation_repairs(sql: str, context: SynthesisContext) -> RepairOutcome:
    """Run every applicable rule in order, recording the ones that changed the text"""
    outcome = RepairOutcome(sql=sql)
    for rule in POST_GENERATION_RULES:
        if not rule.when(context):
            continue
        repaired = rule.apply(outcome.sql)
        if repaired != outcome.sql:
            logger.info(f"Repair '{rule.name}' applied")
            outcome.sql = repaired
            outcome.applied.append(rule.name)
            outcome.warnings.append(rule.message)
    return outcome


# --------------------------------------------------------------------------
# Reactive repair
# --------------------------------------------------------------------------


class ErrorKind(str, Enum):
    """Catalogue of store failures with a known rewrite"""

    UNDEFINED_SCORE_COLUMN = "undefined_score_column"
    DISTINCT_ORDER_BY = "distinct_order_by"
    AMBIGUOUS_COLUMN = "ambiguous_column"
    GENERIC = "generic"


UNDEFINED_SCORE_MESSAGE = re.compile(
    r"column\s+\"?(?:\w+\.)?confidence_score\"?\s+does not exist|papers\.confidence_score",
    re.IGNORECASE,
)


def classify_error(pgcode: Optional[str], message: str) -> ErrorKind:
    """Map a store failure to an ErrorKind, SQLSTATE first and message text last"""
    message = message or ""
    if pgcode == "42703":
        if "confidence_score" in message:
            return ErrorKind.UNDEFINED_SCORE_COLUMN
        return ErrorKind.GENERIC
    if pgcode == "42P10":
        return ErrorKind.DISTINCT_ORDER_BY
    if pgcode == "42702":
        return ErrorKind.AMBIGUOUS_COLUMN

    lowered = message.lower()
    if UNDEFINED_SCORE_MESSAGE.search(message):
        return ErrorKind.UNDEFINED_SCORE_COLUMN
    if "must appear in select list" in lowered or "must appear in the select list" in lowered:
        return ErrorKind.DISTINCT_ORDER_BY
    if "is ambiguous" in lowered:
        return ErrorKind.AMBIGUOUS_COLUMN
    return ErrorKind.GENERIC


@dataclass
class RepairPlan:
    """A rewritten query to retry once; focus_term set for the focus-score query"""

    sql: str
    description: str
    focus_term: Optional[str] = None


def is_focus_question(question: str) -> bool:
    q = question.lower()
    return bool(re.search(r"\bfocus(?:es|ed)?\b", q) and "most" in q) or (
        "most" in q and "about" in q
    )


def build_focus_score_query() -> str:
    """Rank papers by title match, abstract occurrences and entity significance"""
    return f"""
        SELECT
          p.id,
          p.arxiv_id,
          p.title,
          p.authors,
          p.abstract,
          p.published_date,
          p.arxiv_url,
          (
            (CASE WHEN p.title ILIKE $1 THEN {Config.FOCUS_TITLE_WEIGHT} ELSE 0 END)
            + (LENGTH(COALESCE(p.abstract, ''))
               - LENGTH(REPLACE(LOWER(COALESCE(p.abstract, '')), LOWER(TRIM(BOTH '%' FROM $1)), '')))
              / NULLIF(LENGTH(TRIM(BOTH '%' FROM $1)), 0)
            + COALESCE(MAX(CASE WHEN e.id IS NOT NULL THEN pe.significance_score END), 0)
              * {Config.FOCUS_SIGNIFICANCE_WEIGHT}
          ) AS focus_score
        FROM papers p
        LEFT JOIN paper_entities pe ON p.id = pe.paper_id
        LEFT JOIN entities e ON pe.entity_id = e.id AND e.canonical_name ILIKE $1
        WHERE (p.title ILIKE $1 OR p.abstract ILIKE $1 OR e.canonical_name ILIKE $1)
          AND p.abstract IS NOT NULL
        GROUP BY p.id, p.arxiv_id, p.title, p.authors, p.abstract, p.published_date, p.arxiv_url
        ORDER BY focus_score DESC, p.published_date DESC
        LIMIT {Config.REPAIR_DEFAULT_LIMIT}
    """


def _order_columns(sql: str) -> List[str]:
    match = ORDER_BY_CLAUSE.search(sql)
    if not match:
        return []
    return [
        re.sub(r"\s+(?:DESC|ASC)(?:\s+NULLS\s+(?:FIRST|LAST))?$", "", part.strip(), flags=re.IGNORECASE)
        for part in match.group(1).split(",")
        if part.strip()
    ]


def _add_order_columns_to_distinct(sql: str) -> str:
    match = SELECT_DISTINCT_LIST.search(sql)
    if not match:
        return sql
    select_list = match.group(1)
    additions = []
    for column in _order_columns(sql):
        name = column.split(".")[-1]
        if not re.search(rf"\b{re.escape(name)}\b", select_list):
            additions.append(column)
    if not additions:
        return sql
    return sql[: match.end(1)] + ", " + ", ".join(additions) + sql[match.end(1):]


def _drop_select_column(sql: str, column: str) -> str:
    match = re.search(r"\bSELECT\s+(?:DISTINCT\s+)?(.+?)\s+FROM\b", sql, re.IGNORECASE | re.DOTALL)
    if not match:
        return sql
    items = [item for item in match.group(1).split(",")]
    kept = [
        item
        for item in items
        if not re.fullmatch(rf"\s*(?:\w+\.)?{column}\s*", item, re.IGNORECASE)
    ]
    if not kept or len(kept) == len(items):
        return sql
    return sql[: match.start(1)] + ",".join(kept).strip() + sql[match.end(1):]


def _repair_undefined_score(sql: str, message: str, context: SynthesisContext) -> Optional[RepairPlan]:
    if is_focus_question(context.question):
        term = context.analysis.condition_value or extract_entity_term(
            context.question, context.analysis
        )
        if term:
            return RepairPlan(
                build_focus_score_query(),
                "Generated focus-based relevance query",
                focus_term=term.lower(),
            )

    fixed = _drop_select_column(sql, "confidence_score")
    match = ORDER_BY_CLAUSE.search(fixed)
    if match and "confidence_score" in match.group(1).lower():
        fixed = fixed[: match.start(1)] + "published_date DESC" + fixed[match.end(1):]
    return RepairPlan(fixed, "Removed invalid confidence_score column")


def _repair_distinct_order_by(sql: str, message: str, context: SynthesisContext) -> Optional[RepairPlan]:
    return RepairPlan(
        _add_order_columns_to_distinct(sql), "Added ORDER BY columns to SELECT DISTINCT list"
    )


def _repair_ambiguous_column(sql: str, message: str, context: SynthesisContext) -> Optional[RepairPlan]:
    match = re.search(
        r"\bJOIN\s+relationships(?:\s+(?:AS\s+)?(?!ON\b|USING\b)(\w+))?", sql, re.IGNORECASE
    )
    if not match:
        return None
    alias = match.group(1) or "relationships"
    fixed = re.sub(
        r"(?<![\w.])(?<!AS )confidence_score\b", f"{alias}.confidence_score", sql, flags=re.IGNORECASE
    )
    fixed = _add_order_columns_to_distinct(fixed)
    return RepairPlan(fixed, f"Qualified ambiguous confidence_score to {alias}.confidence_score")


def _repair_generic(sql: str, message: str, context: SynthesisContext) -> Optional[RepairPlan]:
    fixed = collapse_double_negation(sql)
    fixed = strip_false_comparison(fixed)
    if "LIMIT" not in fixed.upper():
        fixed = re.sub(r";\s*$", "", fixed.rstrip()) + f" LIMIT {Config.REPAIR_DEFAULT_LIMIT}"
    fixed = re.sub(r";{2,}", ";", fixed)
    if "array" in (message or "").lower():
        fixed = re.sub(
            r"\bauthors\s*=\s*\$(\d+)", r"authors @> ARRAY[$\1]", fixed, flags=re.IGNORECASE
        )
    fixed = normalize_canonical_literals(fixed)
    return RepairPlan(fixed, "Applied generic SQL fixes")


REACTIVE_REPAIRS: Dict[ErrorKind, Callable[[str, str, SynthesisContext], Optional[RepairPlan]]] = {
    ErrorKind.UNDEFINED_SCORE_COLUMN: _repair_undefined_score,
    ErrorKind.DISTINCT_ORDER_BY: _repair_distinct_order_by,
    ErrorKind.AMBIGUOUS_COLUMN: _repair_ambiguous_column,
    ErrorKind.GENERIC: _repair_generic,
}


def plan_repair(
    sql: str, kind: ErrorKind, message: str, context: SynthesisContext
) -> Optional[RepairPlan]:
    """Pick the strategy for an error kind; None when it cannot change the query"""
    plan = REACTIVE_REPAIRS[kind](sql, message, context)
    if plan is None or plan.sql.strip() == sql.strip():
        return None
    logger.info(f"Reactive repair for {kind.value}: {plan.description}")
    return plan
