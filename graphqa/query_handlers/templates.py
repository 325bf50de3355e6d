# templates.py
"""Fixed, parameterized query shapes for the graph and lexical routes.

Builders only produce text and positional parameters; every query they build
still goes through the safety validator before it reaches the store.
"""

from typing import Any, Callable, Dict, Mapping

from graphqa.core import Config
from graphqa.core.exceptions import RoutingError
from .types import BuiltQuery, Intent

ENTITY_TYPES = ("method", "concept", "dataset", "metric")
SORT_DIRECTIONS = ("ASC", "DESC")


def _like(value: Any) -> str:
    return f"%{value}%"


def _require(params: Mapping[str, Any], key: str, intent: Intent) -> str:
    value = params.get(key)
    if value is None or not str(value).strip():
        raise RoutingError(f"Parameter '{key}' required for '{intent.value}' intent")
    return str(value).strip()


def _in_list(values) -> str:
    return ", ".join(f"'{value}'" for value in values)


def build_lineage(params: Mapping[str, Any]) -> BuiltQuery:
    """Papers that improve on a method"""
    method_name = _require(params, "target_method", Intent.LINEAGE)
    sql = f"""
        SELECT DISTINCT
          p.id,
          p.arxiv_id,
          p.title,
          p.authors,
          p.abstract,
          p.published_date,
          p.arxiv_url,
          source_e.name AS source_method,
          target_e.name AS target_method,
          r.relationship_type,
          r.context,
          r.confidence_score
        FROM papers p
        JOIN relationships r ON p.id = r.paper_id
        JOIN entities source_e ON r.source_entity_id = source_e.id
        JOIN entities target_e ON r.target_entity_id = target_e.id
        WHERE (target_e.canonical_name ILIKE $1 OR target_e.name ILIKE $1)
          AND target_e.entity_type = 'method'
          AND r.relationship_type IN ({_in_list(Config.RELATIONSHIP_TYPES["lineage"])})
        ORDER BY p.published_date DESC, r.confidence_score DESC
        LIMIT {Config.TEMPLATE_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (_like(method_name),), "published_date", "DESC")


def build_introduces(params: Mapping[str, Any]) -> BuiltQuery:
    """Entities introduced by a specific paper"""
    paper_id = _require(params, "paper_id", Intent.INTRODUCES)
    sql = f"""
        SELECT DISTINCT
          e.id,
          e.name,
          e.entity_type,
          e.description,
          e.confidence_score,
          pe.mention_count,
          pe.significance_score
        FROM entities e
        JOIN paper_entities pe ON e.id = pe.entity_id
        JOIN papers p ON pe.paper_id = p.id
        WHERE p.arxiv_id = $1
        ORDER BY pe.significance_score DESC, pe.mention_count DESC
        LIMIT {Config.INTRODUCES_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (paper_id,), "significance_score", "DESC")


def build_extends(params: Mapping[str, Any]) -> BuiltQuery:
    """Papers that extend a base entity"""
    base_entity = _require(params, "base_entity", Intent.EXTENDS)
    sql = f"""
        SELECT DISTINCT
          p.id,
          p.arxiv_id,
          p.title,
          p.authors,
          p.published_date,
          p.arxiv_url,
          source_e.name AS extending_entity,
          target_e.name AS base_entity,
          r.relationship_type,
          r.context,
          r.confidence_score
        FROM papers p
        JOIN relationships r ON p.id = r.paper_id
        JOIN entities source_e ON r.source_entity_id = source_e.id
        JOIN entities target_e ON r.target_entity_id = target_e.id
        WHERE (target_e.canonical_name ILIKE $1 OR target_e.name ILIKE $1)
          AND r.relationship_type IN ({_in_list(Config.RELATIONSHIP_TYPES["extends"])})
        ORDER BY p.published_date DESC, r.confidence_score DESC
        LIMIT {Config.TEMPLATE_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (_like(base_entity),), "published_date", "DESC")


def build_uses(params: Mapping[str, Any]) -> BuiltQuery:
    """Papers that use a dataset, metric or method on either side of a relationship"""
    entity_name = _require(params, "entity_name", Intent.USES)
    sql = f"""
        SELECT DISTINCT
          p.id,
          p.arxiv_id,
          p.title,
          p.authors,
          p.published_date,
          p.arxiv_url,
          e.name AS entity_name,
          e.entity_type,
          r.relationship_type,
          r.context
        FROM papers p
        JOIN relationships r ON p.id = r.paper_id
        JOIN entities e ON (r.source_entity_id = e.id OR r.target_entity_id = e.id)
        WHERE (e.canonical_name ILIKE $1 OR e.name ILIKE $1)
          AND r.relationship_type IN ({_in_list(Config.RELATIONSHIP_TYPES["uses"])})
        ORDER BY p.published_date DESC
        LIMIT {Config.TEMPLATE_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (_like(entity_name),), "published_date", "DESC")


def build_compares(params: Mapping[str, Any]) -> BuiltQuery:
    """Papers that compare against a method"""
    compared_method = _require(params, "compared_method", Intent.COMPARES)
    sql = f"""
        SELECT DISTINCT
          p.id,
          p.arxiv_id,
          p.title,
          p.authors,
          p.published_date,
          p.arxiv_url,
          source_e.name AS comparing_method,
          target_e.name AS compared_method,
          r.relationship_type,
          r.context,
          r.confidence_score
        FROM papers p
        JOIN relationships r ON p.id = r.paper_id
        JOIN entities source_e ON r.source_entity_id = source_e.id
        JOIN entities target_e ON r.target_entity_id = target_e.id
        WHERE (target_e.canonical_name ILIKE $1 OR target_e.name ILIKE $1)
          AND r.relationship_type IN ({_in_list(Config.RELATIONSHIP_TYPES["compares"])})
        ORDER BY p.published_date DESC, r.confidence_score DESC
        LIMIT {Config.TEMPLATE_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (_like(compared_method),), "published_date", "DESC")


def build_authored_by(params: Mapping[str, Any]) -> BuiltQuery:
    """Papers with a matching name in their authors array"""
    author_name = _require(params, "author_name", Intent.AUTHORED_BY)
    sql = f"""
        SELECT DISTINCT
          p.id,
          p.arxiv_id,
          p.title,
          p.authors,
          p.abstract,
          p.published_date,
          p.arxiv_url
        FROM papers p
        WHERE EXISTS (
          SELECT 1 FROM unnest(p.authors) AS author
          WHERE author ILIKE $1
        )
        ORDER BY p.published_date DESC
        LIMIT {Config.TEMPLATE_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (_like(author_name),), "published_date", "DESC")


def build_neighbors(params: Mapping[str, Any]) -> BuiltQuery:
    """Entities adjacent to a named entity, in either direction"""
    entity_name = _require(params, "entity_name", Intent.NEIGHBORS)
    sql = f"""
        SELECT
          CASE
            WHEN e1.canonical_name ILIKE $1 OR e1.name ILIKE $1 THEN e2.name
            ELSE e1.name
          END AS neighbor_name,
          CASE
            WHEN e1.canonical_name ILIKE $1 OR e1.name ILIKE $1 THEN e2.entity_type
            ELSE e1.entity_type
          END AS neighbor_type,
          r.relationship_type,
          COUNT(*) AS relationship_count
        FROM relationships r
        JOIN entities e1 ON r.source_entity_id = e1.id
        JOIN entities e2 ON r.target_entity_id = e2.id
        WHERE (e1.canonical_name ILIKE $1 OR e1.name ILIKE $1
               OR e2.canonical_name ILIKE $1 OR e2.name ILIKE $1)
          AND e1.id != e2.id
        GROUP BY neighbor_name, neighbor_type, r.relationship_type
        ORDER BY relationship_count DESC
        LIMIT {Config.TEMPLATE_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (_like(entity_name),), "relationship_count", "DESC")


def build_most_common(params: Mapping[str, Any]) -> BuiltQuery:
    """Most or least common entities of a type, by distinct paper count"""
    entity_type = str(params.get("entity_type") or "method")
    limit = params.get("limit") or Config.MOST_COMMON_DEFAULT_LIMIT
    # Sort direction cannot be a bound parameter
    order = str(params.get("order") or "DESC").upper()
    if order not in SORT_DIRECTIONS:
        order = "DESC"

    if entity_type in ENTITY_TYPES:
        type_filter = "WHERE e.entity_type = $1"
        limit_placeholder = "$2"
        query_params = (entity_type, int(limit))
    else:
        type_filter = ""
        limit_placeholder = "$1"
        query_params = (int(limit),)

    sql = f"""
        SELECT
          e.name,
          e.entity_type,
          e.description,
          COUNT(DISTINCT pe.paper_id) AS paper_count,
          AVG(pe.significance_score) AS avg_significance
        FROM entities e
        JOIN paper_entities pe ON e.id = pe.entity_id
        {type_filter}
        GROUP BY e.id, e.name, e.entity_type, e.description
        ORDER BY paper_count {order}, avg_significance {order}
        LIMIT {limit_placeholder}
    """
    return BuiltQuery(sql, query_params, "paper_count", order)


def build_focus(params: Mapping[str, Any]) -> BuiltQuery:
    """Papers whose title or abstract mention a topic, title hits first"""
    topic = _require(params, "topic", Intent.FOCUS)
    if params.get("negation"):
        sql = f"""
            SELECT DISTINCT
              p.id,
              p.arxiv_id,
              p.title,
              p.authors,
              p.abstract,
              p.published_date,
              p.arxiv_url
            FROM papers p
            WHERE (p.title NOT ILIKE $1 AND p.abstract NOT ILIKE $1)
            ORDER BY p.published_date DESC
            LIMIT {Config.TEMPLATE_RESULT_LIMIT}
        """
        return BuiltQuery(sql, (_like(topic),), "published_date", "DESC")

    sql = f"""
        SELECT DISTINCT
          p.id,
          p.arxiv_id,
          p.title,
          p.authors,
          p.abstract,
          p.published_date,
          p.arxiv_url,
          CASE
            WHEN p.title ILIKE $1 THEN 3
            WHEN p.abstract ILIKE $1 THEN 2
            ELSE 1
          END AS relevance_score
        FROM papers p
        WHERE (p.title ILIKE $1 OR p.abstract ILIKE $1)
        ORDER BY relevance_score DESC, p.published_date DESC
        LIMIT {Config.TEMPLATE_RESULT_LIMIT}
    """
    return BuiltQuery(sql, (_like(topic),), "relevance_score", "DESC")


def build_count(params: Mapping[str, Any]) -> BuiltQuery:
    """COUNT over papers, entities or relationships with an optional text filter"""
    entity_type = str(params.get("entity_type") or "paper")
    negation = bool(params.get("negation"))
    filter_condition = params.get("filter_condition")

    if entity_type == "paper":
        if filter_condition:
            if negation:
                predicate = "(p.title NOT ILIKE $1 AND p.abstract NOT ILIKE $1)"
            else:
                predicate = "(p.title ILIKE $1 OR p.abstract ILIKE $1)"
            sql = f"SELECT COUNT(*) AS count FROM papers p WHERE {predicate}"
            return BuiltQuery(sql, (_like(filter_condition),), "count", "DESC")
        return BuiltQuery("SELECT COUNT(*) AS count FROM papers", (), "count", "DESC")

    if entity_type == "relationship":
        return BuiltQuery(
            "SELECT COUNT(*) AS count FROM relationships", (), "count", "DESC"
        )

    conditions = []
    query_params = []
    if entity_type in ENTITY_TYPES:
        query_params.append(entity_type)
        conditions.append(f"e.entity_type = ${len(query_params)}")
    if filter_condition:
        query_params.append(_like(filter_condition))
        placeholder = f"${len(query_params)}"
        if negation:
            conditions.append(
                f"(e.name NOT ILIKE {placeholder} AND e.canonical_name NOT ILIKE {placeholder})"
            )
        else:
            conditions.append(
                f"(e.name ILIKE {placeholder} OR e.canonical_name ILIKE {placeholder})"
            )

    sql = "SELECT COUNT(*) AS count FROM entities e"
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)
    return BuiltQuery(sql, tuple(query_params), "count", "DESC")


TEMPLATE_BUILDERS: Dict[Intent, Callable[[Mapping[str, Any]], BuiltQuery]] = {
    Intent.LINEAGE: build_lineage,
    Intent.INTRODUCES: build_introduces,
    Intent.EXTENDS: build_extends,
    Intent.USES: build_uses,
    Intent.COMPARES: build_compares,
    Intent.AUTHORED_BY: build_authored_by,
    Intent.NEIGHBORS: build_neighbors,
    Intent.MOST_COMMON: build_most_common,
    Intent.FOCUS: build_focus,
    Intent.COUNT: build_count,
}

GRAPH_INTENTS = frozenset(
    {
        Intent.LINEAGE,
        Intent.INTRODUCES,
        Intent.EXTENDS,
        Intent.USES,
        Intent.COMPARES,
        Intent.AUTHORED_BY,
        Intent.NEIGHBORS,
        Intent.MOST_COMMON,
    }
)
LEXICAL_INTENTS = frozenset({Intent.FOCUS, Intent.COUNT})


def build_query(intent: Intent, parameters: Mapping[str, Any]) -> BuiltQuery:
    """Map (intent, parameters) to parameterized query text"""
    builder = TEMPLATE_BUILDERS.get(intent)
    if builder is None:
        raise RoutingError(f"No template for intent: {intent.value}")
    return builder(parameters)
