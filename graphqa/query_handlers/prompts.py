# prompts.py
"""Prompt templates for the question analysis and SQL generation calls."""

from graphqa.data.models import describe_schema
from .types import QueryAnalysis

ANALYSIS_SYSTEM_PROMPT = """You are an expert database analyst. Analyze questions to understand what data is needed.

Return ONLY a JSON object with this structure:
{
  "intent": "count|list|aggregate|filter|compare|search",
  "entity_type": "papers|entities|relationships|mixed",
  "fields_needed": ["title", "authors", "abstract", ...],
  "conditions": {
    "type": "comparison|text_search|date|array_operation",
    "field": "authors|published_date|abstract|...",
    "operator": ">|<|>=|<=|=|ILIKE|array_length",
    "value": "extracted value or null"
  },
  "aggregations": ["COUNT", "AVG", "MAX", "MIN"],
  "sorting": {
    "field": "published_date|confidence_score|LENGTH(abstract)",
    "direction": "DESC|ASC"
  },
  "limit": 20,
  "confidence": 0.0
}

Return ONLY JSON, no explanations."""

ANALYSIS_USER_TEMPLATE = """Analyze this question about a research paper knowledge graph:

"{question}"

What data is needed to answer this? What tables, fields, conditions, and aggregations are required?

Return ONLY JSON with the analysis structure."""

SQL_GENERATION_TEMPLATE = """You are an expert PostgreSQL query generator for a research paper knowledge graph.

Pay careful attention to NEGATION in questions:
- "how many papers are NOT about X" -> WHERE (title NOT ILIKE $1 AND abstract NOT ILIKE $1)
- "papers that do NOT contain X" / "papers without X" -> NOT ILIKE on both title and abstract
- Always use NOT ILIKE for negation, never just ILIKE

DATABASE SCHEMA:

{schema}

IMPORTANT PATTERNS:
- Array length: array_length(authors, 1) > $1
- Array contains: authors @> ARRAY[$1]
- Array search: array_to_string(authors, ', ') ILIKE $1
- Text length: LENGTH(abstract), LENGTH(title)
- Date extraction: EXTRACT(YEAR FROM published_date), EXTRACT(MONTH FROM published_date)
- Aggregations: COUNT(*), AVG(array_length(authors, 1)), MAX(LENGTH(abstract))
- Text search: (title ILIKE $1 OR abstract ILIKE $1)

RULES:
1. Use parameterized queries: $1, $2, etc. for every literal value
2. Use ILIKE for case-insensitive text search
3. Compare entity names through canonical_name (lowercase, '&' written as 'and')
4. Always include a LIMIT (default: 20, max: 100)
5. Use DISTINCT to avoid duplicates
6. Use JOINs, not correlated subqueries
7. Only relationships and entities have confidence_score; papers do not
8. Handle NULLs: COALESCE(abstract, ''), authors IS NOT NULL
9. Return exactly one SELECT statement

Return ONLY the SQL query, ready to execute. No explanations."""

SQL_USER_TEMPLATE = """Question: "{question}"

Analysis:
{analysis}

Generate a PostgreSQL SQL query that answers this question. Return ONLY the SQL query, no explanations."""


def build_analysis_prompt(question: str) -> str:
    return ANALYSIS_USER_TEMPLATE.format(question=question)


def build_sql_system_prompt() -> str:
    return SQL_GENERATION_TEMPLATE.format(schema=describe_schema())


def build_sql_user_prompt(question: str, analysis: QueryAnalysis) -> str:
    """Embed the question and a compact analysis summary"""
    return SQL_USER_TEMPLATE.format(question=question, analysis=analysis.summary())
