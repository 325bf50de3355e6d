# sql_validator.py
"""Read-only safety checks applied to every query before execution."""

import logging
import re
from typing import List, Sequence

import sqlparse

from .types import ValidationResult

logger = logging.getLogger(__name__)

WRITE_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "GRANT",
    "REVOKE",
    "COMMIT",
    "ROLLBACK",
    "SAVEPOINT",
)

DANGEROUS_FUNCTIONS = (
    "EXEC",
    "EXECUTE",
    "PG_EXEC",
    "PG_SEND_QUERY",
    "COPY",
    "IMPORT",
    "EXPORT",
)

PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")


def _strip_comments(sql: str) -> str:
    if "--" not in sql and "/*" not in sql:
        return sql
    return sqlparse.format(sql, strip_comments=True)


def validate_sql(sql: str) -> ValidationResult:
    """Validate query text for read-only execution.

    The keyword check is a plain case-insensitive substring test over the
    whole text, comments included, so identifiers containing a blocked word
    are rejected too.
    """
    result = ValidationResult(valid=True, sanitized=(sql or "").strip())
    sql_upper = result.sanitized.upper()

    for keyword in WRITE_KEYWORDS:
        if keyword in sql_upper:
            return ValidationResult(
                valid=False,
                sanitized=None,
                errors=[f"Write operation detected: {keyword} is not allowed (read-only mode)"],
            )

    for function in DANGEROUS_FUNCTIONS:
        if function in sql_upper:
            return ValidationResult(
                valid=False,
                sanitized=None,
                errors=[f"Dangerous function detected: {function} is not allowed"],
            )

    if not (sql_upper.startswith("SELECT") or sql_upper.startswith("WITH")):
        return ValidationResult(
            valid=False,
            sanitized=None,
            errors=["Query must start with SELECT or WITH (read-only queries only)"],
        )

    sanitized = result.sanitized
    if sanitized.count("(") != sanitized.count(")"):
        result.warnings.append("Unbalanced parentheses detected")

    semicolon_index = sanitized.find(";")
    if 0 <= semicolon_index < len(sanitized) - 2:
        result.warnings.append("Multiple statements detected (using only first statement)")
        sanitized = sanitized[: semicolon_index + 1]
        logger.warning("Truncated query text to its first statement")

    sanitized = _strip_comments(sanitized).strip()
    if "LIMIT" not in sanitized.upper() and "FETCH" not in sanitized.upper():
        result.warnings.append("Query has no LIMIT clause - may return many rows")

    if not sanitized or sanitized == ";":
        return ValidationResult(
            valid=False,
            sanitized=None,
            errors=["Query is empty after sanitization"],
            warnings=result.warnings,
        )

    result.sanitized = sanitized
    return result


def extract_placeholders(sql: str) -> List[int]:
    """Sorted unique positional placeholder indexes ($1, $2, ...) in the text"""
    return sorted({int(number) for number in PLACEHOLDER_PATTERN.findall(sql)})


def validate_parameter_count(sql: str, params: Sequence) -> bool:
    """True when the supplied arguments cover the highest placeholder index"""
    placeholders = extract_placeholders(sql)
    highest = placeholders[-1] if placeholders else 0
    return len(params) >= highest
