# executor.py
"""Read-only query execution against the knowledge-graph store."""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from graphqa.core import QueryExecutorInterface
from graphqa.core.exceptions import QueryExecutionError
from .models import DatabaseManager, get_db_manager

logger = logging.getLogger(__name__)

POSITIONAL_PLACEHOLDER = re.compile(r"\$(\d+)")


def to_named_binds(
    sql: str, params: Optional[Sequence[Any]] = None
) -> Tuple[str, Dict[str, Any]]:
    """Rewrite $1, $2 placeholders to :p1, :p2 binds for text()"""
    rewritten = POSITIONAL_PLACEHOLDER.sub(lambda match: f":p{match.group(1)}", sql)
    binds = {f"p{index}": value for index, value in enumerate(params or (), start=1)}
    return rewritten, binds


def _error_details(error: SQLAlchemyError) -> Tuple[str, Optional[str]]:
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig).strip(), getattr(error.orig, "pgcode", None)
    return str(error), None


class SQLAlchemyQueryExecutor(QueryExecutorInterface):
    """Runs validated query text through a pooled SQLAlchemy engine"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or get_db_manager()

    def execute(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        statement, binds = to_named_binds(sql, params)
        try:
            with self.db_manager.get_session() as session:
                result = session.execute(text(statement), binds)
                rows = [dict(row._mapping) for row in result]
                session.rollback()
                return rows
        except SQLAlchemyError as e:
            message, pgcode = _error_details(e)
            logger.warning(f"Query execution failed ({pgcode}): {message}")
            raise QueryExecutionError(message, sql=sql, pgcode=pgcode) from e
