# database.py
"""Database connection checks for the read-only knowledge graph."""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from graphqa.core.exceptions import DatabaseError
from .models import get_db_manager

logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """Verifies the external store is reachable; never creates or migrates tables"""

    @staticmethod
    def verify_connection():
        """Run a trivial statement against the store"""
        db_manager = get_db_manager()
        try:
            logger.info("Verifying database connection...")
            with db_manager.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            raise DatabaseError(f"Database connection failed: {e}") from e

    @staticmethod
    def get_database_info():
        """Get database connection information"""
        try:
            db_manager = get_db_manager()
            stats = db_manager.get_table_stats()
            if "error" in stats:
                return {
                    "database_type": db_manager.engine.dialect.name,
                    "connection_status": "Failed",
                    "error": stats["error"],
                }

            return {
                "database_type": db_manager.engine.dialect.name,
                "connection_status": "Connected",
                "stats": stats,
            }

        except (SQLAlchemyError, ImportError) as e:
            return {
                "database_type": "Unknown",
                "connection_status": "Failed",
                "error": str(e),
            }


def verify_database():
    """Convenience function to verify the database connection"""
    return DatabaseInitializer.verify_connection()
