# Data package
"""Data layer for the knowledge-graph QA system."""

from .database import DatabaseInitializer, verify_database
from .executor import SQLAlchemyQueryExecutor, to_named_binds
from .models import (
    DatabaseManager,
    EntityModel,
    PaperEntityModel,
    PaperModel,
    RelationshipModel,
    describe_schema,
    get_db_manager,
)

__all__ = [
    "DatabaseManager",
    "DatabaseInitializer",
    "EntityModel",
    "PaperEntityModel",
    "PaperModel",
    "RelationshipModel",
    "SQLAlchemyQueryExecutor",
    "describe_schema",
    "get_db_manager",
    "to_named_binds",
    "verify_database",
]
