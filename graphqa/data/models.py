# models.py
"""Read-only SQLAlchemy mirror of the knowledge-graph schema."""

import logging
from typing import Dict, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from graphqa.core import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class PaperModel(Base):
    """Ingested arXiv paper"""

    __tablename__ = "papers"

    id = Column(Integer, primary_key=True)
    arxiv_id = Column(String(50), unique=True, nullable=False)
    title = Column(Text, nullable=False)
    authors = Column(postgresql.ARRAY(Text), comment="array of author names")
    abstract = Column(Text)
    published_date = Column(Date)
    pdf_url = Column(Text)
    arxiv_url = Column(Text)
    processed = Column(Boolean, default=False)

    def __repr__(self):
        return f"<PaperModel(id={self.id}, arxiv_id='{self.arxiv_id}')>"


class EntityModel(Base):
    """Method, concept, dataset or metric extracted from papers"""

    __tablename__ = "entities"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False, comment="display name")
    entity_type = Column(
        String(50), nullable=False, comment="'method', 'concept', 'dataset', 'metric'"
    )
    description = Column(Text)
    canonical_name = Column(
        Text, nullable=False, comment="lowercased, '&' -> 'and', single spaces"
    )
    confidence_score = Column(Numeric(3, 2), comment="0.0 to 1.0")
    first_mentioned_in = Column(Integer, ForeignKey("papers.id"))

    __table_args__ = (
        UniqueConstraint("canonical_name", "entity_type"),
        CheckConstraint(
            "entity_type IN ('method', 'concept', 'dataset', 'metric')",
            name="entities_entity_type_check",
        ),
    )

    def __repr__(self):
        return f"<EntityModel(id={self.id}, name='{self.name}', entity_type='{self.entity_type}')>"


class RelationshipModel(Base):
    """Typed edge between two entities, established by one paper"""

    __tablename__ = "relationships"

    id = Column(Integer, primary_key=True)
    source_entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    target_entity_id = Column(Integer, ForeignKey("entities.id"), nullable=False)
    relationship_type = Column(
        String(50),
        nullable=False,
        comment="'improves', 'uses', 'extends', 'compares', 'cites', 'evaluates'",
    )
    paper_id = Column(Integer, ForeignKey("papers.id"), nullable=False)
    confidence_score = Column(Numeric(3, 2))
    context = Column(Text, comment="text snippet establishing the relationship")

    __table_args__ = (
        UniqueConstraint(
            "source_entity_id", "target_entity_id", "relationship_type", "paper_id"
        ),
        CheckConstraint("source_entity_id != target_entity_id", name="no_self_loops"),
    )

    def __repr__(self):
        return (
            f"<RelationshipModel(id={self.id}, type='{self.relationship_type}', "
            f"{self.source_entity_id}->{self.target_entity_id})>"
        )


class PaperEntityModel(Base):
    """Mention of an entity in a paper"""

    __tablename__ = "paper_entities"

    paper_id = Column(Integer, ForeignKey("papers.id"), primary_key=True)
    entity_id = Column(Integer, ForeignKey("entities.id"), primary_key=True)
    mention_count = Column(Integer, default=1)
    first_mention_position = Column(Integer)
    significance_score = Column(Numeric(3, 2))

    def __repr__(self):
        return f"<PaperEntityModel(paper_id={self.paper_id}, entity_id={self.entity_id})>"


SCHEMA_MODELS = (PaperModel, EntityModel, RelationshipModel, PaperEntityModel)


def describe_schema() -> str:
    """Render the schema as the plain-text description embedded in prompts"""
    dialect = postgresql.dialect()
    sections: List[str] = []
    joins: List[str] = []

    for model in SCHEMA_MODELS:
        table = model.__table__
        lines = [f"**{table.name}** table:"]
        for column in table.columns:
            column_type = column.type.compile(dialect=dialect)
            line = f"- {column.name} ({column_type}"
            if column.primary_key and len(table.primary_key.columns) == 1:
                line += " PRIMARY KEY"
            elif column.unique:
                line += ", UNIQUE"
            line += ")"
            for foreign_key in column.foreign_keys:
                referenced = foreign_key.column
                line += f" - references {referenced.table.name}.{referenced.name}"
                joins.append(
                    f"- {referenced.table.name}.{referenced.name} = {table.name}.{column.name}"
                )
            if column.comment:
                line += f" - {column.comment}"
            lines.append(line)
        sections.append("\n".join(lines))

    return "\n\n".join(sections) + "\n\nKEY JOINS:\n" + "\n".join(joins)


class DatabaseManager:
    """Manages database connections and sessions"""

    def __init__(self, database_url: str = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine = None
        self.SessionLocal = None
        self._initialize()

    def _initialize(self):
        """Initialize database engine and session factory"""
        engine_options = {
            "echo": settings.DEBUG,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }
        if not self.database_url.startswith("sqlite"):
            engine_options["pool_size"] = settings.DB_POOL_SIZE

        self.engine = create_engine(self.database_url, **engine_options)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    def get_session(self):
        """Get a database session"""
        return self.SessionLocal()

    def get_table_stats(self) -> Dict[str, object]:
        """Row counts of the four relations for monitoring"""
        with self.get_session() as session:
            try:
                return {
                    "total_papers": session.query(PaperModel).count(),
                    "total_entities": session.query(EntityModel).count(),
                    "total_relationships": session.query(RelationshipModel).count(),
                    "total_paper_entities": session.query(PaperEntityModel).count(),
                    "database_url": self.database_url.split("@")[-1]
                    if "@" in self.database_url
                    else self.database_url,
                }
            except SQLAlchemyError as e:
                logger.error(f"Failed to read table stats: {e}")
                return {"error": str(e)}

    def dispose(self):
        if self.engine is not None:
            self.engine.dispose()


# Global database manager instance, created on first use
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
