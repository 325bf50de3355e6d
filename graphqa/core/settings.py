"""Centralized settings and configuration management."""

import os
from pathlib import Path


class Settings:
    """Application settings and configuration"""

    # Base paths
    BASE_DIR = Path(__file__).parent.parent
    CONFIG_DIR = BASE_DIR / "config"

    # Database (external, read-only knowledge graph)
    DATABASE_URL = os.getenv(
        "DATABASE_URL", "postgresql+psycopg2://localhost:5432/knowledge_graph"
    )
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "20"))

    # LLM Configuration
    LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.1-8b-instant")
    GROQ_API_KEY = os.getenv("GROQ_API_KEY")

    # Application settings
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    DEBUG = ENVIRONMENT == "development"

    # Router vocabulary configuration
    VOCABULARY_CONFIG_PATH = os.getenv(
        "VOCABULARY_CONFIG_PATH", str(CONFIG_DIR / "vocabulary.yaml")
    )


# Global settings instance
settings = Settings()
