# config.py
import logging
import os

logger = logging.getLogger(__name__)


class Config:
    """Configuration settings for the knowledge-graph QA layer"""

    # Template query settings
    TEMPLATE_RESULT_LIMIT = 20
    INTRODUCES_RESULT_LIMIT = 50
    MOST_COMMON_DEFAULT_LIMIT = 10

    # NL->SQL synthesis settings
    SYNTHESIS_DEFAULT_LIMIT = 10
    REPAIR_DEFAULT_LIMIT = 20
    ANALYSIS_TEMPERATURE = 0.1
    ANALYSIS_MAX_TOKENS = 512
    SYNTHESIS_TEMPERATURE = 0.1
    SYNTHESIS_MAX_TOKENS = 1024

    # Focus score weights used by the "which paper focuses most on X" repair query
    FOCUS_TITLE_WEIGHT = 10
    FOCUS_SIGNIFICANCE_WEIGHT = 5

    # Relationship types accepted per graph intent
    RELATIONSHIP_TYPES = {
        "lineage": ("improves", "extends", "enhances"),
        "extends": ("extends", "builds_on", "generalizes"),
        "uses": ("uses", "evaluates", "employs"),
        "compares": ("compares",),
    }

    # Common questions for demos and smoke testing
    SAMPLE_QUESTIONS = [
        "How many papers are in the database?",
        "Which papers improve on 3D Gaussian Splatting?",
        "What are the 5 least common datasets?",
        "What are the top 10 most common methods?",
        "Which papers use the Tanks & Temples dataset?",
        "Show papers about dynamic scenes",
        "How many papers are not about gaussian splatting?",
        "Which paper focuses the most on anti-aliasing?",
        "Show neighbors of NeRF",
        "Which papers have more than 5 authors?",
    ]

    # Environment configuration
    IS_DEVELOPMENT = os.getenv("ENVIRONMENT", "development") == "development"

    @classmethod
    def load_env_for_development(cls):
        """Load .env file only for local development"""
        if cls.IS_DEVELOPMENT:
            from dotenv import load_dotenv

            load_dotenv()
            logger.info("Loaded .env file for local development")


# Export constants for backwards compatibility
SAMPLE_QUESTIONS = Config.SAMPLE_QUESTIONS
