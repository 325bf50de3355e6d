import logging
import os
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from graphqa.core import SAMPLE_QUESTIONS, Config
from graphqa.core.exceptions import GraphQAError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Rate limiting setup
limiter = Limiter(key_func=get_remote_address)

# Simple API key auth for production (optional)
security = HTTPBearer(auto_error=False)


def get_api_key() -> Optional[str]:
    """Get API key from environment if set"""
    return os.environ.get("API_KEY")


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify API key if set in environment"""
    api_key = get_api_key()

    # If no API key is configured, allow access
    if not api_key:
        return True

    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required"
        )

    if credentials.credentials != api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )
    return True


class QuestionRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=1000)


app = FastAPI(
    title="Knowledge Graph QA",
    docs_url="/docs" if os.environ.get("ENVIRONMENT") != "production" else None,
    redoc_url="/redoc" if os.environ.get("ENVIRONMENT") != "production" else None,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- Lazy initialization for LLM, executor and question answerer ---
_llm = None
_executor = None
_answerer = None


def get_llm():
    global _llm
    if _llm is None:
        logger.info("Initializing LLM...")
        from graphqa.providers.llm_providers import create_llm

        _llm = create_llm()
        logger.info("LLM initialized successfully")
    return _llm


def get_executor():
    global _executor
    if _executor is None:
        logger.info("Initializing query executor...")
        from graphqa.data import SQLAlchemyQueryExecutor

        _executor = SQLAlchemyQueryExecutor()
        logger.info("Query executor initialized successfully")
    return _executor


def get_answerer():
    global _answerer
    if _answerer is None:
        logger.info("Initializing question answerer...")
        from graphqa.query_handlers import QuestionAnswerer

        _answerer = QuestionAnswerer(llm=get_llm(), executor=get_executor())
        logger.info("Question answerer initialized successfully")
    return _answerer


@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI app starting up...")
    Config.load_env_for_development()

    try:
        from graphqa.query_handlers.vocabulary import initialize_vocabulary

        vocabulary = initialize_vocabulary()
        logger.info(
            f"Vocabulary loaded: {len(vocabulary.technical_terms)} technical terms, "
            f"{len(vocabulary.first_names)} first names"
        )
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load vocabulary: {str(e)}, using defaults")

    logger.info("App startup complete!")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI app shutting down...")
    if _executor is not None:
        _executor.db_manager.dispose()


@app.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/health/database")
async def database_health_check():
    from graphqa.data import DatabaseInitializer

    db_info = DatabaseInitializer.get_database_info()
    return {
        "status": "healthy" if db_info["connection_status"] == "Connected" else "unhealthy",
        "database_info": db_info,
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/sample_questions")
async def sample_questions():
    return {"questions": list(SAMPLE_QUESTIONS)}


@app.post("/ask")
@limiter.limit("20/minute")
def ask(
    request: Request,
    payload: QuestionRequest,
    authorized: bool = Depends(verify_api_key),
    answerer=Depends(get_answerer),
):
    """Answer a question against the knowledge graph"""
    result = answerer.answer(payload.question)
    logger.info(
        f"Answered question via {result.metadata.execution_route}: "
        f"{result.metadata.result_count} rows"
    )
    return jsonable_encoder(result.to_dict())


@app.post("/classify_query")
@limiter.limit("60/minute")
def classify_query(
    request: Request,
    payload: QuestionRequest,
    answerer=Depends(get_answerer),
):
    """Classify a question to show how it would be routed"""
    try:
        routing = answerer.classify(payload.question)
    except GraphQAError as e:
        logger.error(f"Query classification error: {str(e)}")
        return {"error": str(e), "question": payload.question, "status": "error"}

    return {
        "question": payload.question,
        "classification": routing.to_dict(),
        "status": "success",
    }
