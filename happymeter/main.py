"""Main FastAPI application for HappyMeter feedback collection."""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_admin
from config import config
from database import dispose_db, get_db, get_db_session, init_db, ping
from exceptions import InternalError, PayloadTooLargeError, ValidationError, setup_exception_handlers
from feedback_service import get_stats, normalize_list_params, query_feedback, submit_feedback, validate_feedback_text
from models import isoformat, utcnow
from rate_limiter import enforce_rate_limit
from schemas import (
    ErrorResponse,
    FeedbackListResponse,
    FeedbackRequest,
    FeedbackResponse,
    FeedbackStats,
    HealthResponse,
    SentimentResponse,
)
from sentiment_analyzer import SentimentClassifier, classifier, get_classifier

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

TEXT_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": FeedbackRequest.model_json_schema()}}
    }
}


async def warmup_classifier(sentiment_classifier: SentimentClassifier) -> None:
    logger.info("Warming up sentiment analysis model...")
    try:
        await sentiment_classifier.warmup()
        logger.info("Sentiment model ready")
    except Exception as e:
        logger.warning(f"Failed to warm up sentiment model: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("Initializing database...")
    try:
        await init_db()
        async with get_db_session() as session:
            await ping(session)
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")

    warmup_task = None
    if config.WARMUP_ON_STARTUP:
        warmup_task = asyncio.create_task(warmup_classifier(classifier))

    logger.info("Application started successfully")
    yield

    # Shutdown
    logger.info("Application shutting down, closing database connections...")
    if warmup_task is not None and not warmup_task.done():
        warmup_task.cancel()
    await dispose_db()


app = FastAPI(
    title="HappyMeter API",
    description="Customer feedback system with sentiment analysis",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api-docs",
    openapi_tags=[
        {"name": "Feedback", "description": "Customer feedback endpoints"},
        {"name": "Health", "description": "Health check endpoints"}
    ]
)
setup_exception_handlers(app)

router = APIRouter(prefix="/api")


async def read_json_body(request: Request) -> Any:
    """Decode the JSON body; anything undecodable reads as no body."""
    too_large = PayloadTooLargeError(f"Request body must not exceed {config.MAX_BODY_BYTES} bytes")

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > config.MAX_BODY_BYTES:
        raise too_large

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > config.MAX_BODY_BYTES:
            raise too_large
        chunks.append(chunk)

    body = b"".join(chunks)
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


@router.post(
    "/feedback",
    tags=["Feedback"],
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra=TEXT_BODY
)
async def create_feedback(
    request: Request,
    db: AsyncSession = Depends(get_db),
    sentiment_classifier: SentimentClassifier = Depends(get_classifier)
):
    """Submit customer feedback (max 1000 characters) and store its sentiment.

    This endpoint:
    1. Validates the text field
    2. Classifies sentiment with the pre-trained model
    3. Stores the feedback with its label and confidence score
    """
    payload = await read_json_body(request)

    try:
        feedback = await submit_feedback(db, sentiment_classifier, payload)
    except ValidationError:
        raise
    except Exception as e:
        logger.error(f"Feedback submission error: {e}", exc_info=True)
        raise InternalError("Failed to submit feedback") from e

    return FeedbackResponse(**feedback.to_dict())


@router.get(
    "/feedback",
    tags=["Feedback"],
    response_model=FeedbackListResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def get_feedback(
    limit: Optional[str] = Query(None, description="Number of records to return (1-100, default 20)"),
    offset: Optional[str] = Query(None, description="Number of records to skip"),
    sentiment: Optional[str] = Query(None, description="Filter by sentiment: GOOD, BAD or NEUTRAL"),
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_admin)
):
    """Retrieve feedback, most recent first (Admin only)."""
    page_limit, page_offset, label = normalize_list_params(limit, offset, sentiment)

    try:
        return await query_feedback(db, page_limit, page_offset, label)
    except Exception as e:
        logger.error(f"Feedback retrieval error: {e}", exc_info=True)
        raise InternalError("Failed to retrieve feedback") from e


@router.get(
    "/feedback/stats",
    tags=["Feedback"],
    response_model=FeedbackStats,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def get_feedback_stats(
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_admin)
):
    """Get total and per-sentiment counts for all feedback (Admin only)."""
    try:
        return await get_stats(db)
    except Exception as e:
        logger.error(f"Stats retrieval error: {e}", exc_info=True)
        raise InternalError("Failed to retrieve statistics") from e


@router.post(
    "/sentiment",
    tags=["Feedback"],
    response_model=SentimentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra=TEXT_BODY
)
async def analyze_sentiment(
    request: Request,
    sentiment_classifier: SentimentClassifier = Depends(get_classifier)
):
    """Analyze the sentiment of a text without storing it."""
    text = validate_feedback_text(await read_json_body(request))

    try:
        result = await sentiment_classifier.analyze(text)
    except Exception as e:
        logger.error(f"Sentiment analysis error: {e}", exc_info=True)
        raise InternalError("Failed to analyze sentiment") from e

    return SentimentResponse(label=result.label, score=result.score, probs=result.probs)


@router.get(
    "/health",
    tags=["Health"],
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}}
)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint.

    Reports whether the database answers a trivial query.
    """
    try:
        await ping(db)
    except Exception as e:
        logger.warning(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "error",
                "database": "disconnected",
                "timestamp": isoformat(utcnow())
            }
        )

    return HealthResponse(status="ok", database="connected", timestamp=isoformat(utcnow()))


app.include_router(router)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint with API information."""
    return {
        "service": "HappyMeter API",
        "version": "1.0.0",
        "endpoints": {
            "submit": "POST /api/feedback",
            "list": "GET /api/feedback",
            "stats": "GET /api/feedback/stats",
            "sentiment": "POST /api/sentiment",
            "health": "GET /api/health",
            "docs": "GET /api-docs"
        }
    }


def run():
    """Serve the API with uvicorn."""
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
