"""Feedback ingestion and admin queries."""
import logging
import re
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from config import config
from database import count_feedback, feedback_stats, list_feedback, save_feedback
from exceptions import ValidationError
from models import Feedback, Sentiment
from sentiment_analyzer import SentimentClassifier

logger = logging.getLogger(__name__)

LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def validate_feedback_text(payload: Any) -> str:
    """Validate a raw request payload and return the trimmed text.

    Checks run in order and the first failure wins: ``text`` must be a
    string, must not be blank, and must not exceed the length limit
    (measured before trimming).

    Raises:
        ValidationError: With a stable, client-facing message
    """
    text = payload.get("text") if isinstance(payload, dict) else None

    if not isinstance(text, str):
        raise ValidationError("Text field is required and must be a string")

    trimmed = text.strip()
    if not trimmed:
        raise ValidationError("Text cannot be empty")

    if len(text) > config.MAX_FEEDBACK_LENGTH:
        raise ValidationError(
            f"Text must not exceed {config.MAX_FEEDBACK_LENGTH} characters"
        )

    return trimmed


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    match = LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def normalize_list_params(
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    sentiment: Optional[str] = None
) -> Tuple[int, int, Optional[Sentiment]]:
    """Turn raw query parameters into a bounded page and optional filter.

    Values are read by their leading integer, so ``"10abc"`` means 10.
    A missing, non-numeric or zero ``limit`` falls back to the default; the
    result is clamped to [1, MAX_LIST_LIMIT]. ``offset`` falls back to 0 and
    is never negative. Unknown sentiment labels are ignored.
    """
    parsed_limit = _parse_int(limit) or config.DEFAULT_LIST_LIMIT
    parsed_offset = _parse_int(offset) or 0

    return (
        max(1, min(config.MAX_LIST_LIMIT, parsed_limit)),
        max(0, parsed_offset),
        Sentiment.parse(sentiment)
    )


async def submit_feedback(
    db: AsyncSession,
    classifier: SentimentClassifier,
    payload: Any
) -> Feedback:
    """Validate, classify and store one submission.

    Args:
        db: Database session
        classifier: Shared sentiment classifier
        payload: Decoded JSON body

    Returns:
        The stored Feedback row
    """
    text = validate_feedback_text(payload)

    analysis = await classifier.analyze(text)
    logger.info(f"Feedback classified as {analysis.label.value} (score: {analysis.score})")

    feedback = await save_feedback(db, text, analysis)
    logger.info(f"Feedback {feedback.id} stored")
    return feedback


async def query_feedback(
    db: AsyncSession,
    limit: int,
    offset: int,
    sentiment: Optional[Sentiment] = None
) -> Dict[str, Any]:
    """Page of feedback plus the total matching the same filter."""
    rows = await list_feedback(db, limit, offset, sentiment)
    total = await count_feedback(db, sentiment)

    return {
        "feedback": [row.to_dict() for row in rows],
        "total": total,
        "limit": limit,
        "offset": offset
    }


async def get_stats(db: AsyncSession) -> Dict[str, int]:
    return await feedback_stats(db)
