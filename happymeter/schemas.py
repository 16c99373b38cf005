"""Pydantic schemas for request/response validation."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List, Optional

from models import Sentiment


class FeedbackRequest(BaseModel):
    """Request schema for feedback submission.

    Documents the body only; the raw payload is validated by hand so the
    error messages stay stable.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "Great product! Very satisfied with the quality."
            }
        }
    )

    text: str = Field(..., max_length=1000, description="Customer feedback text")


class FeedbackResponse(BaseModel):
    """Response schema for a stored submission."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "text": "Great product! Very satisfied with the quality.",
                "sentiment": "GOOD",
                "confidenceScore": "0.8542",
                "createdAt": "2025-11-14T12:00:00.000Z"
            }
        }
    )

    id: int
    text: str
    sentiment: Sentiment = Field(..., description="Sentiment classification: GOOD, BAD or NEUTRAL")
    confidenceScore: Optional[str] = Field(None, description="Probability of the winning class")
    createdAt: str


class FeedbackItem(FeedbackResponse):
    """Feedback row as listed on the admin dashboard."""

    updatedAt: str


class FeedbackListResponse(BaseModel):
    feedback: List[FeedbackItem]
    total: int = Field(..., description="Rows matching the active filter")
    limit: int
    offset: int


class FeedbackStats(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"total": 150, "good": 80, "bad": 35, "neutral": 35}
        }
    )

    total: int
    good: int
    bad: int
    neutral: int


class SentimentResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "label": "GOOD",
                "score": 8,
                "probs": {"positive": 0.9, "neutral": 0.05, "negative": 0.05}
            }
        }
    )

    label: Sentiment
    score: int = Field(..., ge=-10, le=10, description="Signed score from -10 to 10")
    probs: Dict[str, float]


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
    message: str


class AnalysisResult(BaseModel):
    """Internal schema for scoring results."""

    label: Sentiment
    score: int
    confidence_score: str
    probs: Dict[str, float]
