"""Database models for feedback storage."""
import enum
from datetime import datetime, UTC
from sqlalchemy import Column, Integer, String, DateTime, Enum, Numeric
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Sentiment(str, enum.Enum):
    """Coarse sentiment assigned to a feedback submission."""

    GOOD = "GOOD"
    BAD = "BAD"
    NEUTRAL = "NEUTRAL"

    @classmethod
    def parse(cls, value):
        """Return the matching member for an exact label, else None."""
        try:
            return cls(value)
        except ValueError:
            return None


def utcnow() -> datetime:
    return datetime.now(UTC)


def isoformat(value: datetime) -> str:
    """Format a timestamp as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Feedback(Base):
    """Feedback database model. Rows are append-only."""

    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(String(1000), nullable=False)
    sentiment = Column(Enum(Sentiment, name="sentiment_type"), nullable=False)
    confidence_score = Column(Numeric(5, 4), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def confidence(self):
        """Confidence score as a string with four fractional digits."""
        if self.confidence_score is None:
            return None
        return f"{self.confidence_score:.4f}"

    def to_dict(self):
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "sentiment": self.sentiment.value,
            "confidenceScore": self.confidence,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at)
        }

    def __repr__(self) -> str:
        return f"<Feedback {self.id} {self.sentiment}>"
