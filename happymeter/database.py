"""Database connection and operations."""
import asyncio
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import case, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config import config
from exceptions import StoreUnavailable
from models import Base, Feedback, Sentiment, utcnow
from schemas import AnalysisResult

logger = logging.getLogger(__name__)


def build_engine(database_url: str = None) -> AsyncEngine:
    """Create the async engine for the configured store.

    SQLite shares one connection through StaticPool; server databases get a
    bounded pool whose checkout blocks up to ``DB_POOL_TIMEOUT_SECONDS``.
    """
    database_url = database_url or config.DATABASE_URL
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=config.DB_ECHO
        )
    return create_async_engine(
        database_url,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_timeout=config.DB_POOL_TIMEOUT_SECONDS,
        pool_pre_ping=True,
        echo=config.DB_ECHO
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)


async def init_db(bind: AsyncEngine = None):
    """Initialize database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db(bind: AsyncEngine = None, timeout: float = None) -> None:
    """Release pooled connections, waiting at most ``timeout`` seconds."""
    timeout = config.SHUTDOWN_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        await asyncio.wait_for((bind or engine).dispose(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Database pool did not drain within {timeout}s")


async def get_db():
    """Dependency to get database session."""
    async with AsyncSessionLocal() as session:
        yield session


def get_db_session():
    """Get database session as context manager (for CLI usage)."""
    return AsyncSessionLocal()


async def ping(db: AsyncSession) -> None:
    """Run a trivial query; raises StoreUnavailable if the store is unreachable."""
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailable("Database unreachable") from e


async def save_feedback(
    db: AsyncSession,
    feedback_text: str,
    analysis: AnalysisResult
) -> Feedback:
    """Save feedback and its sentiment to the database.

    Args:
        db: Database session
        feedback_text: Trimmed feedback text
        analysis: Scoring result

    Returns:
        Saved Feedback model with id and timestamps populated
    """
    now = utcnow()
    feedback = Feedback(
        text=feedback_text,
        sentiment=analysis.label,
        confidence_score=Decimal(analysis.confidence_score),
        created_at=now,
        updated_at=now
    )

    try:
        db.add(feedback)
        await db.commit()
        await db.refresh(feedback)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreUnavailable("Failed to store feedback") from e

    return feedback


def _filtered(stmt, sentiment: Optional[Sentiment]):
    """Apply the optional sentiment predicate shared by list and count."""
    if sentiment is not None:
        stmt = stmt.where(Feedback.sentiment == sentiment)
    return stmt


async def list_feedback(
    db: AsyncSession,
    limit: int,
    offset: int,
    sentiment: Optional[Sentiment] = None
) -> List[Feedback]:
    """Return a page of feedback, newest first."""
    stmt = _filtered(select(Feedback), sentiment)
    stmt = stmt.order_by(Feedback.created_at.desc(), Feedback.id.desc()).limit(limit).offset(offset)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to list feedback") from e
    return list(result.scalars().all())


async def count_feedback(db: AsyncSession, sentiment: Optional[Sentiment] = None) -> int:
    """Count feedback matching the same filter as list_feedback."""
    stmt = _filtered(select(func.count(Feedback.id)), sentiment)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to count feedback") from e
    return result.scalar_one() or 0


async def feedback_stats(db: AsyncSession) -> Dict[str, int]:
    """Total and per-label counts across all feedback."""

    def _count(label: Sentiment):
        return func.count(case((Feedback.sentiment == label, 1)))

    stmt = select(
        func.count(Feedback.id),
        _count(Sentiment.GOOD),
        _count(Sentiment.BAD),
        _count(Sentiment.NEUTRAL)
    )
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to compute statistics") from e

    total, good, bad, neutral = result.one()
    return {
        "total": total or 0,
        "good": good or 0,
        "bad": bad or 0,
        "neutral": neutral or 0
    }
