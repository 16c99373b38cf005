"""Configuration management for HappyMeter."""
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Application configuration."""

    APP_ENV = os.getenv("APP_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server Configuration
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "4000"))
    TRUST_PROXY = _flag("TRUST_PROXY", "true")
    MAX_BODY_BYTES = int(os.getenv("MAX_BODY_BYTES", str(100 * 1024)))

    # Database Configuration
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./happymeter.db")
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    DB_POOL_TIMEOUT_SECONDS = float(os.getenv("DB_POOL_TIMEOUT_SECONDS", "30"))
    DB_ECHO = _flag("DB_ECHO", "false")
    SHUTDOWN_TIMEOUT_SECONDS = float(os.getenv("SHUTDOWN_TIMEOUT_SECONDS", "10"))

    # Sentiment Model Configuration
    SENTIMENT_MODEL = os.getenv(
        "SENTIMENT_MODEL", "cardiffnlp/twitter-roberta-base-sentiment-latest"
    )
    SENTIMENT_MAX_TOKENS = int(os.getenv("SENTIMENT_MAX_TOKENS", "512"))
    WARMUP_ON_STARTUP = _flag("WARMUP_ON_STARTUP", "true")

    # Admin Configuration
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
    ADMIN_REALM = os.getenv("ADMIN_REALM", "HappyMeter Admin")

    # Rate Limit Configuration
    RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "false" if APP_ENV == "test" else "true")
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "5"))
    RATE_LIMIT_MAX_CLIENTS = int(os.getenv("RATE_LIMIT_MAX_CLIENTS", "10000"))

    # Feedback Configuration
    MAX_FEEDBACK_LENGTH = 1000
    DEFAULT_LIST_LIMIT = 20
    MAX_LIST_LIMIT = 100


config = Config()
