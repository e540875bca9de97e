"""Database connection used by the health check."""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from lessons.logging_config import get_logger

logger = get_logger(__name__)


class DatabaseNotConfigured(Exception):
    """Raised when DATABASE_URL is missing."""


def normalize_database_url(database_url: str) -> str:
    """Point bare Postgres URLs (as issued by Neon) at the psycopg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if database_url.startswith(prefix):
            return "postgresql+psycopg://" + database_url[len(prefix):]
    return database_url


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        """Initialize database connection.

        The engine is created on first use so a missing driver or URL only
        affects the health check.

        Args:
            database_url: Database URL
        """
        self.database_url = normalize_database_url(database_url) if database_url else None
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if not self.database_url:
            raise DatabaseNotConfigured("DATABASE_URL environment variable is required")
        if self._engine is None:
            self._engine = create_engine(self.database_url, pool_pre_ping=True)
            logger.info("database_initialized", dialect=self._engine.dialect.name)
        return self._engine

    def version(self) -> str | None:
        """Return the server version string."""
        engine = self.engine
        query = "SELECT sqlite_version()" if engine.dialect.name == "sqlite" else "SELECT version()"
        with engine.connect() as conn:
            return conn.execute(text(query)).scalar()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
