from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, declarative_base

from emotion_recognition.core.config import settings
from emotion_recognition.core.logging import get_logger

logger = get_logger(__name__)


def _engine_kwargs(url: str) -> dict:
    """
    Connection options per backend.
    PostgreSQL gets a validated connection pool; SQLite (local runs and tests)
    must allow the connection to be shared across FastAPI's worker threads.
    """
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    # pool_pre_ping=True ensures that connections are validated before being used,
    # preventing errors if the PostgreSQL container restarts or a connection drops.
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 15,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))


def enable_sqlite_foreign_keys(target_engine) -> None:
    """
    SQLite ignores ON DELETE CASCADE / SET NULL unless the pragma is enabled
    on every new connection.
    """
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)

# SessionLocal is a factory for new Session objects
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all declarative SQLAlchemy models
Base = declarative_base()


def init_db():
    """
    Creates any missing tables and verifies the connection.
    Alembic owns schema changes in production; create_all only fills
    in tables that do not exist yet, so it is safe to run on every startup.
    """
    # Import the models so they are registered on Base.metadata
    import emotion_recognition.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)

        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))

        logger.info(f"Database ready ({engine.dialect.name}).")

    except Exception as e:

        logger.error(f"Failed to initialize database: {e}")

        raise e


def get_db():
    """
    FastAPI dependency function to provide a database session per request.
    Yields a session and safely closes it after the HTTP request completes,
    preventing memory leaks and connection exhaustion.
    """
    db = SessionLocal()
    try:

        yield db

    finally:

        db.close()
