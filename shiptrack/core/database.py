from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings


def _make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        echo=settings.DEBUG
    )

    # Enable WAL Mode for SQLite Concurrency
    if url.startswith("sqlite") and ":memory:" not in url:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


# Create engines
engine = _make_engine(settings.DATABASE_URL)
test_engine = _make_engine(settings.TEST_DATABASE_URL)

# Session factories
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# Base class for models
Base = declarative_base()


def session_factory(is_test_environment: bool = False) -> sessionmaker:
    """Session factory for the live or the test database"""
    return TestSessionLocal if is_test_environment else SessionLocal


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
