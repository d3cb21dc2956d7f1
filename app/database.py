from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import settings

# Seconds a SQLite writer waits on a competing driver claim before giving up
SQLITE_BUSY_TIMEOUT = 30


def normalize_database_url(url: str) -> str:
    """Some hosts hand out postgres:// URLs; SQLAlchemy only accepts postgresql://"""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # Request sessions, background notification sessions and concurrent
        # claims share the file from several threads
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
        )

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=False  # Set to True for SQL query logging (debug only)
    )


database_url = normalize_database_url(settings.DATABASE_URL)
engine = build_engine(database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """
    Dependency for work that outlives the request session.
    Background tasks run after get_db has closed its session, so they open their own.
    """
    return SessionLocal
