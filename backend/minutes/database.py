import logging
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.config import settings

logger = logging.getLogger(__name__)

# ============================================================================
# Database Configuration
# ============================================================================
# Priority:
# 1. DATABASE_URL environment variable (explicit configuration)
# 2. Default: SQLite file in <DATA_DIR>/database/meetings.db

DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("sqlite"):
    # File-backed SQLite needs its directory to exist before the first connect
    db_file = DATABASE_URL.split("///", 1)[-1]
    if db_file and db_file != ":memory:":
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db():
    """Create tables that do not exist yet."""
    from . import models  # noqa: F401  (registers the mapped classes)

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database ready at {DATABASE_URL}")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
