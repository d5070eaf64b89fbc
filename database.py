import os
from typing import Generator
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlmodel import SQLModel, create_engine, Session

from core.logging_config import logger

DATABASE_URL = os.getenv("DATABASE_URL", "").strip()

# Hosted Postgres often provides 'postgres://'. SQLAlchemy prefers 'postgresql+psycopg2://'
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg2://", 1)

if not DATABASE_URL:
    # Fallback to local SQLite for quick testing
    DATABASE_URL = "sqlite:///./local.db"

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)


# Columns added after the first release of each table. Older databases get
# them through ensure_column(); fresh ones already have them from create_all.
LATE_COLUMNS = [
    ("roles", "start_page", "TEXT"),
    ("billing_settings", "start_date", "TEXT"),
    ("billing_settings", "bg_key", "TEXT"),
    ("billing_settings_history", "prev_bg_key", "TEXT"),
    ("billing_settings_history", "new_bg_key", "TEXT"),
    ("payments", "reviewed_at", "TEXT"),
]


def ensure_column(bind, table: str, column: str, ddl_type: str) -> bool:
    """
    Best-effort ``ALTER TABLE ... ADD COLUMN``.
    Returns False when the column already exists (or the store refuses).
    """
    try:
        with bind.begin() as conn:
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl_type}"))
        logger.info(f"Added column {table}.{column}")
        return True
    except (OperationalError, ProgrammingError) as e:
        logger.debug(f"Skipped column {table}.{column}: {e}")
        return False


def create_db_and_tables(bind=None) -> None:
    bind = bind or engine

    # Register every table on the shared metadata
    import models  # noqa: F401

    SQLModel.metadata.create_all(bind)
    for table, column, ddl_type in LATE_COLUMNS:
        ensure_column(bind, table, column, ddl_type)


def ping_database(bind=None) -> dict:
    """Simple connectivity check (``select 1``)."""
    bind = bind or engine
    try:
        with bind.connect() as conn:
            row = conn.execute(text("select 1 as ok")).first()
        return {"service": "Database", "status": "ok", "ok": bool(row and row[0] == 1)}
    except Exception as e:
        logger.error(f"Database Ping Error: {e}", exc_info=True)
        return {"service": "Database", "status": "error", "ok": False}


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
