from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy import text
import logging
import os

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("SHOTDECK_DATABASE_URL", "sqlite:///./shotdeck.db")


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in {"sqlite://", "sqlite:///:memory:"}:
        # One shared connection, otherwise every checkout sees an empty database.
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_schema() -> None:
    # Register the tables on Base before create_all.
    from shotdeck.models import annotation, movie  # noqa: F401

    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()


def ensure_sqlite_schema():
    """
    Upgrade SQLite files whose movies table predates the links column.

    Adds `links` with an empty JSON list default and backfills NULLs; safe to
    run on every start.
    """
    if not DATABASE_URL.startswith("sqlite"):
        return

    with engine.begin() as conn:
        cols = conn.execute(text("PRAGMA table_info(movies)")).fetchall()
        col_names = {row[1] for row in cols}  # (cid, name, type, notnull, dflt_value, pk)
        if cols and "links" not in col_names:
            logger.info("Adding links column to movies")
            conn.execute(text("ALTER TABLE movies ADD COLUMN links JSON DEFAULT '[]'"))
        if cols:
            conn.execute(text("UPDATE movies SET links='[]' WHERE links IS NULL"))


def migrate() -> None:
    logging.basicConfig(level=logging.INFO)
    ensure_schema()
    logger.info("Schema applied to %s", engine.url.render_as_string(hide_password=True))
