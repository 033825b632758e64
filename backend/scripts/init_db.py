"""Create the database (PostgreSQL only) and all tables.

    python scripts/init_db.py [--drop]
"""
from __future__ import annotations

import argparse

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

from tiktok_ingest import models  # noqa: F401
from tiktok_ingest.config import get_settings
from tiktok_ingest.database import Base, build_engine
from tiktok_ingest.utils.logger import get_logger

logger = get_logger("init_db")


def ensure_database_exists(database_url: str) -> bool:
    """Create the PostgreSQL database if missing; returns True when created."""
    url = make_url(database_url)
    if url.get_backend_name() != "postgresql" or not url.database:
        return False

    admin_engine = create_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT")
    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": url.database},
            ).scalar()
            if exists:
                return False
            conn.execute(text(f'CREATE DATABASE "{url.database}"'))
            return True
    finally:
        admin_engine.dispose()


def create_tables(database_url: str, drop: bool = False) -> None:
    engine = build_engine(database_url)
    try:
        if drop:
            logger.warning("Dropping all tables on %s", engine.url.render_as_string(hide_password=True))
            Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialize the tiktok_ingest database")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()

    settings = get_settings()
    if ensure_database_exists(settings.database_url):
        logger.info("Created database %s", make_url(settings.database_url).database)
    create_tables(settings.database_url, drop=args.drop)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    main()
