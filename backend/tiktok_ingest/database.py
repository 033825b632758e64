"""Database engine and session configuration"""
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from tiktok_ingest.config import get_settings

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # sessions are used from worker threads
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: storage returns rows after the session is closed
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@lru_cache
def get_engine() -> Engine:
    return build_engine(get_settings().database_url)


@lru_cache
def get_session_factory() -> sessionmaker:
    return build_session_factory(get_engine())
