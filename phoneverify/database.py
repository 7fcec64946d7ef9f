import logging
import os
from typing import Optional

from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from .config import settings
from .db import models  # noqa: F401  registers tables on SQLModel.metadata

logger = logging.getLogger(__name__)


def build_engine(db_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Choose engine options based on database scheme"""
    db_url = db_url or settings.DATABASE_URL
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        database = make_url(db_url).database
        if not database or database == ":memory:":
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs["poolclass"] = StaticPool
        else:
            directory = os.path.dirname(database)
            if directory:
                os.makedirs(directory, exist_ok=True)
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
        })

    return create_engine(db_url, echo=echo, **engine_kwargs)


def create_db_and_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ensured")
