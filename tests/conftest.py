from datetime import datetime, timedelta, timezone

import pytest

from phoneverify.database import build_engine, create_db_and_tables
from phoneverify.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserStore


class FakeClock:
    """Drives both the datetime clock of the orchestrator and the epoch clock of the offline provider."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def time(self) -> float:
        return self.current.timestamp()

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    return engine


@pytest.fixture
def user_store(engine):
    return SqlUserStore(engine)
