import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .....application.ports.user_repo import DEFAULT_PROFILE, UserRecord, UserStore, utcnow
from .....db.models import UserRow
from .....exceptions import StorageFailure

logger = logging.getLogger(__name__)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands datetimes back without tzinfo; everything is stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlUserStore(UserStore):
    """Keyed user store; every write is a single-row transaction."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _to_record(self, row: UserRow) -> UserRecord:
        return UserRecord(
            id=row.id,
            phone=row.phone,
            verified=bool(row.verified),
            verified_at=_aware(row.verified_at),
            profile=dict(row.profile or {}),
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
        )

    def _write(self, session: Session, row: Optional[UserRow], record: UserRecord) -> None:
        if record.verified and not record.phone:
            raise ValueError(f"user {record.id} cannot be verified without a phone")
        if row is None:
            row = UserRow(id=record.id)
        row.phone = record.phone
        row.verified = record.verified
        row.verified_at = record.verified_at
        # Assign a fresh dict so the JSON column is flagged dirty
        row.profile = dict(record.profile)
        row.created_at = record.created_at
        row.updated_at = record.updated_at
        session.add(row)

    def _select(self, session: Session, user_id: str, for_update: bool = False) -> Optional[UserRow]:
        statement = select(UserRow).where(UserRow.id == user_id)
        if for_update:
            statement = statement.with_for_update()
        return session.exec(statement).first()

    def get(self, user_id: str) -> Optional[UserRecord]:
        try:
            with Session(self.engine) as session:
                row = self._select(session, user_id)
                return self._to_record(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Error getting user {user_id}: {e}")
            raise StorageFailure(f"could not read user {user_id}") from e

    def upsert(self, record: UserRecord) -> UserRecord:
        try:
            with Session(self.engine) as session, session.begin():
                row = self._select(session, record.id, for_update=True)
                self._write(session, row, record)
            return record
        except SQLAlchemyError as e:
            logger.error(f"Error saving user {record.id}: {e}")
            raise StorageFailure(f"could not write user {record.id}") from e

    def update(self, user_id: str, mutate: Callable[[UserRecord], None]) -> UserRecord:
        try:
            with Session(self.engine) as session, session.begin():
                row = self._select(session, user_id, for_update=True)
                if row is not None:
                    record = self._to_record(row)
                else:
                    record = UserRecord(id=user_id, profile=dict(DEFAULT_PROFILE))
                mutate(record)
                record.updated_at = utcnow()
                self._write(session, row, record)
            return record
        except SQLAlchemyError as e:
            logger.error(f"Error updating user {user_id}: {e}")
            raise StorageFailure(f"could not update user {user_id}") from e

    def ensure_user(self, user_id: str, **profile: Any) -> UserRecord:
        existing = self.get(user_id)
        if existing is not None:
            return existing

        def _init(record: UserRecord) -> None:
            record.profile.update({k: v for k, v in profile.items() if v is not None})

        logger.info(f"Creating user record for {user_id}")
        return self.update(user_id, _init)

    def list(self) -> List[UserRecord]:
        try:
            with Session(self.engine) as session:
                rows = session.exec(select(UserRow).order_by(UserRow.created_at, UserRow.id)).all()
                return [self._to_record(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Error listing users: {e}")
            raise StorageFailure("could not list users") from e
