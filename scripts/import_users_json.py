#!/usr/bin/env python3
"""
Import the bot's legacy users.json into the user store.

users.json is an ordered array of user objects keyed by ``telegram_id`` (or
``id``). Each entry becomes one keyed record; entries already present in the
store are overwritten, so the script can be re-run safely.

Usage: python scripts/import_users_json.py data/users.json
"""
import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from phoneverify.application.ports.user_repo import DEFAULT_PROFILE, UserRecord
from phoneverify.config import settings
from phoneverify.database import build_engine, create_db_and_tables
from phoneverify.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserStore
from phoneverify.utils import is_valid_phone, normalize_phone

logger = logging.getLogger("import_users_json")

_CORE_KEYS = {"telegram_id", "id", "phone", "verified", "verified_at"}


def _parse_timestamp(value):
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_record(entry: dict) -> UserRecord:
    user_id = entry.get("telegram_id", entry.get("id"))
    if user_id is None:
        raise ValueError("user entry has neither telegram_id nor id")
    phone = normalize_phone(entry.get("phone"))
    if not is_valid_phone(phone):
        phone = None
    # A verified flag without a usable phone cannot be trusted
    verified = bool(entry.get("verified")) and phone is not None
    profile = dict(DEFAULT_PROFILE)
    profile.update({k: v for k, v in entry.items() if k not in _CORE_KEYS})
    if "name" in profile and not profile.get("first_name"):
        profile["first_name"] = profile.pop("name")
    return UserRecord(
        id=str(user_id),
        phone=phone,
        verified=verified,
        verified_at=_parse_timestamp(entry.get("verified_at")) if verified else None,
        profile=profile,
    )


def import_users(path: str, store: SqlUserStore) -> int:
    with open(path, "r", encoding="utf-8") as fh:
        entries = json.load(fh) or []
    imported = 0
    for entry in entries:
        try:
            record = to_record(entry)
        except ValueError as e:
            logger.warning(f"Skipping entry: {e}")
            continue
        store.upsert(record)
        imported += 1
    return imported


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("path", nargs="?", default=os.path.join("data", "users.json"))
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format=settings.LOG_FORMAT)
    engine = build_engine(args.database_url)
    create_db_and_tables(engine)
    count = import_users(args.path, SqlUserStore(engine))
    logger.info(f"Imported {count} users from {args.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
