import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .application.ports.otp_provider import VerificationProvider
from .application.ports.pending_repo import PendingVerificationTable
from .application.services.verification_service import VerificationOrchestrator
from .config import Settings
from .database import build_engine, create_db_and_tables
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.otp.factory import build_verification_provider
from .infrastructure.pending.memory_pending_table import InMemoryPendingVerificationTable
from .infrastructure.pending.redis_pending_table import RedisPendingVerificationTable
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserStore

logger = logging.getLogger(__name__)


@dataclass
class Container:
    engine: Engine
    user_store: SqlUserStore
    pending: PendingVerificationTable
    provider: VerificationProvider
    orchestrator: VerificationOrchestrator


def build_pending_table(settings: Settings) -> PendingVerificationTable:
    if settings.REDIS_URL:
        logger.info("Pending verifications stored in Redis")
        return RedisPendingVerificationTable(url=settings.REDIS_URL)
    return InMemoryPendingVerificationTable()


def build_container(
    settings: Settings,
    provider: Optional[VerificationProvider] = None,
    engine: Optional[Engine] = None,
    pending: Optional[PendingVerificationTable] = None,
) -> Container:
    engine = engine or build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    create_db_and_tables(engine)
    user_store = SqlUserStore(engine)
    pending = pending or build_pending_table(settings)
    provider = provider or build_verification_provider(settings)
    orchestrator = VerificationOrchestrator(
        user_store=user_store,
        pending=pending,
        provider=provider,
        audit=StdAuditLogger(),
        ttl=settings.otp_ttl,
        max_attempts=settings.MAX_OTP_ATTEMPTS,
        provider_timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        default_country_code=settings.DEFAULT_COUNTRY_CODE,
    )
    return Container(
        engine=engine,
        user_store=user_store,
        pending=pending,
        provider=provider,
        orchestrator=orchestrator,
    )
