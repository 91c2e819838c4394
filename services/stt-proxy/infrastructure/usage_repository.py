"""SQLModel implementation of the UsageRepository interface."""

from collections.abc import Callable
from contextlib import AbstractContextManager

from sqlmodel import Session
from voice_common import UsagePersistenceError, VoiceUsageLog, setup_logging

from domain.models import UsageRecord
from infrastructure.interfaces import UsageRepository

logger = setup_logging()


class SqlUsageRepository(UsageRepository):
    """
    Appends usage records to the ``voice_usage_logs`` table.

    Rows are inserted and never updated; the table is the audit trail of
    billable voice requests.
    """

    def __init__(self, session_factory: Callable[[], AbstractContextManager[Session]]):
        self._session_factory = session_factory

    def append(self, record: UsageRecord) -> None:
        row = VoiceUsageLog(
            user_id=record.user_id,
            tenant_id=record.tenant_id,
            service=record.service,
            units=record.units,
            cost_estimate=record.cost_estimate,
            provider=record.provider,
            language=record.language,
            status=record.status,
            latency_ms=record.latency_ms,
            created_at=record.timestamp,
        )
        try:
            with self._session_factory() as session:
                session.add(row)
                session.commit()
        except Exception as e:
            logger.exception(
                "Failed to save usage record",
                extra={"user_id": record.user_id, "tenant_id": record.tenant_id},
            )
            raise UsagePersistenceError(record.user_id, e) from e
        logger.info(
            "Usage record saved",
            extra={"user_id": record.user_id, "provider": record.provider},
        )
