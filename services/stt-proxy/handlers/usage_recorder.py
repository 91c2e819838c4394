"""Best-effort usage accounting."""

from decimal import Decimal

from voice_common import QuotaStoreError, UsagePersistenceError, setup_logging
from voice_common.infrastructure import QuotaStore

from domain.models import UsageRecord
from domain.pricing import PRICING, ProviderPricing, estimate_cost
from infrastructure.interfaces import UsageRepository

logger = setup_logging()


class UsageRecorder:
    """
    Persists usage records and advances the quota counters.

    Nothing here raises: accounting is eventually consistent, and a
    transcript already produced must reach the caller regardless.
    """

    def __init__(
        self,
        repository: UsageRepository,
        quota_store: QuotaStore,
        pricing: dict[str, ProviderPricing] = PRICING,
    ):
        self._repository = repository
        self._quota_store = quota_store
        self._pricing = pricing

    def estimate_cost(self, provider: str, units: float) -> Decimal:
        """Returns the cost estimate for ``units`` billed by ``provider``."""
        return estimate_cost(provider, units, self._pricing)

    def record(self, record: UsageRecord) -> None:
        """
        Appends the record to the audit log and increments the caller's counter.

        Args:
            record: The usage record to persist.
        """
        context = {
            "user_id": record.user_id,
            "tenant_id": record.tenant_id,
            "provider": record.provider,
            "units": record.units,
            "status": record.status,
        }

        try:
            self._repository.append(record)
        except UsagePersistenceError:
            logger.exception("Failed to persist usage record", extra=context)
        except Exception:
            logger.exception("Unexpected error persisting usage record", extra=context)

        if record.units <= 0:
            return

        period = record.timestamp.strftime("%Y-%m")
        try:
            total = self._quota_store.increment(
                record.service, record.tenant_id, record.user_id, period, record.units
            )
            logger.info("Usage recorded", extra={**context, "period_total": total})
        except QuotaStoreError:
            logger.exception("Failed to increment usage counter", extra=context)
        except Exception:
            logger.exception("Unexpected error incrementing usage counter", extra=context)
