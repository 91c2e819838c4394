"""Pre-flight quota enforcement."""

from collections.abc import Callable
from datetime import datetime, timezone

from voice_common import QuotaStoreError, setup_logging
from voice_common.infrastructure import QuotaStore

from config import QuotaConfig

from .models import QuotaStatus

logger = setup_logging()

UNLIMITED = -1.0


def current_period() -> str:
    """Returns the accounting period key for the current UTC month."""
    return datetime.now(timezone.utc).strftime("%Y-%m")


class QuotaGuard:
    """Decides whether a caller may spend more units before any provider is paid."""

    def __init__(
        self,
        store: QuotaStore,
        config: QuotaConfig,
        period: Callable[[], str] = current_period,
    ):
        self._store = store
        self._config = config
        self._period = period

    def _ceiling(self, tier: str) -> float:
        ceilings = self._config.tier_ceilings
        if tier in ceilings:
            return ceilings[tier]
        return ceilings.get(self._config.default_tier, 0.0)

    def check(
        self,
        user_id: str,
        tenant_id: str,
        service: str = "stt",
        estimated_units: float | None = None,
    ) -> QuotaStatus:
        """
        Checks the caller's monthly consumption against their tier ceiling.

        Fails open: if the quota store cannot be reached the request is
        allowed and the degraded state is logged.

        Args:
            user_id: The calling user.
            tenant_id: The tenant whose tier sets the ceiling.
            service: Billable service name.
            estimated_units: Units the request is expected to consume.

        Returns:
            QuotaStatus describing the decision.
        """
        if estimated_units is None:
            estimated_units = self._config.estimated_units
        period = self._period()

        try:
            tier = self._store.get_tier(tenant_id) or self._config.default_tier
            ceiling = self._ceiling(tier)
            if ceiling == UNLIMITED:
                return QuotaStatus(
                    allowed=True, tier=tier, quota_remaining=UNLIMITED, ceiling=UNLIMITED
                )
            used = self._store.get_usage(service, tenant_id, user_id, period)
        except QuotaStoreError:
            logger.warning(
                "Quota store unavailable, allowing request",
                extra={"user_id": user_id, "tenant_id": tenant_id, "service": service},
            )
            return QuotaStatus(allowed=True, tier="unknown", quota_remaining=UNLIMITED)

        remaining = max(0.0, ceiling - used)
        if used + estimated_units <= ceiling:
            return QuotaStatus(
                allowed=True,
                tier=tier,
                quota_remaining=remaining,
                used=used,
                ceiling=ceiling,
            )

        reason = (
            f"Monthly {service} quota exceeded for tier '{tier}': "
            f"{used:g} of {ceiling:g} minutes used, {estimated_units:g} more requested"
        )
        logger.warning(
            "Quota denied",
            extra={
                "user_id": user_id,
                "tenant_id": tenant_id,
                "tier": tier,
                "used": used,
                "ceiling": ceiling,
            },
        )
        return QuotaStatus(
            allowed=False,
            tier=tier,
            quota_remaining=remaining,
            reason=reason,
            used=used,
            ceiling=ceiling,
        )
