"""Abstract interface for the externally owned usage counters."""

from abc import ABC, abstractmethod


class QuotaStore(ABC):
    """Holds per-period usage counters and tenant subscription tiers."""

    @abstractmethod
    def get_tier(self, tenant_id: str) -> str | None:
        """
        Returns the subscription tier of a tenant, or None if unknown.

        Raises:
            QuotaStoreError: If the store cannot be reached.
        """

    @abstractmethod
    def get_usage(self, service: str, tenant_id: str, user_id: str, period: str) -> float:
        """
        Returns the units consumed by a user of a tenant during a period.

        Args:
            service: Billable service name, e.g. "stt".
            tenant_id: The tenant the user belongs to.
            user_id: The user id.
            period: Accounting period key, e.g. "2025-01".

        Raises:
            QuotaStoreError: If the store cannot be reached.
        """

    @abstractmethod
    def increment(
        self, service: str, tenant_id: str, user_id: str, period: str, units: float
    ) -> float:
        """
        Atomically adds units to a user's counter and returns the new total.

        Raises:
            QuotaStoreError: If the store cannot be reached.
        """
