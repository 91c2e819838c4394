"""Abstract interface for the usage audit log."""

from abc import ABC, abstractmethod

from domain.models import UsageRecord


class UsageRepository(ABC):
    """Append-only store for usage records."""

    @abstractmethod
    def append(self, record: UsageRecord) -> None:
        """
        Persists a usage record.

        Raises:
            UsagePersistenceError: If the record cannot be written.
        """
