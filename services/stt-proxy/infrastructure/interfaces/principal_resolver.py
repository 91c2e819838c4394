"""Abstract interface for resolving bearer credentials."""

from abc import ABC, abstractmethod

from domain.models import Principal


class PrincipalResolver(ABC):
    """Turns a bearer credential into an authenticated principal."""

    @abstractmethod
    def resolve(self, token: str) -> Principal:
        """
        Validates a bearer token and extracts the caller's identity.

        Args:
            token: The raw bearer credential, without the "Bearer " prefix.

        Returns:
            Principal carrying user and tenant ids.

        Raises:
            UnauthorizedError: If the token is invalid or carries no tenant.
        """
