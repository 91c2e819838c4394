"""Abstract interface for object storage lookups."""

from abc import ABC, abstractmethod
from datetime import timedelta


class StorageClient(ABC):
    """Abstract base class for object storage backends."""

    @abstractmethod
    def object_size(self, bucket_name: str, object_name: str) -> int:
        """
        Returns the size of a stored object in bytes.

        Args:
            bucket_name: The storage bucket name.
            object_name: The object path/name in storage.

        Raises:
            StorageObjectNotFoundError: If the object does not exist.
            StorageLookupError: If the lookup fails for any other reason.
        """

    @abstractmethod
    def presigned_get_url(
        self, bucket_name: str, object_name: str, expires: timedelta
    ) -> str:
        """
        Creates a short-lived URL that allows fetching the object without credentials.

        Args:
            bucket_name: The storage bucket name.
            object_name: The object path/name in storage.
            expires: How long the URL stays valid.

        Raises:
            StorageLookupError: If signing fails.
        """
