"""Exceptions shared by the voice services' infrastructure adapters."""


class StorageLookupError(Exception):
    """Raised when an object cannot be located or signed in storage."""

    def __init__(
        self,
        object_name: str,
        cause: Exception | None = None,
        message: str | None = None,
    ):
        self.object_name = object_name
        self.cause = cause
        super().__init__(message or f"Failed to look up '{object_name}' in storage")


class StorageObjectNotFoundError(StorageLookupError):
    """Raised when the requested object does not exist."""

    def __init__(self, object_name: str, cause: Exception | None = None):
        super().__init__(
            object_name, cause, f"Object '{object_name}' does not exist in storage"
        )


class QuotaStoreError(Exception):
    """Raised when the quota counter store cannot be read or written."""

    def __init__(self, key: str, operation: str, cause: Exception | None = None):
        self.key = key
        self.operation = operation
        self.cause = cause
        super().__init__(f"Quota store {operation} failed for key '{key}'")


class UsagePersistenceError(Exception):
    """Raised when a usage record cannot be persisted."""

    def __init__(self, user_id: str, cause: Exception | None = None):
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"Failed to persist usage record for user '{user_id}'")
