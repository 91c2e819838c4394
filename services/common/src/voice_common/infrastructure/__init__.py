from voice_common.infrastructure.interfaces import QuotaStore, StorageClient

__all__ = [
    "StorageClient",
    "QuotaStore",
]
