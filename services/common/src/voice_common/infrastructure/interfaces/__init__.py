from voice_common.infrastructure.interfaces.quota_store import QuotaStore
from voice_common.infrastructure.interfaces.storage import StorageClient

__all__ = [
    "StorageClient",
    "QuotaStore",
]
