"""Infrastructure layer exports."""

from .jwt_principal_resolver import JwtPrincipalResolver
from .minio_storage import MinioStorageClient
from .redis_quota_store import RedisQuotaStore
from .usage_repository import SqlUsageRepository

__all__ = [
    "JwtPrincipalResolver",
    "MinioStorageClient",
    "RedisQuotaStore",
    "SqlUsageRepository",
]
