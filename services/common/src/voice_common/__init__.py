from voice_common.config import MinioConfig, PostgresConfig, RedisConfig
from voice_common.db_models import VoiceUsageLog
from voice_common.exceptions import (
    QuotaStoreError,
    StorageLookupError,
    StorageObjectNotFoundError,
    UsagePersistenceError,
)
from voice_common.logging import setup_logging

__all__ = [
    "setup_logging",
    "StorageLookupError",
    "StorageObjectNotFoundError",
    "QuotaStoreError",
    "UsagePersistenceError",
    "MinioConfig",
    "PostgresConfig",
    "RedisConfig",
    "VoiceUsageLog",
]
