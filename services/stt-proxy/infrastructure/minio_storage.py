"""MinIO implementation of the StorageClient interface."""

from datetime import timedelta

from minio import Minio
from minio.error import S3Error
from voice_common import StorageLookupError, StorageObjectNotFoundError, setup_logging
from voice_common.infrastructure import StorageClient

logger = setup_logging()

_MISSING_CODES = {"NoSuchKey", "NoSuchBucket", "NoSuchObject"}


class MinioStorageClient(StorageClient):
    """Looks up and signs audio objects stored in MinIO."""

    def __init__(self, client: Minio):
        self._client = client

    def object_size(self, bucket_name: str, object_name: str) -> int:
        try:
            stat = self._client.stat_object(bucket_name, object_name)
        except S3Error as e:
            if e.code in _MISSING_CODES:
                logger.warning(
                    "Object not found in MinIO",
                    extra={"bucket_name": bucket_name, "object_name": object_name},
                )
                raise StorageObjectNotFoundError(object_name, e) from e
            logger.exception(
                "MinIO stat failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageLookupError(object_name, e) from e
        except Exception as e:
            logger.exception(
                "MinIO stat failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageLookupError(object_name, e) from e
        return stat.size or 0

    def presigned_get_url(
        self, bucket_name: str, object_name: str, expires: timedelta
    ) -> str:
        try:
            url = self._client.presigned_get_object(
                bucket_name, object_name, expires=expires
            )
        except Exception as e:
            logger.exception(
                "MinIO signing failed",
                extra={"bucket_name": bucket_name, "object_name": object_name},
            )
            raise StorageLookupError(object_name, e) from e
        logger.info(
            "Signed URL created",
            extra={
                "bucket_name": bucket_name,
                "object_name": object_name,
                "expires_seconds": int(expires.total_seconds()),
            },
        )
        return url
