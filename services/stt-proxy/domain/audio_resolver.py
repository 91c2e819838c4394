"""Turns a request's audio reference into something a provider can consume."""

import base64
import binascii
from datetime import timedelta
from urllib.parse import urlparse

from voice_common import StorageLookupError, setup_logging
from voice_common.infrastructure import StorageClient

from config import AudioConfig, StorageBucketsConfig
from exceptions import PayloadTooLargeError, SourceUnresolvableError

from .models import AudioRef, InlineAudio, ResolvedAudio, StorageAudio, UrlAudio

logger = setup_logging()

DEFAULT_MIME_TYPE = "audio/mp4"

MIME_TYPES = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "webm": "audio/webm",
    "flac": "audio/flac",
}


def mime_type_for(audio_format: str | None) -> str:
    """Maps a declared audio format to a mime type."""
    if not audio_format:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(audio_format.lower().lstrip("."), DEFAULT_MIME_TYPE)


class AudioSourceResolver:
    """Resolves storage paths, external URLs and inline payloads."""

    def __init__(
        self,
        storage: StorageClient,
        buckets: StorageBucketsConfig,
        audio: AudioConfig,
    ):
        self._storage = storage
        self._buckets = buckets
        self._max_bytes = audio.max_bytes

    def bucket_for(self, path: str) -> str:
        """Infers the bucket from known path conventions."""
        for bucket in self._buckets.prefixed_buckets:
            if bucket in path:
                return bucket
        return self._buckets.default_bucket

    def resolve(self, audio_ref: AudioRef) -> ResolvedAudio:
        """
        Resolves an audio reference.

        Args:
            audio_ref: Storage path, external URL, or inline raw/base64 bytes.

        Returns:
            ResolvedAudio with either a fetchable URL or the decoded bytes.

        Raises:
            SourceUnresolvableError: If the storage lookup or decoding fails.
            PayloadTooLargeError: If the audio exceeds the size ceiling.
        """
        if isinstance(audio_ref, StorageAudio):
            return self._resolve_storage(audio_ref.path)
        if isinstance(audio_ref, UrlAudio):
            return self._resolve_url(audio_ref.url)
        if isinstance(audio_ref, InlineAudio):
            return self._resolve_inline(audio_ref)
        raise SourceUnresolvableError(type(audio_ref).__name__)

    def _check_size(self, size: int) -> None:
        if size > self._max_bytes:
            raise PayloadTooLargeError(size, self._max_bytes)

    def _resolve_storage(self, path: str) -> ResolvedAudio:
        bucket = self.bucket_for(path)
        object_name = path.lstrip("/")
        try:
            size = self._storage.object_size(bucket, object_name)
            self._check_size(size)
            url = self._storage.presigned_get_url(
                bucket,
                object_name,
                timedelta(seconds=self._buckets.signed_url_ttl_seconds),
            )
        except StorageLookupError as e:
            raise SourceUnresolvableError(path, e) from e

        logger.info(
            "Resolved stored audio",
            extra={"bucket_name": bucket, "object_name": object_name, "size": size},
        )
        extension = object_name.rsplit(".", 1)[-1] if "." in object_name else None
        return ResolvedAudio(url=url, mime_type=mime_type_for(extension), size_bytes=size)

    def _resolve_url(self, url: str) -> ResolvedAudio:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise SourceUnresolvableError(url)
        extension = parsed.path.rsplit(".", 1)[-1] if "." in parsed.path else None
        return ResolvedAudio(url=url, mime_type=mime_type_for(extension))

    def _resolve_inline(self, audio: InlineAudio) -> ResolvedAudio:
        mime_type = audio.mime_type or mime_type_for(audio.format)
        if audio.base64_encoded:
            data = self._decode_base64(audio.data)
        else:
            self._check_size(len(audio.data))
            data = audio.data
        if not data:
            raise SourceUnresolvableError("inline audio")
        logger.info(
            "Resolved inline audio",
            extra={"size": len(data), "mime_type": mime_type},
        )
        return ResolvedAudio(data=data, mime_type=mime_type, size_bytes=len(data))

    def _decode_base64(self, payload: bytes) -> bytes:
        if payload.startswith(b"data:") and b"," in payload:
            payload = payload.split(b",", 1)[1]
        payload = b"".join(payload.split())
        approximate_size = (len(payload) * 3) // 4
        if approximate_size > self._max_bytes + 3:
            raise PayloadTooLargeError(approximate_size, self._max_bytes)
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SourceUnresolvableError("audio_base64", e) from e
        self._check_size(len(data))
        return data
