"""Shared plumbing for HTTP-based transcription providers."""

import json
import time
from dataclasses import dataclass
from typing import Any

import httpx
from voice_common import setup_logging

from domain.language import ProviderLocale, provider_locale
from domain.models import ResolvedAudio
from exceptions import (
    PayloadTooLargeError,
    ProviderError,
    ProviderMalformedError,
    ProviderRateLimitedError,
    ProviderUnconfiguredError,
    ProviderUnreachableError,
)
from infrastructure.interfaces import TranscriptionProvider

logger = setup_logging()

DEFAULT_MAX_AUDIO_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class Reply:
    """A fully read 2xx response."""

    status_code: int
    body: bytes


def error_for_status(provider_id: str, status_code: int, body: bytes) -> ProviderError | None:
    """Maps a non-success HTTP status onto the provider error taxonomy."""
    if 200 <= status_code < 300:
        return None
    message = f"HTTP {status_code}: {body[:200].decode('utf-8', errors='replace')}"
    if status_code in (401, 403):
        return ProviderUnconfiguredError(provider_id, message)
    if status_code == 429:
        return ProviderRateLimitedError(provider_id, message)
    if status_code >= 500:
        return ProviderUnreachableError(provider_id, message)
    return ProviderMalformedError(provider_id, message)


def deadline_after(timeout: float) -> float:
    return time.monotonic() + timeout


def time_left(provider_id: str, deadline: float) -> float:
    """Seconds until ``deadline``; raises ProviderUnreachableError once it has passed."""
    left = deadline - time.monotonic()
    if left <= 0:
        raise ProviderUnreachableError(provider_id, "timed out: call deadline exceeded")
    return left


def _declared_length(response: httpx.Response) -> int | None:
    raw = response.headers.get("content-length", "")
    return int(raw) if raw.isdigit() else None


def send(
    provider_id: str,
    http: httpx.Client,
    method: str,
    url: str,
    deadline: float,
    max_bytes: int | None = None,
    **kwargs: Any,
) -> Reply:
    """
    Sends a request and reads the reply, all before ``deadline``.

    httpx timeouts apply to each socket operation, so the body is streamed
    and the deadline is checked between chunks; a peer trickling bytes
    cannot hold the call open. With ``max_bytes`` set, a reply declaring or
    delivering more than that many bytes raises PayloadTooLargeError.

    Raises:
        ProviderError: For non-2xx replies, timeouts and transport failures.
        PayloadTooLargeError: If the body exceeds ``max_bytes``.
    """
    try:
        with http.stream(
            method, url, timeout=time_left(provider_id, deadline), **kwargs
        ) as response:
            declared = _declared_length(response)
            if max_bytes is not None and declared is not None and declared > max_bytes:
                raise PayloadTooLargeError(declared, max_bytes)

            body = bytearray()
            for chunk in response.iter_bytes():
                body.extend(chunk)
                if max_bytes is not None and len(body) > max_bytes:
                    raise PayloadTooLargeError(len(body), max_bytes)
                time_left(provider_id, deadline)
    except httpx.TimeoutException as e:
        raise ProviderUnreachableError(provider_id, "timed out waiting for a response", e) from e
    except httpx.HTTPError as e:
        raise ProviderUnreachableError(provider_id, str(e) or type(e).__name__, e) from e

    error = error_for_status(provider_id, response.status_code, bytes(body))
    if error is not None:
        raise error
    return Reply(status_code=response.status_code, body=bytes(body))


def read_json(provider_id: str, reply: Reply) -> dict[str, Any]:
    try:
        payload = json.loads(reply.body)
    except ValueError as e:
        raise ProviderMalformedError(provider_id, "response is not JSON", e) from e
    if not isinstance(payload, dict):
        raise ProviderMalformedError(provider_id, "response is not a JSON object")
    return payload


class HttpTranscriptionProvider(TranscriptionProvider):
    """Base class for providers reached over plain HTTP with an API key."""

    provider_id = "http"

    def __init__(
        self,
        http: httpx.Client,
        api_key: str,
        timeout_seconds: float,
        max_audio_bytes: int = DEFAULT_MAX_AUDIO_BYTES,
    ):
        self._http = http
        self._api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.max_audio_bytes = max_audio_bytes

    def _require_key(self) -> None:
        if not self._api_key:
            raise ProviderUnconfiguredError(self.provider_id, "API key not configured")

    def _locale(self, locale: str) -> ProviderLocale:
        mapped = provider_locale(self.provider_id, locale)
        if mapped.approximate:
            logger.info(
                "Locale degraded for provider",
                extra={
                    "provider": self.provider_id,
                    "locale": locale,
                    "provider_code": mapped.code,
                    "note": mapped.note,
                },
            )
        return mapped

    def _audio_bytes(self, audio: ResolvedAudio, deadline: float) -> bytes:
        """
        Returns the audio bytes, downloading them when only a URL is known.

        The download shares the caller's deadline and stops at the audio
        size ceiling, before anything is forwarded to the vendor.
        """
        if audio.data is not None:
            return audio.data
        if not audio.url:
            raise ProviderMalformedError(self.provider_id, "no audio to send")
        reply = send(
            self.provider_id,
            self._http,
            "GET",
            audio.url,
            deadline,
            max_bytes=self.max_audio_bytes,
        )
        return reply.body
