"""Deepgram implementations of TranscriptionProvider and LanguageDetector."""

from typing import Any

import httpx
from voice_common import setup_logging

from domain.language import canonicalize
from domain.models import ProviderResult, ResolvedAudio
from exceptions import ProviderMalformedError, ProviderUnconfiguredError
from infrastructure.interfaces import LanguageDetector

from .base import HttpTranscriptionProvider, deadline_after, read_json, send

logger = setup_logging()

LISTEN_URL = "https://api.deepgram.com/v1/listen"


def listen(
    provider_id: str,
    http: httpx.Client,
    api_key: str,
    audio: ResolvedAudio,
    params: dict[str, Any],
    deadline: float,
) -> dict[str, Any]:
    """Calls /v1/listen with either a URL body or the raw audio bytes, before ``deadline``."""
    if not api_key:
        raise ProviderUnconfiguredError(provider_id, "API key not configured")

    headers = {"Authorization": f"Token {api_key}"}
    if audio.data is not None:
        headers["Content-Type"] = audio.mime_type
        body = {"content": audio.data}
    elif audio.url:
        body = {"json": {"url": audio.url}}
    else:
        raise ProviderMalformedError(provider_id, "no audio to send")

    reply = send(
        provider_id,
        http,
        "POST",
        LISTEN_URL,
        deadline,
        params=params,
        headers=headers,
        **body,
    )
    return read_json(provider_id, reply)


def _first_channel(payload: dict[str, Any]) -> dict[str, Any]:
    channels = (payload.get("results") or {}).get("channels") or []
    return channels[0] if channels else {}


class DeepgramTranscriber(HttpTranscriptionProvider):
    """Full transcription with Deepgram; the last, most patient link of the chain."""

    provider_id = "deepgram"

    def __init__(
        self, http: httpx.Client, api_key: str, model: str, timeout_seconds: float
    ):
        super().__init__(http, api_key, timeout_seconds)
        self._model = model

    def submit(self, audio: ResolvedAudio, locale: str) -> ProviderResult:
        mapped = self._locale(locale)
        params: dict[str, Any] = {"model": self._model, "smart_format": "true"}
        if mapped.code:
            params["language"] = mapped.code
        else:
            params["detect_language"] = "true"

        payload = listen(
            self.provider_id,
            self._http,
            self._api_key,
            audio,
            params,
            deadline_after(self.timeout_seconds),
        )
        channel = _first_channel(payload)
        if not channel:
            raise ProviderMalformedError(self.provider_id, "response has no channels")
        alternative = (channel.get("alternatives") or [{}])[0]
        language = canonicalize(channel.get("detected_language")) or locale
        duration = (payload.get("metadata") or {}).get("duration")

        text = alternative.get("transcript") or ""
        logger.info(
            "Deepgram transcription successful",
            extra={"locale": language, "characters": len(text)},
        )
        return ProviderResult(
            text=text,
            language=language,
            confidence=alternative.get("confidence"),
            provider=self.provider_id,
            duration_seconds=duration,
        )


class DeepgramLanguageDetector(LanguageDetector):
    """Language-only pass over the audio with a short timeout."""

    provider_id = "deepgram"

    def __init__(
        self, http: httpx.Client, api_key: str, model: str, timeout_seconds: float
    ):
        self._http = http
        self._api_key = api_key
        self._model = model
        self.timeout_seconds = timeout_seconds

    def detect(self, audio: ResolvedAudio) -> str | None:
        payload = listen(
            self.provider_id,
            self._http,
            self._api_key,
            audio,
            {"model": self._model, "detect_language": "true"},
            deadline_after(self.timeout_seconds),
        )
        return _first_channel(payload).get("detected_language") or None
