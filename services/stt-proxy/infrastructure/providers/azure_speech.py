"""Azure Speech short-audio REST implementation of TranscriptionProvider."""

import httpx
from voice_common import setup_logging

from domain.models import ProviderResult, ResolvedAudio
from exceptions import ProviderMalformedError

from .base import (
    DEFAULT_MAX_AUDIO_BYTES,
    HttpTranscriptionProvider,
    deadline_after,
    read_json,
    send,
)

logger = setup_logging()

ENDPOINT = (
    "https://{region}.stt.speech.microsoft.com"
    "/speech/recognition/conversation/cognitiveservices/v1"
)

# Statuses meaning "nothing intelligible was said"; an empty transcript, not a failure.
SILENT_STATUSES = {"NoMatch", "InitialSilenceTimeout", "BabbleTimeout"}

# Azure reports offsets and durations in 100-nanosecond ticks.
TICKS_PER_SECOND = 10_000_000


class AzureSpeechTranscriber(HttpTranscriptionProvider):
    """Transcribes audio with Azure Speech, strongest on South African locales."""

    provider_id = "azure"

    def __init__(
        self,
        http: httpx.Client,
        api_key: str,
        region: str,
        timeout_seconds: float,
        max_audio_bytes: int = DEFAULT_MAX_AUDIO_BYTES,
    ):
        super().__init__(http, api_key, timeout_seconds, max_audio_bytes)
        self._region = region

    def submit(self, audio: ResolvedAudio, locale: str) -> ProviderResult:
        self._require_key()
        deadline = deadline_after(self.timeout_seconds)
        azure_locale = self._locale(locale).code or "en-ZA"
        data = self._audio_bytes(audio, deadline)

        reply = send(
            self.provider_id,
            self._http,
            "POST",
            ENDPOINT.format(region=self._region),
            deadline,
            params={"language": azure_locale, "format": "detailed"},
            headers={
                "Ocp-Apim-Subscription-Key": self._api_key,
                "Content-Type": audio.mime_type,
                "Accept": "application/json",
            },
            content=data,
        )
        payload = read_json(self.provider_id, reply)

        status = payload.get("RecognitionStatus")
        if status in SILENT_STATUSES:
            logger.info(
                "Azure heard no speech",
                extra={"recognition_status": status, "locale": azure_locale},
            )
            return ProviderResult(text="", language=azure_locale, provider=self.provider_id)
        if status != "Success":
            raise ProviderMalformedError(
                self.provider_id, f"recognition status {status!r}"
            )

        best = (payload.get("NBest") or [{}])[0]
        text = payload.get("DisplayText") or best.get("Display") or ""
        duration = payload.get("Duration")

        logger.info(
            "Azure transcription successful",
            extra={"locale": azure_locale, "characters": len(text)},
        )
        return ProviderResult(
            text=text,
            language=azure_locale,
            confidence=best.get("Confidence"),
            provider=self.provider_id,
            duration_seconds=duration / TICKS_PER_SECOND if duration else None,
        )
