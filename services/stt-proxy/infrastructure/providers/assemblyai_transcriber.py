"""AssemblyAI implementation of the TranscriptionProvider interface."""

import io
import time
from collections.abc import Callable

import assemblyai as aai
import httpx
from voice_common import setup_logging

from domain.language import canonicalize, provider_locale
from domain.models import ProviderResult, ResolvedAudio
from exceptions import (
    ProviderMalformedError,
    ProviderUnconfiguredError,
    ProviderUnreachableError,
)
from infrastructure.interfaces import TranscriptionProvider

logger = setup_logging()


class AssemblyAITranscriber(TranscriptionProvider):
    """
    Handles audio transcription using AssemblyAI.

    AssemblyAI transcribes asynchronously: the audio is submitted, then the
    transcript is polled until it completes or the adapter's deadline passes.
    """

    provider_id = "assemblyai"

    def __init__(
        self,
        transcriber: aai.Transcriber | None,
        api_key: str,
        timeout_seconds: float,
        poll_interval_seconds: float = 1.0,
        fetch_transcript: Callable[[str], aai.Transcript] = aai.Transcript.get_by_id,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._transcriber = transcriber
        self._api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._poll_interval = poll_interval_seconds
        self._fetch_transcript = fetch_transcript
        self._sleep = sleep

    def _config(self, locale: str) -> aai.TranscriptionConfig:
        mapped = provider_locale(self.provider_id, locale)
        if mapped.code:
            return aai.TranscriptionConfig(language_code=mapped.code)
        logger.info(
            "Locale degraded for provider",
            extra={"provider": self.provider_id, "locale": locale, "note": mapped.note},
        )
        return aai.TranscriptionConfig(language_detection=True)

    def _wait(self, transcript: aai.Transcript, deadline: float) -> aai.Transcript:
        while transcript.status not in (
            aai.TranscriptStatus.completed,
            aai.TranscriptStatus.error,
        ):
            if time.monotonic() >= deadline:
                raise ProviderUnreachableError(
                    self.provider_id, f"timed out after {self.timeout_seconds}s"
                )
            self._sleep(self._poll_interval)
            transcript = self._fetch_transcript(transcript.id)
        return transcript

    def submit(self, audio: ResolvedAudio, locale: str) -> ProviderResult:
        if self._transcriber is None or not self._api_key:
            raise ProviderUnconfiguredError(self.provider_id, "API key not configured")

        deadline = time.monotonic() + self.timeout_seconds
        source = io.BytesIO(audio.data) if audio.data is not None else audio.url
        if source is None:
            raise ProviderMalformedError(self.provider_id, "no audio to send")

        try:
            transcript = self._transcriber.submit(source, config=self._config(locale))
            transcript = self._wait(transcript, deadline)
        except ProviderUnreachableError:
            raise
        except httpx.HTTPError as e:
            logger.exception("AssemblyAI request failed")
            raise ProviderUnreachableError(self.provider_id, str(e), e) from e
        except Exception as e:
            logger.exception("AssemblyAI transcription failed")
            raise ProviderMalformedError(self.provider_id, str(e), e) from e

        if transcript.status == aai.TranscriptStatus.error:
            raise ProviderMalformedError(self.provider_id, transcript.error or "unknown error")

        detected = (transcript.json_response or {}).get("language_code")
        text = transcript.text or ""
        logger.info(
            "Audio transcription successful",
            extra={"provider": self.provider_id, "characters": len(text)},
        )
        return ProviderResult(
            text=text,
            language=canonicalize(detected) or locale,
            confidence=transcript.confidence,
            provider=self.provider_id,
            duration_seconds=transcript.audio_duration,
        )
