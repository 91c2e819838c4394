"""OpenAI Whisper API implementation of TranscriptionProvider."""

import httpx
import openai
from openai import OpenAI
from voice_common import setup_logging

from domain.models import ProviderResult, ResolvedAudio
from exceptions import (
    ProviderMalformedError,
    ProviderRateLimitedError,
    ProviderUnconfiguredError,
    ProviderUnreachableError,
)

from .base import (
    DEFAULT_MAX_AUDIO_BYTES,
    HttpTranscriptionProvider,
    deadline_after,
    time_left,
)

logger = setup_logging()

FILE_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/aac": "m4a",
    "audio/ogg": "ogg",
    "audio/webm": "webm",
    "audio/flac": "flac",
}


class OpenAIWhisperTranscriber(HttpTranscriptionProvider):
    """
    Transcribes audio with the hosted Whisper model.

    First in the default chain: broad multilingual coverage at a low
    per-minute price. The SDK's own retries are disabled so a failing call
    hands over to the next provider instead of retrying in place. Downloading
    URL audio and the API call share one deadline.
    """

    provider_id = "openai-whisper"

    def __init__(
        self,
        client: OpenAI | None,
        http: httpx.Client,
        model: str,
        timeout_seconds: float,
        max_audio_bytes: int = DEFAULT_MAX_AUDIO_BYTES,
    ):
        super().__init__(
            http, client.api_key if client else "", timeout_seconds, max_audio_bytes
        )
        self._client = client
        self._model = model

    def submit(self, audio: ResolvedAudio, locale: str) -> ProviderResult:
        if self._client is None:
            raise ProviderUnconfiguredError(self.provider_id, "API key not configured")

        deadline = deadline_after(self.timeout_seconds)
        mapped = self._locale(locale)
        data = self._audio_bytes(audio, deadline)
        file_name = f"audio.{FILE_EXTENSIONS.get(audio.mime_type, 'm4a')}"

        request = {
            "model": self._model,
            "file": (file_name, data, audio.mime_type),
            "response_format": "verbose_json",
            "timeout": time_left(self.provider_id, deadline),
        }
        if mapped.code:
            request["language"] = mapped.code

        try:
            transcription = self._client.audio.transcriptions.create(**request)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise ProviderUnconfiguredError(self.provider_id, str(e), e) from e
        except openai.RateLimitError as e:
            raise ProviderRateLimitedError(self.provider_id, str(e), e) from e
        except (openai.APITimeoutError, openai.APIConnectionError) as e:
            raise ProviderUnreachableError(self.provider_id, str(e), e) from e
        except openai.InternalServerError as e:
            raise ProviderUnreachableError(self.provider_id, str(e), e) from e
        except openai.APIError as e:
            raise ProviderMalformedError(self.provider_id, str(e), e) from e

        text = getattr(transcription, "text", None)
        if text is None:
            raise ProviderMalformedError(self.provider_id, "response has no text")

        logger.info(
            "Whisper transcription successful",
            extra={"locale": locale, "language_code": mapped.code, "characters": len(text)},
        )
        return ProviderResult(
            text=text,
            language=locale,
            provider=self.provider_id,
            duration_seconds=getattr(transcription, "duration", None),
        )
