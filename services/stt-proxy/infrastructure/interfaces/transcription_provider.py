"""Abstract interfaces for speech-recognition vendors."""

from abc import ABC, abstractmethod

from domain.models import ProviderResult, ResolvedAudio


class TranscriptionProvider(ABC):
    """One external transcription vendor behind a uniform submit call."""

    provider_id: str
    timeout_seconds: float

    @abstractmethod
    def submit(self, audio: ResolvedAudio, locale: str) -> ProviderResult:
        """
        Transcribes audio in the given canonical locale.

        The call must give up after ``timeout_seconds``; a timeout is reported
        as ProviderUnreachableError.

        Args:
            audio: In-memory bytes or a fetchable URL.
            locale: Canonical locale tag, e.g. "af-ZA".

        Returns:
            ProviderResult; an empty transcript is a valid result.

        Raises:
            ProviderUnconfiguredError: If credentials are missing or rejected.
            ProviderUnreachableError: On network failure, timeout or 5xx.
            ProviderRateLimitedError: If the vendor throttles the call.
            ProviderMalformedError: If the vendor rejects the request or the reply is unreadable.
        """


class LanguageDetector(ABC):
    """A fast, cheap call that only guesses the spoken language."""

    provider_id: str
    timeout_seconds: float

    @abstractmethod
    def detect(self, audio: ResolvedAudio) -> str | None:
        """
        Returns the detected language tag, or None if the vendor could not tell.

        Raises:
            ProviderError: Any subclass, same taxonomy as TranscriptionProvider.submit.
        """
