"""Ordered provider fallback for a single transcription request."""

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from voice_common import setup_logging

from domain.language import DEFAULT_LOCALE, normalize
from domain.models import ProviderAttempt, ProviderResult, ResolvedAudio
from exceptions import AllProvidersFailedError, ProviderError
from infrastructure.interfaces import LanguageDetector, TranscriptionProvider

logger = setup_logging()


class FallbackState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    INVOKING = "invoking"
    SUCCEEDED = "succeeded"
    ALL_FAILED = "all_failed"


@dataclass
class FallbackOutcome:
    """Result of a fallback run: the winning transcript plus the failed attempts before it."""

    result: ProviderResult
    locale: str
    detected_language: str | None = None
    attempts: list[ProviderAttempt] = field(default_factory=list)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class FallbackOrchestrator:
    """
    Drives an ordered list of providers until one of them succeeds.

    Providers are tried strictly one after another, never in parallel, and
    never twice in the same run. Each provider enforces its own timeout; a
    timeout surfaces as ProviderUnreachableError like any other outage.
    """

    def __init__(
        self,
        providers: Sequence[TranscriptionProvider],
        detector: LanguageDetector | None = None,
        default_locale: str = DEFAULT_LOCALE,
    ):
        self._providers = list(providers)
        self._detector = detector
        self._default_locale = default_locale

    @property
    def provider_ids(self) -> list[str]:
        return [provider.provider_id for provider in self._providers]

    def _transition(self, state: FallbackState, **context) -> None:
        logger.info("Fallback state changed", extra={"state": state.value, **context})

    def _detect(self, audio: ResolvedAudio) -> str | None:
        if self._detector is None:
            return None
        self._transition(FallbackState.DETECTING, provider=self._detector.provider_id)
        started = time.monotonic()
        try:
            detected = self._detector.detect(audio)
        except ProviderError as e:
            logger.warning(
                "Language detection failed, continuing without it",
                extra={
                    "provider": e.provider,
                    "error": e.kind,
                    "elapsed_ms": _elapsed_ms(started),
                },
            )
            return None
        logger.info(
            "Language detected",
            extra={"detected_language": detected, "elapsed_ms": _elapsed_ms(started)},
        )
        return detected

    def run(
        self,
        audio: ResolvedAudio,
        language: str | None = None,
        candidates: Sequence[str] = (),
    ) -> FallbackOutcome:
        """
        Detects the language, then walks the provider chain.

        Detection is skipped when the caller pinned a single language and
        offered no candidates.

        Args:
            audio: Resolved audio.
            language: Locale pinned by the caller, also used as the fallback locale.
            candidates: Locales the caller considers likely.

        Returns:
            FallbackOutcome holding the first successful result.

        Raises:
            AllProvidersFailedError: If every provider failed.
        """
        self._transition(FallbackState.IDLE, providers=self.provider_ids)

        detected = None
        if not (language and not candidates):
            detected = self._detect(audio)
        locale = normalize(detected, candidates, language or self._default_locale)

        attempts: list[ProviderAttempt] = []
        for index, provider in enumerate(self._providers):
            self._transition(
                FallbackState.INVOKING,
                index=index,
                provider=provider.provider_id,
                locale=locale,
            )
            started = time.monotonic()
            try:
                result = provider.submit(audio, locale)
            except ProviderError as e:
                attempt = ProviderAttempt(
                    provider=provider.provider_id,
                    error=e.kind,
                    message=e.message,
                    elapsed_ms=_elapsed_ms(started),
                )
                attempts.append(attempt)
                logger.warning(
                    "Provider failed, advancing fallback chain",
                    extra={
                        "provider": attempt.provider,
                        "error": attempt.error,
                        "reason": attempt.message,
                        "elapsed_ms": attempt.elapsed_ms,
                    },
                )
                continue

            self._transition(
                FallbackState.SUCCEEDED,
                provider=provider.provider_id,
                elapsed_ms=_elapsed_ms(started),
                failed_attempts=len(attempts),
            )
            return FallbackOutcome(
                result=result,
                locale=locale,
                detected_language=detected,
                attempts=attempts,
            )

        self._transition(FallbackState.ALL_FAILED, failed_attempts=len(attempts))
        raise AllProvidersFailedError(attempts, locale)


def build_provider_chain(
    order: Sequence[str], registry: Mapping[str, TranscriptionProvider]
) -> list[TranscriptionProvider]:
    """Returns the providers named in ``order``, skipping unknown and repeated ids."""
    chain: list[TranscriptionProvider] = []
    for provider_id in order:
        provider = registry.get(provider_id)
        if provider is None:
            logger.warning(
                "Unknown provider in order, skipping", extra={"provider": provider_id}
            )
            continue
        if provider not in chain:
            chain.append(provider)
    return chain
