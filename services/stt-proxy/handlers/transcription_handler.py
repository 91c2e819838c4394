"""Handler for single-shot transcription requests."""

import time
from collections.abc import Callable

from voice_common import setup_logging

from domain import (
    AudioSourceResolver,
    QuotaGuard,
    TranscriptionOutcome,
    TranscriptionRequest,
    UsageRecord,
)
from exceptions import AllProvidersFailedError, QuotaExceededError

from .fallback_orchestrator import FallbackOrchestrator
from .usage_recorder import UsageRecorder

logger = setup_logging()

SERVICE = "stt"


class TranscriptionHandler:
    """Orchestrates resolution, quota, provider fallback and usage accounting."""

    def __init__(
        self,
        resolver: AudioSourceResolver,
        quota_guard: QuotaGuard,
        orchestrator: FallbackOrchestrator,
        usage_recorder: UsageRecorder,
        estimated_units: float,
    ):
        self._resolver = resolver
        self._quota_guard = quota_guard
        self._orchestrator = orchestrator
        self._usage_recorder = usage_recorder
        self._estimated_units = estimated_units

    def process(
        self,
        request: TranscriptionRequest,
        on_usage: Callable[[UsageRecord], None],
    ) -> TranscriptionOutcome:
        """
        Transcribes the requested audio.

        Usage is handed to ``on_usage`` rather than written here so the caller
        can defer it until after the response is sent.

        Args:
            request: The validated transcription request.
            on_usage: Receives the usage record once the outcome is known.

        Returns:
            TranscriptionOutcome for a successful transcription.

        Raises:
            SourceUnresolvableError: If the audio cannot be resolved.
            PayloadTooLargeError: If the audio exceeds the size ceiling.
            QuotaExceededError: If the caller has no quota left.
            AllProvidersFailedError: If every provider failed.
        """
        principal = request.principal
        logger.info(
            "Processing transcription",
            extra={
                "user_id": principal.user_id,
                "tenant_id": principal.tenant_id,
                "language": request.language,
                "candidate_languages": list(request.candidate_languages),
            },
        )

        audio = self._resolver.resolve(request.audio)

        quota = self._quota_guard.check(
            principal.user_id, principal.tenant_id, SERVICE, self._estimated_units
        )
        if not quota.allowed:
            raise QuotaExceededError(quota)

        started = time.monotonic()
        try:
            outcome = self._orchestrator.run(
                audio, request.language, request.candidate_languages
            )
        except AllProvidersFailedError as e:
            latency_ms = int((time.monotonic() - started) * 1000)
            on_usage(
                UsageRecord(
                    user_id=principal.user_id,
                    tenant_id=principal.tenant_id,
                    service=SERVICE,
                    units=0.0,
                    cost_estimate=self._usage_recorder.estimate_cost("none", 0.0),
                    provider="none",
                    language=e.language or request.language or "",
                    status="failed",
                    latency_ms=latency_ms,
                )
            )
            raise

        latency_ms = int((time.monotonic() - started) * 1000)
        result = outcome.result
        units = (
            result.duration_seconds / 60
            if result.duration_seconds is not None
            else self._estimated_units
        )
        cost = self._usage_recorder.estimate_cost(result.provider, units)

        on_usage(
            UsageRecord(
                user_id=principal.user_id,
                tenant_id=principal.tenant_id,
                service=SERVICE,
                units=units,
                cost_estimate=cost,
                provider=result.provider,
                language=result.language,
                latency_ms=latency_ms,
            )
        )

        logger.info(
            "Transcription completed",
            extra={
                "provider": result.provider,
                "language": result.language,
                "latency_ms": latency_ms,
                "units": units,
                "cost_estimate": str(cost),
                "failed_attempts": len(outcome.attempts),
            },
        )
        return TranscriptionOutcome(
            result=result,
            quota=quota,
            latency_ms=latency_ms,
            cost_estimate=cost,
            attempts=tuple(outcome.attempts),
        )
