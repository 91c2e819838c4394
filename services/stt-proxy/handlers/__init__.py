"""Handler layer exports."""

from .fallback_orchestrator import (
    FallbackOrchestrator,
    FallbackOutcome,
    FallbackState,
    build_provider_chain,
)
from .transcription_handler import TranscriptionHandler
from .usage_recorder import UsageRecorder

__all__ = [
    "FallbackOrchestrator",
    "FallbackOutcome",
    "FallbackState",
    "TranscriptionHandler",
    "UsageRecorder",
    "build_provider_chain",
]
