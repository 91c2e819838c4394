"""Domain layer exports."""

from .models import (
    AudioRef,
    InlineAudio,
    Principal,
    ProviderAttempt,
    ProviderResult,
    QuotaStatus,
    ResolvedAudio,
    StorageAudio,
    TranscriptionOutcome,
    TranscriptionRequest,
    UrlAudio,
    UsageRecord,
)
from .language import canonicalize, normalize, provider_locale
from .pricing import estimate_cost
from .quota_guard import QuotaGuard
from .audio_resolver import AudioSourceResolver

__all__ = [
    "AudioRef",
    "AudioSourceResolver",
    "InlineAudio",
    "Principal",
    "ProviderAttempt",
    "ProviderResult",
    "QuotaGuard",
    "QuotaStatus",
    "ResolvedAudio",
    "StorageAudio",
    "TranscriptionOutcome",
    "TranscriptionRequest",
    "UrlAudio",
    "UsageRecord",
    "canonicalize",
    "estimate_cost",
    "normalize",
    "provider_locale",
]
