"""Infrastructure interface exports."""

from voice_common.infrastructure import QuotaStore, StorageClient

from .principal_resolver import PrincipalResolver
from .transcription_provider import LanguageDetector, TranscriptionProvider
from .usage_repository import UsageRepository

__all__ = [
    "LanguageDetector",
    "PrincipalResolver",
    "QuotaStore",
    "StorageClient",
    "TranscriptionProvider",
    "UsageRepository",
]
