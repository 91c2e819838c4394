"""FastAPI dependency injection configuration."""

import assemblyai as aai
import httpx
import redis
import urllib3
from minio import Minio
from openai import OpenAI
from sqlmodel import Session, create_engine
from voice_common import setup_logging

from config import load_config
from domain import AudioSourceResolver, QuotaGuard
from handlers import (
    FallbackOrchestrator,
    TranscriptionHandler,
    UsageRecorder,
    build_provider_chain,
)
from infrastructure import (
    JwtPrincipalResolver,
    MinioStorageClient,
    RedisQuotaStore,
    SqlUsageRepository,
)
from infrastructure.interfaces import PrincipalResolver, TranscriptionProvider
from infrastructure.providers import (
    AssemblyAITranscriber,
    AzureSpeechTranscriber,
    DeepgramLanguageDetector,
    DeepgramTranscriber,
    OpenAIWhisperTranscriber,
)

logger = setup_logging()

_config = load_config()
_providers_config = _config.providers

_minio_client = Minio(
    endpoint=_config.minio.endpoint,
    access_key=_config.minio.user,
    secret_key=_config.minio.password,
    secure=_config.minio.secure,
    http_client=urllib3.PoolManager(
        timeout=urllib3.Timeout(
            connect=_config.minio.connect_timeout_seconds,
            read=_config.minio.read_timeout_seconds,
        ),
        retries=urllib3.Retry(total=1, backoff_factor=0.2),
    ),
)

_redis_client = redis.Redis(
    host=_config.redis.host,
    port=_config.redis.port,
    db=_config.redis.db,
    socket_timeout=_config.redis.socket_timeout_seconds,
    socket_connect_timeout=_config.redis.socket_timeout_seconds,
)

engine = create_engine(_config.postgres.url, pool_pre_ping=True)

http_client = httpx.Client(timeout=httpx.Timeout(30.0, connect=5.0))

_openai_client = (
    OpenAI(api_key=_providers_config.openai.api_key, max_retries=0)
    if _providers_config.openai.api_key
    else None
)

aai.settings.api_key = _providers_config.assemblyai.api_key
_aai_transcriber = aai.Transcriber() if _providers_config.assemblyai.api_key else None

_quota_store = RedisQuotaStore(_redis_client)


def _session_factory() -> Session:
    return Session(engine)


_registry: dict[str, TranscriptionProvider] = {
    "openai-whisper": OpenAIWhisperTranscriber(
        _openai_client,
        http_client,
        _providers_config.openai.model,
        _providers_config.openai.timeout_seconds,
        max_audio_bytes=_config.audio.max_bytes,
    ),
    "azure": AzureSpeechTranscriber(
        http_client,
        _providers_config.azure.api_key,
        _providers_config.azure.region,
        _providers_config.azure.timeout_seconds,
        max_audio_bytes=_config.audio.max_bytes,
    ),
    "deepgram": DeepgramTranscriber(
        http_client,
        _providers_config.deepgram.api_key,
        _providers_config.deepgram.model,
        _providers_config.deepgram.timeout_seconds,
    ),
    "assemblyai": AssemblyAITranscriber(
        _aai_transcriber,
        _providers_config.assemblyai.api_key,
        _providers_config.assemblyai.timeout_seconds,
        _providers_config.assemblyai.poll_interval_seconds,
    ),
}

_detector = DeepgramLanguageDetector(
    http_client,
    _providers_config.deepgram.api_key,
    _providers_config.deepgram.model,
    _providers_config.deepgram.detect_timeout_seconds,
)

_orchestrator = FallbackOrchestrator(
    build_provider_chain(_providers_config.order, _registry),
    detector=_detector if _providers_config.deepgram.api_key else None,
    default_locale=_providers_config.default_locale,
)

_usage_recorder = UsageRecorder(SqlUsageRepository(_session_factory), _quota_store)

_handler = TranscriptionHandler(
    resolver=AudioSourceResolver(
        MinioStorageClient(_minio_client), _config.buckets, _config.audio
    ),
    quota_guard=QuotaGuard(_quota_store, _config.quota),
    orchestrator=_orchestrator,
    usage_recorder=_usage_recorder,
    estimated_units=_config.quota.estimated_units,
)

_principal_resolver = JwtPrincipalResolver(_config.auth)

logger.info(
    "Transcription chain configured",
    extra={
        "providers": _orchestrator.provider_ids,
        "detection": bool(_providers_config.deepgram.api_key),
    },
)


def get_handler() -> TranscriptionHandler:
    """Returns the configured transcription handler."""
    return _handler


def get_usage_recorder() -> UsageRecorder:
    """Returns the configured usage recorder."""
    return _usage_recorder


def get_principal_resolver() -> PrincipalResolver:
    """Returns the configured bearer token resolver."""
    return _principal_resolver


def get_provider_ids() -> list[str]:
    """Returns the ids of the providers in fallback order."""
    return _orchestrator.provider_ids


def get_max_audio_bytes() -> int:
    """Returns the audio size ceiling in bytes."""
    return _config.audio.max_bytes
