"""Application configuration loaded from environment variables."""

import os

from pydantic import BaseModel
from voice_common import MinioConfig, PostgresConfig, RedisConfig

DEFAULT_PROVIDER_ORDER = "openai-whisper,azure,deepgram"


class StorageBucketsConfig(BaseModel, frozen=True):
    """Buckets that audio may live in, matched by path substring."""

    default_bucket: str = "voice-notes"
    prefixed_buckets: tuple[str, ...] = ("homework-submissions", "message-media")
    signed_url_ttl_seconds: int = 3600


class AudioConfig(BaseModel, frozen=True):
    """Limits applied to incoming audio."""

    max_bytes: int = 10 * 1024 * 1024


class AuthConfig(BaseModel, frozen=True):
    """Bearer token verification settings."""

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = None


class QuotaConfig(BaseModel, frozen=True):
    """Monthly usage ceilings per subscription tier, in audio minutes."""

    tier_ceilings: dict[str, float] = {"free": 10.0, "paid": 300.0, "enterprise": -1.0}
    default_tier: str = "free"
    estimated_units: float = 0.5


class OpenAIConfig(BaseModel, frozen=True):
    """OpenAI Whisper API configuration."""

    api_key: str
    model: str = "whisper-1"
    timeout_seconds: float = 30.0


class AzureSpeechConfig(BaseModel, frozen=True):
    """Azure Speech short-audio REST configuration."""

    api_key: str
    region: str = "southafricanorth"
    timeout_seconds: float = 20.0


class DeepgramConfig(BaseModel, frozen=True):
    """Deepgram configuration, used both for detection and as the last fallback."""

    api_key: str
    model: str = "nova-2"
    timeout_seconds: float = 45.0
    detect_timeout_seconds: float = 2.0


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str
    timeout_seconds: float = 60.0
    poll_interval_seconds: float = 1.0


class ProvidersConfig(BaseModel, frozen=True):
    """Provider credentials plus the fallback order."""

    order: tuple[str, ...]
    default_locale: str = "en-US"
    openai: OpenAIConfig
    azure: AzureSpeechConfig
    deepgram: DeepgramConfig
    assemblyai: AssemblyAIConfig


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    minio: MinioConfig
    redis: RedisConfig
    postgres: PostgresConfig
    buckets: StorageBucketsConfig = StorageBucketsConfig()
    audio: AudioConfig = AudioConfig()
    auth: AuthConfig
    quota: QuotaConfig = QuotaConfig()
    providers: ProvidersConfig


def _provider_order(raw: str) -> tuple[str, ...]:
    return tuple(name.strip() for name in raw.split(",") if name.strip())


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        minio=MinioConfig(
            endpoint=os.getenv("MINIO_ENDPOINT", "minio:9000"),
            user=os.getenv("MINIO_USER", ""),
            password=os.getenv("MINIO_PASSWORD", ""),
        ),
        redis=RedisConfig(
            host=os.getenv("REDIS_HOST", "redis"),
            port=int(os.getenv("REDIS_PORT", "6379")),
        ),
        postgres=PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "voice"),
        ),
        audio=AudioConfig(
            max_bytes=int(os.getenv("STT_MAX_AUDIO_BYTES", str(10 * 1024 * 1024))),
        ),
        auth=AuthConfig(
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_audience=os.getenv("JWT_AUDIENCE") or None,
        ),
        quota=QuotaConfig(
            tier_ceilings={
                "free": float(os.getenv("STT_QUOTA_FREE_MINUTES", "10")),
                "paid": float(os.getenv("STT_QUOTA_PAID_MINUTES", "300")),
                "enterprise": float(os.getenv("STT_QUOTA_ENTERPRISE_MINUTES", "-1")),
            },
            estimated_units=float(os.getenv("STT_ESTIMATED_MINUTES", "0.5")),
        ),
        providers=ProvidersConfig(
            order=_provider_order(
                os.getenv("STT_PROVIDER_ORDER", DEFAULT_PROVIDER_ORDER)
            ),
            default_locale=os.getenv("STT_DEFAULT_LOCALE", "en-US"),
            openai=OpenAIConfig(
                api_key=os.getenv("OPENAI_API_KEY", ""),
                model=os.getenv("OPENAI_TRANSCRIPTION_MODEL", "whisper-1"),
            ),
            azure=AzureSpeechConfig(
                api_key=os.getenv("AZURE_SPEECH_KEY", ""),
                region=os.getenv("AZURE_SPEECH_REGION", "southafricanorth"),
            ),
            deepgram=DeepgramConfig(
                api_key=os.getenv("DEEPGRAM_API_KEY", ""),
            ),
            assemblyai=AssemblyAIConfig(
                api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            ),
        ),
    )
