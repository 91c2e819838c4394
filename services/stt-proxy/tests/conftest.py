import pytest

from config import AudioConfig, QuotaConfig, StorageBucketsConfig
from domain.models import Principal, ResolvedAudio

from fakes import FakeStorage, InMemoryQuotaStore, RecordingRepository


@pytest.fixture
def principal() -> Principal:
    return Principal(user_id="user-1", tenant_id="tenant-1")


@pytest.fixture
def audio() -> ResolvedAudio:
    return ResolvedAudio(data=b"RIFF0000WAVEfmt ", mime_type="audio/wav", size_bytes=16)


@pytest.fixture
def quota_config() -> QuotaConfig:
    return QuotaConfig(tier_ceilings={"free": 10.0, "paid": 60.0, "enterprise": -1.0})


@pytest.fixture
def buckets() -> StorageBucketsConfig:
    return StorageBucketsConfig()


@pytest.fixture
def audio_config() -> AudioConfig:
    return AudioConfig(max_bytes=1024)


@pytest.fixture
def quota_store() -> InMemoryQuotaStore:
    return InMemoryQuotaStore()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def repository() -> RecordingRepository:
    return RecordingRepository()
