import base64
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from config import AudioConfig, QuotaConfig, StorageBucketsConfig
from dependencies import (
    get_handler,
    get_max_audio_bytes,
    get_principal_resolver,
    get_provider_ids,
    get_usage_recorder,
)
from domain import AudioSourceResolver, Principal, QuotaGuard
from domain.quota_guard import current_period
from exceptions import (
    PayloadTooLargeError,
    ProviderMalformedError,
    ProviderUnconfiguredError,
    ProviderUnreachableError,
)
from handlers import FallbackOrchestrator, TranscriptionHandler, UsageRecorder
from main import app

from fakes import (
    FakeDetector,
    FakeProvider,
    FakeStorage,
    InMemoryQuotaStore,
    RecordingRepository,
    StaticPrincipalResolver,
)

AUTH = {"Authorization": "Bearer valid-token"}
PERIOD_KEY_PREFIX = ("stt", "tenant-1", "user-1")


@pytest.fixture
def make_client():
    def build(
        providers,
        detector=None,
        quota_store=None,
        storage=None,
        repository=None,
    ):
        quota_store = quota_store or InMemoryQuotaStore()
        storage = storage or FakeStorage()
        repository = repository or RecordingRepository()
        recorder = UsageRecorder(repository, quota_store)
        orchestrator = FallbackOrchestrator(providers, detector=detector)
        quota_config = QuotaConfig(
            tier_ceilings={"free": 10.0, "paid": 60.0}, estimated_units=1.0
        )
        handler = TranscriptionHandler(
            resolver=AudioSourceResolver(
                storage, StorageBucketsConfig(), AudioConfig(max_bytes=2048)
            ),
            quota_guard=QuotaGuard(quota_store, quota_config),
            orchestrator=orchestrator,
            usage_recorder=recorder,
            estimated_units=quota_config.estimated_units,
        )
        resolver = StaticPrincipalResolver(Principal(user_id="user-1", tenant_id="tenant-1"))

        app.dependency_overrides[get_handler] = lambda: handler
        app.dependency_overrides[get_usage_recorder] = lambda: recorder
        app.dependency_overrides[get_principal_resolver] = lambda: resolver
        app.dependency_overrides[get_provider_ids] = lambda: orchestrator.provider_ids
        app.dependency_overrides[get_max_audio_bytes] = lambda: 2048
        return SimpleNamespace(
            client=TestClient(app),
            providers=providers,
            quota_store=quota_store,
            repository=repository,
            storage=storage,
        )

    yield build
    app.dependency_overrides.clear()


def _inline_body(data: bytes = b"fake-audio", **extra) -> dict:
    return {"audio_base64": base64.b64encode(data).decode("ascii"), **extra}


def _calls(providers) -> int:
    return sum(len(provider.calls) for provider in providers)


def test_missing_bearer_token_returns_401(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper")])

    response = ctx.client.post("/stt/transcribe", json=_inline_body())

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert _calls(ctx.providers) == 0


def test_invalid_bearer_token_returns_401(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper")])

    response = ctx.client.post(
        "/stt/transcribe",
        json=_inline_body(),
        headers={"Authorization": "Bearer forged"},
    )

    assert response.status_code == 401


def test_ambiguous_audio_source_returns_400(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper")])

    response = ctx.client.post(
        "/stt/transcribe",
        json={"storage_path": "a.m4a", "audio_url": "https://cdn.test/a.m4a"},
        headers=AUTH,
    )

    assert response.status_code == 400
    assert "Exactly one" in response.json()["error"]


def test_non_json_body_returns_400(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper")])

    response = ctx.client.post(
        "/stt/transcribe",
        content=b"not json",
        headers={**AUTH, "Content-Type": "application/json"},
    )

    assert response.status_code == 400


def test_missing_storage_object_returns_422_without_side_effects(make_client) -> None:
    providers = [FakeProvider("openai-whisper"), FakeProvider("azure")]
    detector = FakeDetector("en")
    ctx = make_client(providers, detector=detector)

    response = ctx.client.post(
        "/stt/transcribe", json={"storage_path": "user-1/missing.m4a"}, headers=AUTH
    )

    assert response.status_code == 422
    assert response.json()["error"] == "Audio source could not be resolved"
    assert _calls(providers) == 0
    assert detector.calls == 0
    assert ctx.repository.records == []
    assert ctx.quota_store.usage == {}


def test_oversized_inline_audio_returns_413(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper")])

    response = ctx.client.post(
        "/stt/transcribe", json=_inline_body(b"\x00" * 4096), headers=AUTH
    )

    assert response.status_code == 413
    assert _calls(ctx.providers) == 0


def test_oversized_url_download_returns_413(make_client) -> None:
    providers = [
        FakeProvider("openai-whisper", error=PayloadTooLargeError(5_242_880, 2048)),
        FakeProvider("azure"),
    ]
    ctx = make_client(providers)

    response = ctx.client.post(
        "/stt/transcribe", json={"audio_url": "https://cdn.test/long.wav"}, headers=AUTH
    )

    assert response.status_code == 413
    assert "2048" in response.json()["details"]
    assert providers[1].calls == []
    assert ctx.repository.records == []


def test_quota_exhausted_returns_429(make_client) -> None:
    store = InMemoryQuotaStore(
        tiers={"tenant-1": "paid"},
        usage={(*PERIOD_KEY_PREFIX, current_period()): 60.0},
    )
    ctx = make_client([FakeProvider("openai-whisper")], quota_store=store)

    response = ctx.client.post("/stt/transcribe", json=_inline_body(), headers=AUTH)

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Usage limit exceeded"
    assert body["tier"] == "paid"
    assert body["quotaRemaining"] == 0.0
    assert body["fallbackAvailable"] is True
    assert body["reason"]
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.headers["X-Quota-Tier"] == "paid"
    assert _calls(ctx.providers) == 0
    assert ctx.repository.records == []


def test_fallback_success_returns_transcript_and_records_usage(make_client) -> None:
    providers = [
        FakeProvider("openai-whisper", error=ProviderUnreachableError("openai-whisper", "timed out")),
        FakeProvider("azure", text="hello world", duration_seconds=90.0),
        FakeProvider("deepgram"),
    ]
    detector = FakeDetector("af")
    ctx = make_client(providers, detector=detector)

    response = ctx.client.post(
        "/stt/transcribe",
        json=_inline_body(candidate_languages=["af-ZA", "en-ZA"]),
        headers=AUTH,
    )

    assert response.status_code == 200
    assert response.json() == {
        "text": "hello world",
        "language": "af-ZA",
        "confidence": 0.9,
        "provider": "azure",
    }
    assert _calls(providers) == 2
    assert detector.calls == 1
    assert response.headers["X-Quota-Tier"] == "free"
    assert response.headers["X-Cost-Estimate"] == "0.025050"
    assert int(response.headers["X-Latency-Ms"]) >= 0

    record = ctx.repository.records[0]
    assert record.status == "success"
    assert record.provider == "azure"
    assert record.units == 1.5
    assert ctx.quota_store.usage[(*PERIOD_KEY_PREFIX, current_period())] == 1.5


def test_multipart_upload_is_transcribed(make_client) -> None:
    provider = FakeProvider("openai-whisper", text="sawubona")
    ctx = make_client([provider])

    response = ctx.client.post(
        "/stt/transcribe",
        files={"audio": ("note.ogg", b"ogg-bytes", "audio/ogg")},
        data={"language": "zu-ZA"},
        headers=AUTH,
    )

    assert response.status_code == 200
    assert response.json()["text"] == "sawubona"
    assert provider.calls == ["zu-ZA"]


def test_oversized_multipart_upload_returns_413(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper")])

    response = ctx.client.post(
        "/stt/transcribe",
        files={"audio": ("long.wav", b"\x00" * 4096, "audio/wav")},
        headers=AUTH,
    )

    assert response.status_code == 413
    assert response.json()["error"] == "Audio payload too large"
    assert _calls(ctx.providers) == 0
    assert ctx.repository.records == []


def test_multipart_without_audio_returns_400(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper")])

    response = ctx.client.post(
        "/stt/transcribe",
        files={"document": ("note.txt", b"text", "text/plain")},
        headers=AUTH,
    )

    assert response.status_code == 400


def test_all_providers_failing_returns_500_with_details(make_client) -> None:
    providers = [
        FakeProvider("openai-whisper", error=ProviderUnconfiguredError("openai-whisper", "no key")),
        FakeProvider("azure", error=ProviderMalformedError("azure", "bad audio")),
        FakeProvider("deepgram", error=ProviderUnreachableError("deepgram", "timed out")),
    ]
    ctx = make_client(providers)

    response = ctx.client.post(
        "/stt/transcribe", json=_inline_body(language="en-ZA"), headers=AUTH
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to transcribe"
    for provider_id in ("openai-whisper", "azure", "deepgram"):
        assert provider_id in body["details"]
    record = ctx.repository.records[0]
    assert record.status == "failed"
    assert record.units == 0.0
    assert ctx.quota_store.usage == {}


def test_usage_persistence_failure_does_not_change_response(make_client) -> None:
    ctx = make_client(
        [FakeProvider("openai-whisper", text="still here")],
        repository=RecordingRepository(fail=True),
    )

    response = ctx.client.post("/stt/transcribe", json=_inline_body(), headers=AUTH)

    assert response.status_code == 200
    assert response.json()["text"] == "still here"


def test_unexpected_error_returns_generic_500(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper", error=RuntimeError("boom"))])

    response = ctx.client.post("/stt/transcribe", json=_inline_body(), headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_health_lists_providers(make_client) -> None:
    ctx = make_client([FakeProvider("openai-whisper"), FakeProvider("deepgram")])

    response = ctx.client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "providers": ["openai-whisper", "deepgram"]}
