import json
import time
from unittest.mock import MagicMock

import assemblyai as aai
import httpx
import openai
import pytest

from domain.models import ResolvedAudio
from exceptions import (
    PayloadTooLargeError,
    ProviderMalformedError,
    ProviderRateLimitedError,
    ProviderUnconfiguredError,
    ProviderUnreachableError,
)
from infrastructure.providers import (
    AssemblyAITranscriber,
    AzureSpeechTranscriber,
    DeepgramLanguageDetector,
    DeepgramTranscriber,
    OpenAIWhisperTranscriber,
)


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def _azure_reply(payload: dict, status_code: int = 200):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler, seen


def test_azure_parses_detailed_result(audio) -> None:
    handler, seen = _azure_reply(
        {
            "RecognitionStatus": "Success",
            "DisplayText": "Goeie more.",
            "Duration": 25_000_000,
            "NBest": [{"Confidence": 0.87, "Display": "Goeie more."}],
        }
    )
    provider = AzureSpeechTranscriber(_client(handler), "key", "southafricanorth", 5.0)

    result = provider.submit(audio, "af-ZA")

    assert result.text == "Goeie more."
    assert result.language == "af-ZA"
    assert result.confidence == 0.87
    assert result.duration_seconds == 2.5
    request = seen[0]
    assert request.url.host == "southafricanorth.stt.speech.microsoft.com"
    assert request.url.params["language"] == "af-ZA"
    assert request.headers["Ocp-Apim-Subscription-Key"] == "key"
    assert request.content == audio.data


def test_azure_silence_is_empty_transcript(audio) -> None:
    handler, _ = _azure_reply({"RecognitionStatus": "InitialSilenceTimeout"})
    provider = AzureSpeechTranscriber(_client(handler), "key", "southafricanorth", 5.0)

    result = provider.submit(audio, "en-ZA")

    assert result.text == ""
    assert result.provider == "azure"


def test_azure_degrades_unsupported_locale(audio) -> None:
    handler, seen = _azure_reply({"RecognitionStatus": "Success", "DisplayText": "hi"})
    provider = AzureSpeechTranscriber(_client(handler), "key", "southafricanorth", 5.0)

    provider.submit(audio, "nso-ZA")

    assert seen[0].url.params["language"] == "en-ZA"


def test_azure_without_key_is_unconfigured(audio) -> None:
    handler, seen = _azure_reply({})
    provider = AzureSpeechTranscriber(_client(handler), "", "southafricanorth", 5.0)

    with pytest.raises(ProviderUnconfiguredError):
        provider.submit(audio, "en-ZA")

    assert seen == []


@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (401, ProviderUnconfiguredError),
        (429, ProviderRateLimitedError),
        (503, ProviderUnreachableError),
        (400, ProviderMalformedError),
    ],
)
def test_azure_http_errors_map_to_taxonomy(audio, status_code, error_type) -> None:
    handler, _ = _azure_reply({"error": "nope"}, status_code=status_code)
    provider = AzureSpeechTranscriber(_client(handler), "key", "southafricanorth", 5.0)

    with pytest.raises(error_type):
        provider.submit(audio, "en-ZA")


def test_timeout_is_unreachable(audio) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    provider = AzureSpeechTranscriber(_client(handler), "key", "southafricanorth", 0.1)

    with pytest.raises(ProviderUnreachableError, match="timed out"):
        provider.submit(audio, "en-ZA")


def test_azure_downloads_url_audio_first() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, content=b"remote-audio")
        assert request.content == b"remote-audio"
        return httpx.Response(200, json={"RecognitionStatus": "Success", "DisplayText": "ok"})

    provider = AzureSpeechTranscriber(_client(handler), "key", "southafricanorth", 5.0)

    result = provider.submit(ResolvedAudio(url="https://storage.test/a.m4a"), "en-ZA")

    assert result.text == "ok"


class _TrickleStream(httpx.SyncByteStream):
    def __init__(self, chunks: list[bytes], delay: float):
        self._chunks = chunks
        self._delay = delay

    def __iter__(self):
        for chunk in self._chunks:
            time.sleep(self._delay)
            yield chunk


def test_slow_reply_is_cut_off_at_the_deadline(audio) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_TrickleStream([b" "] * 40, delay=0.05))

    provider = AzureSpeechTranscriber(_client(handler), "key", "southafricanorth", 0.2)
    started = time.monotonic()

    with pytest.raises(ProviderUnreachableError, match="deadline"):
        provider.submit(audio, "en-ZA")

    assert time.monotonic() - started < 1.0


def test_detector_deadline_covers_the_whole_reply(audio) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_TrickleStream([b" "] * 40, delay=0.05))

    detector = DeepgramLanguageDetector(_client(handler), "dg-key", "nova-2", 0.2)
    started = time.monotonic()

    with pytest.raises(ProviderUnreachableError):
        detector.detect(audio)

    assert time.monotonic() - started < 1.0


def test_url_audio_over_declared_length_is_refused() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.method)
        return httpx.Response(200, content=b"\x00" * 5000)

    provider = AzureSpeechTranscriber(
        _client(handler), "key", "southafricanorth", 5.0, max_audio_bytes=1024
    )

    with pytest.raises(PayloadTooLargeError) as exc_info:
        provider.submit(ResolvedAudio(url="https://cdn.test/long.wav"), "en-ZA")

    assert exc_info.value.size_bytes == 5000
    assert exc_info.value.limit_bytes == 1024
    assert seen == ["GET"]


def test_url_audio_without_length_stops_at_ceiling() -> None:
    chunks_sent: list[int] = []

    def chunks():
        for _ in range(100):
            chunks_sent.append(1)
            yield b"\x00" * 512

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            raise AssertionError("audio forwarded to the vendor")
        return httpx.Response(200, content=chunks())

    provider = AzureSpeechTranscriber(
        _client(handler), "key", "southafricanorth", 5.0, max_audio_bytes=1024
    )

    with pytest.raises(PayloadTooLargeError):
        provider.submit(ResolvedAudio(url="https://cdn.test/stream.wav"), "en-ZA")

    assert len(chunks_sent) < 100


def test_whisper_refuses_oversized_url_audio() -> None:
    client = MagicMock()
    client.api_key = "sk-test"
    provider = OpenAIWhisperTranscriber(
        client,
        _client(lambda r: httpx.Response(200, content=b"\x00" * 4096)),
        "whisper-1",
        5.0,
        max_audio_bytes=1024,
    )

    with pytest.raises(PayloadTooLargeError):
        provider.submit(ResolvedAudio(url="https://cdn.test/a.m4a"), "en-US")

    client.audio.transcriptions.create.assert_not_called()


def test_whisper_download_and_call_share_one_budget() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_TrickleStream([b"a"] * 3, delay=0.1))

    client = MagicMock()
    client.api_key = "sk-test"
    client.audio.transcriptions.create.return_value = MagicMock(text="ok", duration=1.0)
    provider = OpenAIWhisperTranscriber(client, _client(handler), "whisper-1", 5.0)

    provider.submit(ResolvedAudio(url="https://cdn.test/a.m4a"), "en-US")

    kwargs = client.audio.transcriptions.create.call_args.kwargs
    assert kwargs["file"][1] == b"aaa"
    assert kwargs["timeout"] <= 5.0 - 0.3


def _deepgram_payload(language: str | None = None) -> dict:
    channel = {
        "alternatives": [{"transcript": "sawubona", "confidence": 0.78}],
    }
    if language:
        channel["detected_language"] = language
    return {"metadata": {"duration": 3.2}, "results": {"channels": [channel]}}


def test_deepgram_sends_url_and_detects_language() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_deepgram_payload("zu"))

    provider = DeepgramTranscriber(_client(handler), "dg-key", "nova-2", 5.0)

    result = provider.submit(ResolvedAudio(url="https://storage.test/a.m4a"), "zu-ZA")

    assert result.text == "sawubona"
    assert result.language == "zu-ZA"
    assert result.duration_seconds == 3.2
    request = seen[0]
    assert request.headers["Authorization"] == "Token dg-key"
    assert request.url.params["detect_language"] == "true"
    assert "language" not in request.url.params
    assert json.loads(request.content) == {"url": "https://storage.test/a.m4a"}


def test_deepgram_passes_supported_language(audio) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_deepgram_payload())

    DeepgramTranscriber(_client(handler), "dg-key", "nova-2", 5.0).submit(audio, "en-US")

    assert seen[0].url.params["language"] == "en-US"
    assert seen[0].headers["Content-Type"] == "audio/wav"


def test_deepgram_empty_channels_is_malformed(audio) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": {"channels": []}})

    provider = DeepgramTranscriber(_client(handler), "dg-key", "nova-2", 5.0)

    with pytest.raises(ProviderMalformedError):
        provider.submit(audio, "en-US")


def test_deepgram_detector_returns_language(audio) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_deepgram_payload("af"))

    detector = DeepgramLanguageDetector(_client(handler), "dg-key", "nova-2", 2.0)

    assert detector.detect(audio) == "af"


def test_whisper_without_client_is_unconfigured(audio) -> None:
    provider = OpenAIWhisperTranscriber(None, _client(lambda r: httpx.Response(200)), "whisper-1", 5.0)

    with pytest.raises(ProviderUnconfiguredError):
        provider.submit(audio, "en-US")


def test_whisper_maps_locale_and_reads_duration(audio) -> None:
    client = MagicMock()
    client.api_key = "sk-test"
    client.audio.transcriptions.create.return_value = MagicMock(text="Hallo daar", duration=4.0)
    provider = OpenAIWhisperTranscriber(
        client, _client(lambda r: httpx.Response(200)), "whisper-1", 5.0
    )

    result = provider.submit(audio, "af-ZA")

    kwargs = client.audio.transcriptions.create.call_args.kwargs
    assert kwargs["language"] == "af"
    assert kwargs["response_format"] == "verbose_json"
    assert 0 < kwargs["timeout"] <= 5.0
    assert kwargs["file"][0] == "audio.wav"
    assert result.text == "Hallo daar"
    assert result.language == "af-ZA"
    assert result.duration_seconds == 4.0


def test_whisper_auto_detects_unsupported_locale(audio) -> None:
    client = MagicMock()
    client.audio.transcriptions.create.return_value = MagicMock(text="", duration=None)
    provider = OpenAIWhisperTranscriber(
        client, _client(lambda r: httpx.Response(200)), "whisper-1", 5.0
    )

    provider.submit(audio, "xh-ZA")

    assert "language" not in client.audio.transcriptions.create.call_args.kwargs


def test_whisper_rate_limit_maps_to_taxonomy(audio) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    client = MagicMock()
    client.audio.transcriptions.create.side_effect = openai.RateLimitError(
        "slow down", response=httpx.Response(429, request=request), body=None
    )
    provider = OpenAIWhisperTranscriber(
        client, _client(lambda r: httpx.Response(200)), "whisper-1", 5.0
    )

    with pytest.raises(ProviderRateLimitedError):
        provider.submit(audio, "en-US")


def test_whisper_connection_error_is_unreachable(audio) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    client = MagicMock()
    client.audio.transcriptions.create.side_effect = openai.APIConnectionError(request=request)
    provider = OpenAIWhisperTranscriber(
        client, _client(lambda r: httpx.Response(200)), "whisper-1", 5.0
    )

    with pytest.raises(ProviderUnreachableError):
        provider.submit(audio, "en-US")


def _aai_transcript(status, **fields) -> MagicMock:
    transcript = MagicMock()
    transcript.id = "tr_1"
    transcript.status = status
    transcript.text = fields.get("text")
    transcript.error = fields.get("error")
    transcript.confidence = fields.get("confidence")
    transcript.audio_duration = fields.get("audio_duration")
    transcript.json_response = fields.get("json_response", {})
    return transcript


def test_assemblyai_polls_until_completed(audio) -> None:
    transcriber = MagicMock()
    transcriber.submit.return_value = _aai_transcript(aai.TranscriptStatus.queued)
    completed = _aai_transcript(
        aai.TranscriptStatus.completed,
        text="hello",
        confidence=0.93,
        audio_duration=12,
        json_response={"language_code": "en_us"},
    )
    fetch = MagicMock(return_value=completed)
    provider = AssemblyAITranscriber(
        transcriber, "aai-key", 5.0, 0.0, fetch_transcript=fetch, sleep=lambda _: None
    )

    result = provider.submit(audio, "en-US")

    assert result.text == "hello"
    assert result.language == "en-US"
    assert result.duration_seconds == 12
    fetch.assert_called_once_with("tr_1")
    config = transcriber.submit.call_args.kwargs["config"]
    assert config.language_code == "en_us"


def test_assemblyai_error_status_is_malformed(audio) -> None:
    transcriber = MagicMock()
    transcriber.submit.return_value = _aai_transcript(
        aai.TranscriptStatus.error, error="audio too short"
    )
    provider = AssemblyAITranscriber(transcriber, "aai-key", 5.0, sleep=lambda _: None)

    with pytest.raises(ProviderMalformedError, match="audio too short"):
        provider.submit(audio, "en-US")


def test_assemblyai_deadline_is_unreachable(audio) -> None:
    transcriber = MagicMock()
    transcriber.submit.return_value = _aai_transcript(aai.TranscriptStatus.processing)
    provider = AssemblyAITranscriber(
        transcriber,
        "aai-key",
        0.0,
        fetch_transcript=MagicMock(),
        sleep=lambda _: None,
    )

    with pytest.raises(ProviderUnreachableError):
        provider.submit(audio, "en-US")


def test_assemblyai_without_key_is_unconfigured(audio) -> None:
    provider = AssemblyAITranscriber(None, "", 5.0)

    with pytest.raises(ProviderUnconfiguredError):
        provider.submit(audio, "en-US")
