"""Transcription provider adapters."""

from .assemblyai_transcriber import AssemblyAITranscriber
from .azure_speech import AzureSpeechTranscriber
from .deepgram import DeepgramLanguageDetector, DeepgramTranscriber
from .openai_whisper import OpenAIWhisperTranscriber

__all__ = [
    "AssemblyAITranscriber",
    "AzureSpeechTranscriber",
    "DeepgramLanguageDetector",
    "DeepgramTranscriber",
    "OpenAIWhisperTranscriber",
]
