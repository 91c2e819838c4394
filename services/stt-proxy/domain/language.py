"""
Language normalization.

Turns the language signals of a request (a detector's guess, caller-supplied
candidates, a default) into one canonical ``xx-YY`` locale, and maps that
locale onto each provider's own vocabulary. Everything here is pure.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

DEFAULT_LOCALE = "en-US"

_TAG_PATTERN = re.compile(r"^([a-zA-Z]{2,3})(?:[-_]([a-zA-Z]{2}|\d{3}))?$")

# Region assumed when only a bare language is known.
DEFAULT_REGIONS = {
    "en": "US",
    "af": "ZA",
    "zu": "ZA",
    "xh": "ZA",
    "nso": "ZA",
    "st": "ZA",
    "tn": "ZA",
}


@dataclass(frozen=True)
class ProviderLocale:
    """A provider's code for a canonical locale; ``code=None`` means auto-detect."""

    code: str | None
    approximate: bool = False
    note: str = ""


def canonicalize(tag: str | None) -> str | None:
    """Returns ``tag`` as ``xx-YY`` (or ``xx`` if no region is known), None if unparseable."""
    if not tag:
        return None
    match = _TAG_PATTERN.match(tag.strip())
    if not match:
        return None
    language = match.group(1).lower()
    region = match.group(2) or DEFAULT_REGIONS.get(language)
    if region is None:
        return language
    return f"{language}-{region.upper()}"


def _match_candidate(detected: str, candidates: Iterable[str]) -> str | None:
    lowered = detected.lower()
    candidates = [c for c in candidates if c]
    for candidate in candidates:
        if candidate.lower() == lowered:
            return candidate
    prefix = lowered[:2]
    for candidate in candidates:
        if candidate.lower()[:2] == prefix:
            return candidate
    return None


def normalize(
    detected: str | None,
    candidates: Iterable[str] | None = None,
    fallback_locale: str = DEFAULT_LOCALE,
) -> str:
    """
    Chooses the canonical locale used to parameterize provider calls.

    A detector guess that matches one of the caller's candidates by its
    two-letter language prefix resolves to that candidate, so ``"af"`` with
    candidates ``["af-ZA", "en-ZA"]`` yields ``"af-ZA"``. Without a matching
    candidate the guess itself is used; without a guess, the fallback.

    Args:
        detected: Language reported by the detector, if any.
        candidates: Locales the caller considers likely, in preference order.
        fallback_locale: Locale used when nothing else is usable.

    Returns:
        A canonical locale tag.
    """
    guess = detected.strip() if detected else None
    if guess and canonicalize(guess):
        if candidates:
            match = _match_candidate(guess, candidates)
            if match and canonicalize(match):
                return canonicalize(match)
        return canonicalize(guess)
    return canonicalize(fallback_locale) or DEFAULT_LOCALE


# Per-provider vocabularies. Every approximate entry says what it degrades to.
PROVIDER_LOCALES: dict[str, dict[str, ProviderLocale]] = {
    "openai-whisper": {
        "en-US": ProviderLocale("en"),
        "en-ZA": ProviderLocale("en"),
        "en-GB": ProviderLocale("en"),
        "af-ZA": ProviderLocale("af"),
        "zu-ZA": ProviderLocale(
            None, True, "isiZulu is not a Whisper language code; auto-detect instead"
        ),
        "xh-ZA": ProviderLocale(
            None, True, "isiXhosa is not a Whisper language code; auto-detect instead"
        ),
        "nso-ZA": ProviderLocale(
            None, True, "Sepedi is not a Whisper language code; auto-detect instead"
        ),
        "st-ZA": ProviderLocale(
            None, True, "Sesotho is not a Whisper language code; auto-detect instead"
        ),
        "default": ProviderLocale(None, True, "unknown locale; Whisper auto-detects"),
    },
    "azure": {
        "en-US": ProviderLocale("en-US"),
        "en-ZA": ProviderLocale("en-ZA"),
        "en-GB": ProviderLocale("en-GB"),
        "af-ZA": ProviderLocale("af-ZA"),
        "zu-ZA": ProviderLocale("zu-ZA"),
        "xh-ZA": ProviderLocale("xh-ZA"),
        "nso-ZA": ProviderLocale(
            "en-ZA", True, "Sepedi is unavailable on the short-audio REST API; using en-ZA"
        ),
        "st-ZA": ProviderLocale(
            "en-ZA", True, "Sesotho is unavailable on the short-audio REST API; using en-ZA"
        ),
        "default": ProviderLocale("en-ZA", True, "unknown locale; using en-ZA"),
    },
    "deepgram": {
        "en-US": ProviderLocale("en-US"),
        "en-GB": ProviderLocale("en-GB"),
        "en-ZA": ProviderLocale("en", True, "nova-2 has no en-ZA model; using generic en"),
        "af-ZA": ProviderLocale(None, True, "no Afrikaans model; language detection on"),
        "zu-ZA": ProviderLocale(None, True, "no isiZulu model; language detection on"),
        "xh-ZA": ProviderLocale(None, True, "no isiXhosa model; language detection on"),
        "nso-ZA": ProviderLocale(None, True, "no Sepedi model; language detection on"),
        "st-ZA": ProviderLocale(None, True, "no Sesotho model; language detection on"),
        "default": ProviderLocale(None, True, "unknown locale; language detection on"),
    },
    "assemblyai": {
        "en-US": ProviderLocale("en_us"),
        "en-GB": ProviderLocale("en_uk"),
        "en-ZA": ProviderLocale("en", True, "no South African English model; using global en"),
        "af-ZA": ProviderLocale(None, True, "Afrikaans not supported; language detection on"),
        "zu-ZA": ProviderLocale(None, True, "isiZulu not supported; language detection on"),
        "xh-ZA": ProviderLocale(None, True, "isiXhosa not supported; language detection on"),
        "nso-ZA": ProviderLocale(None, True, "Sepedi not supported; language detection on"),
        "st-ZA": ProviderLocale(None, True, "Sesotho not supported; language detection on"),
        "default": ProviderLocale(None, True, "unknown locale; language detection on"),
    },
}


def provider_locale(provider_id: str, canonical: str) -> ProviderLocale:
    """
    Maps a canonical locale onto a provider's vocabulary.

    Locales missing from the provider's table resolve to its ``default``
    entry, which is always flagged approximate.
    """
    table = PROVIDER_LOCALES.get(provider_id)
    if table is None:
        return ProviderLocale(canonical)
    return table.get(canonical, table["default"])
