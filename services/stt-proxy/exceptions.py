"""Custom exceptions for the stt-proxy service."""


class UnauthorizedError(Exception):
    """Raised when the bearer credential is missing or cannot be resolved."""

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        self.cause = cause
        super().__init__(reason)


class BadRequestError(Exception):
    """Raised when the request body is malformed or names an ambiguous audio source."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class PayloadTooLargeError(Exception):
    """Raised when the audio payload exceeds the configured ceiling."""

    def __init__(self, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Audio payload of {size_bytes} bytes exceeds the {limit_bytes} byte limit"
        )


class SourceUnresolvableError(Exception):
    """Raised when the audio reference cannot be turned into bytes or a fetchable URL."""

    def __init__(self, source: str, cause: Exception | None = None):
        self.source = source
        self.cause = cause
        super().__init__(f"Audio source '{source}' could not be resolved")


class QuotaExceededError(Exception):
    """Raised when the caller has no quota left for the estimated usage."""

    def __init__(self, status):
        self.status = status
        super().__init__(status.reason or "Usage limit exceeded")


class ProviderError(Exception):
    """Base class for recoverable failures of a single transcription provider."""

    kind = "error"

    def __init__(self, provider: str, message: str, cause: Exception | None = None):
        self.provider = provider
        self.message = message
        self.cause = cause
        super().__init__(f"{provider} {self.kind}: {message}")


class ProviderUnconfiguredError(ProviderError):
    """Raised when a provider has no credentials or rejects them."""

    kind = "unconfigured"


class ProviderUnreachableError(ProviderError):
    """Raised on connection failures, timeouts and provider-side 5xx errors."""

    kind = "unreachable"


class ProviderRateLimitedError(ProviderError):
    """Raised when a provider throttles the request."""

    kind = "rate_limited"


class ProviderMalformedError(ProviderError):
    """Raised when a provider rejects the request or answers with something unreadable."""

    kind = "malformed"


class AllProvidersFailedError(Exception):
    """Raised when every provider in the fallback chain failed."""

    def __init__(self, attempts: list, language: str | None = None):
        self.attempts = attempts
        self.language = language
        summary = "; ".join(
            f"{attempt.provider}: {attempt.error} ({attempt.message})"
            for attempt in attempts
        )
        super().__init__(
            f"All STT providers failed: {summary}"
            if attempts
            else "No STT provider configured"
        )
