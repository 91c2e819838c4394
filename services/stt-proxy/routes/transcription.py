"""Speech-to-text endpoint."""

from functools import partial
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError, model_validator
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from voice_common import setup_logging

from dependencies import (
    get_handler,
    get_max_audio_bytes,
    get_principal_resolver,
    get_usage_recorder,
)
from domain import (
    AudioRef,
    InlineAudio,
    Principal,
    StorageAudio,
    TranscriptionRequest,
    UrlAudio,
)
from exceptions import (
    AllProvidersFailedError,
    BadRequestError,
    PayloadTooLargeError,
    QuotaExceededError,
    SourceUnresolvableError,
    UnauthorizedError,
)
from handlers import TranscriptionHandler, UsageRecorder
from infrastructure.interfaces import PrincipalResolver
from response_models import ErrorResponse, QuotaExceededResponse, TranscriptionResponse

logger = setup_logging()

router = APIRouter(prefix="/stt", tags=["stt"])

_bearer = HTTPBearer(auto_error=False)

CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)]
PrincipalResolverDep = Annotated[PrincipalResolver, Depends(get_principal_resolver)]
HandlerDep = Annotated[TranscriptionHandler, Depends(get_handler)]
RecorderDep = Annotated[UsageRecorder, Depends(get_usage_recorder)]
MaxAudioBytesDep = Annotated[int, Depends(get_max_audio_bytes)]


class TranscriptionBody(BaseModel):
    """JSON request body; exactly one audio source must be given."""

    storage_path: str | None = None
    audio_url: str | None = None
    audio_base64: str | None = None
    format: str | None = None
    language: str | None = None
    candidate_languages: list[str] = []

    @model_validator(mode="after")
    def _exactly_one_source(self):
        sources = [s for s in (self.storage_path, self.audio_url, self.audio_base64) if s]
        if len(sources) != 1:
            raise ValueError(
                "Exactly one of storage_path, audio_url or audio_base64 is required"
            )
        return self

    def audio_ref(self) -> AudioRef:
        if self.storage_path:
            return StorageAudio(path=self.storage_path)
        if self.audio_url:
            return UrlAudio(url=self.audio_url)
        return InlineAudio(
            data=self.audio_base64.encode("ascii", errors="replace"),
            base64_encoded=True,
            format=self.format,
        )


def _error(
    status_code: int,
    error: str,
    details: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _candidates(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


async def _parse_multipart(
    request: Request, principal: Principal, max_bytes: int
) -> TranscriptionRequest:
    form = await request.form()
    upload = form.get("audio")
    if not isinstance(upload, UploadFile):
        raise BadRequestError("Multipart requests must include an 'audio' file")

    # Checked against the spooled size, before the upload is read into memory.
    if upload.size is not None and upload.size > max_bytes:
        raise PayloadTooLargeError(upload.size, max_bytes)

    data = await upload.read()
    if not data:
        raise BadRequestError("Uploaded audio file is empty")

    filename = upload.filename or ""
    extension = filename.rsplit(".", 1)[-1] if "." in filename else None
    content_type = upload.content_type
    mime_type = content_type if content_type and content_type.startswith("audio/") else None

    language = form.get("language")
    candidates = form.get("candidate_languages")
    return TranscriptionRequest(
        audio=InlineAudio(data=data, format=extension, mime_type=mime_type),
        language=language if isinstance(language, str) and language else None,
        candidate_languages=_candidates(candidates if isinstance(candidates, str) else None),
        principal=principal,
    )


async def _parse_json(request: Request, principal: Principal) -> TranscriptionRequest:
    try:
        payload = await request.json()
    except ValueError as e:
        raise BadRequestError("Request body must be JSON or multipart/form-data") from e

    try:
        body = TranscriptionBody.model_validate(payload)
    except ValidationError as e:
        reason = e.errors()[0]["msg"] if e.errors() else "Invalid request body"
        raise BadRequestError(reason) from e

    return TranscriptionRequest(
        audio=body.audio_ref(),
        language=body.language or None,
        candidate_languages=tuple(c for c in body.candidate_languages if c),
        principal=principal,
    )


async def parse_request(
    request: Request, principal: Principal, max_bytes: int
) -> TranscriptionRequest:
    """Builds a TranscriptionRequest from a JSON or multipart body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        return await _parse_multipart(request, principal, max_bytes)
    return await _parse_json(request, principal)


@router.post(
    "/transcribe",
    response_model=TranscriptionResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        429: {"model": QuotaExceededResponse},
        500: {"model": ErrorResponse},
    },
)
async def transcribe(
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    credentials: CredentialsDep,
    principal_resolver: PrincipalResolverDep,
    handler: HandlerDep,
    usage_recorder: RecorderDep,
    max_audio_bytes: MaxAudioBytesDep,
):
    """
    Transcribes one audio clip.

    Audio is given as a storage path, an external URL, inline base64 or a
    multipart upload. Providers are tried in order until one succeeds; usage
    is recorded after the response is sent.
    """
    if credentials is None or not credentials.credentials:
        return _error(401, "Unauthorized")
    try:
        principal = principal_resolver.resolve(credentials.credentials)
    except UnauthorizedError as e:
        logger.info("Request rejected", extra={"reason": e.reason})
        return _error(401, "Unauthorized")

    try:
        transcription_request = await parse_request(request, principal, max_audio_bytes)
        outcome = await run_in_threadpool(
            handler.process,
            transcription_request,
            partial(background_tasks.add_task, usage_recorder.record),
        )
    except BadRequestError as e:
        return _error(400, e.reason)
    except PayloadTooLargeError as e:
        return _error(413, "Audio payload too large", str(e))
    except SourceUnresolvableError as e:
        logger.warning("Audio source unresolvable", extra={"source": e.source})
        return _error(422, "Audio source could not be resolved", str(e))
    except QuotaExceededError as e:
        status = e.status
        body = QuotaExceededResponse(
            reason=status.reason or "Usage limit exceeded",
            tier=status.tier,
            quota_remaining=status.quota_remaining,
        )
        return JSONResponse(
            status_code=429,
            content=body.model_dump(by_alias=True),
            headers={"X-RateLimit-Remaining": "0", "X-Quota-Tier": status.tier},
        )
    except AllProvidersFailedError as e:
        logger.error(
            "Transcription failed on every provider",
            extra={
                "user_id": principal.user_id,
                "providers": [attempt.provider for attempt in e.attempts],
            },
        )
        return _error(500, "Failed to transcribe", str(e))
    except HTTPException as e:
        return _error(e.status_code, str(e.detail))
    except Exception:
        logger.exception("Unexpected error during transcription")
        return _error(500, "Internal server error")

    response.headers["X-Latency-Ms"] = str(outcome.latency_ms)
    response.headers["X-Cost-Estimate"] = str(outcome.cost_estimate)
    response.headers["X-Quota-Tier"] = outcome.quota.tier
    result = outcome.result
    return TranscriptionResponse(
        text=result.text,
        language=result.language,
        confidence=result.confidence,
        provider=result.provider,
    )
