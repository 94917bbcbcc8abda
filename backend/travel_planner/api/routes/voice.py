"""
Voice endpoints.

Speech-to-text through the iFlytek WebSocket API (uploaded file or raw audio
body), text-to-speech, and service status. Vendor failures are reported as
500 with a message describing which stage failed.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile

from travel_planner.api.dependencies import CurrentUser, VoiceService
from travel_planner.core.exceptions import (
    PayloadTooLargeError,
    TravelPlannerError,
    ValidationFailedError,
    VendorError,
    VendorNotConfiguredError,
    VendorUnavailableError,
)
from travel_planner.schemas.common import ApiResponse, ok
from travel_planner.schemas.voice import SynthesizeRequest
from travel_planner.services.voice_service import VOICES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/voice", tags=["voice"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MAX_STREAM_BYTES = 5 * 1024 * 1024


def _is_audio(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("audio/")


def _recognition_failure(error: TravelPlannerError) -> TravelPlannerError:
    if isinstance(error, VendorNotConfiguredError):
        return TravelPlannerError(
            "Speech recognition service is not configured, please contact the administrator"
        )
    if isinstance(error, VendorUnavailableError):
        return TravelPlannerError(
            "Speech recognition service is temporarily unavailable, please try again later"
        )
    return TravelPlannerError(f"Speech recognition failed: {error.message}")


@router.post("/recognize", response_model=ApiResponse)
async def recognize(
    current_user: CurrentUser,
    voice_service: VoiceService,
    audio: Optional[UploadFile] = File(default=None),
) -> ApiResponse:
    """
    Recognize an uploaded audio file (multipart field ``audio``).

    Raises:
        ValidationFailedError 400: Missing file or non-audio content type
        PayloadTooLargeError 413: File larger than 10 MB
    """
    if audio is None:
        raise ValidationFailedError("Please provide an audio file")
    if not _is_audio(audio.content_type):
        raise ValidationFailedError("Only audio files are supported")

    content = await audio.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError("Audio file must not exceed 10 MB")
    if not content:
        raise ValidationFailedError("Please provide an audio file")

    logger.info("Speech recognition requested", extra={"user_id": current_user.id, "bytes": len(content)})
    try:
        result = await voice_service.recognize_audio(content)
    except (VendorNotConfiguredError, VendorError, VendorUnavailableError) as e:
        logger.error("Speech recognition failed", extra={"user_id": current_user.id, "error": e.message})
        raise _recognition_failure(e) from e

    return ok(
        {"text": result.text, "confidence": result.confidence, "isFinal": True},
        "Speech recognized",
    )


@router.post("/recognize-stream", response_model=ApiResponse)
async def recognize_stream(
    request: Request,
    current_user: CurrentUser,
    voice_service: VoiceService,
) -> ApiResponse:
    """Recognize a raw ``audio/*`` request body (at most 5 MB)."""
    if not _is_audio(request.headers.get("content-type")):
        raise ValidationFailedError("Please provide audio data")

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > MAX_STREAM_BYTES:
            raise PayloadTooLargeError("Audio data must not exceed 5 MB")
        chunks.append(chunk)
    if not received:
        raise ValidationFailedError("Please provide audio data")

    logger.info("Stream recognition requested", extra={"user_id": current_user.id, "bytes": received})
    try:
        result = await voice_service.recognize_stream(chunks)
    except (VendorNotConfiguredError, VendorError, VendorUnavailableError) as e:
        logger.error("Stream recognition failed", extra={"user_id": current_user.id, "error": e.message})
        raise _recognition_failure(e) from e

    message = "Speech recognition completed" if result.is_final else "Speech recognition in progress"
    return ok({"text": result.text, "isFinal": result.is_final}, message)


@router.get("/status", response_model=ApiResponse)
async def voice_status(current_user: CurrentUser, voice_service: VoiceService) -> ApiResponse:
    available, details = voice_service.status()
    if not available:
        return ApiResponse(success=False, message="Speech recognition service is not configured", data=details)
    return ok(details, "Speech recognition service is running")


@router.post("/synthesize", response_model=ApiResponse)
async def synthesize(
    body: SynthesizeRequest,
    current_user: CurrentUser,
    voice_service: VoiceService,
) -> ApiResponse:
    try:
        result = await voice_service.synthesize(body.text, body.voice, body.speed, body.volume)
    except VendorNotConfiguredError as e:
        raise TravelPlannerError(
            "Speech synthesis service is not configured, please contact the administrator"
        ) from e
    except (VendorError, VendorUnavailableError) as e:
        logger.error("Speech synthesis failed", extra={"user_id": current_user.id, "error": e.message})
        raise TravelPlannerError(f"Speech synthesis failed: {e.message}") from e

    return ok(
        {
            "text": body.text,
            "voice": body.voice,
            "audio": result.audio,
            "format": result.format,
            "duration": result.duration,
        },
        "Speech synthesized",
    )


@router.get("/voices", response_model=ApiResponse)
async def list_voices(current_user: CurrentUser) -> ApiResponse:
    return ok(VOICES, "Voices retrieved")
