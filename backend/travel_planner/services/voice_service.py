"""
iFlytek speech service client.

Speech recognition (IAT) and speech synthesis (TTS) over the vendor's
WebSocket APIs.

Protocol summary:
- The connection URL carries an HMAC-SHA256 signature over
  ``host``, ``date`` and the request line, keyed with the API secret
- Recognition audio is sent as JSON frames of at most 1280 bytes of
  16 kHz 16-bit mono PCM; the first frame (status 0) also carries the
  ``common`` and ``business`` sections, the last frame has status 2
- With dynamic correction (``dwa=wpgs``) a result may replace a range of
  earlier sentences (``pgs="rpl"`` with ``rg=[first, last]``)
- The vendor signals the end of a session with ``data.status == 2``
"""

import asyncio
import base64
import hashlib
import hmac
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple
from urllib.parse import urlencode

import websockets
from websockets.exceptions import WebSocketException

from travel_planner.core.config import settings
from travel_planner.core.exceptions import (
    VendorError,
    VendorNotConfiguredError,
    VendorUnavailableError,
)

logger = logging.getLogger(__name__)

VENDOR = "iFlytek speech"

IAT_HOST = "iat-api.xfyun.cn"
IAT_PATH = "/v2/iat"
TTS_HOST = "tts-api.xfyun.cn"
TTS_PATH = "/v2/tts"

STATUS_FIRST_FRAME = 0
STATUS_CONTINUE_FRAME = 1
STATUS_LAST_FRAME = 2

FRAME_SIZE = 1280
FRAME_INTERVAL_SECONDS = 0.04
AUDIO_FORMAT = "audio/L16;rate=16000"

BUSINESS_PARAMS = {
    "language": "zh_cn",
    "domain": "iat",
    "accent": "mandarin",
    "vad_eos": 10000,
    "dwa": "wpgs",
}

VOICES = [
    {
        "id": "xiaoyan",
        "name": "Xiaoyan",
        "gender": "female",
        "language": "zh-cn",
        "description": "Young female voice, sweet and clear",
    },
    {
        "id": "xiaofeng",
        "name": "Xiaofeng",
        "gender": "male",
        "language": "zh-cn",
        "description": "Young male voice, calm and steady",
    },
    {
        "id": "xiaoye",
        "name": "Xiaoye",
        "gender": "female",
        "language": "zh-cn",
        "description": "Young female voice, soft and warm",
    },
]
VOICE_IDS = {voice["id"] for voice in VOICES}

SUPPORTED_FORMATS = ["audio/wav", "audio/mp3", "audio/m4a", "audio/ogg"]


@dataclass
class RecognitionResult:
    text: str
    is_final: bool
    confidence: Optional[float] = None


@dataclass
class SynthesisResult:
    audio: str
    format: str
    duration: int


@dataclass
class Transcript:
    """
    Accumulates recognition results by sentence number.

    Attributes:
        sentences: Sentence number -> text; corrections replace entries
        is_final: True once the vendor reported the last result
    """

    sentences: Dict[int, str] = field(default_factory=dict)
    scores: List[float] = field(default_factory=list)
    is_final: bool = False

    def apply(self, result: Optional[Dict[str, Any]]) -> None:
        if not result:
            return

        sn = result.get("sn", len(self.sentences) + 1)
        if result.get("pgs") == "rpl":
            first, last = result.get("rg", [sn, sn])
            for replaced in range(first, last + 1):
                self.sentences.pop(replaced, None)

        words = []
        for segment in result.get("ws", []):
            for candidate in segment.get("cw", [])[:1]:
                words.append(candidate.get("w", ""))
                score = candidate.get("sc")
                if score:
                    self.scores.append(float(score))
        self.sentences[sn] = "".join(words)

    @property
    def text(self) -> str:
        return "".join(self.sentences[sn] for sn in sorted(self.sentences)).strip()

    @property
    def confidence(self) -> Optional[float]:
        if not self.scores:
            return None
        return round(sum(self.scores) / len(self.scores), 4)


def split_audio(chunks: Iterable[bytes], frame_size: int = FRAME_SIZE) -> Iterator[bytes]:
    """Re-slice arbitrary chunks into frames of ``frame_size`` bytes (last may be shorter)."""
    buffer = b""
    for chunk in chunks:
        buffer += chunk
        while len(buffer) >= frame_size:
            yield buffer[:frame_size]
            buffer = buffer[frame_size:]
    if buffer:
        yield buffer


class VoiceRecognitionService:
    """
    Client for iFlytek speech recognition and synthesis.

    Args:
        connect: WebSocket connect factory, ``websockets.connect`` by default
    """

    def __init__(
        self,
        app_id: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        frame_interval: float = FRAME_INTERVAL_SECONDS,
        connect: Optional[Callable[..., Any]] = None,
    ):
        self.app_id = app_id if app_id is not None else settings.iflytek_app_id
        self.api_key = api_key if api_key is not None else settings.iflytek_api_key
        self.api_secret = api_secret if api_secret is not None else settings.iflytek_api_secret
        self.timeout = timeout or settings.voice_recognition_timeout_seconds
        self.frame_interval = frame_interval
        self._connect = connect or websockets.connect

    def validate_config(self) -> None:
        missing = []
        if not self.app_id:
            missing.append("IFLYTEK_APP_ID")
        if not self.api_key:
            missing.append("IFLYTEK_API_KEY")
        if not self.api_secret:
            missing.append("IFLYTEK_API_SECRET")
        if missing:
            raise VendorNotConfiguredError(VENDOR, missing)

    def build_auth_url(self, host: str, path: str, now: Optional[datetime] = None) -> str:
        """
        Build a signed ``wss://`` URL.

        Signature origin::

            host: <host>\\ndate: <RFC 1123 date>\\nGET <path> HTTP/1.1
        """
        date = format_datetime(now or datetime.now(timezone.utc), usegmt=True)
        signature_origin = f"host: {host}\ndate: {date}\nGET {path} HTTP/1.1"
        digest = hmac.new(
            self.api_secret.encode("utf-8"),
            signature_origin.encode("utf-8"),
            hashlib.sha256,
        ).digest()
        signature = base64.b64encode(digest).decode("ascii")

        authorization_origin = (
            f'api_key="{self.api_key}", algorithm="hmac-sha256", '
            f'headers="host date request-line", signature="{signature}"'
        )
        authorization = base64.b64encode(authorization_origin.encode("utf-8")).decode("ascii")
        query = urlencode({"authorization": authorization, "date": date, "host": host})
        return f"wss://{host}{path}?{query}"

    def generate_auth_url(self, now: Optional[datetime] = None) -> str:
        return self.build_auth_url(IAT_HOST, IAT_PATH, now)

    def create_audio_frame(self, chunk: bytes, status: int) -> str:
        frame: Dict[str, Any] = {}
        if status == STATUS_FIRST_FRAME:
            frame["common"] = {"app_id": self.app_id}
            frame["business"] = dict(BUSINESS_PARAMS)
        frame["data"] = {
            "status": status,
            "format": AUDIO_FORMAT,
            "audio": base64.b64encode(chunk).decode("ascii"),
            "encoding": "raw",
        }
        return json.dumps(frame)

    def iter_frames(self, chunks: Iterable[bytes]) -> Iterator[str]:
        """Frames for a whole utterance: status 0, then 1..., then an empty status 2 frame."""
        status = STATUS_FIRST_FRAME
        for frame_audio in split_audio(chunks):
            yield self.create_audio_frame(frame_audio, status)
            status = STATUS_CONTINUE_FRAME
        yield self.create_audio_frame(b"", STATUS_LAST_FRAME)

    async def _send_frames(self, ws, chunks: Iterable[bytes]) -> None:
        for frame in self.iter_frames(chunks):
            await ws.send(frame)
            if self.frame_interval:
                await asyncio.sleep(self.frame_interval)

    @staticmethod
    def _check_response(payload: Dict[str, Any]) -> Dict[str, Any]:
        code = payload.get("code")
        if code != 0:
            message = payload.get("message", "unknown error")
            raise VendorError(VENDOR, f"{message} (code: {code})", code=code)
        return payload.get("data") or {}

    async def _recognize(self, chunks: Iterable[bytes], transcript: Transcript) -> None:
        async with self._connect(self.generate_auth_url()) as ws:
            sender = asyncio.create_task(self._send_frames(ws, chunks))
            try:
                async for message in ws:
                    try:
                        payload = json.loads(message)
                    except json.JSONDecodeError:
                        logger.warning("Ignoring non-JSON recognition message", extra={"vendor": VENDOR})
                        continue

                    data = self._check_response(payload)
                    transcript.apply(data.get("result"))
                    if data.get("status") == STATUS_LAST_FRAME:
                        transcript.is_final = True
                        break
            finally:
                sender.cancel()
                await asyncio.gather(sender, return_exceptions=True)

    async def recognize_stream(self, chunks: Iterable[bytes]) -> RecognitionResult:
        """
        Recognize speech from PCM audio chunks.

        On timeout the text accumulated so far is returned with
        ``is_final=False``.

        Raises:
            VendorNotConfiguredError: If credentials are missing
            VendorError: If the vendor reports a non-zero code
            VendorUnavailableError: If the WebSocket cannot be used
        """
        self.validate_config()
        transcript = Transcript()
        try:
            await asyncio.wait_for(self._recognize(chunks, transcript), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Speech recognition timed out, returning partial result",
                extra={"vendor": VENDOR, "timeout_seconds": self.timeout},
            )
            return RecognitionResult(text=transcript.text, is_final=False, confidence=transcript.confidence)
        except (OSError, WebSocketException) as e:
            logger.error("Speech recognition connection failed", extra={"vendor": VENDOR, "error": str(e)})
            raise VendorUnavailableError(VENDOR, f"WebSocket error: {e}") from e

        logger.info(
            "Speech recognition finished",
            extra={"vendor": VENDOR, "is_final": transcript.is_final, "characters": len(transcript.text)},
        )
        return RecognitionResult(
            text=transcript.text,
            is_final=transcript.is_final,
            confidence=transcript.confidence,
        )

    async def recognize_audio(self, audio: bytes) -> RecognitionResult:
        return await self.recognize_stream([audio])

    async def _synthesize(self, frame: str, audio_parts: List[bytes]) -> None:
        async with self._connect(self.build_auth_url(TTS_HOST, TTS_PATH)) as ws:
            await ws.send(frame)
            async for message in ws:
                try:
                    payload = json.loads(message)
                except json.JSONDecodeError:
                    logger.warning("Ignoring non-JSON synthesis message", extra={"vendor": VENDOR})
                    continue

                data = self._check_response(payload)
                if data.get("audio"):
                    audio_parts.append(base64.b64decode(data["audio"]))
                if data.get("status") == STATUS_LAST_FRAME:
                    break

    async def synthesize(
        self,
        text: str,
        voice: str = "xiaoyan",
        speed: int = 50,
        volume: int = 50,
    ) -> SynthesisResult:
        """
        Convert text to MP3 speech.

        Returns:
            SynthesisResult with base64 audio and an estimated duration in seconds
        """
        self.validate_config()
        frame = json.dumps({
            "common": {"app_id": self.app_id},
            "business": {
                "aue": "lame",
                "sfl": 1,
                "auf": AUDIO_FORMAT,
                "vcn": voice,
                "speed": speed,
                "volume": volume,
                "pitch": 50,
                "tte": "UTF8",
            },
            "data": {
                "status": STATUS_LAST_FRAME,
                "text": base64.b64encode(text.encode("utf-8")).decode("ascii"),
            },
        })

        audio_parts: List[bytes] = []
        try:
            await asyncio.wait_for(self._synthesize(frame, audio_parts), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise VendorUnavailableError(VENDOR, "Speech synthesis timed out") from e
        except (OSError, WebSocketException) as e:
            logger.error("Speech synthesis connection failed", extra={"vendor": VENDOR, "error": str(e)})
            raise VendorUnavailableError(VENDOR, f"WebSocket error: {e}") from e

        audio = b"".join(audio_parts)
        logger.info("Speech synthesis finished", extra={"vendor": VENDOR, "bytes": len(audio)})
        return SynthesisResult(
            audio=base64.b64encode(audio).decode("ascii"),
            format="mp3",
            duration=math.ceil(len(text) / 3),
        )

    def status(self) -> Tuple[bool, Dict[str, Any]]:
        """Availability report for the status endpoint."""
        try:
            self.validate_config()
        except VendorNotConfiguredError as e:
            return False, {"service": VENDOR, "status": "unavailable", "error": e.message}
        return True, {
            "service": VENDOR,
            "status": "available",
            "features": ["file recognition", "stream recognition", "speech synthesis"],
            "supportedFormats": SUPPORTED_FORMATS,
        }
