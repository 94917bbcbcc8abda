"""
Pydantic schemas for voice endpoints.
"""

from pydantic import BaseModel, Field, field_validator

from travel_planner.services.voice_service import VOICE_IDS

MAX_SYNTHESIS_CHARS = 2000


class SynthesizeRequest(BaseModel):
    """
    Text-to-speech request.

    Attributes:
        text: Text to speak
        voice: Voice ID (see ``GET /api/voice/voices``)
        speed: Speaking speed, 0-100
        volume: Volume, 0-100
    """
    text: str
    voice: str = "xiaoyan"
    speed: int = Field(default=50, ge=0, le=100)
    volume: int = Field(default=50, ge=0, le=100)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide text to synthesize")
        if len(v) > MAX_SYNTHESIS_CHARS:
            raise ValueError(f"Text must be at most {MAX_SYNTHESIS_CHARS} characters")
        return v

    @field_validator("voice")
    @classmethod
    def validate_voice(cls, v: str) -> str:
        if v not in VOICE_IDS:
            raise ValueError(f"Unsupported voice: {v}")
        return v
