"""
Pydantic schemas for travel plan endpoints.

Request bodies use the frontend's camelCase field names (``startDate``);
snake_case names are accepted as well.
"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PlanStatus = Literal["draft", "generated", "active", "completed"]


class TravelPlanCreate(BaseModel):
    """
    Request body for creating a plan by hand.

    Attributes:
        title: Plan title
        destination: Destination name
        start_date: First day of the trip
        end_date: Last day of the trip (inclusive)
        budget: Total budget
        travelers: Number of travelers
        preferences: Free-form preference tags
        notes: Optional notes
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str
    destination: str
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    budget: float = Field(ge=0)
    travelers: int = Field(ge=1)
    preferences: List[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("title", "destination")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide all required fields")
        return v


class AIGenerateRequest(BaseModel):
    """Request body for AI itinerary generation."""
    model_config = ConfigDict(populate_by_name=True)

    destination: str
    days: int = Field(ge=1, le=60)
    budget: float = Field(ge=0)
    travelers: int = Field(ge=1)
    preferences: List[str] = Field(default_factory=list)
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")

    @field_validator("destination")
    @classmethod
    def require_destination(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide destination, days, budget and travelers")
        return v


class TravelPlanUpdate(BaseModel):
    """
    Partial plan update.

    Only the fields listed here can be changed; ``days`` is derived from the
    dates and never accepted directly.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    destination: Optional[str] = None
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    budget: Optional[float] = Field(default=None, ge=0)
    travelers: Optional[int] = Field(default=None, ge=1)
    preferences: Optional[List[str]] = None
    notes: Optional[str] = None
    status: Optional[PlanStatus] = None
    itinerary: Optional[List[Dict[str, Any]]] = None
    budget_breakdown: Optional[Dict[str, Any]] = Field(default=None, alias="budgetBreakdown")
    travel_tips: Optional[List[str]] = Field(default=None, alias="travelTips")
    emergency_contacts: Optional[List[str]] = Field(default=None, alias="emergencyContacts")


class AdviceRequest(BaseModel):
    destination: str
    preferences: List[str] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)

    @field_validator("destination")
    @classmethod
    def require_destination(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide a destination")
        return v
