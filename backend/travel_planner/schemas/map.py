"""
Pydantic schemas for map endpoints.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class Point(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class GeocodeRequest(BaseModel):
    address: str
    city: str = ""

    @field_validator("address")
    @classmethod
    def require_address(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide an address")
        return v


class ReverseGeocodeRequest(Point):
    pass


class DrivingRouteRequest(BaseModel):
    """
    Driving route request.

    Attributes:
        origin: Start point
        destination: End point
        waypoints: Optional intermediate points, visited in order
    """
    origin: Point
    destination: Point
    waypoints: List[Point] = Field(default_factory=list, max_length=16)


class TransitRouteRequest(BaseModel):
    origin: Point
    destination: Point
    city: str = ""
