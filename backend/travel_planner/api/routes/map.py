"""
Map endpoints backed by the Amap web service API.

Vendor-reported failures surface as 400 with the vendor's message
(``VendorError``); unreachable vendor as 502 (``VendorUnavailableError``).
"""

import ipaddress
import logging

from fastapi import APIRouter, Query, Request

from travel_planner.api.dependencies import CurrentUser, MapServiceDep, OptionalUser
from travel_planner.core.exceptions import ValidationFailedError
from travel_planner.middleware.rate_limit import get_client_ip
from travel_planner.schemas.common import ApiResponse, ok
from travel_planner.schemas.map import (
    DrivingRouteRequest,
    GeocodeRequest,
    ReverseGeocodeRequest,
    TransitRouteRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/map", tags=["map"])


def _public_ip(ip: str) -> str:
    """Return ``ip`` if Amap can locate it, else "" (Amap then uses the caller's address)."""
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return ""
    if address.is_private or address.is_loopback or address.version != 4:
        return ""
    return ip


@router.post("/geocode", response_model=ApiResponse)
async def geocode(body: GeocodeRequest, current_user: CurrentUser, map_service: MapServiceDep) -> ApiResponse:
    location = await map_service.geocode(body.address, body.city)
    return ok(location, "Geocoding succeeded")


@router.post("/reverse-geocode", response_model=ApiResponse)
async def reverse_geocode(
    body: ReverseGeocodeRequest,
    current_user: CurrentUser,
    map_service: MapServiceDep,
) -> ApiResponse:
    result = await map_service.reverse_geocode(body.lat, body.lng)
    return ok(result, "Reverse geocoding succeeded")


@router.get("/search-poi", response_model=ApiResponse)
async def search_poi(
    current_user: CurrentUser,
    map_service: MapServiceDep,
    keyword: str = Query(default=""),
    city: str = Query(default=""),
    types: str = Query(default=""),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=50, alias="pageSize"),
) -> ApiResponse:
    if not keyword.strip():
        raise ValidationFailedError("Please provide a search keyword")
    result = await map_service.search_poi(keyword.strip(), city, types, page, page_size)
    return ok(result, "POI search succeeded")


@router.post("/driving-route", response_model=ApiResponse)
async def driving_route(
    body: DrivingRouteRequest,
    current_user: CurrentUser,
    map_service: MapServiceDep,
) -> ApiResponse:
    route = await map_service.driving_route(
        body.origin.model_dump(),
        body.destination.model_dump(),
        [point.model_dump() for point in body.waypoints],
    )
    return ok(route, "Route planning succeeded")


@router.post("/transit-route", response_model=ApiResponse)
async def transit_route(
    body: TransitRouteRequest,
    current_user: CurrentUser,
    map_service: MapServiceDep,
) -> ApiResponse:
    routes = await map_service.transit_route(body.origin.model_dump(), body.destination.model_dump(), body.city)
    return ok(routes, "Transit route planning succeeded")


@router.get("/weather", response_model=ApiResponse)
async def weather(
    current_user: OptionalUser,
    map_service: MapServiceDep,
    city: str = Query(default=""),
) -> ApiResponse:
    if not city.strip():
        raise ValidationFailedError("Please provide a city name")
    result = await map_service.get_weather(city.strip())
    return ok(result, "Weather retrieved")


@router.get("/ip-location", response_model=ApiResponse)
async def ip_location(request: Request, current_user: OptionalUser, map_service: MapServiceDep) -> ApiResponse:
    result = await map_service.ip_location(_public_ip(get_client_ip(request)))
    return ok(result, "IP location succeeded")


@router.get("/status", response_model=ApiResponse)
async def map_status(current_user: OptionalUser, map_service: MapServiceDep) -> ApiResponse:
    details = map_service.status()
    if not map_service.is_configured:
        return ApiResponse(success=False, message="Map service is not configured", data=details)
    return ok(details, "Map service is running")


@router.get("/config", response_model=ApiResponse)
async def map_config(current_user: OptionalUser, map_service: MapServiceDep) -> ApiResponse:
    """Frontend bootstrap: whether a map key is configured (the key itself is never exposed)."""
    has_api_key = map_service.is_configured
    return ok(
        {
            "hasApiKey": has_api_key,
            "service": "Amap",
            "features": ["map display", "place markers", "route drawing", "place search"],
        },
        "Map service is configured" if has_api_key else "Map service is not configured",
    )
