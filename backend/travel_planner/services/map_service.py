"""
Amap (Gaode) web service client.

Thin async wrapper around the Amap REST v3 API: geocoding, POI search,
driving and transit routing, weather and IP location. Every request carries
the ``key`` parameter; the vendor reports success with ``status == "1"``.

Coordinates are exchanged with Amap as ``"lng,lat"`` strings and returned to
callers as ``{"lat": float, "lng": float}``.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from travel_planner.core.config import settings
from travel_planner.core.exceptions import (
    VendorError,
    VendorNotConfiguredError,
    VendorUnavailableError,
)
from travel_planner.core.retry import retry_with_backoff

logger = logging.getLogger(__name__)

VENDOR = "Amap"

DRIVING_STRATEGY = "10"
TRANSIT_STRATEGY = "0"


def format_location(point: Mapping[str, Any]) -> str:
    return f"{point['lng']},{point['lat']}"


def parse_location(value: Optional[str]) -> Optional[Dict[str, float]]:
    """``"lng,lat"`` -> ``{"lat", "lng"}``; None for empty or malformed values."""
    if not value or not isinstance(value, str):
        return None
    try:
        lng, lat = value.split(",")[:2]
        return {"lat": float(lat), "lng": float(lng)}
    except ValueError:
        return None


def _text(value: Any) -> str:
    # Amap returns [] instead of "" for missing string fields
    return value if isinstance(value, str) else ""


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class MapService:
    """Client for the Amap REST API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.amap_api_key
        self.base_url = (base_url or settings.amap_base_url).rstrip("/")
        self.timeout = timeout or settings.vendor_timeout_seconds
        self._transport = transport

    def validate_config(self) -> None:
        if not self.api_key:
            raise VendorNotConfiguredError(VENDOR, ["AMAP_API_KEY"])

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @retry_with_backoff(max_retries=2, base_delay=0.5, max_delay=4.0, exceptions=(httpx.TransportError,))
    async def _fetch(self, endpoint: str, params: Dict[str, Any]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.get(f"{self.base_url}{endpoint}", params=params)

    async def _get(self, endpoint: str, params: Dict[str, Any], failure_message: str) -> Dict[str, Any]:
        """
        Call an Amap endpoint and return the decoded payload.

        Raises:
            VendorNotConfiguredError: If AMAP_API_KEY is missing
            VendorError: If Amap answers with ``status != "1"``
            VendorUnavailableError: On transport errors or non-2xx responses
        """
        self.validate_config()
        query = {"key": self.api_key}
        query.update({name: value for name, value in params.items() if value not in (None, "")})

        started = time.monotonic()
        try:
            response = await self._fetch(endpoint, query)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Map vendor returned HTTP error",
                extra={"vendor": VENDOR, "endpoint": endpoint, "status_code": e.response.status_code},
            )
            raise VendorUnavailableError(VENDOR, f"{failure_message}: HTTP {e.response.status_code}") from e
        except httpx.TransportError as e:
            logger.error(
                "Map vendor unreachable",
                extra={"vendor": VENDOR, "endpoint": endpoint, "error": str(e)},
            )
            raise VendorUnavailableError(VENDOR, f"{failure_message}: {e}") from e
        except ValueError as e:
            raise VendorUnavailableError(VENDOR, f"{failure_message}: invalid response") from e

        latency_ms = round((time.monotonic() - started) * 1000, 2)
        if data.get("status") != "1":
            logger.warning(
                "Map vendor reported failure",
                extra={"vendor": VENDOR, "endpoint": endpoint, "info": data.get("info"), "latency_ms": latency_ms},
            )
            raise VendorError(VENDOR, data.get("info") or failure_message, code=data.get("infocode"))

        logger.debug("Map vendor call succeeded", extra={"endpoint": endpoint, "latency_ms": latency_ms})
        return data

    async def geocode(self, address: str, city: str = "") -> Dict[str, Any]:
        """Address to coordinates."""
        data = await self._get("/geocode/geo", {"address": address, "city": city}, "Geocoding failed")
        geocodes = data.get("geocodes") or []
        location = parse_location(geocodes[0].get("location")) if geocodes else None
        if location is None:
            raise VendorError(VENDOR, "Geocoding failed: address not found")

        first = geocodes[0]
        return {
            **location,
            "formattedAddress": _text(first.get("formatted_address")),
            "province": _text(first.get("province")),
            "city": _text(first.get("city")),
            "district": _text(first.get("district")),
        }

    async def reverse_geocode(self, lat: float, lng: float) -> Dict[str, Any]:
        """Coordinates to address plus nearby POIs."""
        data = await self._get(
            "/geocode/regeo",
            {"location": f"{lng},{lat}", "extensions": "all", "poitype": "all"},
            "Reverse geocoding failed",
        )
        regeocode = data.get("regeocode")
        if not regeocode:
            raise VendorError(VENDOR, "Reverse geocoding failed")

        component = regeocode.get("addressComponent") or {}
        neighborhood = component.get("neighborhood") or {}
        street_number = component.get("streetNumber") or {}
        return {
            "address": {
                "formattedAddress": _text(regeocode.get("formatted_address")),
                "country": _text(component.get("country")),
                "province": _text(component.get("province")),
                "city": _text(component.get("city")),
                "district": _text(component.get("district")),
                "township": _text(component.get("township")),
                "neighborhood": _text(neighborhood.get("name")),
                "street": _text(street_number.get("street")),
                "streetNumber": _text(street_number.get("number")),
            },
            "pois": regeocode.get("pois") or [],
        }

    async def search_poi(
        self,
        keyword: str,
        city: str = "",
        types: str = "",
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        data = await self._get(
            "/place/text",
            {
                "keywords": keyword,
                "city": city,
                "types": types,
                "page": str(page),
                "offset": str(page_size),
                "extensions": "all",
            },
            "POI search failed",
        )
        pois = [
            {
                "id": poi.get("id"),
                "name": _text(poi.get("name")),
                "type": _text(poi.get("type")),
                "typeCode": _text(poi.get("typecode")),
                "address": _text(poi.get("address")),
                "location": parse_location(poi.get("location")),
                "pname": _text(poi.get("pname")),
                "cityname": _text(poi.get("cityname")),
                "adname": _text(poi.get("adname")),
                "tel": _text(poi.get("tel")),
                "distance": _to_float(poi.get("distance")),
                "businessArea": _text(poi.get("business_area")),
            }
            for poi in data.get("pois") or []
        ]
        try:
            total = int(data.get("count") or 0)
        except ValueError:
            total = 0
        return {"pois": pois, "total": total, "page": page, "pageSize": page_size}

    async def driving_route(
        self,
        origin: Mapping[str, Any],
        destination: Mapping[str, Any],
        waypoints: Sequence[Mapping[str, Any]] = (),
    ) -> Dict[str, Any]:
        params = {
            "origin": format_location(origin),
            "destination": format_location(destination),
            "strategy": DRIVING_STRATEGY,
        }
        if waypoints:
            params["waypoints"] = ";".join(format_location(point) for point in waypoints)

        data = await self._get("/direction/driving", params, "Route planning failed")
        paths = (data.get("route") or {}).get("paths") or []
        if not paths:
            raise VendorError(VENDOR, "Route planning failed: no route found")

        path = paths[0]
        return {
            "distance": path.get("distance"),
            "duration": path.get("duration"),
            "tolls": path.get("tolls"),
            "tollDistance": path.get("toll_distance"),
            "trafficLights": path.get("traffic_lights"),
            "steps": [
                {
                    "instruction": step.get("instruction"),
                    "orientation": _text(step.get("orientation")),
                    "road": _text(step.get("road")),
                    "distance": step.get("distance"),
                    "duration": step.get("duration"),
                    "polyline": step.get("polyline"),
                    "action": _text(step.get("action")),
                }
                for step in path.get("steps") or []
            ],
        }

    async def transit_route(
        self,
        origin: Mapping[str, Any],
        destination: Mapping[str, Any],
        city: str = "",
    ) -> List[Dict[str, Any]]:
        data = await self._get(
            "/direction/transit/integrated",
            {
                "origin": format_location(origin),
                "destination": format_location(destination),
                "city": city,
                "strategy": TRANSIT_STRATEGY,
            },
            "Transit route planning failed",
        )
        transits = (data.get("route") or {}).get("transits") or []
        return [
            {
                "cost": transit.get("cost"),
                "duration": transit.get("duration"),
                "walkingDistance": transit.get("walking_distance"),
                "distance": transit.get("distance"),
                "nightFlag": transit.get("nightflag", transit.get("night_flag")),
                "segments": [
                    {
                        "walking": segment.get("walking"),
                        "bus": segment.get("bus"),
                        "railway": segment.get("railway"),
                        "taxi": segment.get("taxi"),
                    }
                    for segment in transit.get("segments") or []
                ],
            }
            for transit in transits
        ]

    async def get_weather(self, city: str) -> Dict[str, Any]:
        """
        Live conditions and forecast for a city (name or adcode).

        Amap serves live data for ``extensions=base`` and forecasts for
        ``extensions=all``, so both are requested concurrently.
        """
        live_data, forecast_data = await asyncio.gather(
            self._get("/weather/weatherInfo", {"city": city, "extensions": "base"}, "Weather lookup failed"),
            self._get("/weather/weatherInfo", {"city": city, "extensions": "all"}, "Weather lookup failed"),
        )
        lives = live_data.get("lives") or []
        if not lives:
            raise VendorError(VENDOR, "Weather lookup failed: city not found")

        live = lives[0]
        forecasts = forecast_data.get("forecasts") or []
        return {
            "current": {
                "province": live.get("province"),
                "city": live.get("city"),
                "weather": live.get("weather"),
                "temperature": live.get("temperature"),
                "windDirection": live.get("winddirection"),
                "windPower": live.get("windpower"),
                "humidity": live.get("humidity"),
                "reportTime": live.get("reporttime"),
            },
            "forecast": forecasts[0].get("casts", []) if forecasts else [],
        }

    async def ip_location(self, ip: str = "") -> Dict[str, Any]:
        """Approximate location of an IP: centre of the reported city rectangle."""
        data = await self._get("/ip", {"ip": ip}, "IP location failed")
        rectangle = _text(data.get("rectangle"))
        corners = [parse_location(corner) for corner in rectangle.split(";")[:2]]
        if len(corners) != 2 or None in corners:
            raise VendorError(VENDOR, "IP location failed: location unknown")

        south_west, north_east = corners
        return {
            "location": {
                "lat": (south_west["lat"] + north_east["lat"]) / 2,
                "lng": (south_west["lng"] + north_east["lng"]) / 2,
            },
            "country": _text(data.get("country")) or "China",
            "province": _text(data.get("province")),
            "city": _text(data.get("city")),
            "district": _text(data.get("district")),
            "isp": _text(data.get("isp")),
            "adcode": _text(data.get("adcode")),
        }

    def status(self) -> Dict[str, Any]:
        return {
            "service": VENDOR,
            "status": "available" if self.is_configured else "unavailable",
            "features": [
                "geocode",
                "reverse geocode",
                "POI search",
                "driving route",
                "transit route",
                "weather",
                "IP location",
            ],
        }
