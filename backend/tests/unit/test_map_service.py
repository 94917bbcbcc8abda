"""
Tests for the Amap client, using httpx.MockTransport in place of the vendor.
"""

import httpx
import pytest

from travel_planner.core.exceptions import VendorError, VendorNotConfiguredError, VendorUnavailableError
from travel_planner.services.map_service import MapService, format_location, parse_location


def map_service(handler) -> MapService:
    return MapService(
        api_key="test-key",
        base_url="https://amap.test/v3",
        transport=httpx.MockTransport(handler),
    )


class TestLocationHelpers:

    def test_format_location_is_lng_first(self):
        assert format_location({"lat": 30.25, "lng": 120.16}) == "120.16,30.25"

    def test_parse_location(self):
        assert parse_location("120.16,30.25") == {"lat": 30.25, "lng": 120.16}

    @pytest.mark.parametrize("value", [None, "", [], "garbage", "1.0"])
    def test_parse_location_rejects_bad_values(self, value):
        assert parse_location(value) is None


class TestRequests:

    async def test_key_added_and_empty_params_dropped(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "status": "1",
                "geocodes": [{"location": "116.48,39.99", "formatted_address": "Beijing"}],
            })

        await map_service(handler).geocode("Wangjing SOHO")

        assert seen["path"] == "/v3/geocode/geo"
        assert seen["params"] == {"key": "test-key", "address": "Wangjing SOHO"}

    async def test_vendor_failure_status(self):
        def handler(request):
            return httpx.Response(200, json={"status": "0", "info": "INVALID_USER_KEY", "infocode": "10001"})

        with pytest.raises(VendorError) as exc_info:
            await map_service(handler).geocode("anywhere")

        assert exc_info.value.message == "INVALID_USER_KEY"
        assert exc_info.value.code == "10001"

    async def test_http_error_means_unavailable(self):
        def handler(request):
            return httpx.Response(503)

        with pytest.raises(VendorUnavailableError) as exc_info:
            await map_service(handler).search_poi("museum")

        assert "HTTP 503" in exc_info.value.message

    async def test_invalid_json_means_unavailable(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(VendorUnavailableError):
            await map_service(handler).geocode("anywhere")

    async def test_missing_key(self):
        with pytest.raises(VendorNotConfiguredError) as exc_info:
            await MapService(api_key="").geocode("anywhere")
        assert exc_info.value.missing == ["AMAP_API_KEY"]


class TestGeocoding:

    async def test_geocode_maps_fields(self):
        def handler(request):
            return httpx.Response(200, json={
                "status": "1",
                "geocodes": [{
                    "location": "120.15,30.28",
                    "formatted_address": "Zhejiang Hangzhou West Lake",
                    "province": "Zhejiang",
                    "city": "Hangzhou",
                    "district": [],
                }],
            })

        result = await map_service(handler).geocode("West Lake", "Hangzhou")

        assert result == {
            "lat": 30.28,
            "lng": 120.15,
            "formattedAddress": "Zhejiang Hangzhou West Lake",
            "province": "Zhejiang",
            "city": "Hangzhou",
            "district": "",
        }

    async def test_geocode_without_results(self):
        def handler(request):
            return httpx.Response(200, json={"status": "1", "geocodes": []})

        with pytest.raises(VendorError):
            await map_service(handler).geocode("nowhere")

    async def test_reverse_geocode(self):
        seen = {}

        def handler(request):
            seen["location"] = request.url.params["location"]
            return httpx.Response(200, json={
                "status": "1",
                "regeocode": {
                    "formatted_address": "Shanghai Huangpu The Bund",
                    "addressComponent": {
                        "country": "China",
                        "province": "Shanghai",
                        "city": [],
                        "district": "Huangpu",
                        "township": "Waitan",
                        "neighborhood": {"name": [], "type": []},
                        "streetNumber": {"street": "Zhongshan East 1st Rd", "number": "1"},
                    },
                    "pois": [{"name": "Peace Hotel"}],
                },
            })

        result = await map_service(handler).reverse_geocode(31.24, 121.49)

        assert seen["location"] == "121.49,31.24"
        assert result["address"]["city"] == ""
        assert result["address"]["district"] == "Huangpu"
        assert result["address"]["neighborhood"] == ""
        assert result["address"]["streetNumber"] == "1"
        assert result["pois"] == [{"name": "Peace Hotel"}]


class TestSearchAndRoutes:

    async def test_search_poi(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={
                "status": "1",
                "count": "57",
                "pois": [{
                    "id": "B0FFF",
                    "name": "Palace Museum",
                    "type": "Scenic spot",
                    "typecode": "110201",
                    "address": "4 Jingshan Front St",
                    "location": "116.397,39.918",
                    "tel": [],
                    "distance": [],
                    "business_area": "Donghuamen",
                }],
            })

        result = await map_service(handler).search_poi("museum", "Beijing", page=2, page_size=5)

        assert seen["keywords"] == "museum"
        assert seen["page"] == "2"
        assert seen["offset"] == "5"
        assert result["total"] == 57
        assert result["page"] == 2
        assert result["pageSize"] == 5
        poi = result["pois"][0]
        assert poi["location"] == {"lat": 39.918, "lng": 116.397}
        assert poi["typeCode"] == "110201"
        assert poi["tel"] == ""
        assert poi["distance"] is None
        assert poi["businessArea"] == "Donghuamen"

    async def test_driving_route_with_waypoints(self):
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json={
                "status": "1",
                "route": {"paths": [{
                    "distance": "12000",
                    "duration": "1800",
                    "tolls": "0",
                    "toll_distance": "0",
                    "traffic_lights": "9",
                    "steps": [{"instruction": "Head north", "road": "Nanjing Rd", "action": []}],
                }]},
            })

        route = await map_service(handler).driving_route(
            {"lat": 31.0, "lng": 121.0},
            {"lat": 31.2, "lng": 121.4},
            [{"lat": 31.1, "lng": 121.2}, {"lat": 31.15, "lng": 121.3}],
        )

        assert seen["origin"] == "121.0,31.0"
        assert seen["destination"] == "121.4,31.2"
        assert seen["waypoints"] == "121.2,31.1;121.3,31.15"
        assert seen["strategy"] == "10"
        assert route["distance"] == "12000"
        assert route["trafficLights"] == "9"
        assert route["steps"][0]["road"] == "Nanjing Rd"
        assert route["steps"][0]["action"] == ""

    async def test_driving_route_without_paths(self):
        def handler(request):
            return httpx.Response(200, json={"status": "1", "route": {"paths": []}})

        with pytest.raises(VendorError):
            await map_service(handler).driving_route({"lat": 1, "lng": 1}, {"lat": 2, "lng": 2})

    async def test_transit_route(self):
        def handler(request):
            assert request.url.params["city"] == "Shanghai"
            return httpx.Response(200, json={
                "status": "1",
                "route": {"transits": [{
                    "cost": "4",
                    "duration": "2400",
                    "walking_distance": "600",
                    "distance": "9000",
                    "nightflag": "0",
                    "segments": [{"walking": {}, "bus": {"buslines": []}}],
                }]},
            })

        routes = await map_service(handler).transit_route(
            {"lat": 31.0, "lng": 121.0}, {"lat": 31.2, "lng": 121.4}, "Shanghai",
        )

        assert routes[0]["walkingDistance"] == "600"
        assert routes[0]["nightFlag"] == "0"
        assert routes[0]["segments"][0]["bus"] == {"buslines": []}
        assert routes[0]["segments"][0]["railway"] is None


class TestWeatherAndIp:

    async def test_weather_combines_live_and_forecast(self):
        def handler(request):
            if request.url.params["extensions"] == "base":
                return httpx.Response(200, json={"status": "1", "lives": [{
                    "province": "Sichuan",
                    "city": "Chengdu",
                    "weather": "Cloudy",
                    "temperature": "18",
                    "winddirection": "North",
                    "windpower": "3",
                    "humidity": "70",
                    "reporttime": "2030-01-01 10:00:00",
                }]})
            return httpx.Response(200, json={"status": "1", "forecasts": [{
                "city": "Chengdu",
                "casts": [{"date": "2030-01-01", "dayweather": "Cloudy"}],
            }]})

        result = await map_service(handler).get_weather("Chengdu")

        assert result["current"]["temperature"] == "18"
        assert result["current"]["windDirection"] == "North"
        assert result["forecast"] == [{"date": "2030-01-01", "dayweather": "Cloudy"}]

    async def test_weather_unknown_city(self):
        def handler(request):
            return httpx.Response(200, json={"status": "1", "lives": [], "forecasts": []})

        with pytest.raises(VendorError):
            await map_service(handler).get_weather("Atlantis")

    async def test_ip_location_uses_rectangle_centre(self):
        def handler(request):
            return httpx.Response(200, json={
                "status": "1",
                "province": "Beijing",
                "city": "Beijing",
                "adcode": "110000",
                "rectangle": "116.0,39.6;117.0,40.2",
            })

        result = await map_service(handler).ip_location("1.2.3.4")

        assert result["location"] == {"lat": pytest.approx(39.9), "lng": pytest.approx(116.5)}
        assert result["country"] == "China"
        assert result["adcode"] == "110000"

    async def test_ip_location_unknown(self):
        def handler(request):
            return httpx.Response(200, json={"status": "1", "province": [], "city": [], "rectangle": []})

        with pytest.raises(VendorError):
            await map_service(handler).ip_location("")


class TestStatus:

    def test_status_reflects_configuration(self):
        assert MapService(api_key="k").status()["status"] == "available"
        assert MapService(api_key="").status()["status"] == "unavailable"
