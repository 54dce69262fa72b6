"""
Tests for the place lookup client
"""

import httpx
import pytest

from app.core.exceptions import RemoteFailureError
from app.services.places import PlaceLookupClient


def _client(handler, api_key="test-key"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PlaceLookupClient(api_key=api_key, base_url="https://places.test/api", client=http)


@pytest.mark.asyncio
class TestAutocomplete:

    async def test_predictions_are_biased_to_campus(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "status": "OK",
                "predictions": [
                    {"description": "Norris University Center, Evanston, IL", "place_id": "p1"},
                    {"description": "missing id"},
                ],
            })

        predictions = await _client(handler).autocomplete("norris", session_token="s1")

        assert [(p.description, p.place_id) for p in predictions] == [
            ("Norris University Center, Evanston, IL", "p1")
        ]
        assert seen["path"] == "/api/autocomplete/json"
        assert seen["params"]["input"] == "norris"
        assert seen["params"]["components"] == "country:us"
        assert seen["params"]["radius"] == "8000"
        assert seen["params"]["sessiontoken"] == "s1"
        assert seen["params"]["key"] == "test-key"

    async def test_blank_query_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await _client(handler).autocomplete("   ") == []

    async def test_non_ok_status_is_empty(self):
        def handler(request):
            return httpx.Response(200, json={"status": "ZERO_RESULTS", "predictions": []})

        assert await _client(handler).autocomplete("zzz") == []

    async def test_http_error_is_remote_failure(self):
        def handler(request):
            return httpx.Response(500)

        with pytest.raises(RemoteFailureError):
            await _client(handler).autocomplete("norris")

    async def test_missing_key_is_remote_failure(self):
        with pytest.raises(RemoteFailureError):
            await _client(lambda request: httpx.Response(200), api_key="").autocomplete("norris")


@pytest.mark.asyncio
class TestDetails:

    async def test_resolves_coordinates(self):
        def handler(request):
            assert request.url.params["place_id"] == "p1"
            return httpx.Response(200, json={
                "status": "OK",
                "result": {
                    "name": "Norris University Center",
                    "formatted_address": "1999 Campus Dr, Evanston, IL 60208",
                    "geometry": {"location": {"lat": 42.0534, "lng": -87.6727}},
                    "place_id": "p1",
                    "url": "https://maps.google.com/?cid=1",
                },
            })

        place = await _client(handler).details("p1")

        assert place.kind == "resolved"
        assert place.name == "Norris University Center"
        assert place.latitude == pytest.approx(42.0534)
        assert place.longitude == pytest.approx(-87.6727)
        assert place.url == "https://maps.google.com/?cid=1"

    async def test_no_geometry_is_none(self):
        def handler(request):
            return httpx.Response(200, json={"status": "OK", "result": {"name": "Somewhere"}})

        assert await _client(handler).details("p1") is None

    async def test_not_found_status_is_none(self):
        def handler(request):
            return httpx.Response(200, json={"status": "NOT_FOUND"})

        assert await _client(handler).details("p1") is None
