"""Tests for the Google Places proxy."""

from __future__ import annotations

import httpx
import pytest

from services.places import PlacesClient


def _install(app, handler, api_key: str | None = "places-key") -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    app.extensions["places_client"] = PlacesClient(
        api_key, transport=httpx.MockTransport(_record)
    )
    return seen


def test_autocomplete_forwards_with_server_key(app, client):
    seen = _install(
        app,
        lambda request: httpx.Response(
            200,
            json={
                "status": "OK",
                "predictions": [
                    {"place_id": "abc", "description": "Austin, TX, USA", "types": ["locality"]}
                ],
            },
        ),
    )

    response = client.get("/api/places/autocomplete?input=Aus")

    assert response.status_code == 200
    assert response.get_json() == {
        "predictions": [{"placeId": "abc", "description": "Austin, TX, USA"}]
    }
    assert seen[0].url.path == "/maps/api/place/autocomplete/json"
    assert seen[0].url.params["key"] == "places-key"
    assert seen[0].url.params["input"] == "Aus"
    assert seen[0].url.params["components"] == "country:us"


def test_autocomplete_zero_results_is_empty_list(app, client):
    _install(app, lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS"}))

    response = client.get("/api/places/autocomplete?input=zzzz")

    assert response.status_code == 200
    assert response.get_json() == {"predictions": []}


@pytest.mark.parametrize(
    "path, message",
    [
        ("/api/places/autocomplete", "Input is required"),
        ("/api/places/autocomplete?input=%20", "Input is required"),
        ("/api/places/details", "placeId is required"),
    ],
)
def test_missing_parameters_are_rejected(app, client, path, message):
    seen = _install(app, lambda request: httpx.Response(200, json={"status": "OK"}))

    response = client.get(path)

    assert response.status_code == 400
    assert response.get_json()["error"] == message
    assert seen == []


def test_missing_api_key_is_server_error(app, client):
    seen = _install(app, lambda request: httpx.Response(200, json={}), api_key=None)

    response = client.get("/api/places/autocomplete?input=Aus")

    assert response.status_code == 500
    assert response.get_json()["error"] == "Google Places API not configured"
    assert seen == []


def test_upstream_status_error_is_bad_gateway(app, client):
    _install(
        app,
        lambda request: httpx.Response(
            200, json={"status": "REQUEST_DENIED", "error_message": "Key rejected"}
        ),
    )

    response = client.get("/api/places/autocomplete?input=Aus")

    assert response.status_code == 502
    assert response.get_json()["error"] == "Key rejected"


def test_network_failure_is_bad_gateway(app, client):
    def _fail(request):
        raise httpx.ConnectError("connection refused", request=request)

    _install(app, _fail)

    response = client.get("/api/places/details?placeId=abc")

    assert response.status_code == 502
    assert response.get_json()["error"] == "Places API error"


def test_details_normalizes_address(app, client):
    seen = _install(
        app,
        lambda request: httpx.Response(
            200,
            json={
                "status": "OK",
                "result": {
                    "formatted_address": "Austin, TX 78701, USA",
                    "geometry": {"location": {"lat": 30.27, "lng": -97.74}},
                    "address_components": [
                        {"long_name": "Austin", "short_name": "Austin", "types": ["locality"]},
                        {
                            "long_name": "Texas",
                            "short_name": "TX",
                            "types": ["administrative_area_level_1"],
                        },
                        {"long_name": "78701", "short_name": "78701", "types": ["postal_code"]},
                    ],
                },
            },
        ),
    )

    response = client.get("/api/places/details?placeId=abc")

    assert response.status_code == 200
    assert response.get_json() == {
        "placeId": "abc",
        "city": "Austin",
        "state": "TX",
        "zipCode": "78701",
        "latitude": 30.27,
        "longitude": -97.74,
        "formattedAddress": "Austin, TX 78701, USA",
    }
    assert seen[0].url.params["place_id"] == "abc"
