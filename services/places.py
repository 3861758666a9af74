"""Google Places proxy used for location search."""

from __future__ import annotations

import logging

import httpx

from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"


class PlacesClient:
    """Forwards autocomplete and details lookups with the server-held key."""

    def __init__(
        self,
        api_key: str | None,
        *,
        timeout: float = 8.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self._client = httpx.Client(
            base_url=PLACES_BASE_URL, timeout=timeout, transport=transport
        )

    def _get(self, path: str, params: dict, ok_statuses: tuple[str, ...]) -> dict:
        if not self.api_key:
            raise ConfigurationError("Google Places API not configured")

        try:
            resp = self._client.get(path, params={**params, "key": self.api_key})
        except httpx.HTTPError as exc:
            logger.warning("Places request to %s failed: %s", path, exc)
            raise UpstreamError("Places API error") from exc

        if resp.status_code >= 400:
            logger.warning("Places error %s: %s", resp.status_code, resp.text[:200])
            raise UpstreamError("Places API error")

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("Places API error") from exc

        if data.get("status") not in ok_statuses:
            raise UpstreamError(data.get("error_message") or "Places API error")
        return data

    def autocomplete(self, text: str) -> list[dict]:
        data = self._get(
            "/autocomplete/json",
            {"input": text, "types": "(regions)", "components": "country:us"},
            ("OK", "ZERO_RESULTS"),
        )
        return [
            {"placeId": p.get("place_id"), "description": p.get("description")}
            for p in data.get("predictions") or []
        ]

    def details(self, place_id: str) -> dict:
        data = self._get(
            "/details/json",
            {
                "place_id": place_id,
                "fields": "geometry,address_components,formatted_address",
            },
            ("OK",),
        )
        result = data.get("result") or {}
        components = result.get("address_components") or []

        def component(kind: str, key: str = "long_name") -> str:
            for item in components:
                if kind in item.get("types", []):
                    return item.get(key) or ""
            return ""

        location = (result.get("geometry") or {}).get("location") or {}
        return {
            "placeId": place_id,
            "city": component("locality"),
            "state": component("administrative_area_level_1", "short_name"),
            "zipCode": component("postal_code"),
            "latitude": location.get("lat"),
            "longitude": location.get("lng"),
            "formattedAddress": result.get("formatted_address"),
        }

    def close(self) -> None:
        self._client.close()
