"""Directions provider client (Google Directions JSON API)."""

from __future__ import annotations

from typing import Any

import requests

DIRECTIONS_API_URL = "https://maps.googleapis.com/maps/api/directions/json"

TRANSIT_MODES = {"bus": "bus", "train": "rail"}
TRAVEL_MODES = {"bike": "bicycling", "walk": "walking", "drive": "driving"}


class DirectionsClientError(Exception):
    """Raised when a directions request fails or returns a non-200 response."""


class DirectionsClient:
    """Thin wrapper around the directions endpoint using requests."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DIRECTIONS_API_URL,
        timeout_seconds: float = 10,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds

    def get_transit_routes(self, origin: str, destination: str, kind: str) -> dict[str, Any]:
        """Fetch departing-now transit alternatives for a bus or train stop."""
        try:
            transit_mode = TRANSIT_MODES[kind]
        except KeyError as exc:
            raise ValueError(f"Not a transit stop type: {kind}") from exc
        params = {
            "origin": origin,
            "destination": destination,
            "mode": "transit",
            "transit_mode": transit_mode,
            "departure_time": "now",
            "alternatives": "true",
        }
        return self._get(params)

    def get_travel_route(self, origin: str, destination: str, kind: str) -> dict[str, Any]:
        """Fetch a point-to-point route for a bike, walk or drive stop."""
        try:
            mode = TRAVEL_MODES[kind]
        except KeyError as exc:
            raise ValueError(f"Not a point-to-point stop type: {kind}") from exc
        params = {"origin": origin, "destination": destination, "mode": mode}
        return self._get(params)

    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        query = dict(params, key=self._api_key)
        try:
            response = requests.get(self._base_url, params=query, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise DirectionsClientError(f"Directions request failed: {exc}") from exc

        if response.status_code != 200:
            body_text = response.text.strip()
            detail = f"Status {response.status_code}"
            if body_text:
                detail = f"{detail}, Body: {body_text}"
            raise DirectionsClientError(f"Directions request failed: {detail}")

        try:
            return response.json()
        except ValueError as exc:
            raise DirectionsClientError("Directions response was not valid JSON") from exc


__all__ = ["DIRECTIONS_API_URL", "DirectionsClient", "DirectionsClientError"]
