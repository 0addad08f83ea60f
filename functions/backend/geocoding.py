"""
Geocoding abstraction over the Google Maps Geocoding web service.

Lookups never raise into callers. Every call returns a ``GeocodeResult`` whose
status says whether the place resolved, was not found, or the service failed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

DEFAULT_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
REQUEST_TIMEOUT = 30  # seconds


class GeocodeStatus(str, Enum):
    RESOLVED = "RESOLVED"
    NOT_FOUND = "NOT_FOUND"
    SERVICE_ERROR = "SERVICE_ERROR"


@dataclass
class Coordinates:
    lat: float
    lng: float

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass
class GeocodeResult:
    status: GeocodeStatus
    formatted_address: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.status == GeocodeStatus.RESOLVED

    @classmethod
    def not_found(cls) -> "GeocodeResult":
        return cls(status=GeocodeStatus.NOT_FOUND)

    @classmethod
    def service_error(cls, error: str) -> "GeocodeResult":
        return cls(status=GeocodeStatus.SERVICE_ERROR, error=error)


class GeocodingClient(Protocol):
    """Operations the service needs from a geocoder."""

    def geocode_address(self, address: str) -> GeocodeResult:
        ...

    def geocode_place_id(self, place_id: str) -> GeocodeResult:
        ...


def _result_from_payload(payload: dict) -> GeocodeResult:
    """Convert a Geocoding API JSON payload into a result using its first match."""
    if not isinstance(payload, dict):
        return GeocodeResult.service_error(
            f"unexpected payload type {type(payload).__name__}"
        )
    status = payload.get("status")
    results = payload.get("results") or []

    if status == "ZERO_RESULTS" or (status == "OK" and not results):
        return GeocodeResult.not_found()
    if status != "OK":
        message = payload.get("error_message") or status or "unknown status"
        return GeocodeResult.service_error(message)

    first = results[0]
    location = (first.get("geometry") or {}).get("location") or {}
    coordinates = None
    if "lat" in location and "lng" in location:
        coordinates = Coordinates(lat=location["lat"], lng=location["lng"])
    return GeocodeResult(
        status=GeocodeStatus.RESOLVED,
        formatted_address=first.get("formatted_address"),
        coordinates=coordinates,
    )


@dataclass
class GoogleMapsGeocodingClient:
    """Geocoder backed by the Google Maps Geocoding API."""

    api_key: Optional[str]
    endpoint: str = DEFAULT_GEOCODE_URL
    timeout: float = REQUEST_TIMEOUT

    def geocode_address(self, address: str) -> GeocodeResult:
        return self._geocode({"address": address})

    def geocode_place_id(self, place_id: str) -> GeocodeResult:
        return self._geocode({"place_id": place_id})

    def _geocode(self, params: dict) -> GeocodeResult:
        query = dict(params)
        if self.api_key:
            query["key"] = self.api_key
        try:
            response = requests.get(self.endpoint, params=query, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Geocoder request failed for %s: %s", params, exc)
            return GeocodeResult.service_error(str(exc))

        result = _result_from_payload(payload)
        if result.status == GeocodeStatus.SERVICE_ERROR:
            logger.warning("Geocoder failed for %s: %s", params, result.error)
        elif result.status == GeocodeStatus.NOT_FOUND:
            logger.info("No geocoding results found for %s", params)
        return result


@dataclass
class StaticGeocodingClient:
    """Test double that resolves addresses and place ids from fixed tables."""

    addresses: dict = field(default_factory=dict)
    places: dict = field(default_factory=dict)
    fail_with: Optional[str] = None

    def geocode_address(self, address: str) -> GeocodeResult:
        return self._lookup(self.addresses, address)

    def geocode_place_id(self, place_id: str) -> GeocodeResult:
        return self._lookup(self.places, place_id)

    def _lookup(self, table: dict, key: str) -> GeocodeResult:
        if self.fail_with:
            return GeocodeResult.service_error(self.fail_with)
        match = table.get(key)
        if match is None:
            return GeocodeResult.not_found()
        if isinstance(match, GeocodeResult):
            return match
        formatted_address, (lat, lng) = match
        return GeocodeResult(
            status=GeocodeStatus.RESOLVED,
            formatted_address=formatted_address,
            coordinates=Coordinates(lat=lat, lng=lng),
        )


def get_address_from_place_id(client: GeocodingClient, place_id: str) -> GeocodeResult:
    """Resolve a place id to its formatted address."""
    result = client.geocode_place_id(place_id)
    if result.resolved and not result.formatted_address:
        return GeocodeResult.not_found()
    return result


def get_coordinates_from_place_id(
    client: GeocodingClient, place_id: str
) -> GeocodeResult:
    """Resolve a place id to a latitude/longitude pair."""
    result = client.geocode_place_id(place_id)
    if result.resolved and result.coordinates is None:
        return GeocodeResult.not_found()
    return result
