"""
RoamNY Geocoding Skill
Resolves free-text location descriptions to coordinates inside a bounding box.
Mapbox needs an access token; Nominatim (OpenStreetMap) is free, no key required.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, NamedTuple, Optional
from urllib.parse import quote

import requests

from config.parameters import (
    GEOCODE_DELAY_S,
    GEOCODE_TIMEOUT_S,
    MAPBOX_GEOCODE_URL,
    MAPBOX_TYPES,
    NOMINATIM_URL,
    NYC_BBOX,
    USER_AGENT,
)
from stamper.exceptions import GeocodeMiss
from stamper.models import GeocodedPoint

logger = logging.getLogger(__name__)


class BoundingBox(NamedTuple):
    west: float
    south: float
    east: float
    north: float


NYC = BoundingBox(*NYC_BBOX)


class GeocodingProvider(ABC):
    """Resolves a text query to the single best point, or None."""

    name = "geocoder"

    @abstractmethod
    def lookup(self, query: str, bbox: BoundingBox) -> Optional[GeocodedPoint]:
        ...


class MapboxGeocoder(GeocodingProvider):
    """Mapbox Places v5, restricted to poi/address/neighborhood/place results."""

    name = "mapbox"

    def __init__(self, token: str, timeout: int = GEOCODE_TIMEOUT_S, session=None):
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup(self, query: str, bbox: BoundingBox) -> Optional[GeocodedPoint]:
        url = MAPBOX_GEOCODE_URL.format(query=quote(query, safe=""))
        params = {
            "access_token": self.token,
            "bbox": f"{bbox.west},{bbox.south},{bbox.east},{bbox.north}",
            "limit": 1,
            "types": MAPBOX_TYPES,
        }
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("Mapbox geocoding error for %r: %s", query, e)
            return None

        features = data.get("features") or []
        if not features:
            return None
        feature = features[0]
        center = feature.get("center") or []
        if len(center) != 2:
            logger.warning("Mapbox feature without a center for %r", query)
            return None
        lng, lat = center
        try:
            return GeocodedPoint(lat=float(lat), lng=float(lng), place_name=feature.get("place_name", query))
        except (TypeError, ValueError) as e:
            logger.warning("Mapbox returned a bad center for %r: %s", query, e)
            return None


class NominatimGeocoder(GeocodingProvider):
    """OpenStreetMap Nominatim search, bounded to the viewbox."""

    name = "nominatim"

    def __init__(self, timeout: int = GEOCODE_TIMEOUT_S, session=None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup(self, query: str, bbox: BoundingBox) -> Optional[GeocodedPoint]:
        params = {
            "q": query,
            "format": "json",
            "limit": 1,
            "viewbox": f"{bbox.west},{bbox.north},{bbox.east},{bbox.south}",
            "bounded": 1,
        }
        try:
            response = self.session.get(
                NOMINATIM_URL,
                params=params,
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
            )
            response.raise_for_status()
            results = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("Nominatim geocoding error for %r: %s", query, e)
            return None

        if not results:
            return None
        result = results[0]
        try:
            return GeocodedPoint(
                lat=float(result["lat"]),
                lng=float(result["lon"]),
                place_name=result.get("display_name", query),
            )
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Nominatim returned a bad result for %r: %s", query, e)
            return None


def geocode(
    query: str,
    provider: GeocodingProvider,
    bbox: BoundingBox = NYC,
    delay: float = GEOCODE_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> GeocodedPoint:
    """Geocode one query. Misses are final, never retried.

    Blank queries miss without touching the provider. Every provider call is
    followed by a fixed pause to stay under the rate limit.

    Raises:
        GeocodeMiss: blank query or no match.
    """
    query = (query or "").strip()
    if not query:
        raise GeocodeMiss(query)
    try:
        point = provider.lookup(query, bbox)
    finally:
        if delay > 0:
            sleep(delay)
    if point is None:
        raise GeocodeMiss(query)
    return point


def build_geocoder(name: str, mapbox_token: Optional[str] = None) -> GeocodingProvider:
    """Factory for the --geocoder CLI option."""
    if name == "mapbox":
        if not mapbox_token:
            raise ValueError("Mapbox geocoder requires an access token")
        return MapboxGeocoder(mapbox_token)
    if name == "nominatim":
        return NominatimGeocoder()
    raise ValueError(f"Unknown geocoder: {name}")
