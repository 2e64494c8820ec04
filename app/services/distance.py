import logging
from typing import Optional, Tuple, Union

import requests

from app.telemetry import get_tracer

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

Point = Union[str, Tuple[float, float]]


class ResolutionUnavailable(Exception):
    pass


def _as_param(point: Point) -> str:
    if isinstance(point, (tuple, list)):
        lat, lng = point
        return f"{float(lat)},{float(lng)}"
    return str(point)


class DistanceResolver:
    """Driving distance lookup against a Distance Matrix style JSON API.

    ``resolve_distance_km`` never raises: any failure is logged and reported
    as ``None`` so callers can fall back to the zone-text fee.
    """

    def __init__(self, api_key: Optional[str], origin: Point, url: str = DEFAULT_URL,
                 timeout: float = 3.0, session=None):
        self.api_key = api_key
        self.origin = origin
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "DistanceResolver":
        return cls(
            api_key=config.get("DISTANCE_MATRIX_API_KEY"),
            origin=(config["DELIVERY_ORIGIN_LAT"], config["DELIVERY_ORIGIN_LNG"]),
            url=config.get("DISTANCE_MATRIX_URL", DEFAULT_URL),
            timeout=float(config.get("DISTANCE_TIMEOUT_SECONDS", 3)),
        )

    def __call__(self, destination: Point) -> Optional[float]:
        return self.resolve_distance_km(self.origin, destination)

    def resolve_distance_km(self, origin: Point, destination: Point) -> Optional[float]:
        try:
            with get_tracer().start_as_current_span("distance.resolve"):
                return self._lookup(origin, destination)
        except ResolutionUnavailable as e:
            logger.warning("Distance unavailable: %s", e)
            return None

    def _lookup(self, origin: Point, destination: Point) -> float:
        if not self.api_key:
            raise ResolutionUnavailable("no API key configured")
        params = {
            "origins": _as_param(origin),
            "destinations": _as_param(destination),
            "mode": "driving",
            "units": "metric",
            "key": self.api_key,
        }
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.Timeout as e:
            raise ResolutionUnavailable(f"timed out after {self.timeout}s") from e
        except (requests.RequestException, ValueError) as e:
            raise ResolutionUnavailable(str(e)) from e

        if not isinstance(payload, dict):
            raise ResolutionUnavailable("response is not a JSON object")
        if payload.get("status") != "OK":
            raise ResolutionUnavailable(f"API status {payload.get('status')}")
        try:
            element = payload["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise ResolutionUnavailable("malformed response") from e
        if not isinstance(element, dict):
            raise ResolutionUnavailable("malformed route element")
        if element.get("status") != "OK":
            raise ResolutionUnavailable(f"route status {element.get('status')}")
        distance = element.get("distance")
        meters = distance.get("value") if isinstance(distance, dict) else None
        if meters is None:
            raise ResolutionUnavailable("no distance in response")
        try:
            return round(float(meters) / 1000.0, 2)
        except (TypeError, ValueError) as e:
            raise ResolutionUnavailable(f"non-numeric distance {meters!r}") from e
