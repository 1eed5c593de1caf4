import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

import requests

from src.models.event import Coordinate

# Constants
GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DEFAULT_REGION = "se"
REQUEST_TIMEOUT = 10
HIDDEN_KEY = "API_KEY_HIDDEN"

# Get logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolved:
    coordinate: Coordinate


@dataclass(frozen=True)
class NotFound:
    reason: str = ""


@dataclass(frozen=True)
class ServiceError:
    cause: str


GeocodeOutcome = Union[Resolved, NotFound, ServiceError]


class GoogleGeocoder:
    """
    Resolves a free-text address to a coordinate with one Google Geocoding request.

    Transport failures, timeouts and malformed responses come back as `ServiceError`
    instead of being raised, so a single bad lookup never stops a batch run.
    The API key is never written to the log or put into an error cause.
    """

    def __init__(self, api_key=None, region=DEFAULT_REGION, timeout=REQUEST_TIMEOUT,
                 base_url=GOOGLE_GEOCODE_URL, session=None):
        self.api_key = api_key
        self.region = region
        self.timeout = timeout
        self.base_url = base_url
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings, session=None):
        return cls(
            api_key=settings.api_key,
            region=settings.GEOCODE_REGION,
            timeout=settings.GEOCODE_TIMEOUT,
            base_url=settings.GOOGLE_GEOCODE_URL,
            session=session,
        )

    def _redact(self, text: str) -> str:
        if self.api_key:
            return text.replace(self.api_key, HIDDEN_KEY)
        return text

    def resolve(self, address: Optional[str]) -> GeocodeOutcome:
        if not address or not address.strip():
            return NotFound("empty address")

        if not self.api_key:
            logger.error("GOOGLE_GEOCODING_API_KEY is not set, skipping geocoding")
            return NotFound("missing API key")

        params = {"address": address, "key": self.api_key, "region": self.region}

        try:
            prepared = requests.Request("GET", self.base_url, params=params).prepare()
            logger.info(f"Google Geocoding request: {self._redact(prepared.url)}")

            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout:
            cause = f"Geocoding request timed out after {self.timeout}s"
            logger.error(f'Google Geocoding error for "{address}": {cause}')
            return ServiceError(cause)
        except requests.RequestException as e:
            cause = self._redact(f"Geocoding request failed: {e}")
            logger.error(f'Google Geocoding error for "{address}": {cause}')
            return ServiceError(cause)

        try:
            data = response.json()
        except ValueError as e:
            cause = self._redact(f"Invalid JSON in geocoding response: {e}")
            logger.error(f'Google Geocoding error for "{address}": {cause}')
            return ServiceError(cause)

        if not isinstance(data, dict):
            logger.error(f'Google Geocoding error for "{address}": unexpected response type')
            return ServiceError("Malformed geocoding response")

        status = data.get("status")
        results = data.get("results") or []
        logger.info(f'Google Response: {status}, {len(results)} results for "{address}"')

        if status != "OK" or not results:
            logger.warning(f'Google: {status} - no coordinate found for "{address}"')
            return NotFound(str(status))

        try:
            location = results[0]["geometry"]["location"]
            lat = float(location["lat"])
            lon = float(location["lng"])
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f'Google Geocoding error for "{address}": malformed result ({e!r})')
            return ServiceError(f"Malformed geocoding result: missing or invalid {e}")

        if not (math.isfinite(lat) and math.isfinite(lon)):
            return ServiceError("Malformed geocoding result: non-finite coordinate")

        logger.info(f'Google: found coordinates for "{address}"')
        return Resolved(Coordinate(lat=lat, lon=lon))
