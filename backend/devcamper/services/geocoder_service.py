"""
DevCamper Backend — Geocoder Service
======================================

What:  Turns free-form addresses and zipcodes into coordinates using the
       Nominatim search API.
How:   httpx AsyncClient call wrapped in tenacity retry (transient failures
       only) and a circuit breaker that fails fast while the provider is down.
Who:   BootcampService (address on create/update, zipcode for radius search);
       the health route reads the circuit state.

Resilience:
    transient error → tenacity retries (RETRY_MAX_ATTEMPTS, exponential jitter)
    → all retries fail → circuit breaker failure recorded
    → CB_FAILURE_THRESHOLD consecutive failures → OPEN, calls rejected for
      CB_RECOVERY_TIMEOUT seconds → HALF_OPEN lets one call through
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)

from devcamper.config import settings
from devcamper.exceptions import CircuitBreakerOpenError, GeocodingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class CircuitBreaker:
    """
    CLOSED → (threshold consecutive failures) → OPEN
    OPEN → (recovery_timeout elapsed) → HALF_OPEN
    HALF_OPEN → success → CLOSED, failure → OPEN

    Single-process only; counters live in memory.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """Return True if a call may proceed; raise CircuitBreakerOpenError otherwise."""
        if self.state == self.OPEN:
            elapsed = time.monotonic() - (self.last_failure_time or 0)
            if elapsed < self.recovery_timeout:
                raise CircuitBreakerOpenError(
                    recovery_time=int(self.recovery_timeout - elapsed) + 1
                )
            logger.info("Geocoder circuit HALF_OPEN after %.1fs", elapsed)
            self.state = self.HALF_OPEN
        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Geocoder circuit CLOSED (provider recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.state == self.HALF_OPEN:
            logger.warning("Geocoder circuit back to OPEN (trial call failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Geocoder circuit OPEN after %d consecutive failures", self.failure_count
            )
            self.state = self.OPEN


def _is_transient(exc: BaseException) -> bool:
    """Network errors, 429 and 5xx are worth retrying; other 4xx are not."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _parse_result(item: Dict[str, Any]) -> GeoLocation:
    address = item.get("address") or {}
    road = address.get("road")
    house = address.get("house_number")
    street = " ".join(p for p in (house, road) if p) or None
    return GeoLocation(
        latitude=float(item["lat"]),
        longitude=float(item["lon"]),
        formatted_address=item.get("display_name"),
        street=street,
        city=address.get("city") or address.get("town") or address.get("village"),
        state=address.get("state"),
        zipcode=address.get("postcode"),
        country=(address.get("country_code") or "").upper() or None,
    )


class GeocoderService:
    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.geocoder_url
        # Tests inject httpx.MockTransport here
        self._transport = transport
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    async def geocode(self, query: str) -> List[GeoLocation]:
        """Geocode a free-form address. Returns an empty list when nothing matches."""
        return await self._search({"q": query})

    async def geocode_zipcode(self, zipcode: str) -> List[GeoLocation]:
        """Geocode a postal code within GEOCODER_COUNTRY_CODES."""
        params = {"postalcode": zipcode}
        if settings.geocoder_country_codes:
            params["countrycodes"] = settings.geocoder_country_codes
        return await self._search(params)

    async def _search(self, params: Dict[str, str]) -> List[GeoLocation]:
        self.circuit_breaker.can_execute()

        query = {"format": "jsonv2", "addressdetails": "1", "limit": "1", **params}
        try:
            payload = await self._request_with_retry(query)
        except RetryError as e:
            self.circuit_breaker.record_failure()
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("Geocoder retries exhausted: %s", last)
            raise GeocodingError(
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"attempts": settings.retry_max_attempts},
            )
        except (httpx.HTTPError, ValueError) as e:
            self.circuit_breaker.record_failure()
            logger.error("Geocoder request failed: %s", e)
            raise GeocodingError(context={"error_type": type(e).__name__})

        self.circuit_breaker.record_success()

        if not isinstance(payload, list):
            raise GeocodingError(message="Geocoding provider returned an unexpected response")
        locations = [_parse_result(item) for item in payload if "lat" in item and "lon" in item]
        logger.info("Geocoded %s → %d result(s)", params, len(locations))
        return locations

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_random_exponential(
            multiplier=1,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _request_with_retry(self, params: Dict[str, str]) -> Any:
        headers = {"User-Agent": settings.geocoder_user_agent}
        async with httpx.AsyncClient(
            timeout=settings.geocoder_timeout, transport=self._transport
        ) as client:
            response = await client.get(self.base_url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()


geocoder_service = GeocoderService()
