"""
Infrastructure layer: NEON named location client with retry logic.

Resolves reference point keys (``namedLocation.pointID``) to their surveyed
UTM coordinates using the NEON data portal ``/locations`` endpoint.
"""
import asyncio
import logging
from typing import Dict, Any, Iterable, Optional, Union
from pydantic import BaseModel, Field, ValidationError
import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from woodyveg.config import settings
from woodyveg.domain.models import ResolvedReference
from woodyveg.infrastructure.api_constants import APIConstants, NeonAPIEndpoints

logger = logging.getLogger(__name__)


# Pydantic models for API responses
class NeonLocationData(BaseModel):
    """Named location payload from the NEON API."""
    location_name: str = Field(alias="locationName")
    easting: Optional[float] = Field(default=None, alias="locationUtmEasting")
    northing: Optional[float] = Field(default=None, alias="locationUtmNorthing")
    utm_zone: Optional[Union[int, str]] = Field(default=None, alias="locationUtmZone")
    utm_hemisphere: Optional[str] = Field(default=None, alias="locationUtmHemisphere")
    elevation: Optional[float] = Field(default=None, alias="locationElevation")

    class Config:
        populate_by_name = True

    def to_reference(self) -> ResolvedReference:
        zone = None
        if self.utm_zone is not None:
            zone = f"{self.utm_zone}{self.utm_hemisphere or ''}"
        return ResolvedReference(
            named_location=self.location_name,
            easting=self.easting,
            northing=self.northing,
            utm_zone=zone,
            elevation=self.elevation,
        )


class NeonLocationResponse(BaseModel):
    """Response from the locations endpoint."""
    data: NeonLocationData


class ExternalAPIError(Exception):
    """Custom exception for external API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NeonLocationClient:
    """
    Client for the NEON named location API.
    Implements retry logic with exponential backoff.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
    ):
        """Initialize the API client with configuration."""
        self.base_url = base_url or settings.neon_api_base_url
        self.api_token = settings.neon_api_token if api_token is None else api_token
        self.max_concurrent_requests = settings.max_concurrent_requests
        self.resolver_timeout = settings.resolver_timeout_seconds

        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        if self.api_token:
            headers[APIConstants.TOKEN_HEADER] = self.api_token

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.request_timeout_seconds,
        )

    async def __aenter__(self) -> "NeonLocationClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Response data as dictionary

        Raises:
            ExternalAPIError: On client errors (4xx), which are not retried
            httpx.HTTPStatusError: On server errors once retries are exhausted
            httpx.RequestError: On transport errors once retries are exhausted
            ValueError: If the response body is not JSON
        """
        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            # Retry on server errors (5xx)
            if e.response.status_code >= 500:
                raise
            # Don't retry on client errors (4xx)
            raise ExternalAPIError(
                f"API request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )

    async def get_location(self, location_name: str) -> ResolvedReference:
        """
        Fetch the surveyed coordinates of a named location.

        Args:
            location_name: Named location, e.g. ``HARV_033.basePlot.vst.41``

        Returns:
            ResolvedReference (easting/northing may be None if not surveyed)

        Raises:
            ExternalAPIError: If the request fails or the payload is malformed
        """
        try:
            data = await self._make_request("GET", NeonAPIEndpoints.get_location(location_name))
        except httpx.HTTPStatusError as e:
            raise ExternalAPIError(
                f"API request failed after retries: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise ExternalAPIError(f"API request error: {str(e)}") from e
        except ValueError as e:
            # Body was not JSON (maintenance or proxy page)
            raise ExternalAPIError(
                f"Unexpected response for location '{location_name}': {str(e)}"
            ) from e

        try:
            response = NeonLocationResponse(**data)
        except (TypeError, ValidationError) as e:
            raise ExternalAPIError(
                f"Unexpected response for location '{location_name}': {str(e)}"
            ) from e
        return response.data.to_reference()

    async def _resolve_one(
        self,
        key: str,
        semaphore: asyncio.Semaphore,
    ) -> tuple[str, Optional[ResolvedReference]]:
        async with semaphore:
            try:
                reference = await asyncio.wait_for(
                    self.get_location(key), timeout=self.resolver_timeout
                )
            except ExternalAPIError as e:
                logger.warning(f"Could not resolve reference point '{key}': {e.message}")
                return key, None
            except asyncio.TimeoutError:
                logger.warning(f"Timed out resolving reference point '{key}' "
                               f"after {self.resolver_timeout}s")
                return key, None

        if not reference.is_complete:
            logger.warning(f"Reference point '{key}' has no UTM coordinates")
            return key, None
        return key, reference

    async def resolve(
        self,
        keys: Iterable[str],
    ) -> dict[str, Optional[ResolvedReference]]:
        """
        Resolve reference point keys to surveyed coordinates.

        Distinct keys are looked up concurrently. A key whose lookup fails,
        times out or lacks coordinates maps to None rather than raising.

        Args:
            keys: Reference point keys (duplicates are looked up once)

        Returns:
            Mapping of every distinct key to its ResolvedReference or None
        """
        unique_keys = sorted({k for k in keys if k})
        if not unique_keys:
            return {}

        logger.info(f"Resolving {len(unique_keys)} reference points from {self.base_url}")
        semaphore = asyncio.Semaphore(self.max_concurrent_requests)
        results = await asyncio.gather(
            *(self._resolve_one(key, semaphore) for key in unique_keys)
        )

        resolved = dict(results)
        found = sum(1 for r in resolved.values() if r is not None)
        logger.info(f"Resolved {found}/{len(unique_keys)} reference points")
        return resolved
