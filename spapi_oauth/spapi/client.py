"""Amazon Selling Partner API client for the Sellers API."""

import httpx
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin
import structlog

from spapi_oauth import __version__
from spapi_oauth.config import settings
from spapi_oauth.monitoring.metrics import spapi_requests_total

logger = structlog.get_logger(__name__)

USER_AGENT = f"spapi-oauth-service/{__version__} (Language=Python)"


class SPAPIError(Exception):
    """Base exception for SP-API errors."""
    pass


class SPAPIAuthError(SPAPIError):
    """Authentication/authorization error (401, 403)."""
    pass


class SPAPIRateLimitError(SPAPIError):
    """Rate limit exceeded (429)."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class SPAPIServerError(SPAPIError):
    """Server error (5xx)."""
    pass


class SellersClient:
    """Client for the SP-API Sellers API."""

    MARKETPLACE_PARTICIPATIONS_PATH = "/sellers/v1/marketplaceParticipations"

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize SP-API client.

        Args:
            endpoint: Regional SP-API endpoint
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.endpoint = endpoint or settings.spapi_endpoint
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport

    async def _make_request(
        self,
        method: str,
        path: str,
        lwa_access_token: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Make an SP-API request.

        Args:
            method: HTTP method
            path: API path
            lwa_access_token: LWA access token
            params: Query parameters

        Returns:
            Response JSON

        Raises:
            SPAPIError: On API errors
        """
        url = urljoin(self.endpoint, path)
        headers = {
            "x-amz-access-token": lwa_access_token,
            "user-agent": USER_AGENT,
            "accept": "application/json",
        }

        logger.info("making_spapi_request", method=method, path=path)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method=method, url=url, headers=headers, params=params)
        except httpx.HTTPError as e:
            logger.error("spapi_transport_error", path=path, error=str(e))
            raise SPAPIError(f"Request to {path} failed: {e}") from e

        spapi_requests_total.labels(endpoint=path, status_code=str(response.status_code)).inc()

        if response.status_code == 401 or response.status_code == 403:
            error_msg = f"Authentication failed: {response.status_code}"
            logger.error("spapi_auth_error", status=response.status_code, response=response.text)
            raise SPAPIAuthError(error_msg)

        elif response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            retry_after_int = int(retry_after) if retry_after and retry_after.isdigit() else None
            error_msg = f"Rate limit exceeded. Retry after: {retry_after}"
            logger.warning("spapi_rate_limit", retry_after=retry_after)
            raise SPAPIRateLimitError(error_msg, retry_after=retry_after_int)

        elif response.status_code >= 500:
            error_msg = f"Server error: {response.status_code}"
            logger.error("spapi_server_error", status=response.status_code, response=response.text)
            raise SPAPIServerError(error_msg)

        elif response.status_code != 200:
            error_msg = f"Request failed: {response.status_code}"
            logger.error("spapi_request_failed", status=response.status_code, response=response.text)
            raise SPAPIError(error_msg)

        try:
            return response.json()
        except ValueError as e:
            raise SPAPIError(f"Invalid JSON from {path}") from e

    async def get_marketplace_participations(self, lwa_access_token: str) -> List[Dict[str, Any]]:
        """
        List the marketplaces the seller participates in.

        Args:
            lwa_access_token: Valid LWA access token

        Returns:
            List of marketplace participation records

        Raises:
            SPAPIError: On API errors
        """
        data = await self._make_request(
            method="GET",
            path=self.MARKETPLACE_PARTICIPATIONS_PATH,
            lwa_access_token=lwa_access_token,
        )

        payload = data.get("payload", []) if isinstance(data, dict) else []
        logger.info("marketplace_participations_fetched", count=len(payload))
        return payload
