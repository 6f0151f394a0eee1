"""Login with Amazon (LWA) OAuth client."""

import httpx
from typing import Any, Dict, Optional
from pydantic import BaseModel, ValidationError
import structlog

from spapi_oauth.auth.errors import BadOAuthTokenError
from spapi_oauth.config import settings
from spapi_oauth.monitoring.metrics import lwa_token_requests_total
from spapi_oauth.secrets import resolve_lwa_credentials

logger = structlog.get_logger(__name__)


class LWAError(Exception):
    """Base exception for unrecoverable LWA errors."""
    pass


class LWAProviderError(LWAError):
    """Token endpoint returned an error other than invalid_grant."""

    def __init__(self, status_code: int, error: Dict[str, Any]):
        super().__init__(f"LWA token request failed: {status_code} {error.get('error', '')}".rstrip())
        self.status_code = status_code
        self.error = error


class TokenResponseError(LWAError):
    """Token endpoint returned a success body that could not be parsed."""
    pass


class TokenResponse(BaseModel):
    """Credentials returned by the authorization_code grant."""

    refresh_token: str
    access_token: str
    expires_in: int


class LWAClient:
    """Client for Login with Amazon OAuth operations."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize LWA client.

        Args:
            client_id: LWA client ID (defaults to configured credentials)
            client_secret: LWA client secret (defaults to configured credentials)
            token_url: Token endpoint URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests

        Credentials not passed in are resolved on the first token request.
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self.token_url = token_url or settings.lwa_token_url
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport

    def _resolve_credentials(self) -> None:
        if self._client_id is not None and self._client_secret is not None:
            return

        credentials = resolve_lwa_credentials()
        self._client_id = self._client_id or credentials["client_id"]
        self._client_secret = self._client_secret or credentials["client_secret"]

    @property
    def client_id(self) -> Optional[str]:
        self._resolve_credentials()
        return self._client_id

    @property
    def client_secret(self) -> Optional[str]:
        self._resolve_credentials()
        return self._client_secret

    async def _request_token(self, grant_type: str, data: Dict[str, str]) -> Dict[str, Any]:
        body = {
            "grant_type": grant_type,
            **data,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.token_url, json=body)

        if response.is_success:
            lwa_token_requests_total.labels(grant_type=grant_type, status="success").inc()
            try:
                return response.json()
            except ValueError as e:
                raise TokenResponseError(f"Token response is not JSON: {e}") from e

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        if not isinstance(error_data, dict):
            error_data = {}

        logger.error(
            "token_request_failed",
            grant_type=grant_type,
            status_code=response.status_code,
            error=error_data.get("error"),
            error_description=error_data.get("error_description"),
        )

        if error_data.get("error") == "invalid_grant":
            lwa_token_requests_total.labels(grant_type=grant_type, status="invalid_grant").inc()
            raise BadOAuthTokenError(error_data.get("error_description") or "invalid_grant")

        lwa_token_requests_total.labels(grant_type=grant_type, status="error").inc()
        raise LWAProviderError(response.status_code, error_data)

    async def exchange_code_for_tokens(self, code: str) -> TokenResponse:
        """
        Exchange authorization code for refresh and access tokens.

        Args:
            code: spapi_oauth_code from the callback

        Returns:
            TokenResponse with tokens

        Raises:
            BadOAuthTokenError: If the code was already used, expired or malformed
            LWAProviderError: On any other token endpoint error
            TokenResponseError: If the success body is missing fields
        """
        logger.info("exchanging_authorization_code")

        token_data = await self._request_token("authorization_code", {"code": code})

        try:
            token = TokenResponse.model_validate(token_data)
        except ValidationError as e:
            logger.error("token_response_invalid", errors=e.error_count())
            raise TokenResponseError(f"Malformed token response: {e}") from e

        logger.info("token_exchange_success", expires_in=token.expires_in)
        return token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Get a fresh access token for a refresh token.

        Args:
            refresh_token: LWA refresh token

        Returns:
            Access token

        Raises:
            BadOAuthTokenError: If the refresh token was rejected
            LWAProviderError: On any other token endpoint error
            TokenResponseError: If the body has no access token
        """
        logger.info("refreshing_access_token")

        token_data = await self._request_token("refresh_token", {"refresh_token": refresh_token})

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token:
            raise TokenResponseError("Refresh response has no access_token")

        logger.info("token_refresh_success", expires_in=token_data.get("expires_in"))
        return access_token


# Global LWA client instance
lwa_client = LWAClient()
