"""Service driving the SP-API authorization flow."""

import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import httpx
import structlog

from spapi_oauth.api.schemas import Outcome, RenderResult
from spapi_oauth.auth.callback import CallbackValidator
from spapi_oauth.auth.consent import build_consent_url
from spapi_oauth.auth.errors import ExpiredStateError, MissingParametersError, OAuthFlowError
from spapi_oauth.auth.lwa_client import LWAClient, LWAError
from spapi_oauth.auth.state import AuthorizationFlow, FlowStore, start_flow
from spapi_oauth.config import Settings
from spapi_oauth.monitoring.metrics import (
    authorization_callbacks_total,
    authorization_flows_started_total,
    credential_checks_total,
)
from spapi_oauth.spapi.client import SellersClient, SPAPIError

logger = structlog.get_logger(__name__)


class AuthorizationService:
    """Starts authorization flows and completes them on callback."""

    def __init__(
        self,
        store: FlowStore,
        lwa_client: LWAClient,
        settings: Settings,
        sellers_client: Optional[SellersClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.lwa_client = lwa_client
        self.settings = settings
        self.sellers_client = sellers_client
        self._clock = clock
        self.validator = CallbackValidator(store, settings.state_ttl_seconds, clock=clock)

    def start(self) -> Tuple[str, AuthorizationFlow]:
        """
        Start a new flow.

        Returns:
            Tuple of (consent_url, flow)
        """
        flow = start_flow(self.store, clock=self._clock)
        url = build_consent_url(
            self.settings.sp_oauth_endpoint,
            self.settings.spapi_app_id,
            flow.state,
            debug=self.settings.debug,
        )
        authorization_flows_started_total.inc()
        logger.info("redirecting_to_consent_page", debug=self.settings.debug)
        return url, flow

    async def complete(self, query: Mapping[str, str], flow_id: Optional[str]) -> RenderResult:
        """
        Validate a callback and exchange its code for tokens.

        Expected OAuth failures are returned as tagged results. Provider
        errors other than invalid_grant propagate.

        Args:
            query: Callback query parameters
            flow_id: Flow identifier from the browser cookie

        Returns:
            RenderResult for the redirect page
        """
        try:
            params = self.validator.validate(query, flow_id)
            token = await self.lwa_client.exchange_code_for_tokens(params.spapi_oauth_code)
        except OAuthFlowError as e:
            logger.info("authorization_rejected", outcome=e.tag, reason=str(e))
            authorization_callbacks_total.labels(outcome=e.tag).inc()
            missing = e.missing if isinstance(e, MissingParametersError) else []
            ttl_seconds = e.ttl_seconds if isinstance(e, ExpiredStateError) else None
            return RenderResult(outcome=Outcome(e.tag), missing=missing, ttl_seconds=ttl_seconds)

        result = RenderResult(
            outcome=Outcome.SUCCESS,
            token=token,
            selling_partner_id=params.selling_partner_id,
        )

        if self.settings.verify_credentials and self.sellers_client is not None:
            verified, marketplaces = await self._verify_credentials(token.refresh_token)
            result.credentials_verified = verified
            result.marketplaces = marketplaces

        authorization_callbacks_total.labels(outcome=Outcome.SUCCESS.value).inc()
        logger.info(
            "seller_authorized",
            selling_partner_id=params.selling_partner_id,
            credentials_verified=result.credentials_verified,
        )
        return result

    async def _verify_credentials(self, refresh_token: str) -> Tuple[bool, List[Dict[str, Any]]]:
        """Make one SP-API call with the new refresh token. Never raises for API failures."""
        try:
            access_token = await self.lwa_client.refresh_access_token(refresh_token)
            marketplaces = await self.sellers_client.get_marketplace_participations(access_token)
        except (OAuthFlowError, LWAError, SPAPIError, httpx.HTTPError) as e:
            logger.warning("credential_check_failed", error_type=type(e).__name__, error=str(e))
            credential_checks_total.labels(result="failed").inc()
            return False, []

        credential_checks_total.labels(result="verified").inc()
        return True, marketplaces
