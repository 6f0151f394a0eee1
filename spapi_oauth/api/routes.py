"""API routes for the service."""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
import structlog

from spapi_oauth import __version__
from spapi_oauth.api.presenter import presenter
from spapi_oauth.api.schemas import HealthResponse, Outcome
from spapi_oauth.auth.lwa_client import lwa_client
from spapi_oauth.auth.service import AuthorizationService
from spapi_oauth.auth.state import InMemoryFlowStore
from spapi_oauth.config import settings
from spapi_oauth.monitoring.metrics import registry
from spapi_oauth.spapi.client import SellersClient

logger = structlog.get_logger(__name__)

router = APIRouter()

flow_store = InMemoryFlowStore(settings.state_ttl_seconds)
sellers_client = SellersClient()


def get_authorization_service() -> AuthorizationService:
    """Build the authorization service (for dependency injection in FastAPI)."""
    return AuthorizationService(
        store=flow_store,
        lwa_client=lwa_client,
        settings=settings,
        sellers_client=sellers_client,
    )


# Health check
@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Not Found")
    return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)


# OAuth / Authorization routes
@router.get("/", response_class=HTMLResponse)
async def authorize_page(request: Request):
    """Display the authorize page."""
    return presenter.authorize_page(request)


@router.post("/")
async def start_authorization(
    service: AuthorizationService = Depends(get_authorization_service),
):
    """
    Redirect to the Seller Central consent page when the authorize form is submitted.

    Returns:
        303 redirect carrying the flow cookie
    """
    consent_url, flow = service.start()

    response = RedirectResponse(url=consent_url, status_code=303)
    # Keep the state token out of the Referer header on Amazon's page
    response.headers["Referrer-Policy"] = "no-referrer"
    response.set_cookie(
        service.settings.flow_cookie_name,
        flow.flow_id,
        # Outlives the window so a late callback is reported as expired
        max_age=2 * service.settings.state_ttl_seconds,
        httponly=True,
        secure=service.settings.cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/redirect", response_class=HTMLResponse)
async def oauth_redirect(
    request: Request,
    service: AuthorizationService = Depends(get_authorization_service),
):
    """
    Handle the redirect from Seller Central after the seller approves the app.

    Amazon passes state, spapi_oauth_code and selling_partner_id. The code is
    exchanged for an LWA refresh token, which can then mint access tokens for
    SP-API calls on the seller's behalf.

    Returns:
        Redirect page with the tokens or an error tag
    """
    cookie_name = service.settings.flow_cookie_name
    logger.info("handling_oauth_callback", params=sorted(request.query_params.keys()))

    result = await service.complete(request.query_params, request.cookies.get(cookie_name))

    response = presenter.result_page(request, result)
    # The flow survives callbacks rejected before it was consumed
    if result.outcome not in (Outcome.MISSING, Outcome.INVALID_STATE):
        response.delete_cookie(cookie_name)
    return response
