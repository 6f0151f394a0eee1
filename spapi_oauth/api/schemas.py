"""Pydantic schemas for API responses and rendered outcomes."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from spapi_oauth.auth.lwa_client import TokenResponse


class Outcome(str, Enum):
    """Result tag passed to the redirect page."""
    MISSING = "missing"
    NO_SESSION = "no_session"
    INVALID_STATE = "invalid_state"
    EXPIRED = "expired"
    BAD_OAUTH_TOKEN = "bad_oauth_token"
    SUCCESS = "success"
    FAILURE = "failure"


class RenderResult(BaseModel):
    """Outcome of an authorization callback."""
    outcome: Outcome
    missing: List[str] = []
    token: Optional[TokenResponse] = None
    selling_partner_id: Optional[str] = None
    credentials_verified: Optional[bool] = None
    marketplaces: List[Dict[str, Any]] = []
    ttl_seconds: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.outcome == Outcome.SUCCESS


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    version: str
