"""Expected failure outcomes of the authorization flow."""

from typing import List, Sequence


class OAuthFlowError(Exception):
    """Base class for OAuth outcomes rendered back to the user."""

    tag = "failure"


class MissingParametersError(OAuthFlowError):
    """Callback is missing one or more required query parameters."""

    tag = "missing"

    def __init__(self, missing: Sequence[str]):
        super().__init__(f"Missing callback parameters: {', '.join(missing)}")
        self.missing: List[str] = list(missing)


class NoSessionError(OAuthFlowError):
    """No authorization flow was started for this browser."""

    tag = "no_session"


class InvalidStateError(OAuthFlowError):
    """Returned state does not match the issued one."""

    tag = "invalid_state"


class ExpiredStateError(OAuthFlowError):
    """Seller took longer than the allowed window to authorize."""

    tag = "expired"

    def __init__(self, elapsed_seconds: int, ttl_seconds: int):
        super().__init__(f"Authorization state expired after {elapsed_seconds}s (limit {ttl_seconds}s)")
        self.elapsed_seconds = elapsed_seconds
        self.ttl_seconds = ttl_seconds


class BadOAuthTokenError(OAuthFlowError):
    """Authorization code was rejected by LWA (used, expired or malformed)."""

    tag = "bad_oauth_token"
