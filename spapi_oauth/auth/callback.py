"""Validation of the OAuth callback from Seller Central."""

import hmac
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional
import structlog

from spapi_oauth.auth.errors import (
    ExpiredStateError,
    InvalidStateError,
    MissingParametersError,
    NoSessionError,
)
from spapi_oauth.auth.state import FlowStore

logger = structlog.get_logger(__name__)

REQUIRED_PARAMS = ("state", "spapi_oauth_code", "selling_partner_id")


@dataclass(frozen=True)
class CallbackParameters:
    """Query parameters Amazon appends to the redirect URI."""

    state: str
    spapi_oauth_code: str
    selling_partner_id: str

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "CallbackParameters":
        """
        Extract the required parameters from a parsed query string.

        Raises:
            MissingParametersError: Listing absent keys in check order
        """
        missing = [name for name in REQUIRED_PARAMS if name not in query]
        if missing:
            raise MissingParametersError(missing)

        return cls(**{name: query[name] for name in REQUIRED_PARAMS})


class CallbackValidator:
    """Checks a callback against the flow that started it."""

    def __init__(
        self,
        store: FlowStore,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def validate(self, query: Mapping[str, str], flow_id: Optional[str]) -> CallbackParameters:
        """
        Validate callback parameters, state and expiry.

        The flow is consumed once its state matches, so a state is accepted
        at most once. A mismatched state leaves the flow in place.

        Args:
            query: Parsed callback query parameters
            flow_id: Flow identifier from the browser cookie, if any

        Returns:
            Validated callback parameters

        Raises:
            MissingParametersError, NoSessionError, InvalidStateError, ExpiredStateError
        """
        params = CallbackParameters.from_query(query)

        flow = self.store.get(flow_id) if flow_id else None
        if flow is None:
            logger.warning("callback_without_flow", has_cookie=bool(flow_id))
            raise NoSessionError("No authorization flow in progress")

        if not hmac.compare_digest(params.state.encode(), flow.state.encode()):
            logger.warning("callback_state_mismatch", selling_partner_id=params.selling_partner_id)
            raise InvalidStateError("State does not match the issued value")

        if self.store.pop(flow_id) is None:
            logger.warning("callback_flow_already_consumed")
            raise NoSessionError("Authorization flow already completed")

        # The seller has to authorize the app within the window
        elapsed = int(self._clock()) - flow.issued_at
        if elapsed > self.ttl_seconds:
            logger.warning("callback_state_expired", elapsed=elapsed, ttl=self.ttl_seconds)
            raise ExpiredStateError(elapsed, self.ttl_seconds)

        logger.info("callback_validated", selling_partner_id=params.selling_partner_id, elapsed=elapsed)
        return params
