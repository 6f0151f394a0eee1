"""CSRF state tokens and per-flow authorization context."""

import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol
import structlog

logger = structlog.get_logger(__name__)

STATE_BYTES = 256


def generate_state() -> str:
    """Return an unguessable state token as hex."""
    return secrets.token_hex(STATE_BYTES)


@dataclass(frozen=True)
class AuthorizationFlow:
    """An authorization attempt between POST / and its callback."""

    flow_id: str
    state: str
    issued_at: int


class FlowStore(Protocol):
    """Keyed storage for in-progress authorization flows."""

    def save(self, flow: AuthorizationFlow) -> None:
        ...

    def get(self, flow_id: str) -> Optional[AuthorizationFlow]:
        ...

    def pop(self, flow_id: str) -> Optional[AuthorizationFlow]:
        ...


class InMemoryFlowStore:
    """
    Process-local flow store.

    Flows are evicted lazily on save once they are two windows old, so an
    expired flow is still reported as expired for one more window.
    Suitable for a single instance; multiple instances need a shared store.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._flows: Dict[str, AuthorizationFlow] = {}
        self._lock = threading.Lock()

    def _evict_expired(self) -> None:
        cutoff = int(self._clock()) - 2 * self.ttl_seconds
        expired = [k for k, flow in self._flows.items() if flow.issued_at < cutoff]
        for k in expired:
            del self._flows[k]
        if expired:
            logger.debug("evicted_expired_flows", count=len(expired))

    def save(self, flow: AuthorizationFlow) -> None:
        with self._lock:
            self._evict_expired()
            self._flows[flow.flow_id] = flow

    def get(self, flow_id: str) -> Optional[AuthorizationFlow]:
        with self._lock:
            return self._flows.get(flow_id)

    def pop(self, flow_id: str) -> Optional[AuthorizationFlow]:
        with self._lock:
            return self._flows.pop(flow_id, None)

    def __len__(self) -> int:
        return len(self._flows)


def start_flow(store: FlowStore, clock: Callable[[], float] = time.time) -> AuthorizationFlow:
    """Issue a new state token and remember it under a fresh flow id."""
    flow = AuthorizationFlow(
        flow_id=secrets.token_urlsafe(32),
        state=generate_state(),
        issued_at=int(clock()),
    )
    store.save(flow)
    logger.info("authorization_flow_started", issued_at=flow.issued_at)
    return flow
