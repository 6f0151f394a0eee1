"""Prometheus metrics for monitoring."""

from prometheus_client import Counter, CollectorRegistry

# Create registry
registry = CollectorRegistry()

# Authorization flows
authorization_flows_started_total = Counter(
    "authorization_flows_started_total",
    "Total number of authorization flows started",
    registry=registry,
)

authorization_callbacks_total = Counter(
    "authorization_callbacks_total",
    "Total number of OAuth callbacks handled",
    ["outcome"],
    registry=registry,
)

# LWA token operations
lwa_token_requests_total = Counter(
    "lwa_token_requests_total",
    "Total number of LWA token endpoint requests",
    ["grant_type", "status"],
    registry=registry,
)

# SP-API operations
spapi_requests_total = Counter(
    "spapi_requests_total",
    "Total number of SP-API requests",
    ["endpoint", "status_code"],
    registry=registry,
)

credential_checks_total = Counter(
    "credential_checks_total",
    "Total number of post-authorization credential checks",
    ["result"],
    registry=registry,
)
