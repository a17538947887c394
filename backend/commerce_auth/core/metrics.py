"""Prometheus metrics shared across the service."""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "commerce_auth_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "commerce_auth_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
LOGIN_ATTEMPTS = Counter(
    "commerce_auth_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],
)
TOKENS_REVOKED = Counter(
    "commerce_auth_tokens_revoked_total",
    "Tokens added to the revocation registry",
)
