# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics, single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "hotline_requests_total",
    "Total HTTP requests to the hotline service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "hotline_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "hotline_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
CALLS_TOTAL = Counter(
    "hotline_calls_total",
    "Inbound call webhooks handled",
    ["state", "role"],
)
FORWARD_UPDATES = Counter(
    "hotline_forward_updates_total",
    "Writes to the forward number",
    ["source"],
)
OVERRIDE_REJECTIONS = Counter(
    "hotline_override_rejections_total",
    "Admin override attempts with an unusable number",
)
FORWARD_STORE_ERRORS = Counter(
    "hotline_forward_store_errors_total",
    "Forward-state store failures",
    ["operation"],
)
RESOLVER_RUNS = Counter(
    "hotline_resolver_runs_total",
    "Scheduled forward refreshes",
    ["outcome"],
)
