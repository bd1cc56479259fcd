"""Prometheus metrics for the Notekeeper API.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Record metrics
# ---------------------------------------------------------------------------

RECORD_OPERATIONS = Counter(
    "notekeeper_record_operations_total",
    "Total record operations against the datastore",
    ["collection", "operation", "status"],
)

# ---------------------------------------------------------------------------
# Title fetch metrics
# ---------------------------------------------------------------------------

TITLE_FETCHES = Counter(
    "notekeeper_title_fetches_total",
    "Total remote page title fetches",
    ["outcome"],  # fetched, fallback, cached
)

TITLE_FETCH_DURATION = Histogram(
    "notekeeper_title_fetch_duration_seconds",
    "Duration of remote page title fetches in seconds",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ---------------------------------------------------------------------------
# Cache metrics
# ---------------------------------------------------------------------------

CACHE_OPERATIONS = Counter(
    "notekeeper_cache_operations_total",
    "Total title cache operations",
    ["operation"],  # hit, miss
)

# ---------------------------------------------------------------------------
# HTTP request metrics
# ---------------------------------------------------------------------------

HTTP_REQUESTS = Counter(
    "notekeeper_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_DURATION = Histogram(
    "notekeeper_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0, 30.0),
)
