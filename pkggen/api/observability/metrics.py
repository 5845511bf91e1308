from __future__ import annotations

import re

from prometheus_client import Counter, Histogram

_FIELD_ROUTE = re.compile(r"^(/api/v\d+/packages/fields)/[^/]+$")


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"
    p = re.sub(r"/\d+", "/:id", p)
    # field names are user data
    return _FIELD_ROUTE.sub(r"\1/:name", p)


HTTP_REQUESTS_TOTAL = Counter(
    "pkggen_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "pkggen_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def observe_request(method: str, path: str, status: int, seconds: float) -> str:
    """Record one request; returns the label path used."""
    label = normalize_path(path)
    m = method.upper()
    HTTP_REQUESTS_TOTAL.labels(method=m, path=label, status=str(status)).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(method=m, path=label).observe(seconds)
    return label
