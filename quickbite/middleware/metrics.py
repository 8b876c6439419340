import re
import time

from prometheus_client import Counter, Gauge, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently being served",
    ["method"],
)

# Scrapes and probes would otherwise dominate the counters.
_UNTRACKED_PREFIXES = ("/metrics", "/health")

# Menu item ids, categories and tags are caller-controlled; collapse them to
# their route template so label cardinality stays bounded.
_PATH_PATTERNS = [
    (re.compile(r"/menu-items/category/[^/]+$"), "/menu-items/category/{category}"),
    (re.compile(r"/menu-items/dietary-tag/[^/]+$"), "/menu-items/dietary-tag/{dietary_tag}"),
    (re.compile(r"/menu-items/-?\d+$"), "/menu-items/{menu_item_id}"),
]


def normalise_path(path: str) -> str:
    for pattern, replacement in _PATH_PATTERNS:
        normalised, count = pattern.subn(replacement, path)
        if count:
            return normalised
    return path


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path.startswith(_UNTRACKED_PREFIXES):
            return await call_next(request)

        path = normalise_path(request.url.path)
        in_progress = REQUESTS_IN_PROGRESS.labels(method=request.method)
        in_progress.inc()
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            in_progress.dec()
            REQUEST_COUNT.labels(
                method=request.method,
                path=path,
                status=str(status_code),
            ).inc()
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(
                time.perf_counter() - start
            )

        return response
